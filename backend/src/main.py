# pyright: reportMissingTypeStubs=false
"""
Clinic Reservation Backend API

A FastAPI application serving the appointment scheduling engine of the
clinic chatbot service. Clinic settings, appointments and holidays live in
each clinic's Google Sheets spreadsheet; the application database only maps
sites to their spreadsheet.

Features:
- Slot availability, booking and cancellation endpoints
- Dashboard appointment list for site owners
- Daily reminder job (in-process scheduler and cron endpoint)
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import appointments, cron
from core.constants import CORS_ORIGINS
from core.database import create_tables
from services.reminder_service import start_reminder_scheduler, stop_reminder_scheduler
from services.sheet_store import SheetStoreError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)
logger.info("🏥 Clinic Reservation API starting...")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("🚀 Starting Clinic Reservation Backend API")

    try:
        create_tables()
    except Exception as e:
        logger.exception(f"❌ Failed to create database tables: {e}")

    try:
        await start_reminder_scheduler()
        logger.info("✅ Appointment reminder scheduler started")
    except Exception as e:
        logger.exception(f"❌ Failed to start reminder scheduler: {e}")

    yield

    try:
        await stop_reminder_scheduler()
        logger.info("🛑 Appointment reminder scheduler stopped")
    except Exception as e:
        logger.exception(f"❌ Error stopping reminder scheduler: {e}")

    logger.info("🛑 Shutting down Clinic Reservation Backend API")


# Create FastAPI application
app = FastAPI(
    title="Clinic Reservation Backend",
    description="Spreadsheet-backed appointment scheduling for clinic chatbots",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc",  # ReDoc
    lifespan=lifespan,
)

# CORS middleware for the embedded widget and dashboard
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(
    appointments.router,
    prefix="/api/appointments",
    tags=["appointments"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Resource not found"},
        409: {"description": "Conflict"},
        502: {"description": "Spreadsheet unavailable"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    cron.router,
    prefix="/api/cron",
    tags=["cron"],
    responses={
        401: {"description": "Unauthorized"},
        500: {"description": "Internal server error"},
    },
)


@app.get(
    "/",
    summary="Root endpoint",
    description="Returns basic API information",
)
async def root() -> dict[str, str]:
    """Get API information."""
    return {
        "message": "Clinic Reservation Backend API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get(
    "/health",
    summary="Health check",
    description="Returns the health status of the API",
)
async def health_check() -> dict[str, str]:
    """Check if the API is healthy and responding."""
    return {"status": "healthy"}


# Global exception handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions globally."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "内部サーバーエラー", "type": "internal_error"},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions."""
    logger.warning(f"ValueError: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "type": "validation_error"},
    )


@app.exception_handler(SheetStoreError)
async def sheet_store_error_handler(request: Request, exc: SheetStoreError):
    """Handle spreadsheet read/write failures."""
    logger.exception(f"Spreadsheet error: {exc}")
    return JSONResponse(
        status_code=502,
        content={"detail": "スプレッドシートにアクセスできません", "type": "external_service_error"},
    )
