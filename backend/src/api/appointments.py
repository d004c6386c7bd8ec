# pyright: reportMissingTypeStubs=false
"""
Appointment API endpoints.

Public endpoints (slot lookup, booking, clinic info) are called by the
embedded chat widget and booking form with a site ID. Listing and cancelling
are dashboard operations restricted to the site owner.

Domain failures from the scheduling engine are mapped to HTTP status codes:
an unbookable or full slot is 409, a missing appointment on cancel is 404.
"""

import logging
from datetime import timedelta
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from auth.dependencies import UserContext, get_current_user, get_owned_site, get_site_or_404, require_site_owner
from core.constants import BOOKED_VIA_DEFAULT
from core.database import get_db
from models import Site
from models.scheduling import AppointmentCandidate
from services.notification_service import AppointmentEmailData, NotificationService
from services.scheduling_engine import SchedulingEngine, get_notification_service, get_scheduling_engine
from services.settings_service import describe_clinic, sorted_weekdays
from utils.datetime_utils import format_sheet_date, japan_now, parse_sheet_date
from utils.patient_validators import (
    validate_date_field, validate_time_field, validate_patient_name,
    validate_email_field, validate_symptom_field,
)
from utils.phone_validator import validate_japanese_phone
from utils.sanitizers import normalize_optional_value, sanitize_for_sheet
from api.responses import (
    AvailableSlotsResponse, BookedAppointmentSummary, CreateAppointmentResponse,
    CancelAppointmentResponse, AppointmentListResponse, ListClinicSummary, DateRange,
    ClinicInfoResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ===== Request Models =====

class CreateAppointmentRequest(BaseModel):
    """Request model for booking an appointment."""
    site_id: str
    date: str
    time: str
    patient_name: str
    patient_phone: str
    patient_email: Optional[str] = None
    patient_card_number: Optional[str] = None
    doctor: Optional[str] = None
    symptom: Optional[str] = None
    booked_via: Optional[str] = None

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        return validate_date_field(v)

    @field_validator('time')
    @classmethod
    def validate_time(cls, v: str) -> str:
        return validate_time_field(v)

    @field_validator('patient_name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return validate_patient_name(v)

    @field_validator('patient_phone')
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return validate_japanese_phone(v)

    @field_validator('patient_email')
    @classmethod
    def validate_email(cls, v: Optional[str]) -> str:
        return validate_email_field(v)

    @field_validator('symptom')
    @classmethod
    def validate_symptom(cls, v: Optional[str]) -> str:
        return validate_symptom_field(v)


class CancelAppointmentRequest(BaseModel):
    """Request model for cancelling an appointment."""
    site_id: str
    date: str
    time: str

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        return validate_date_field(v)

    @field_validator('time')
    @classmethod
    def validate_time(cls, v: str) -> str:
        return validate_time_field(v)


# ===== Helper Functions =====

def require_spreadsheet(site: Site) -> str:
    """Return the site's spreadsheet ID, or raise 400 when booking is not set up."""
    if not site.spreadsheet_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="このサイトには予約システムが設定されていません。"
        )
    return site.spreadsheet_id


def parse_query_date(value: Optional[str], field_name: str) -> Optional[str]:
    """Validate an optional yyyy/M/d query parameter, raising 400 when malformed."""
    if value is None or not value.strip():
        return None
    try:
        return validate_date_field(value)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field_name}: {e}"
        )


# ===== Endpoints =====

@router.get("/available-slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    site_id: str = Query(..., description="サイトID"),
    date: str = Query(..., description="日付（例: 2026/1/27）"),
    db: Session = Depends(get_db),
    engine: SchedulingEngine = Depends(get_scheduling_engine)
):
    """
    Get the time slots of one day with their occupancy.

    An empty slot list means the clinic is closed that day.
    """
    spreadsheet_id = require_spreadsheet(get_site_or_404(site_id, db))
    try:
        target_date = validate_date_field(date)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    config = await engine.settings.get_clinic_settings(spreadsheet_id)
    slots = await engine.availability.get_available_slots(spreadsheet_id, target_date)

    return AvailableSlotsResponse(
        date=target_date,
        clinic_name=config.clinic_name,
        slot_duration_minutes=config.slot_duration_minutes,
        slots=slots,
    )


@router.post("/create", response_model=CreateAppointmentResponse)
async def create_appointment(
    request: CreateAppointmentRequest,
    db: Session = Depends(get_db),
    engine: SchedulingEngine = Depends(get_scheduling_engine),
    notifications: NotificationService = Depends(get_notification_service)
):
    """
    Book an appointment.

    The slot is re-checked against the sheet right before the row is written;
    a slot that does not exist or is already full returns 409.
    """
    spreadsheet_id = require_spreadsheet(get_site_or_404(request.site_id, db))

    candidate = AppointmentCandidate(
        date=request.date,
        time=request.time,
        patient_name=sanitize_for_sheet(request.patient_name),
        patient_phone=request.patient_phone,
        patient_email=sanitize_for_sheet(request.patient_email or ''),
        patient_card_number=sanitize_for_sheet(normalize_optional_value(request.patient_card_number or '')),
        doctor=sanitize_for_sheet(normalize_optional_value(request.doctor or '')),
        symptom=sanitize_for_sheet(request.symptom or ''),
        booked_via=request.booked_via or BOOKED_VIA_DEFAULT,
    )

    result = await engine.appointments.create_appointment(spreadsheet_id, candidate)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=result.message
        )

    if candidate.patient_email:
        config = await engine.settings.get_clinic_settings(spreadsheet_id)
        await notifications.send_appointment_confirmation(AppointmentEmailData(
            patient_name=candidate.patient_name,
            patient_email=candidate.patient_email,
            date=candidate.date,
            time=candidate.time,
            clinic_name=config.clinic_name,
            symptom=candidate.symptom,
        ))

    return CreateAppointmentResponse(
        success=True,
        message=result.message,
        appointment=BookedAppointmentSummary(
            date=candidate.date,
            time=candidate.time,
            patient_name=candidate.patient_name,
        ),
    )


@router.post("/cancel", response_model=CancelAppointmentResponse)
async def cancel_appointment(
    request: CancelAppointmentRequest,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: SchedulingEngine = Depends(get_scheduling_engine)
):
    """Cancel an appointment of an owned site. Returns 404 when no active appointment matches."""
    site = get_owned_site(request.site_id, user, db)
    spreadsheet_id = require_spreadsheet(site)

    result = await engine.appointments.cancel_appointment(spreadsheet_id, request.date, request.time)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=result.message
        )

    logger.info(f"User {user.email} cancelled appointment {request.date} {request.time} for site {site.id}")
    return CancelAppointmentResponse(success=True, message=result.message)


@router.get("/list", response_model=AppointmentListResponse)
async def list_appointments(
    start_date: Optional[str] = Query(None, description="開始日（例: 2026/1/1）"),
    end_date: Optional[str] = Query(None, description="終了日（例: 2026/1/31）"),
    include_cancelled: bool = Query(False, description="キャンセル済みを含む"),
    view: Literal["today", "week", "all"] = Query("week", description="日付未指定時の表示範囲"),
    site: Site = Depends(require_site_owner),
    engine: SchedulingEngine = Depends(get_scheduling_engine)
):
    """
    List appointments of an owned site.

    When neither start_date nor end_date is given, the range comes from view:
    today, the current Monday-to-Sunday week, or everything.
    """
    spreadsheet_id = require_spreadsheet(site)
    start_str = parse_query_date(start_date, "start_date")
    end_str = parse_query_date(end_date, "end_date")

    if start_str is None and end_str is None:
        today = japan_now().date()
        if view == "today":
            start_str = end_str = format_sheet_date(today)
        elif view == "week":
            week_start = today - timedelta(days=today.weekday())
            start_str = format_sheet_date(week_start)
            end_str = format_sheet_date(week_start + timedelta(days=6))

    appointments = await engine.queries.get_all_appointments(
        spreadsheet_id,
        start_date=parse_sheet_date(start_str) if start_str else None,
        end_date=parse_sheet_date(end_str) if end_str else None,
        include_cancelled=include_cancelled,
    )
    config = await engine.settings.get_clinic_settings(spreadsheet_id)

    return AppointmentListResponse(
        appointments=appointments,
        clinic=ListClinicSummary(
            name=config.clinic_name,
            start_time=config.start_time,
            end_time=config.end_time,
        ),
        date_range=DateRange(start=start_str, end=end_str),
        total=len(appointments),
    )


@router.get("/clinic-info", response_model=ClinicInfoResponse)
async def get_clinic_info(
    site_id: str = Query(..., description="サイトID"),
    db: Session = Depends(get_db),
    engine: SchedulingEngine = Depends(get_scheduling_engine)
):
    """Get the public clinic configuration of a site."""
    spreadsheet_id = require_spreadsheet(get_site_or_404(site_id, db))
    config = await engine.settings.get_clinic_settings(spreadsheet_id)

    return ClinicInfoResponse(
        clinic_name=config.clinic_name,
        start_time=config.start_time,
        end_time=config.end_time,
        break_start=config.break_start,
        break_end=config.break_end,
        slot_duration_minutes=config.slot_duration_minutes,
        max_advance_days=config.max_advance_days,
        closed_days_full_day=sorted_weekdays(config.closed_days_full_day),
        closed_days_morning_only=sorted_weekdays(config.closed_days_morning_only),
        closed_days_afternoon_only=sorted_weekdays(config.closed_days_afternoon_only),
        max_patients_per_slot=config.max_patients_per_slot,
        use_patient_card_number=config.use_patient_card_number,
        doctor_list=config.doctor_list if config.offers_doctor_selection else [],
        description=describe_clinic(config),
    )
