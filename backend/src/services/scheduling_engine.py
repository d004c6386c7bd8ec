"""
Wiring for the scheduling engine services.

The engine is four services sharing one tabular store and one settings
cache. A single process-wide instance is built lazily; tests replace it with
one backed by an in-memory store.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from core.config import SETTINGS_CACHE_TTL_SECONDS
from models.scheduling import ClinicConfiguration
from services.appointment_query_service import AppointmentQueryService
from services.appointment_service import AppointmentService
from services.availability_service import AvailabilityService
from services.notification_service import AppointmentNotifier, NotificationService
from services.settings_service import ClinicSettingsService
from services.sheet_store import GoogleSheetsStore, TabularStore
from utils.ttl_cache import TTLCache

logger = logging.getLogger(__name__)


@dataclass
class SchedulingEngine:
    """Scheduling services bound to one store."""
    store: TabularStore
    settings: ClinicSettingsService
    queries: AppointmentQueryService
    availability: AvailabilityService
    appointments: AppointmentService


def build_scheduling_engine(
    store: TabularStore,
    cache: Optional[TTLCache[ClinicConfiguration]] = None
) -> SchedulingEngine:
    """
    Build the engine services around a store.

    Args:
        store: Tabular store implementation
        cache: Settings cache; a new one with the configured TTL when omitted
    """
    settings = ClinicSettingsService(store, cache if cache is not None else TTLCache(SETTINGS_CACHE_TTL_SECONDS))
    queries = AppointmentQueryService(store)
    availability = AvailabilityService(store, settings, queries)
    appointments = AppointmentService(store, availability)
    return SchedulingEngine(
        store=store,
        settings=settings,
        queries=queries,
        availability=availability,
        appointments=appointments,
    )


# Global instances
_engine: Optional[SchedulingEngine] = None
_notification_service: Optional[NotificationService] = None


def get_scheduling_engine() -> SchedulingEngine:
    """Get the global engine, backed by Google Sheets."""
    global _engine
    if _engine is None:
        _engine = build_scheduling_engine(GoogleSheetsStore())
        logger.info("Scheduling engine initialized with Google Sheets store")
    return _engine


def set_scheduling_engine(engine: Optional[SchedulingEngine]) -> None:
    """Replace the global engine. Passing None resets it to lazy initialization."""
    global _engine
    _engine = engine


def get_notification_service() -> NotificationService:
    """Get the global notification service (no notifier until one is configured)."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service


def configure_notifier(notifier: Optional[AppointmentNotifier]) -> None:
    """Install the email delivery backend used for confirmations and reminders."""
    global _notification_service
    _notification_service = NotificationService(notifier)
