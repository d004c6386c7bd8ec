"""
Services package for shared business logic.

This package contains the scheduling engine services and the jobs built on
top of them, shared by the HTTP API and the chat tools.
"""

from .settings_service import ClinicSettingsService
from .appointment_query_service import AppointmentQueryService
from .availability_service import AvailabilityService
from .appointment_service import AppointmentService
from .notification_service import NotificationService
from .reminder_service import ReminderService

__all__ = [
    "ClinicSettingsService",
    "AppointmentQueryService",
    "AvailabilityService",
    "AppointmentService",
    "NotificationService",
    "ReminderService",
]
