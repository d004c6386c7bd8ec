"""
Appointment notification dispatch.

Email delivery itself is an external collaborator: anything implementing
AppointmentNotifier can be plugged in. NotificationService wraps the optional
notifier, skips patients without an email address and never lets a delivery
failure break the booking flow.
"""

import logging
from typing import Optional, Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class AppointmentEmailData(BaseModel):
    """Fields passed to the notifier for confirmation and reminder emails."""
    patient_name: str
    patient_email: str
    date: str  # Format: "yyyy/M/d"
    time: str  # Format: "H:mm"
    clinic_name: str
    symptom: str = ""


class AppointmentNotifier(Protocol):
    """Delivery backend for appointment emails."""

    async def send_confirmation(self, data: AppointmentEmailData) -> bool:
        """Send a booking confirmation. Returns True when delivered."""
        ...

    async def send_reminder(self, data: AppointmentEmailData) -> bool:
        """Send a day-before reminder. Returns True when delivered."""
        ...


class NotificationService:
    """Service for sending appointment emails through an optional notifier."""

    def __init__(self, notifier: Optional[AppointmentNotifier] = None):
        self.notifier = notifier

    @property
    def enabled(self) -> bool:
        return self.notifier is not None

    async def send_appointment_confirmation(self, data: AppointmentEmailData) -> bool:
        """
        Send a confirmation email after a successful booking.

        Returns:
            True if the notifier reported delivery, False if skipped or failed
        """
        if self.notifier is None:
            logger.info("No appointment notifier configured, skipping confirmation email")
            return False
        if not data.patient_email:
            logger.info("No patient email provided, skipping confirmation email")
            return False

        try:
            return await self.notifier.send_confirmation(data)
        except Exception as e:
            logger.exception(f"Failed to send confirmation email for {data.date} {data.time}: {e}")
            return False

    async def send_appointment_reminder(self, data: AppointmentEmailData) -> bool:
        """
        Send a reminder email for an upcoming appointment.

        Returns:
            True if the notifier reported delivery, False if skipped or failed
        """
        if self.notifier is None:
            logger.info("No appointment notifier configured, skipping reminder email")
            return False
        if not data.patient_email:
            return False

        try:
            return await self.notifier.send_reminder(data)
        except Exception as e:
            logger.exception(f"Failed to send reminder email for {data.date} {data.time}: {e}")
            return False
