"""
Appointment reminder service.

Once a day, every site that has a spreadsheet configured gets a reminder
email sent to each of tomorrow's patients who left an email address. The job
runs from APScheduler inside the app and can also be triggered over HTTP by an
external cron (see api/cron.py).
"""

import logging
from datetime import date, timedelta
from typing import Any, Callable, ContextManager, Dict, List, Optional, Tuple

from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore
from apscheduler.triggers.cron import CronTrigger  # type: ignore
from sqlalchemy.orm import Session

from core.config import REMINDER_HOUR
from core.constants import REMINDER_SCHEDULER_MAX_INSTANCES
from core.database import get_db_context
from models.site import Site
from services.notification_service import AppointmentEmailData, NotificationService
from services.scheduling_engine import SchedulingEngine, get_notification_service, get_scheduling_engine
from utils.datetime_utils import JAPAN_TZ, format_sheet_date, japan_now

logger = logging.getLogger(__name__)


class ReminderService:
    """
    Service for sending day-before appointment reminders.

    Collaborators are resolved through providers on every run so the job
    always uses the current global engine and notifier.
    """

    def __init__(
        self,
        engine_provider: Callable[[], SchedulingEngine] = get_scheduling_engine,
        notification_provider: Callable[[], NotificationService] = get_notification_service,
        session_factory: Callable[[], ContextManager[Session]] = get_db_context
    ):
        # Scheduler runs in Japan time so the job fires at REMINDER_HOUR local time
        self.scheduler = AsyncIOScheduler(timezone=JAPAN_TZ)
        self._engine_provider = engine_provider
        self._notification_provider = notification_provider
        self._session_factory = session_factory
        self._is_started = False

    async def start_scheduler(self) -> None:
        """
        Start the background scheduler.

        This should be called during application startup.
        """
        if self._is_started:
            logger.warning("Reminder scheduler is already started")
            return

        self.scheduler.add_job(  # type: ignore
            self.send_reminders_for_tomorrow,
            CronTrigger(hour=REMINDER_HOUR, minute=0),
            id="send_reminders",
            name="Send appointment reminders",
            max_instances=REMINDER_SCHEDULER_MAX_INSTANCES,
            replace_existing=True
        )

        self.scheduler.start()
        self._is_started = True
        logger.info(f"Appointment reminder scheduler started (daily at {REMINDER_HOUR}:00 JST)")

    async def stop_scheduler(self) -> None:
        """Stop the background scheduler. Called during application shutdown."""
        if self._is_started:
            self.scheduler.shutdown(wait=True)
            self._is_started = False
            logger.info("Appointment reminder scheduler stopped")

    def _get_sites_with_spreadsheet(self) -> List[Tuple[str, str, str]]:
        """Return (site_id, name, spreadsheet_id) for every site with booking enabled."""
        with self._session_factory() as db:
            sites = db.query(Site).filter(
                Site.spreadsheet_id.isnot(None),
                Site.spreadsheet_id != ""
            ).all()
            return [(site.id, site.name, site.spreadsheet_id or "") for site in sites]

    async def send_reminders_for_tomorrow(self) -> Dict[str, Any]:
        """Scheduler entry point: remind patients booked for tomorrow (JST)."""
        tomorrow = japan_now().date() + timedelta(days=1)
        return await self.send_reminders_for_date(tomorrow)

    async def send_reminders_for_date(self, target_date: date) -> Dict[str, Any]:
        """
        Send reminders for all active appointments on a date.

        A failure for one site is logged and recorded with failed=-1; the
        remaining sites are still processed.

        Args:
            target_date: Appointment date to remind about

        Returns:
            Summary with the date, total sent/failed counts and per-site results
        """
        date_str = format_sheet_date(target_date)
        logger.info(f"Sending appointment reminders for {date_str}")

        notification_service = self._notification_provider()
        summary: Dict[str, Any] = {
            "date": date_str,
            "total_sent": 0,
            "total_failed": 0,
            "results": [],
        }

        if not notification_service.enabled:
            logger.info("No appointment notifier configured, skipping reminders")
            return summary

        sites = self._get_sites_with_spreadsheet()
        if not sites:
            logger.info("No sites with spreadsheet configured")
            return summary

        engine = self._engine_provider()
        for site_id, site_name, spreadsheet_id in sites:
            sent, failed = 0, 0
            try:
                config = await engine.settings.get_clinic_settings(spreadsheet_id)
                appointments = await engine.queries.get_appointments_by_date(spreadsheet_id, target_date)

                for appointment in appointments:
                    if not appointment.patient_email:
                        continue
                    delivered = await notification_service.send_appointment_reminder(AppointmentEmailData(
                        patient_name=appointment.patient_name,
                        patient_email=appointment.patient_email,
                        date=appointment.date,
                        time=appointment.time,
                        clinic_name=config.clinic_name,
                        symptom=appointment.symptom,
                    ))
                    if delivered:
                        sent += 1
                    else:
                        failed += 1
            except Exception as e:
                logger.exception(f"Error processing reminders for site {site_id}: {e}")
                summary["results"].append({"site": site_name or site_id, "sent": 0, "failed": -1})
                continue

            summary["total_sent"] += sent
            summary["total_failed"] += failed
            summary["results"].append({"site": site_name or site_id, "sent": sent, "failed": failed})
            logger.info(f"Site {site_name or site_id}: {sent} reminder(s) sent, {failed} failed")

        logger.info(f"Reminders completed: {summary['total_sent']} sent, {summary['total_failed']} failed")
        return summary


# Global reminder service instance
_reminder_service: Optional[ReminderService] = None


def get_reminder_service() -> ReminderService:
    """
    Get the global reminder service instance.

    Returns:
        The global reminder service instance
    """
    global _reminder_service
    if _reminder_service is None:
        _reminder_service = ReminderService()
    return _reminder_service


async def start_reminder_scheduler() -> None:
    """Start the global reminder scheduler. Called during application startup."""
    service = get_reminder_service()
    await service.start_scheduler()


async def stop_reminder_scheduler() -> None:
    """Stop the global reminder scheduler. Called during application shutdown."""
    global _reminder_service
    if _reminder_service:
        await _reminder_service.stop_scheduler()
