# pyright: reportMissingTypeStubs=false
"""
Cron trigger endpoints.

External schedulers (the hosting platform's cron) call these endpoints with
`Authorization: Bearer $CRON_SECRET`. When CRON_SECRET is empty the check is
disabled, which is only meant for local development.
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from core.config import CRON_SECRET
from services.reminder_service import ReminderService, get_reminder_service
from api.responses import ReminderRunResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Reject the request unless it carries the configured cron bearer secret."""
    if not CRON_SECRET:
        return
    expected = f"Bearer {CRON_SECRET}"
    if not authorization or not secrets.compare_digest(authorization, expected):
        logger.warning("Rejected cron request with missing or invalid secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )


@router.api_route(
    "/send-reminders",
    methods=["GET", "POST"],
    response_model=ReminderRunResponse,
    dependencies=[Depends(verify_cron_secret)],
)
async def send_reminders(
    reminder_service: ReminderService = Depends(get_reminder_service)
):
    """Send reminder emails for tomorrow's appointments (JST) across all sites."""
    summary = await reminder_service.send_reminders_for_tomorrow()
    return ReminderRunResponse(**summary)
