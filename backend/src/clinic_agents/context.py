"""
Tool context for chatbot conversations.

This module defines the ToolContext dataclass that provides the scheduling
engine and tenant information to tools during one conversation turn.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from services.notification_service import NotificationService
from services.scheduling_engine import SchedulingEngine
from utils.datetime_utils import ensure_japan, japan_now


@dataclass
class ToolContext:
    """
    Context for a single chatbot conversation, injected into every tool via RunContextWrapper[T].

    Attributes:
        spreadsheet_id: Tenant handle of the clinic being booked
        engine: Scheduling engine services
        notifications: Email dispatch for booking confirmations
        current_datetime: Fixed "now" for the turn; Japan time when omitted
    """

    spreadsheet_id: str
    engine: SchedulingEngine
    notifications: NotificationService
    current_datetime: Optional[datetime] = None

    @property
    def now(self) -> datetime:
        if self.current_datetime is None:
            return japan_now()
        return ensure_japan(self.current_datetime) or japan_now()

    @property
    def today(self) -> date:
        return self.now.date()
