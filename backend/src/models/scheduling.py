"""
Scheduling domain models.

These pydantic models describe what the scheduling engine reads from and
writes to a clinic's spreadsheet: the clinic configuration, computed time
slots, and appointment rows. None of them are stored in the application
database; the spreadsheet is the single source of truth.
"""

from enum import Enum
from typing import FrozenSet, List, Optional

from pydantic import BaseModel, Field, model_validator

from core.constants import (
    STATUS_CANCELLED_LITERAL, STATUS_CONFIRMED_LITERAL, BOOKED_VIA_DEFAULT,
    DEFAULT_START_TIME, DEFAULT_END_TIME, DEFAULT_BREAK_START, DEFAULT_BREAK_END,
    DEFAULT_SLOT_DURATION_MINUTES, DEFAULT_MAX_ADVANCE_DAYS, DEFAULT_MAX_PATIENTS_PER_SLOT,
)
from utils.datetime_utils import parse_time_string, time_to_minutes


class Weekday(str, Enum):
    """Weekday glyphs used in the settings sheet, plus the public-holiday pseudo-weekday."""
    SUNDAY = "日"
    MONDAY = "月"
    TUESDAY = "火"
    WEDNESDAY = "水"
    THURSDAY = "木"
    FRIDAY = "金"
    SATURDAY = "土"
    HOLIDAY = "祝"


class AppointmentStatus(str, Enum):
    """Canonical appointment status."""
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @classmethod
    def from_cell(cls, value: str) -> "AppointmentStatus":
        """
        Canonicalize a status cell.

        Only the cancellation literal means cancelled; blank or any other
        value is treated as confirmed.
        """
        normalized = (value or "").strip()
        if normalized == STATUS_CANCELLED_LITERAL or normalized.lower() in ("cancelled", "canceled"):
            return cls.CANCELLED
        return cls.CONFIRMED

    def to_cell(self) -> str:
        """Localized literal persisted in the sheet."""
        if self is AppointmentStatus.CANCELLED:
            return STATUS_CANCELLED_LITERAL
        return STATUS_CONFIRMED_LITERAL


class ClinicConfiguration(BaseModel):
    """Per-tenant clinic configuration parsed from the settings sheet."""
    clinic_name: str = ""
    start_time: str = Field(default=DEFAULT_START_TIME, description="Opening time (HH:MM)")
    end_time: str = Field(default=DEFAULT_END_TIME, description="Closing time (HH:MM)")
    break_start: str = Field(default=DEFAULT_BREAK_START, description="Break start (HH:MM)")
    break_end: str = Field(default=DEFAULT_BREAK_END, description="Break end (HH:MM); equal to break_start means no break")
    slot_duration_minutes: int = Field(default=DEFAULT_SLOT_DURATION_MINUTES, gt=0)
    max_advance_days: int = Field(default=DEFAULT_MAX_ADVANCE_DAYS, ge=0)
    closed_days_full_day: FrozenSet[Weekday] = frozenset()
    closed_days_morning_only: FrozenSet[Weekday] = frozenset()
    closed_days_afternoon_only: FrozenSet[Weekday] = frozenset()
    max_patients_per_slot: int = Field(default=DEFAULT_MAX_PATIENTS_PER_SLOT, ge=1)
    use_patient_card_number: bool = False
    use_doctor_selection: bool = False
    doctor_list: List[str] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_time_order(self) -> "ClinicConfiguration":
        """Enforce start < end and break_start <= break_end."""
        if self.start_minutes >= self.end_minutes:
            raise ValueError(f"start_time {self.start_time} must be before end_time {self.end_time}")
        if self.break_start_minutes > self.break_end_minutes:
            raise ValueError(f"break_start {self.break_start} must not be after break_end {self.break_end}")
        return self

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(parse_time_string(self.start_time))

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(parse_time_string(self.end_time))

    @property
    def break_start_minutes(self) -> int:
        return time_to_minutes(parse_time_string(self.break_start))

    @property
    def break_end_minutes(self) -> int:
        return time_to_minutes(parse_time_string(self.break_end))

    @property
    def has_break(self) -> bool:
        return self.break_start_minutes != self.break_end_minutes

    @property
    def offers_doctor_selection(self) -> bool:
        return self.use_doctor_selection and len(self.doctor_list) > 0


class TimeSlot(BaseModel):
    """One bookable interval on one day, computed from configuration and bookings."""
    time: str  # Format: "H:mm"
    booked_count: int = Field(default=0, ge=0)
    remaining_slots: int = Field(ge=0)
    available: bool
    patient_names: Optional[str] = None  # Names of current bookers joined with "、"


class Appointment(BaseModel):
    """One row of the appointment sheet."""
    date: str  # Format: "yyyy/M/d"
    time: str  # Format: "H:mm"
    patient_name: str = ""
    patient_phone: str = ""
    patient_email: str = ""
    patient_card_number: str = ""
    doctor: str = ""
    symptom: str = ""
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    booked_via: str = ""

    @property
    def is_cancelled(self) -> bool:
        return self.status is AppointmentStatus.CANCELLED


class AppointmentCandidate(BaseModel):
    """Caller-supplied data for a new booking."""
    date: str
    time: str
    patient_name: str
    patient_phone: str
    patient_email: str = ""
    patient_card_number: str = ""
    doctor: str = ""
    symptom: str = ""
    booked_via: str = BOOKED_VIA_DEFAULT


class AppointmentResult(BaseModel):
    """Structured outcome of a create or cancel operation."""
    success: bool
    message: str
    row_index: Optional[int] = None  # Sheet row touched by a cancellation
