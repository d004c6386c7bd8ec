"""
Shared response models for API endpoints.

This module contains Pydantic response models that are shared across
multiple API endpoints to ensure consistency and reduce duplication.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from models.scheduling import Appointment, TimeSlot


class AvailableSlotsResponse(BaseModel):
    """Response model for the slots of one day."""
    date: str
    clinic_name: str
    slot_duration_minutes: int
    slots: List[TimeSlot]  # Empty when the clinic is closed that day


class BookedAppointmentSummary(BaseModel):
    """Echo of the booked appointment (the sheet assigns no ID)."""
    date: str
    time: str
    patient_name: str


class CreateAppointmentResponse(BaseModel):
    """Response model for appointment creation."""
    success: bool
    message: str
    appointment: BookedAppointmentSummary


class CancelAppointmentResponse(BaseModel):
    """Response model for appointment cancellation."""
    success: bool
    message: str


class ListClinicSummary(BaseModel):
    name: str
    start_time: str
    end_time: str


class DateRange(BaseModel):
    start: Optional[str] = None  # Format: "yyyy/M/d"
    end: Optional[str] = None


class AppointmentListResponse(BaseModel):
    """Response model for the dashboard appointment list."""
    appointments: List[Appointment]
    clinic: ListClinicSummary
    date_range: DateRange
    total: int


class ClinicInfoResponse(BaseModel):
    """Response model for public clinic information."""
    clinic_name: str
    start_time: str
    end_time: str
    break_start: str
    break_end: str
    slot_duration_minutes: int
    max_advance_days: int
    closed_days_full_day: List[str]
    closed_days_morning_only: List[str]
    closed_days_afternoon_only: List[str]
    max_patients_per_slot: int
    use_patient_card_number: bool
    doctor_list: List[str]  # Empty unless doctor selection is enabled
    description: str


class ReminderRunResponse(BaseModel):
    """Response model for a reminder job run."""
    date: str
    total_sent: int
    total_failed: int
    results: List[Dict[str, Any]]
