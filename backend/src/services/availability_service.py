"""
Slot availability calculator.

Builds the list of bookable time slots for one clinic day from the clinic
configuration, the holiday sheet and the day's active appointments.

A closed day (holiday or full-day closed weekday) has no slots at all, which
is different from a day where every slot exists but is fully booked.
"""

import asyncio
import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Union

from core.constants import HOLIDAYS_RANGE
from models.scheduling import ClinicConfiguration, TimeSlot, Weekday, Appointment
from services.appointment_query_service import AppointmentQueryService
from services.settings_service import ClinicSettingsService
from services.sheet_store import TabularStore
from utils.datetime_utils import (
    format_sheet_time, minutes_to_time, normalize_time_string,
    parse_sheet_date, weekday_char,
)

logger = logging.getLogger(__name__)

PATIENT_NAME_SEPARATOR = "、"


def calculate_slots(
    config: ClinicConfiguration,
    target_date: date,
    holidays: List[date],
    appointments: List[Appointment]
) -> List[TimeSlot]:
    """
    Compute the slots of one day.

    Args:
        config: Clinic configuration
        target_date: Day to compute
        holidays: Ad hoc closed dates
        appointments: Active appointments on target_date

    Returns:
        Slots in ascending time order, or [] when the clinic is closed all day
    """
    if target_date in holidays:
        return []

    weekday = Weekday(weekday_char(target_date))
    if weekday in config.closed_days_full_day:
        return []

    is_morning_closed = weekday in config.closed_days_morning_only
    is_afternoon_closed = weekday in config.closed_days_afternoon_only

    booked_count: Dict[str, int] = defaultdict(int)
    booked_names: Dict[str, List[str]] = defaultdict(list)
    for appointment in appointments:
        slot_time = normalize_time_string(appointment.time)
        booked_count[slot_time] += 1
        if appointment.patient_name:
            booked_names[slot_time].append(appointment.patient_name)

    slots: List[TimeSlot] = []
    current = config.start_minutes
    while current < config.end_minutes:
        minute_of_day = current
        current += config.slot_duration_minutes

        if config.break_start_minutes <= minute_of_day < config.break_end_minutes:
            continue
        if minute_of_day < config.break_start_minutes and is_morning_closed:
            continue
        if minute_of_day >= config.break_end_minutes and is_afternoon_closed:
            continue

        slot_time = format_sheet_time(minutes_to_time(minute_of_day))
        count = booked_count.get(slot_time, 0)
        remaining = max(0, config.max_patients_per_slot - count)
        names = booked_names.get(slot_time)
        slots.append(TimeSlot(
            time=slot_time,
            booked_count=count,
            remaining_slots=remaining,
            available=remaining > 0,
            patient_names=PATIENT_NAME_SEPARATOR.join(names) if count > 0 and names else None,
        ))

    return slots


class AvailabilityService:
    """
    Service for computing slot availability per tenant.

    Settings are resolved through the shared ClinicSettingsService so its
    cache applies; holidays and appointments are read fresh on every call.
    """

    def __init__(
        self,
        store: TabularStore,
        settings_service: ClinicSettingsService,
        query_service: AppointmentQueryService
    ):
        self.store = store
        self.settings_service = settings_service
        self.query_service = query_service

    async def get_holidays(self, handle: str) -> List[date]:
        """Read the holiday sheet. Cells that are not yyyy/M/d dates are skipped."""
        rows = await self.store.read_range(handle, HOLIDAYS_RANGE)
        holidays: List[date] = []
        for row in rows:
            if not row or not row[0].strip():
                continue
            try:
                holidays.append(parse_sheet_date(row[0]))
            except ValueError:
                logger.debug(f"Skipping unparsable holiday cell: {row[0]!r}")
        return holidays

    async def get_available_slots(self, handle: str, target_date: Union[str, date]) -> List[TimeSlot]:
        """
        Get the slots of one day with their occupancy.

        Args:
            handle: Tenant handle (spreadsheet ID)
            target_date: Date as "yyyy/M/d" string or date

        Returns:
            Ordered slots; [] on a closed day

        Raises:
            ValueError: If target_date is not a valid date
            SheetStoreError: If holidays or appointments cannot be read
        """
        if isinstance(target_date, str):
            target_date = parse_sheet_date(target_date)

        config, holidays, appointments = await asyncio.gather(
            self.settings_service.get_clinic_settings(handle),
            self.get_holidays(handle),
            self.query_service.get_appointments_by_date(handle, target_date),
        )

        return calculate_slots(config, target_date, holidays, appointments)
