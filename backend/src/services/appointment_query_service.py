"""
Appointment query service.

Read-only access to the appointment sheet for availability checks, the
dashboard list and the reminder job.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence, Tuple

from core.constants import (
    APPOINTMENTS_RANGE, APPOINTMENT_COLUMN_COUNT,
    COL_DATE, COL_TIME, COL_PATIENT_NAME, COL_PATIENT_PHONE, COL_PATIENT_EMAIL,
    COL_PATIENT_CARD_NUMBER, COL_DOCTOR, COL_SYMPTOM, COL_STATUS, COL_BOOKED_VIA,
)
from models.scheduling import Appointment, AppointmentStatus
from services.sheet_store import TabularStore
from utils.datetime_utils import parse_sheet_date, parse_time_string, time_to_minutes

logger = logging.getLogger(__name__)


def row_to_appointment(row: Sequence[str]) -> Appointment:
    """
    Convert one appointment sheet row into an Appointment.

    Short rows are padded with blanks; cell values are trimmed.
    """
    cells = [str(cell).strip() for cell in row][:APPOINTMENT_COLUMN_COUNT]
    cells += [''] * (APPOINTMENT_COLUMN_COUNT - len(cells))
    return Appointment(
        date=cells[COL_DATE],
        time=cells[COL_TIME],
        patient_name=cells[COL_PATIENT_NAME],
        patient_phone=cells[COL_PATIENT_PHONE],
        patient_email=cells[COL_PATIENT_EMAIL],
        patient_card_number=cells[COL_PATIENT_CARD_NUMBER],
        doctor=cells[COL_DOCTOR],
        symptom=cells[COL_SYMPTOM],
        status=AppointmentStatus.from_cell(cells[COL_STATUS]),
        booked_via=cells[COL_BOOKED_VIA],
    )


def _parse_date_or_none(value: str) -> Optional[date]:
    try:
        return parse_sheet_date(value)
    except ValueError:
        return None


def appointment_sort_key(appointment: Appointment) -> Tuple[date, int]:
    """Order by parsed date, then by numeric time of day. Unparsable values sort last."""
    parsed_date = _parse_date_or_none(appointment.date) or date.max
    try:
        minutes = time_to_minutes(parse_time_string(appointment.time))
    except ValueError:
        minutes = 24 * 60
    return parsed_date, minutes


class AppointmentQueryService:
    """
    Service for listing appointments from the appointment sheet.

    Store errors propagate to the caller as SheetStoreError.
    """

    def __init__(self, store: TabularStore):
        self.store = store

    async def _read_appointments(self, handle: str) -> List[Appointment]:
        rows = await self.store.read_range(handle, APPOINTMENTS_RANGE)
        return [row_to_appointment(row) for row in rows]

    async def get_appointments_by_date(self, handle: str, target_date: date) -> List[Appointment]:
        """
        Get active appointments on one date.

        Args:
            handle: Tenant handle (spreadsheet ID)
            target_date: Date to match; rows are compared by parsed date so
                "2026/01/27" and "2026/1/27" both match

        Returns:
            Non-cancelled appointments in sheet order
        """
        appointments = await self._read_appointments(handle)
        return [
            appointment for appointment in appointments
            if not appointment.is_cancelled
            and _parse_date_or_none(appointment.date) == target_date
        ]

    async def get_all_appointments(
        self,
        handle: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_cancelled: bool = False
    ) -> List[Appointment]:
        """
        List appointments in an optional inclusive date range.

        Args:
            handle: Tenant handle (spreadsheet ID)
            start_date: Inclusive lower bound, or None for no bound
            end_date: Inclusive upper bound, or None for no bound
            include_cancelled: Keep cancelled rows when True

        Returns:
            Appointments sorted by date then time. Rows with a blank date are
            skipped; rows whose date cannot be parsed are dropped when a bound
            is given.
        """
        results: List[Appointment] = []
        for appointment in await self._read_appointments(handle):
            if not appointment.date:
                continue
            if appointment.is_cancelled and not include_cancelled:
                continue

            if start_date is not None or end_date is not None:
                parsed = _parse_date_or_none(appointment.date)
                if parsed is None:
                    logger.debug(f"Skipping appointment row with unparsable date: {appointment.date!r}")
                    continue
                if start_date is not None and parsed < start_date:
                    continue
                if end_date is not None and parsed > end_date:
                    continue

            results.append(appointment)

        results.sort(key=appointment_sort_key)
        return results
