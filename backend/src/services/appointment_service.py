"""
Appointment mutation service.

Creates and cancels appointments in the appointment sheet.

Creation re-reads availability right before appending the row. This is a
read-then-write sequence without any lock or store-side constraint: two
concurrent requests for the last free place in a slot can both pass the check
and both append, overbooking the slot. Serializing bookings per
(tenant, date) or adding a uniqueness constraint in the store would close
that gap.
"""

import logging
from typing import List, Optional, Tuple

from core.constants import (
    APPOINTMENTS_APPEND_RANGE, APPOINTMENTS_RANGE, APPOINTMENTS_HEADER_ROWS,
    APPOINTMENT_STATUS_COLUMN, SHEET_APPOINTMENTS, BOOKED_VIA_DEFAULT,
    COL_DATE, COL_TIME, COL_STATUS,
)
from models.scheduling import Appointment, AppointmentCandidate, AppointmentResult, AppointmentStatus
from services.appointment_query_service import row_to_appointment
from services.availability_service import AvailabilityService
from services.sheet_store import TabularStore
from utils.datetime_utils import parse_sheet_date

logger = logging.getLogger(__name__)

MSG_SLOT_NOT_BOOKABLE = "この時間帯は予約できません"
MSG_SLOT_ALREADY_BOOKED = "この枠は既に予約されています"
MSG_BOOKING_COMPLETED = "予約が完了しました"
MSG_APPOINTMENT_NOT_FOUND = "該当する予約が見つかりません"
MSG_CANCELLATION_COMPLETED = "予約をキャンセルしました"


class AppointmentService:
    """
    Service class for appointment create/cancel operations.

    Domain failures (slot missing, slot full, appointment not found) are
    returned as AppointmentResult(success=False); store errors propagate as
    SheetStoreError.
    """

    def __init__(self, store: TabularStore, availability_service: AvailabilityService):
        self.store = store
        self.availability_service = availability_service

    async def create_appointment(self, handle: str, candidate: AppointmentCandidate) -> AppointmentResult:
        """
        Book an appointment after re-checking the slot.

        Args:
            handle: Tenant handle (spreadsheet ID)
            candidate: Booking data; date as "yyyy/M/d", time as "H:mm"

        Returns:
            AppointmentResult. The created row has no identity beyond its
            (date, time, status) values, so none is returned.
        """
        try:
            target_date = parse_sheet_date(candidate.date)
        except ValueError:
            logger.info(f"Rejected booking with invalid date {candidate.date!r} for {handle}")
            return AppointmentResult(success=False, message=MSG_SLOT_NOT_BOOKABLE)

        slots = await self.availability_service.get_available_slots(handle, target_date)
        target_slot = next((slot for slot in slots if slot.time == candidate.time), None)
        if target_slot is None:
            logger.info(f"Rejected booking for {handle}: no slot at {candidate.date} {candidate.time}")
            return AppointmentResult(success=False, message=MSG_SLOT_NOT_BOOKABLE)

        if not target_slot.available:
            logger.info(f"Rejected booking for {handle}: slot {candidate.date} {candidate.time} is full")
            return AppointmentResult(success=False, message=MSG_SLOT_ALREADY_BOOKED)

        await self.store.append_rows(handle, APPOINTMENTS_APPEND_RANGE, [[
            candidate.date,
            candidate.time,
            candidate.patient_name,
            candidate.patient_phone,
            candidate.patient_email or '',
            candidate.patient_card_number or '',
            candidate.doctor or '',
            candidate.symptom or '',
            AppointmentStatus.CONFIRMED.to_cell(),
            candidate.booked_via or BOOKED_VIA_DEFAULT,
        ]])

        logger.info(
            f"Created appointment for {handle} at {candidate.date} {candidate.time} "
            f"via {candidate.booked_via or BOOKED_VIA_DEFAULT}"
        )
        return AppointmentResult(success=True, message=MSG_BOOKING_COMPLETED)

    async def cancel_appointment(self, handle: str, target_date: str, target_time: str) -> AppointmentResult:
        """
        Cancel the first active appointment at a date and time.

        Date and time are matched as exact strings against the sheet cells.
        The row stays in the sheet; only its status cell changes. Cancelling
        the same pair again finds no active row and fails with not-found.

        Args:
            handle: Tenant handle (spreadsheet ID)
            target_date: Date cell value ("yyyy/M/d")
            target_time: Time cell value ("H:mm")

        Returns:
            AppointmentResult with row_index set to the sheet row on success
        """
        match = await self._find_active_row(handle, target_date, target_time)
        if match is None:
            return AppointmentResult(success=False, message=MSG_APPOINTMENT_NOT_FOUND)

        row_index, _ = match
        await self.store.update_cells(
            handle,
            f"{SHEET_APPOINTMENTS}!{APPOINTMENT_STATUS_COLUMN}{row_index}",
            [[AppointmentStatus.CANCELLED.to_cell()]],
        )
        logger.info(f"Cancelled appointment for {handle} at {target_date} {target_time} (row {row_index})")
        return AppointmentResult(success=True, message=MSG_CANCELLATION_COMPLETED, row_index=row_index)

    async def find_cancellable_appointment(
        self, handle: str, target_date: str, target_time: str
    ) -> Optional[Appointment]:
        """
        Get the appointment cancel_appointment would cancel, if any.

        Uses the same exact-string match, so a caller can check the
        booking's details before cancelling it.
        """
        match = await self._find_active_row(handle, target_date, target_time)
        if match is None:
            return None
        return row_to_appointment(match[1])

    async def _find_active_row(
        self, handle: str, target_date: str, target_time: str
    ) -> Optional[Tuple[int, List[str]]]:
        rows = await self.store.read_range(handle, APPOINTMENTS_RANGE)

        for index, row in enumerate(rows):
            cells = list(row) + [''] * max(0, COL_STATUS + 1 - len(row))
            if cells[COL_DATE] != target_date or cells[COL_TIME] != target_time:
                continue
            if AppointmentStatus.from_cell(cells[COL_STATUS]) is AppointmentStatus.CANCELLED:
                continue
            return index + APPOINTMENTS_HEADER_ROWS + 1, cells

        return None
