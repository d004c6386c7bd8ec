"""Unit tests for appointment queries."""

import pytest
from datetime import date

from models.scheduling import AppointmentStatus
from services.appointment_query_service import appointment_sort_key, row_to_appointment
from tests.conftest import TEST_HANDLE
from tests.utils import appointment_row


class TestRowToAppointment:
    def test_short_row_is_padded(self):
        appointment = row_to_appointment(["2026/1/27", "10:00", "山田"])

        assert appointment.patient_name == "山田"
        assert appointment.patient_phone == ""
        assert appointment.status is AppointmentStatus.CONFIRMED

    def test_cells_are_trimmed_and_status_canonicalized(self):
        appointment = row_to_appointment(
            [" 2026/1/27 ", "10:00", "山田", "090", "", "", "", "", " キャンセル ", "ChatBot", "extra"]
        )

        assert appointment.date == "2026/1/27"
        assert appointment.is_cancelled is True
        assert appointment.booked_via == "ChatBot"

    def test_unknown_status_is_confirmed(self):
        assert row_to_appointment(appointment_row("2026/1/27", "10:00", status="保留")).is_cancelled is False


class TestAppointmentSortKey:
    def test_numeric_time_order(self):
        rows = [row_to_appointment(appointment_row("2026/1/27", t)) for t in ("10:00", "9:30", "13:00")]

        ordered = sorted(rows, key=appointment_sort_key)

        assert [a.time for a in ordered] == ["9:30", "10:00", "13:00"]

    def test_unparsable_values_sort_last(self):
        key = appointment_sort_key(row_to_appointment(["未定", "午前"]))

        assert key == (date.max, 24 * 60)


class TestAppointmentQueryService:
    """Test listing through the sheet store."""

    @pytest.mark.asyncio
    async def test_range_excludes_cancelled_rows(self, engine, sheet_store):
        sheet_store.seed(TEST_HANDLE, appointments=[
            appointment_row("2026/1/15", "10:00", name="キャンセル患者", status="キャンセル"),
            appointment_row("2026/1/20", "11:00", name="確定患者"),
        ])

        appointments = await engine.queries.get_all_appointments(
            TEST_HANDLE, start_date=date(2026, 1, 1), end_date=date(2026, 1, 31), include_cancelled=False
        )

        assert [a.patient_name for a in appointments] == ["確定患者"]

    @pytest.mark.asyncio
    async def test_include_cancelled(self, engine, sheet_store):
        sheet_store.seed(TEST_HANDLE, appointments=[
            appointment_row("2026/1/15", "10:00", status="キャンセル"),
            appointment_row("2026/1/20", "11:00"),
        ])

        appointments = await engine.queries.get_all_appointments(TEST_HANDLE, include_cancelled=True)

        assert len(appointments) == 2

    @pytest.mark.asyncio
    async def test_range_bounds_are_inclusive(self, engine, sheet_store):
        sheet_store.seed(TEST_HANDLE, appointments=[
            appointment_row("2025/12/31", "10:00"),
            appointment_row("2026/1/1", "10:00"),
            appointment_row("2026/1/31", "10:00"),
            appointment_row("2026/2/1", "10:00"),
        ])

        appointments = await engine.queries.get_all_appointments(
            TEST_HANDLE, start_date=date(2026, 1, 1), end_date=date(2026, 1, 31)
        )

        assert [a.date for a in appointments] == ["2026/1/1", "2026/1/31"]

    @pytest.mark.asyncio
    async def test_sorted_by_parsed_date_then_time(self, engine, sheet_store):
        sheet_store.seed(TEST_HANDLE, appointments=[
            appointment_row("2026/1/10", "9:00"),
            appointment_row("2026/1/9", "15:00"),
            appointment_row("2026/1/9", "10:00"),
        ])

        appointments = await engine.queries.get_all_appointments(TEST_HANDLE)

        assert [(a.date, a.time) for a in appointments] == [
            ("2026/1/9", "10:00"), ("2026/1/9", "15:00"), ("2026/1/10", "9:00"),
        ]

    @pytest.mark.asyncio
    async def test_blank_and_unparsable_dates(self, engine, sheet_store):
        sheet_store.seed(TEST_HANDLE, appointments=[
            appointment_row("", "10:00"),
            appointment_row("未定", "10:00"),
            appointment_row("2026/1/20", "10:00"),
        ])

        unbounded = await engine.queries.get_all_appointments(TEST_HANDLE)
        bounded = await engine.queries.get_all_appointments(TEST_HANDLE, start_date=date(2026, 1, 1))

        assert [a.date for a in unbounded] == ["2026/1/20", "未定"]
        assert [a.date for a in bounded] == ["2026/1/20"]

    @pytest.mark.asyncio
    async def test_appointments_by_date(self, engine, sheet_store):
        sheet_store.seed(TEST_HANDLE, appointments=[
            appointment_row("2026/1/27", "10:00", name="山田"),
            appointment_row("2026/01/27", "11:00", name="佐藤"),
            appointment_row("2026/1/27", "11:30", name="鈴木", status="キャンセル"),
            appointment_row("2026/1/28", "10:00", name="田中"),
        ])

        appointments = await engine.queries.get_appointments_by_date(TEST_HANDLE, date(2026, 1, 27))

        assert [a.patient_name for a in appointments] == ["山田", "佐藤"]
