"""
Test utilities for clinic reservation tests.

InMemorySheetStore stands in for Google Sheets: each tenant handle owns a set
of named sheets stored as full grids (header row included), and A1 ranges are
resolved the same way the Sheets API resolves them for the ranges the engine
uses.
"""

import re
from datetime import timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from core.constants import SHEET_APPOINTMENTS, SHEET_HOLIDAYS, SHEET_SETTINGS
from services.jwt_service import JWTService, TokenPayload
from services.notification_service import AppointmentEmailData
from services.sheet_store import SheetStoreError

APPOINTMENT_HEADER = ["日付", "時間", "患者名", "電話番号", "メール", "診察券番号", "担当医", "症状", "ステータス", "予約経路"]

_CELL_PATTERN = re.compile(r'^([A-Z]+)(\d*)$')


def _column_index(letters: str) -> int:
    index = 0
    for char in letters:
        index = index * 26 + (ord(char) - ord('A') + 1)
    return index - 1


def _parse_cell(ref: str) -> Tuple[int, Optional[int]]:
    match = _CELL_PATTERN.match(ref)
    if not match:
        raise ValueError(f"Unsupported cell reference: {ref}")
    row = int(match.group(2)) - 1 if match.group(2) else None
    return _column_index(match.group(1)), row


def parse_a1_range(a1_range: str) -> Tuple[str, int, Optional[int], int, Optional[int]]:
    """Split "sheet!A2:J1000" into (sheet, start_col, start_row, end_col, end_row), 0-based."""
    sheet, _, cells = a1_range.partition('!')
    start_ref, _, end_ref = cells.partition(':')
    start_col, start_row = _parse_cell(start_ref)
    end_col, end_row = _parse_cell(end_ref) if end_ref else (start_col, start_row)
    return sheet, start_col, start_row, end_col, end_row


class InMemorySheetStore:
    """TabularStore implementation holding sheets in memory."""

    def __init__(self) -> None:
        self.sheets: Dict[str, Dict[str, List[List[str]]]] = {}
        self.read_calls: List[Tuple[str, str]] = []
        self.append_calls: List[Tuple[str, str, List[List[str]]]] = []
        self.update_calls: List[Tuple[str, str, List[List[str]]]] = []
        self.fail_reads_for: set = set()
        self.fail_writes = False

    def seed(
        self,
        handle: str,
        settings: Optional[Dict[str, str]] = None,
        appointments: Optional[Sequence[Sequence[str]]] = None,
        holidays: Optional[Sequence[str]] = None
    ) -> None:
        """Create the three sheets of a tenant, each with a header row."""
        self.sheets[handle] = {
            SHEET_SETTINGS: [["項目", "値"]] + [[key, value] for key, value in (settings or {}).items()],
            SHEET_APPOINTMENTS: [list(APPOINTMENT_HEADER)] + [list(row) for row in (appointments or [])],
            SHEET_HOLIDAYS: [["休診日"]] + [[holiday] for holiday in (holidays or [])],
        }

    def grid(self, handle: str, sheet: str) -> List[List[str]]:
        if handle not in self.sheets:
            raise SheetStoreError(f"Spreadsheet not found: {handle}")
        return self.sheets[handle].setdefault(sheet, [])

    def appointment_rows(self, handle: str) -> List[List[str]]:
        """Data rows of the appointment sheet (header excluded)."""
        return self.grid(handle, SHEET_APPOINTMENTS)[1:]

    async def read_range(self, handle: str, a1_range: str) -> List[List[str]]:
        self.read_calls.append((handle, a1_range))
        if handle in self.fail_reads_for or a1_range.split('!')[0] in self.fail_reads_for:
            raise SheetStoreError(f"Simulated read failure for {a1_range}")

        sheet, start_col, start_row, end_col, end_row = parse_a1_range(a1_range)
        grid = self.grid(handle, sheet)
        first = start_row or 0
        last = len(grid) - 1 if end_row is None else min(end_row, len(grid) - 1)

        rows: List[List[str]] = []
        for row in grid[first:last + 1]:
            values = [str(cell) for cell in row[start_col:end_col + 1]]
            while values and values[-1] == '':
                values.pop()
            rows.append(values)
        # Sheets omits trailing empty rows
        while rows and not rows[-1]:
            rows.pop()
        return rows

    async def append_rows(self, handle: str, a1_range: str, rows: Sequence[Sequence[str]]) -> None:
        if self.fail_writes:
            raise SheetStoreError(f"Simulated append failure for {a1_range}")
        values = [[str(cell) for cell in row] for row in rows]
        self.append_calls.append((handle, a1_range, values))
        sheet = parse_a1_range(a1_range)[0]
        self.grid(handle, sheet).extend(values)

    async def update_cells(self, handle: str, cell_address: str, rows: Sequence[Sequence[str]]) -> None:
        if self.fail_writes:
            raise SheetStoreError(f"Simulated update failure for {cell_address}")
        values = [[str(cell) for cell in row] for row in rows]
        self.update_calls.append((handle, cell_address, values))
        sheet, start_col, start_row, _, _ = parse_a1_range(cell_address)
        grid = self.grid(handle, sheet)
        for offset, row_values in enumerate(values):
            row_index = (start_row or 0) + offset
            while len(grid) <= row_index:
                grid.append([])
            row = grid[row_index]
            for col_offset, value in enumerate(row_values):
                col_index = start_col + col_offset
                while len(row) <= col_index:
                    row.append('')
                row[col_index] = value


class ManualClock:
    """Clock callable for TTLCache whose time only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingNotifier:
    """AppointmentNotifier that records deliveries and can be told to fail."""

    def __init__(self, deliver: bool = True, raise_error: bool = False):
        self.deliver = deliver
        self.raise_error = raise_error
        self.confirmations: List[AppointmentEmailData] = []
        self.reminders: List[AppointmentEmailData] = []

    async def send_confirmation(self, data: AppointmentEmailData) -> bool:
        if self.raise_error:
            raise RuntimeError("SMTP unavailable")
        self.confirmations.append(data)
        return self.deliver

    async def send_reminder(self, data: AppointmentEmailData) -> bool:
        if self.raise_error:
            raise RuntimeError("SMTP unavailable")
        self.reminders.append(data)
        return self.deliver


def appointment_row(
    date: str,
    time: str,
    name: str = "山田太郎",
    phone: str = "09012345678",
    email: str = "",
    status: str = "確定",
    booked_via: str = "Bot"
) -> List[str]:
    """Build a 10-column appointment sheet row."""
    return [date, time, name, phone, email, "", "", "", status, booked_via]


def create_jwt_token(email: str, sub: str = "google-sub-1", name: str = "", expires: Optional[timedelta] = None) -> str:
    """Create a dashboard access token for a site owner."""
    return JWTService.create_access_token(TokenPayload(sub=sub, email=email, name=name), expires_delta=expires)
