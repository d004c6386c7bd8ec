# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportMissingTypeStubs=false
"""
Tabular store adapter backed by Google Sheets.

The scheduling engine only needs three operations from its store: read a
rectangular range as rows of strings, append rows, and overwrite cells at an
address. `TabularStore` is that contract; `GoogleSheetsStore` implements it on
top of the Sheets v4 API using a service account.

The Google client is synchronous, so every call is pushed to a worker thread
with asyncio.to_thread to keep the event loop free.
"""

import asyncio
import logging
from typing import Any, List, Optional, Protocol, Sequence, Union

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from core.config import GOOGLE_SERVICE_ACCOUNT_EMAIL, GOOGLE_PRIVATE_KEY

logger = logging.getLogger(__name__)

CellValue = Union[str, int, float]
Rows = Sequence[Sequence[CellValue]]


class SheetStoreError(Exception):
    """Raised when the tabular store cannot be read or written."""
    pass


class TabularStore(Protocol):
    """Narrow read/append/update contract used by the scheduling engine."""

    async def read_range(self, handle: str, a1_range: str) -> List[List[str]]:
        """Read a range as rows of cell strings (blank cells as "")."""
        ...

    async def append_rows(self, handle: str, a1_range: str, rows: Rows) -> None:
        """Append rows after the last row of the range."""
        ...

    async def update_cells(self, handle: str, cell_address: str, rows: Rows) -> None:
        """Overwrite cells starting at the given address."""
        ...


class GoogleSheetsStore:
    """
    Google Sheets implementation of TabularStore.

    The tenant handle is the spreadsheet ID. Values are written with
    USER_ENTERED so the sheet shows them the same way a person typing them
    would.
    """

    SCOPES = ['https://www.googleapis.com/auth/spreadsheets']
    VALUE_INPUT_OPTION = 'USER_ENTERED'

    def __init__(
        self,
        service_account_email: str = GOOGLE_SERVICE_ACCOUNT_EMAIL,
        private_key: str = GOOGLE_PRIVATE_KEY,
        service: Optional[Any] = None
    ) -> None:
        """
        Initialize the store.

        Args:
            service_account_email: Service account client email
            private_key: Service account PEM private key
            service: Pre-built Sheets API resource (tests inject a mock here)
        """
        self._service_account_email = service_account_email
        self._private_key = private_key
        self._service = service

    def _get_service(self) -> Any:
        """Build the Sheets API resource on first use."""
        if self._service is None:
            if not self._service_account_email or not self._private_key:
                raise SheetStoreError("Google service account credentials are not configured")
            try:
                credentials = service_account.Credentials.from_service_account_info(
                    {
                        "type": "service_account",
                        "client_email": self._service_account_email,
                        "private_key": self._private_key,
                        "token_uri": "https://oauth2.googleapis.com/token",
                    },
                    scopes=self.SCOPES,
                )
            except (ValueError, GoogleAuthError) as e:
                logger.error(f"Invalid Google service account credentials: {e}")
                raise SheetStoreError(f"Invalid Google service account credentials: {e}") from e
            self._service = build('sheets', 'v4', credentials=credentials, cache_discovery=False)
        return self._service

    def _values(self) -> Any:
        return self._get_service().spreadsheets().values()

    async def read_range(self, handle: str, a1_range: str) -> List[List[str]]:
        def _read() -> List[List[str]]:
            response = self._values().get(spreadsheetId=handle, range=a1_range).execute()
            rows = response.get('values', [])
            return [['' if cell is None else str(cell) for cell in row] for row in rows]

        return await self._run(_read, "read", handle, a1_range)

    async def append_rows(self, handle: str, a1_range: str, rows: Rows) -> None:
        def _append() -> None:
            self._values().append(
                spreadsheetId=handle,
                range=a1_range,
                valueInputOption=self.VALUE_INPUT_OPTION,
                body={'values': [list(row) for row in rows]},
            ).execute()

        await self._run(_append, "append", handle, a1_range)

    async def update_cells(self, handle: str, cell_address: str, rows: Rows) -> None:
        def _update() -> None:
            self._values().update(
                spreadsheetId=handle,
                range=cell_address,
                valueInputOption=self.VALUE_INPUT_OPTION,
                body={'values': [list(row) for row in rows]},
            ).execute()

        await self._run(_update, "update", handle, cell_address)

    async def _run(self, func: Any, operation: str, handle: str, a1_range: str) -> Any:
        try:
            return await asyncio.to_thread(func)
        except SheetStoreError:
            raise
        except HttpError as e:
            logger.error(f"Sheets API {operation} failed for {handle} ({a1_range}): {e}")
            raise SheetStoreError(f"Sheets API {operation} failed: {e}") from e
        except GoogleAuthError as e:
            logger.error(f"Sheets authentication failed during {operation} for {handle}: {e}")
            raise SheetStoreError(f"Sheets authentication failed: {e}") from e
        except OSError as e:
            logger.error(f"Sheets transport error during {operation} for {handle}: {e}")
            raise SheetStoreError(f"Sheets transport error: {e}") from e
