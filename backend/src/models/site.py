"""
Site model representing one tenant of the service.

A site is a client business (typically a clinic) embedding the chatbot. When
the site has appointment booking enabled it points at the spreadsheet that
holds its settings, appointment and holiday sheets; that spreadsheet ID is
the tenant handle the scheduling engine works with.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base
from core.constants import MAX_STRING_LENGTH


class Site(Base):
    """
    Tenant registry entry.

    The application database stores only this mapping; clinic configuration
    and appointments are read from the spreadsheet on every request.
    """

    __tablename__ = "sites"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    """Public site identifier, used by the embed script and API query strings."""

    name: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    """Display name of the site."""

    owner_email: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH), index=True)
    """
    Email of the dashboard user who owns the site.

    Only the owner may list or cancel appointments through the dashboard API.
    """

    spreadsheet_id: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True)
    """Google Sheets spreadsheet ID. None means booking is not enabled for the site."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))

    @property
    def booking_enabled(self) -> bool:
        return bool(self.spreadsheet_id)

    def __repr__(self) -> str:
        return f"<Site(id='{self.id}', name='{self.name}', spreadsheet_id={self.spreadsheet_id!r})>"
