"""
Test configuration and shared fixtures for the Clinic Reservation test suite.

Uses an in-memory SQLite database for the site registry and an in-memory
sheet store for clinic spreadsheets, so no external service is touched.
"""

import os

# Must be set before core.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime
from typing import Generator
from unittest.mock import Mock

import pytest
from sqlalchemy.orm import Session

from core.database import SessionLocal, create_tables, drop_tables
from models import Site
from clinic_agents.context import ToolContext
from services.notification_service import NotificationService
from services.scheduling_engine import (
    SchedulingEngine, build_scheduling_engine, configure_notifier, set_scheduling_engine,
)
from utils.datetime_utils import JAPAN_TZ
from utils.ttl_cache import TTLCache
from tests.utils import InMemorySheetStore, ManualClock, RecordingNotifier


TEST_HANDLE = "sheet-test-001"
OWNER_EMAIL = "owner@example.com"

# Weekday layout of the default test configuration: 日 closed all day,
# 水 closed in the afternoon, 土 closed in the morning.
DEFAULT_SETTINGS = {
    "医院名": "テストクリニック",
    "診療開始時間": "9:00",
    "診療終了時間": "18:00",
    "昼休み開始": "12:00",
    "昼休み終了": "14:00",
    "1枠の時間（分）": "30",
    "予約可能日数（何日先まで）": "30",
    "同時間帯の最大予約数": "1",
    "休診曜日（終日）": "日",
    "休診曜日（午前）": "土",
    "休診曜日（午後）": "水",
}


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create the registry schema once for the session."""
    create_tables()
    yield
    drop_tables()


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """
    Provide a database session for a test.

    API requests commit through their own sessions on the same in-memory
    database, so rows are deleted after each test instead of rolled back.
    """
    session = SessionLocal()
    yield session
    session.rollback()
    session.query(Site).delete()
    session.commit()
    session.close()


@pytest.fixture(autouse=True)
def reset_global_services():
    """Reset process-wide engine and notifier between tests."""
    yield
    set_scheduling_engine(None)
    configure_notifier(None)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def sheet_store() -> InMemorySheetStore:
    """In-memory store seeded with one clinic using the default settings."""
    store = InMemorySheetStore()
    store.seed(TEST_HANDLE, settings=DEFAULT_SETTINGS)
    return store


@pytest.fixture
def engine(sheet_store: InMemorySheetStore, clock: ManualClock) -> SchedulingEngine:
    return build_scheduling_engine(sheet_store, TTLCache(300, clock=clock))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def tool_context(engine: SchedulingEngine, notifier: RecordingNotifier) -> ToolContext:
    """Chat tool context fixed at Monday 2026/1/26 10:00 JST."""
    return ToolContext(
        spreadsheet_id=TEST_HANDLE,
        engine=engine,
        notifications=NotificationService(notifier),
        current_datetime=datetime(2026, 1, 26, 10, 0, tzinfo=JAPAN_TZ),
    )


@pytest.fixture
def tool_wrapper(tool_context: ToolContext) -> Mock:
    """Mock RunContextWrapper carrying the tool context."""
    return Mock(context=tool_context)


def create_site(
    db_session: Session,
    site_id: str = "site-001",
    name: str = "テストクリニック",
    owner_email: str = OWNER_EMAIL,
    spreadsheet_id: str | None = TEST_HANDLE
) -> Site:
    """Create and commit a site registry row."""
    site = Site(id=site_id, name=name, owner_email=owner_email, spreadsheet_id=spreadsheet_id)
    db_session.add(site)
    db_session.commit()
    return site
