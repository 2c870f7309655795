"""
Shared test fixtures for the feedback backend.

This module provides reusable fixtures for:
- A throwaway SQLite database (file-backed, one per test) with the full schema
- An in-memory directory lookup with failure injection
- Recording notification senders and a dispatcher wired to them
"""

import asyncio
from typing import Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from common.errors import DuplicateEntryError
from models import audit, directory, feedback, operator, pending_entry, survey  # noqa: F401
from models.base import Base
from models.directory import HealthFacility
from services.moderation.normalization import build_dedup_key, clean_value
from services.moderation.types import FacilityOwnershipType
from services.notification.dispatcher import NotificationDispatcher
from services.notification.factory import BaseSender
from services.notification.models import SendResult
from services.notification.notification_types import NotificationChannel

OPERATOR_EMAILS = ["admin@example.org", "moderator@example.org"]


def make_test_engine(url: str):
    """
    Async SQLite engine that honours SAVEPOINTs.

    pysqlite's own transaction handling breaks SAVEPOINT semantics, so it is
    switched off and BEGIN is emitted explicitly. NullPool keeps every
    connection local to the event loop that opened it.
    """
    engine = create_async_engine(url, poolclass=NullPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


async def create_schema(engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'feedback_test.db'}"


@pytest_asyncio.fixture
async def engine(database_url):
    engine = make_test_engine(database_url)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ============================================================================
# Directory
# ============================================================================


class FakeDirectory:
    """In-memory DirectoryLookup keyed like the real ``name_key``."""

    def __init__(self, existing=None):
        self.keys = {build_dedup_key(*row) for row in (existing or [])}
        self.inserted: List[HealthFacility] = []
        self.exists_error: Optional[Exception] = None
        self.insert_error: Optional[Exception] = None
        self.exists_calls = 0

    def add(self, name, region, sub_region):
        self.keys.add(build_dedup_key(name, region, sub_region))

    async def exists(self, name, region, sub_region):
        self.exists_calls += 1
        if self.exists_error is not None:
            raise self.exists_error
        return build_dedup_key(name, region, sub_region) in self.keys

    async def insert(
        self,
        name,
        region,
        sub_region,
        classification=FacilityOwnershipType.UNKNOWN,
        source_entry_id=None,
    ):
        if self.insert_error is not None:
            raise self.insert_error
        key = build_dedup_key(name, region, sub_region)
        if key in self.keys:
            raise DuplicateEntryError(f"Facility '{name}' already exists")
        self.keys.add(key)
        facility = HealthFacility(
            name=clean_value(name),
            region=clean_value(region),
            sub_region=clean_value(sub_region),
            ownership_type=FacilityOwnershipType(classification).value,
            name_key=key,
            source_entry_id=source_entry_id,
        )
        self.inserted.append(facility)
        return facility


@pytest.fixture
def fake_directory():
    return FakeDirectory()


# ============================================================================
# Notifications
# ============================================================================


class RecordingSender(BaseSender):
    """Sender that records every call; can fail, raise or hang on demand."""

    def __init__(self, channel: NotificationChannel):
        self.channel = channel
        self.calls: List[Dict] = []
        self.delivered = True
        self.error: Optional[Exception] = None
        self.delay: float = 0.0

    async def send(self, recipients, subject, body):
        self.calls.append({"recipients": list(recipients), "subject": subject, "body": body})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SendResult(
            delivered=self.delivered,
            channel=self.channel,
            error=None if self.delivered else "provider rejected message",
        )


class RecordingNotificationFactory:
    def __init__(self):
        self.senders = {
            NotificationChannel.EMAIL: RecordingSender(NotificationChannel.EMAIL),
            NotificationChannel.SMS: RecordingSender(NotificationChannel.SMS),
        }

    def get_sender(self, channel):
        return self.senders[NotificationChannel(channel)]

    @property
    def email(self) -> RecordingSender:
        return self.senders[NotificationChannel.EMAIL]

    @property
    def sms(self) -> RecordingSender:
        return self.senders[NotificationChannel.SMS]


@pytest.fixture
def notification_factory():
    return RecordingNotificationFactory()


@pytest.fixture
def operator_recipients():
    return AsyncMock(return_value=list(OPERATOR_EMAILS))


@pytest.fixture
def dispatcher(notification_factory, operator_recipients):
    return NotificationDispatcher(
        factory=notification_factory,
        operator_recipients=operator_recipients,
        timeout_s=0.5,
    )


# ============================================================================
# HTTP (TestClient runs its own event loop, so setup happens via asyncio.run)
# ============================================================================


@pytest.fixture
def api_engine(database_url):
    engine = make_test_engine(database_url)
    asyncio.run(create_schema(engine))
    yield engine
    asyncio.run(engine.dispose())
