"""Pytest configuration and fixtures for grant-reaper tests.

Database handling:
- Unit tests run against InMemoryOperationalStore, a fake that can simulate
  concurrent writers, conflicts and store failures.
- Store integration tests use an in-memory SQLite database through aiosqlite.
"""

import os
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

# Set test environment variables before importing grant_reaper modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["TOKEN_CLEANUP_INITIAL_DELAY_SECONDS"] = "0"
os.environ["NOTIFICATION_WEBHOOK_URL"] = ""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from grant_reaper.core.database import Base
from grant_reaper.models import DeviceFlowCode, PersistedGrant
from grant_reaper.services.store import CommitResult, Committed, ConflictedOn
from grant_reaper.services.sweep_targets import SweepTarget

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


def make_grant(
    key: str,
    expires_in: timedelta | None = timedelta(days=-1),
    consumed_in: timedelta | None = None,
    grant_type: str = "refresh_token",
) -> PersistedGrant:
    """Build a grant whose timestamps are relative to NOW (negative = in the past)."""
    return PersistedGrant(
        key=key,
        type=grant_type,
        subject_id="alice",
        session_id="sid-1",
        client_id="client-1",
        creation_time=NOW - timedelta(days=30),
        expiration=NOW + expires_in if expires_in is not None else None,
        consumed_time=NOW + consumed_in if consumed_in is not None else None,
        data="{}",
    )


def make_device_code(
    user_code: str,
    device_code: str | None = None,
    expires_in: timedelta = timedelta(minutes=-5),
) -> DeviceFlowCode:
    return DeviceFlowCode(
        user_code=user_code,
        device_code=device_code or f"device-{user_code}",
        client_id="tv-app",
        creation_time=NOW - timedelta(hours=1),
        expiration=NOW + expires_in,
        data="{}",
    )


class InMemoryOperationalStore:
    """Fake OperationalStore with hooks for simulating other actors.

    Attributes:
        query_count: number of query_eligible calls
        commit_attempts: key lists passed to each commit_deletions call
        concurrent_removals: keys another actor deletes right before the
            next commit
        before_query: optional callback invoked with the store before each query
        conflict_every_commit: when set, every commit reports its first
            pending record as conflicting without removing anything
        fail_query_for: target names whose queries raise ``query_error``
    """

    def __init__(self, records: Sequence[Any] = ()):
        self._rows: dict[type, dict[Any, Any]] = {}
        self.query_count = 0
        self.commit_attempts: list[list[Any]] = []
        self.concurrent_removals: list[Any] = []
        self.before_query: Callable[["InMemoryOperationalStore"], None] | None = None
        self.conflict_every_commit = False
        self.fail_query_for: set[str] = set()
        self.query_error: Exception = ConnectionError("store unavailable")
        for record in records:
            self.add(record)

    @staticmethod
    def _key(record: Any) -> Any:
        return record.key if isinstance(record, PersistedGrant) else record.user_code

    def add(self, record: Any) -> None:
        self._rows.setdefault(type(record), {})[self._key(record)] = record

    def remove_key(self, model: type, key: Any) -> None:
        self._rows.get(model, {}).pop(key, None)

    def rows(self, model: type) -> list[Any]:
        return list(self._rows.get(model, {}).values())

    def keys(self, model: type) -> set[Any]:
        return set(self._rows.get(model, {}))

    @staticmethod
    def _eligible(target: SweepTarget, record: Any, cutoff: datetime) -> bool:
        value = getattr(record, target.eligibility_field)
        return value is not None and value < cutoff

    async def query_eligible(
        self, target: SweepTarget, cutoff: datetime, limit: int
    ) -> list[Any]:
        self.query_count += 1
        if self.before_query:
            self.before_query(self)
        if target.name in self.fail_query_for:
            raise self.query_error

        eligible = [r for r in self.rows(target.model) if self._eligible(target, r, cutoff)]
        eligible.sort(key=lambda r: getattr(r, target.order_field))
        return eligible[:limit]

    async def commit_deletions(
        self, target: SweepTarget, records: Sequence[Any], cutoff: datetime
    ) -> CommitResult:
        self.commit_attempts.append([target.key_of(r) for r in records])

        for key in self.concurrent_removals:
            self.remove_key(target.model, key)
        self.concurrent_removals = []

        if self.conflict_every_commit and records:
            return ConflictedOn((records[0],))

        table = self._rows.get(target.model, {})
        missing = tuple(
            r
            for r in records
            if target.key_of(r) not in table
            or not self._eligible(target, table[target.key_of(r)], cutoff)
        )
        if missing:
            return ConflictedOn(missing)

        for record in records:
            del table[target.key_of(record)]
        return Committed()


class RecordingNotification:
    """Notification sink that remembers every batch it receives."""

    def __init__(self):
        self.grant_batches: list[list[Any]] = []
        self.device_code_batches: list[list[Any]] = []

    async def persisted_grants_removed(self, grants: Sequence[PersistedGrant]) -> None:
        self.grant_batches.append(list(grants))

    async def device_codes_removed(self, device_codes: Sequence[DeviceFlowCode]) -> None:
        self.device_code_batches.append(list(device_codes))

    @property
    def grant_keys(self) -> list[str]:
        return [g.key for batch in self.grant_batches for g in batch]

    @property
    def device_user_codes(self) -> list[str]:
        return [c.user_code for batch in self.device_code_batches for c in batch]


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Clock fixed at NOW."""
    return lambda: NOW


@pytest.fixture
def notification() -> RecordingNotification:
    return RecordingNotification()


@pytest.fixture
def store() -> InMemoryOperationalStore:
    return InMemoryOperationalStore()


# --- SQLite Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def sqlite_engine():
    """In-memory SQLite engine shared across sessions via StaticPool."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def sqlite_session_maker(sqlite_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(sqlite_engine, class_=AsyncSession, expire_on_commit=False)
