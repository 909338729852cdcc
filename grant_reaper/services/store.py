"""Operational store - querying and deleting stale grants and device codes.

The store is the only component that talks to the database. Commits report
concurrency conflicts as a value rather than raising, so callers can drop the
conflicting records and retry the rest.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from grant_reaper.core.logging import get_logger
from grant_reaper.services.sweep_targets import SweepTarget

logger = get_logger("store")


@dataclass(frozen=True)
class Committed:
    """Every requested deletion was persisted."""


@dataclass(frozen=True)
class ConflictedOn:
    """Nothing was persisted; ``records`` were changed or removed by another actor."""

    records: tuple[Any, ...]


CommitResult = Committed | ConflictedOn


class OperationalStore(Protocol):
    """Persistence contract consumed by the cleanup sweeps."""

    async def query_eligible(
        self, target: SweepTarget, cutoff: datetime, limit: int
    ) -> list[Any]:
        """Return up to ``limit`` records eligible before ``cutoff``, oldest first."""
        ...

    async def commit_deletions(
        self, target: SweepTarget, records: Sequence[Any], cutoff: datetime
    ) -> CommitResult:
        """Delete ``records`` atomically, or report the ones that conflicted."""
        ...


class SqlAlchemyOperationalStore:
    """OperationalStore backed by an async SQLAlchemy session factory.

    Each call opens its own session, so no session outlives a single
    round-trip.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def query_eligible(
        self, target: SweepTarget, cutoff: datetime, limit: int
    ) -> list[Any]:
        stmt = (
            select(target.model)
            .where(target.column(target.eligibility_field) < cutoff)
            .order_by(target.column(target.order_field).asc())
            .limit(limit)
        )
        async with self._session_maker() as db:
            result = await db.execute(stmt)
            return list(result.scalars().all())

    async def commit_deletions(
        self, target: SweepTarget, records: Sequence[Any], cutoff: datetime
    ) -> CommitResult:
        if not records:
            return Committed()

        table = target.model.__table__
        key_column = table.c[target.key_field]
        keys = [target.key_of(record) for record in records]

        # Re-checking eligibility catches rows another actor modified since
        # they were read, not only rows it already deleted.
        stmt = (
            delete(table)
            .where(key_column.in_(keys))
            .where(table.c[target.eligibility_field] < cutoff)
            .returning(key_column)
        )

        async with self._session_maker() as db:
            try:
                result = await db.execute(stmt)
                deleted = set(result.scalars().all())
                missing = tuple(r for r in records if target.key_of(r) not in deleted)
                if missing:
                    await db.rollback()
                    logger.debug(
                        f"Delete of {len(records)} {target.name} matched {len(deleted)} rows, "
                        "rolled back"
                    )
                    return ConflictedOn(missing)
                await db.commit()
            except (Exception, BaseException):
                # BaseException covers asyncio.CancelledError
                await db.rollback()
                raise

        return Committed()
