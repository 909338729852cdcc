"""Conflict-safe commit of a deletion batch."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from grant_reaper.core.logging import get_logger
from grant_reaper.services.store import Committed, OperationalStore
from grant_reaper.services.sweep_targets import SweepTarget

logger = get_logger("committer")

# Total commit attempts per batch, including the first
MAX_COMMIT_ATTEMPTS = 3


@dataclass
class CommitOutcome:
    """Result of committing one batch."""

    removed: list[Any] = field(default_factory=list)
    attempts: int = 0
    abandoned: bool = False


class ConflictSafeCommitter:
    """Commits deletions, dropping records that another actor got to first.

    A conflicting record is already gone (or no longer eligible), so it is
    removed from the pending set rather than treated as an error. Records left
    pending when the attempts run out stay in the store for the next cycle.
    """

    def __init__(self, store: OperationalStore):
        self._store = store

    async def commit_batch(
        self,
        target: SweepTarget,
        records: Sequence[Any],
        cutoff: datetime,
    ) -> CommitOutcome:
        """Delete ``records``, retrying on concurrency conflicts.

        Args:
            target: The sweep the records belong to
            records: Records fetched for this batch
            cutoff: Eligibility cutoff the batch was queried with

        Returns:
            CommitOutcome whose ``removed`` holds exactly the records this
            call deleted
        """
        pending = list(records)
        attempts = 0

        while attempts < MAX_COMMIT_ATTEMPTS:
            attempts += 1
            result = await self._store.commit_deletions(target, pending, cutoff)
            if isinstance(result, Committed):
                return CommitOutcome(removed=pending, attempts=attempts)

            conflicting = {target.key_of(record) for record in result.records}
            logger.debug(
                f"Concurrency conflict removing {target.name} "
                f"(attempt {attempts}/{MAX_COMMIT_ATTEMPTS}): "
                f"{len(conflicting)} already changed or removed"
            )
            pending = [r for r in pending if target.key_of(r) not in conflicting]
            if not pending:
                return CommitOutcome(attempts=attempts)

        logger.debug(
            f"Too many concurrency conflicts removing {target.name}; "
            f"leaving {len(pending)} for the next cycle"
        )
        return CommitOutcome(attempts=attempts, abandoned=True)
