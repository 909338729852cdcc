"""Batch sweeper - removes one kind of stale record in bounded batches."""

from collections.abc import Callable
from datetime import UTC, datetime

from grant_reaper.core.logging import get_logger
from grant_reaper.services.committer import ConflictSafeCommitter
from grant_reaper.services.notification import OperationalStoreNotification
from grant_reaper.services.store import OperationalStore
from grant_reaper.services.sweep_targets import SweepTarget

logger = get_logger("sweeper")


def utcnow() -> datetime:
    return datetime.now(UTC)


class BatchSweeper:
    """Fetch-delete-notify loop over one sweep target.

    The loop keeps going while each query comes back full and stops on the
    first short batch. That is a liveness assumption rather than proof the
    backlog is empty: if other writers keep adding eligible records the
    sweep runs for as long as they outpace it, and records arriving after
    a short batch wait for the next cycle.
    """

    def __init__(
        self,
        store: OperationalStore,
        committer: ConflictSafeCommitter,
        notification: OperationalStoreNotification,
        batch_size: int,
        clock: Callable[[], datetime] = utcnow,
    ):
        if batch_size < 1:
            raise ValueError("Token cleanup batch size must be at least 1")

        self._store = store
        self._committer = committer
        self._notification = notification
        self._batch_size = batch_size
        self._clock = clock

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def sweep(self, target: SweepTarget) -> int:
        """Remove eligible records of one kind until a batch comes back short.

        Returns:
            Number of records this sweep removed
        """
        removed_total = 0
        found = self._batch_size

        while found >= self._batch_size:
            cutoff = self._clock()
            batch = await self._store.query_eligible(target, cutoff, self._batch_size)

            found = len(batch)
            logger.info(f"Removing {found} {target.name}")
            if found == 0:
                break

            outcome = await self._committer.commit_batch(target, batch, cutoff)
            if outcome.removed:
                await target.notify(self._notification, outcome.removed)
            removed_total += len(outcome.removed)

        return removed_total
