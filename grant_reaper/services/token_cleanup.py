"""Token cleanup service - purges stale grants and device codes."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from grant_reaper.core.config import Settings
from grant_reaper.core.logging import get_logger
from grant_reaper.services.committer import ConflictSafeCommitter
from grant_reaper.services.notification import (
    NullOperationalStoreNotification,
    OperationalStoreNotification,
    get_notification,
)
from grant_reaper.services.store import OperationalStore, SqlAlchemyOperationalStore
from grant_reaper.services.sweep_targets import build_sweep_targets
from grant_reaper.services.sweeper import BatchSweeper, utcnow

logger = get_logger("token_cleanup")


@dataclass
class CleanupResult:
    """Per-sweep outcome of one cleanup cycle."""

    removed: dict[str, int] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)

    @property
    def total_removed(self) -> int:
        return sum(self.removed.values())

    @property
    def succeeded(self) -> bool:
        return not self.failed


class TokenCleanupService:
    """Removes expired (and optionally consumed) grants, then expired device codes.

    remove_expired_grants() never raises for ordinary failures, so it can be
    called from a recurring timer indefinitely. It does not guard against
    concurrent calls; overlapping runs rely on the store's conflict detection.
    """

    def __init__(
        self,
        store: OperationalStore,
        batch_size: int,
        remove_consumed_grants: bool = False,
        notification: OperationalStoreNotification | None = None,
        device_codes_order_by_identifier: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ):
        if batch_size < 1:
            raise ValueError("Token cleanup batch size must be at least 1")

        self._notification = notification or NullOperationalStoreNotification()
        self._sweeper = BatchSweeper(
            store,
            ConflictSafeCommitter(store),
            self._notification,
            batch_size,
            clock=clock,
        )
        self._targets = build_sweep_targets(
            remove_consumed_grants=remove_consumed_grants,
            device_codes_order_by_identifier=device_codes_order_by_identifier,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session_maker: async_sessionmaker[AsyncSession],
    ) -> "TokenCleanupService":
        """Build a service wired to the database and configured sink."""
        return cls(
            SqlAlchemyOperationalStore(session_maker),
            batch_size=settings.token_cleanup_batch_size,
            remove_consumed_grants=settings.remove_consumed_grants,
            notification=get_notification(settings),
            device_codes_order_by_identifier=settings.device_codes_order_by_identifier,
        )

    @property
    def sweep_names(self) -> list[str]:
        return [target.name for target in self._targets]

    async def remove_expired_grants(self) -> CleanupResult:
        """Run every sweep once, in order.

        A failing sweep is logged and skipped; the remaining sweeps still run.
        Cancellation is not caught.
        """
        logger.debug("Querying for expired grants to remove")
        result = CleanupResult()

        for target in self._targets:
            try:
                result.removed[target.name] = await self._sweeper.sweep(target)
            except Exception as e:
                result.failed.append(target.name)
                logger.exception(f"Exception removing {target.name}: {e}")

        if result.total_removed > 0:
            summary = ", ".join(f"{count} {name}" for name, count in result.removed.items())
            logger.info(f"Token cleanup removed {summary}")

        return result
