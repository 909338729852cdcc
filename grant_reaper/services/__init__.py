# grant-reaper Services
from grant_reaper.services.committer import MAX_COMMIT_ATTEMPTS, CommitOutcome, ConflictSafeCommitter
from grant_reaper.services.notification import (
    NullOperationalStoreNotification,
    OperationalStoreNotification,
    WebhookOperationalStoreNotification,
    get_notification,
)
from grant_reaper.services.store import (
    CommitResult,
    Committed,
    ConflictedOn,
    OperationalStore,
    SqlAlchemyOperationalStore,
)
from grant_reaper.services.sweeper import BatchSweeper
from grant_reaper.services.sweep_targets import SweepTarget, build_sweep_targets
from grant_reaper.services.token_cleanup import CleanupResult, TokenCleanupService

__all__ = [
    "MAX_COMMIT_ATTEMPTS",
    "BatchSweeper",
    "CleanupResult",
    "CommitOutcome",
    "CommitResult",
    "Committed",
    "ConflictSafeCommitter",
    "ConflictedOn",
    "NullOperationalStoreNotification",
    "OperationalStore",
    "OperationalStoreNotification",
    "SqlAlchemyOperationalStore",
    "SweepTarget",
    "TokenCleanupService",
    "WebhookOperationalStoreNotification",
    "build_sweep_targets",
    "get_notification",
]
