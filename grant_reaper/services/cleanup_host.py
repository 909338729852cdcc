"""Token cleanup host - runs the token cleanup service on an interval."""

import asyncio
import threading
from typing import Optional

from grant_reaper.core import async_session_maker, settings
from grant_reaper.core.logging import get_logger
from grant_reaper.services.token_cleanup import CleanupResult, TokenCleanupService

logger = get_logger("cleanup_host")


class TokenCleanupHost:
    """Background service that periodically purges stale grants."""

    _instance: Optional["TokenCleanupHost"] = None
    _instance_lock: threading.Lock = threading.Lock()
    _task: asyncio.Task | None = None

    def __init__(
        self,
        service: TokenCleanupService | None = None,
        interval_seconds: int | None = None,
        initial_delay_seconds: int | None = None,
        enabled: bool | None = None,
    ):
        self._running = False
        self._service = service
        self._interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else settings.token_cleanup_interval_seconds
        )
        self._initial_delay_seconds = (
            initial_delay_seconds
            if initial_delay_seconds is not None
            else settings.token_cleanup_initial_delay_seconds
        )
        self._enabled = settings.enable_token_cleanup if enabled is None else enabled
        # Overlapping runs within one process wait instead of duplicating queries
        self._run_lock = asyncio.Lock()

    @classmethod
    def get_instance(cls) -> "TokenCleanupHost":
        """Get singleton instance of the cleanup host (thread-safe)."""
        if cls._instance is None:
            with cls._instance_lock:
                # Double-check locking pattern
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @property
    def service(self) -> TokenCleanupService:
        if self._service is None:
            self._service = TokenCleanupService.from_settings(settings, async_session_maker)
        return self._service

    @property
    def interval_seconds(self) -> int:
        return self._interval_seconds

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background cleanup task."""
        if not self._enabled:
            logger.info("Token cleanup is disabled")
            return

        if self._running:
            logger.warning("Token cleanup host is already running")
            return

        self._running = True
        TokenCleanupHost._task = asyncio.create_task(self._cleanup_loop())
        logger.info(
            f"Token cleanup host started (interval: {self._interval_seconds}s, "
            f"sweeps: {', '.join(self.service.sweep_names)})"
        )

    async def stop(self) -> None:
        """Stop the background cleanup task."""
        self._running = False
        if TokenCleanupHost._task:
            TokenCleanupHost._task.cancel()
            try:
                await TokenCleanupHost._task
            except asyncio.CancelledError:
                pass
            TokenCleanupHost._task = None
        logger.info("Token cleanup host stopped")

    async def _cleanup_loop(self) -> None:
        """Main loop that periodically runs a cleanup cycle."""
        await asyncio.sleep(self._initial_delay_seconds)

        while self._running:
            try:
                await self.run_cleanup_now()
            except Exception as e:
                logger.error(f"Error in token cleanup loop: {e}")

            await asyncio.sleep(self._interval_seconds)

    async def run_cleanup_now(self) -> CleanupResult:
        """Run one cleanup cycle, waiting for any cycle already in progress.

        Returns:
            Per-sweep removal counts and failures
        """
        async with self._run_lock:
            return await self.service.remove_expired_grants()
