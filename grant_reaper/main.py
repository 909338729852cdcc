"""grant-reaper entry point.

Usage:
    python -m grant_reaper          # run the periodic cleanup until interrupted
    python -m grant_reaper --once   # run a single cleanup cycle and exit
"""

import argparse
import asyncio
import signal

from grant_reaper.core import engine, settings, setup_logging
from grant_reaper.core.logging import get_logger
from grant_reaper.services.cleanup_host import TokenCleanupHost

logger = get_logger("main")


async def run(once: bool = False) -> int:
    """Run the cleanup host; returns a process exit code."""
    setup_logging(level=settings.log_level, format_type=settings.log_format)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    host = TokenCleanupHost.get_instance()
    try:
        if once:
            result = await host.run_cleanup_now()
            logger.info(
                f"Cleanup completed. Removed {result.total_removed} records"
                + (f", failed: {', '.join(result.failed)}" if result.failed else "")
            )
            return 0 if result.succeeded else 1

        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

        await host.start()
        await stop_event.wait()
        await host.stop()
        return 0
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Purge stale grants and device codes")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cleanup cycle and exit",
    )
    args = parser.parse_args(argv)
    return asyncio.run(run(once=args.once))
