"""grant-reaper: batched cleanup of stale authorization grants and device codes."""

__version__ = "0.1.0"
