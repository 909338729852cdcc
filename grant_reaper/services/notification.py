"""Notifications for records removed by the cleanup sweeps.

Sinks are called once per committed batch with exactly the records that batch
deleted. Sink errors are not handled here; they propagate to the cleanup
service, which logs them.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Protocol

import httpx

from grant_reaper.core.config import Settings
from grant_reaper.core.logging import get_logger
from grant_reaper.models import DeviceFlowCode, PersistedGrant

logger = get_logger("notification")


class OperationalStoreNotification(Protocol):
    """Receives records removed from the operational store."""

    async def persisted_grants_removed(self, grants: Sequence[PersistedGrant]) -> None: ...

    async def device_codes_removed(self, device_codes: Sequence[DeviceFlowCode]) -> None: ...


class NullOperationalStoreNotification:
    """Sink used when nothing is listening."""

    async def persisted_grants_removed(self, grants: Sequence[PersistedGrant]) -> None:
        return None

    async def device_codes_removed(self, device_codes: Sequence[DeviceFlowCode]) -> None:
        return None


class WebhookOperationalStoreNotification:
    """POSTs a JSON summary of each removed batch to a webhook URL."""

    def __init__(self, url: str, timeout: float = 5.0):
        self._url = url
        self._timeout = timeout

    async def persisted_grants_removed(self, grants: Sequence[PersistedGrant]) -> None:
        await self._post("persisted_grants_removed", [g.to_dict() for g in grants])

    async def device_codes_removed(self, device_codes: Sequence[DeviceFlowCode]) -> None:
        await self._post("device_codes_removed", [c.to_dict() for c in device_codes])

    async def _post(self, event: str, records: list[dict]) -> None:
        payload = _build_payload(event, records)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(self._url, json=payload)
            response.raise_for_status()
        logger.debug(f"Sent {event} notification for {len(records)} records")


def _build_payload(event: str, records: list[dict]) -> dict:
    return {
        "event": event,
        "count": len(records),
        "records": records,
        "timestamp": datetime.now(UTC).isoformat(),
        "source": "grant-reaper",
    }


def get_notification(settings: Settings) -> OperationalStoreNotification:
    """Pick the notification sink for the given settings."""
    if settings.notification_webhook_url:
        return WebhookOperationalStoreNotification(
            settings.notification_webhook_url,
            timeout=settings.notification_timeout_seconds,
        )
    return NullOperationalStoreNotification()
