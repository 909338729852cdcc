"""Sweep targets - which records a sweep removes and in what order."""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from grant_reaper.models import DeviceFlowCode, PersistedGrant

if TYPE_CHECKING:
    from grant_reaper.services.notification import OperationalStoreNotification


@dataclass(frozen=True)
class SweepTarget:
    """One kind of stale record.

    A record is eligible when ``eligibility_field`` is earlier than the sweep
    cutoff. Batches are fetched ascending by ``order_field``, so when the
    eligibility and order fields match the stalest records go first.
    """

    name: str
    model: type
    key_field: str
    eligibility_field: str
    order_field: str
    notify: Callable[["OperationalStoreNotification", Sequence[Any]], Awaitable[None]]

    def key_of(self, record: Any) -> Any:
        return getattr(record, self.key_field)

    def column(self, field: str):
        """ORM attribute for a field of the target model."""
        return getattr(self.model, field)


def _grants_removed(notification: "OperationalStoreNotification", records: Sequence[Any]):
    return notification.persisted_grants_removed(records)


def _device_codes_removed(notification: "OperationalStoreNotification", records: Sequence[Any]):
    return notification.device_codes_removed(records)


EXPIRED_GRANTS = SweepTarget(
    name="expired grants",
    model=PersistedGrant,
    key_field="key",
    eligibility_field="expiration",
    order_field="expiration",
    notify=_grants_removed,
)

CONSUMED_GRANTS = SweepTarget(
    name="consumed grants",
    model=PersistedGrant,
    key_field="key",
    eligibility_field="consumed_time",
    order_field="consumed_time",
    notify=_grants_removed,
)

EXPIRED_DEVICE_CODES = SweepTarget(
    name="device flow codes",
    model=DeviceFlowCode,
    key_field="user_code",
    eligibility_field="expiration",
    order_field="expiration",
    notify=_device_codes_removed,
)

# Older deployments ordered device codes by identifier. Batches are then no
# longer oldest-first.
DEVICE_CODES_BY_IDENTIFIER = replace(EXPIRED_DEVICE_CODES, order_field="device_code")


def build_sweep_targets(
    remove_consumed_grants: bool = False,
    device_codes_order_by_identifier: bool = False,
) -> list[SweepTarget]:
    """Return the sweeps of one cleanup cycle, in execution order."""
    targets = [EXPIRED_GRANTS]
    if remove_consumed_grants:
        targets.append(CONSUMED_GRANTS)
    targets.append(
        DEVICE_CODES_BY_IDENTIFIER if device_codes_order_by_identifier else EXPIRED_DEVICE_CODES
    )
    return targets
