# grant-reaper Models
from grant_reaper.models.device_flow_code import DeviceFlowCode
from grant_reaper.models.persisted_grant import PersistedGrant

__all__ = [
    "DeviceFlowCode",
    "PersistedGrant",
]
