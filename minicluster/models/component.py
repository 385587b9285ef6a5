"""
Wire messages for role component-state and health queries.

Encoded as JSON with msgspec; see minicluster.rpc.codec.
"""

from enum import Enum

import msgspec


class StateCode(str, Enum):
    INITIALIZING = "initializing"
    HEALTHY = "healthy"
    ABNORMAL = "abnormal"
    STANDBY = "standby"
    STOPPING = "stopping"


class ComponentStatesRequest(msgspec.Struct, kw_only=True):
    pass


class ComponentStates(msgspec.Struct, kw_only=True):
    node_id: int
    role: str
    state_code: StateCode = StateCode.HEALTHY
    extra: dict[str, str] = msgspec.field(default_factory=dict)

    @property
    def is_live(self) -> bool:
        return self.state_code in (
            StateCode.INITIALIZING,
            StateCode.HEALTHY,
            StateCode.STANDBY,
        )


class CheckHealthRequest(msgspec.Struct, kw_only=True):
    pass


class CheckHealthResponse(msgspec.Struct, kw_only=True):
    is_healthy: bool
    reasons: list[str] = msgspec.field(default_factory=list)


class Session(msgspec.Struct, kw_only=True):
    """Session record a role registers under <root>/session/ on start."""
    server_id: int
    server_name: str
    address: str
