"""
Role identity and lifecycle types for the mini cluster.

A role is one deployable unit (coordinator, worker node or gateway)
driven through the Prepare/Run/Stop contract. The orchestrator tracks
each running instance with a RoleHandle.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from minicluster.roles.role import Role


class RoleKind(str, Enum):
    """Kind of role in the cluster."""
    ROOT_COORD = "root_coord"
    DATA_COORD = "data_coord"
    QUERY_COORD = "query_coord"
    GATEWAY = "gateway"
    DATA_NODE = "data_node"
    QUERY_NODE = "query_node"
    STREAMING_NODE = "streaming_node"

    @property
    def is_coordinator(self) -> bool:
        return self in COORDINATOR_KINDS

    @property
    def is_scalable(self) -> bool:
        return self in SCALABLE_KINDS

    @property
    def service_name(self) -> str:
        """Fully qualified RPC service name for this role."""
        return f"minicluster.{_SERVICE_NAMES[self]}"


COORDINATOR_KINDS = (
    RoleKind.ROOT_COORD,
    RoleKind.DATA_COORD,
    RoleKind.QUERY_COORD,
)

SCALABLE_KINDS = (
    RoleKind.DATA_NODE,
    RoleKind.QUERY_NODE,
    RoleKind.STREAMING_NODE,
)

_SERVICE_NAMES = {
    RoleKind.ROOT_COORD: "RootCoord",
    RoleKind.DATA_COORD: "DataCoord",
    RoleKind.QUERY_COORD: "QueryCoord",
    RoleKind.GATEWAY: "Gateway",
    RoleKind.DATA_NODE: "DataNode",
    RoleKind.QUERY_NODE: "QueryNode",
    RoleKind.STREAMING_NODE: "StreamingNode",
}


class RoleState(str, Enum):
    """
    Lifecycle state of a role instance.

    Transitions: CREATED -> PREPARED -> RUNNING -> STOPPED.
    STOPPED is terminal and may be entered from any state.
    """
    CREATED = "created"
    PREPARED = "prepared"
    RUNNING = "running"
    STOPPED = "stopped"


_ALLOWED_TRANSITIONS: dict[RoleState, tuple[RoleState, ...]] = {
    RoleState.CREATED: (RoleState.PREPARED, RoleState.STOPPED),
    RoleState.PREPARED: (RoleState.RUNNING, RoleState.STOPPED),
    RoleState.RUNNING: (RoleState.STOPPED,),
    RoleState.STOPPED: (),
}


class InvalidTransitionError(Exception):
    """Raised when a role handle is moved to a state it cannot reach."""

    def __init__(self, current: RoleState, target: RoleState):
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot transition role from '{current.value}' to '{target.value}'"
        )


@dataclass(slots=True)
class RoleHandle:
    """One running instance of a role."""

    kind: RoleKind
    node_id: int
    host: str
    port: int
    role: "Role | Any"
    state: RoleState = RoleState.CREATED

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def is_running(self) -> bool:
        return self.state == RoleState.RUNNING

    @property
    def is_stopped(self) -> bool:
        return self.state == RoleState.STOPPED

    def transition(self, target: RoleState) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransitionError(self.state, target)

        self.state = target
