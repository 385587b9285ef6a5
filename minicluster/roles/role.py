"""
Capability contract the orchestrator consumes from every role.

Role implementations live outside this package. They are produced by
factories that receive a RoleContext carrying everything a role needs
to configure itself: its kind, its identity, the address to serve on,
a read-only snapshot of the configuration overlay and the shared
cluster dependencies.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

from minicluster.env import Env
from minicluster.models import (
    CheckHealthResponse,
    ComponentStates,
    RoleKind,
)
from minicluster.observation import ReportChannel
from minicluster.storage import CoordinationStore, ObjectStorage


@runtime_checkable
class Role(Protocol):

    async def prepare(self) -> None:
        """Acquire resources. Must leave nothing behind when it raises."""
        ...

    async def run(self) -> None:
        """Begin serving. Returns once serving has started."""
        ...

    async def stop(self) -> None:
        ...

    async def get_component_states(self) -> ComponentStates:
        ...


@runtime_checkable
class GatewayRole(Role, Protocol):

    async def check_health(self) -> CheckHealthResponse:
        ...


@dataclass(frozen=True, slots=True)
class RoleContext:
    kind: RoleKind
    node_id: int
    host: str
    port: int
    bind_host: str
    overlay: Mapping[str, str]
    env: Env
    coordination_store: CoordinationStore
    storage: ObjectStorage
    report_channel: ReportChannel

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def bind_address(self) -> str:
        return f"{self.bind_host}:{self.port}"


RoleFactory = Callable[[RoleContext], Role]
