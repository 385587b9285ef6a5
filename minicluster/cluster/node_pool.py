from __future__ import annotations

import asyncio
from typing import Callable

from minicluster.errors import ConfigurationError, NodeRegistrationError
from minicluster.logging import Logger
from minicluster.models import SCALABLE_KINDS, RoleHandle, RoleKind

from .identity import IdentityAllocator
from .lifecycle import RoleLifecycleController
from .logging_models import ClusterInfo

NodeBuilder = Callable[[RoleKind, int], RoleHandle]


class NodePoolManager:
    """
    Primary and dynamically added instances of the scalable role kinds.

    A single lock covers every add and remove regardless of kind, so
    identity issuance, start, registration check and pool append are
    observed as one step by concurrent callers.
    """

    def __init__(
        self,
        identities: IdentityAllocator,
        lifecycle: RoleLifecycleController,
        build_node: NodeBuilder,
        namespace: str = "",
        logger: Logger | None = None,
    ) -> None:
        if logger is None:
            logger = Logger()

        self._identities = identities
        self._lifecycle = lifecycle
        self._build_node = build_node
        self._namespace = namespace
        self._logger = logger

        self._lock = asyncio.Lock()
        self._primaries: dict[RoleKind, RoleHandle | None] = {
            kind: None for kind in SCALABLE_KINDS
        }
        self._pools: dict[RoleKind, list[RoleHandle]] = {
            kind: [] for kind in SCALABLE_KINDS
        }

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock

    def _check_scalable(self, kind: RoleKind) -> None:
        if not kind.is_scalable:
            raise ConfigurationError(f"Role kind {kind.value} is not scalable")

    def set_primary(self, kind: RoleKind, handle: RoleHandle | None) -> None:
        self._check_scalable(kind)
        self._primaries[kind] = handle

    def primary(self, kind: RoleKind) -> RoleHandle | None:
        self._check_scalable(kind)
        return self._primaries[kind]

    def nodes(self, kind: RoleKind) -> list[RoleHandle]:
        """Dynamically added handles, in the order they were added."""
        self._check_scalable(kind)
        return list(self._pools[kind])

    def all_nodes(self, kind: RoleKind) -> list[RoleHandle]:
        self._check_scalable(kind)

        handles: list[RoleHandle] = []
        if (primary := self._primaries[kind]) is not None:
            handles.append(primary)

        handles.extend(self._pools[kind])
        return handles

    async def add_node(self, kind: RoleKind) -> RoleHandle:
        self._check_scalable(kind)

        async with self._lock:
            node_id = self._identities.next_identity(kind)

            await self._logger.log(
                ClusterInfo(
                    message=f"Adding {kind.value} with id {node_id}",
                    namespace=self._namespace,
                    phase="scale",
                )
            )

            handle = self._build_node(kind, node_id)

            try:
                await self._lifecycle.start(handle)

            except Exception:
                await self._lifecycle.stop_quietly(handle)
                raise

            await self._check_registration(handle)

            self._pools[kind].append(handle)
            return handle

    async def add_nodes(self, kind: RoleKind, count: int) -> list[RoleHandle]:
        """Add `count` nodes one after another and return exactly those handles."""
        if count < 0:
            raise ValueError(f"Cannot add a negative number of nodes ({count})")

        return [await self.add_node(kind) for _ in range(count)]

    async def _check_registration(self, handle: RoleHandle) -> None:
        try:
            states = await handle.role.get_component_states()

        except Exception as err:
            await self._lifecycle.stop_quietly(handle)
            raise NodeRegistrationError(
                handle.kind,
                handle.node_id,
                f"component state query failed: {err!r}",
            ) from err

        if states.node_id != handle.node_id or not states.is_live:
            await self._lifecycle.stop_quietly(handle)
            raise NodeRegistrationError(
                handle.kind,
                handle.node_id,
                f"reported node {states.node_id} in state {states.state_code.value}",
            )

        await self._logger.log(
            ClusterInfo(
                message=f"{handle.kind.value} {handle.node_id} reports {states.state_code.value}",
                namespace=self._namespace,
                phase="scale",
            )
        )

    async def remove_all(self, kind: RoleKind) -> list[RoleHandle]:
        """
        Stop the primary and every dynamic handle of a kind and empty the
        dynamic pool. The primary handle stays in its slot, stopped.
        """
        self._check_scalable(kind)

        async with self._lock:
            handles = self.all_nodes(kind)

            for handle in handles:
                await self._lifecycle.stop_quietly(handle)

            removed = len(self._pools[kind])
            self._pools[kind].clear()

        await self._logger.log(
            ClusterInfo(
                message=f"Stopped {len(handles)} {kind.value} instances ({removed} dynamic)",
                namespace=self._namespace,
                phase="scale",
            )
        )

        return handles
