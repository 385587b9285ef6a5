"""
Ephemeral multi-role cluster for integration tests.

A MiniCluster brings up root, data and query coordinators, a data node,
a query node and the gateway inside the current process, isolated under
a freshly generated namespace in the coordination store and object
storage. Role implementations are supplied as factories keyed by
RoleKind; the cluster owns their lifecycle, scales the node kinds on
demand and tears everything down, namespace included, on stop().

    async with MiniCluster(factories) as cluster:
        await cluster.add_query_nodes(2)
        response = await cluster.service_client.call(...)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from minicluster.config import ConfigOverlay
from minicluster.env import Env, load_env
from minicluster.errors import (
    ClusterStartupError,
    ClusterUnhealthyError,
    ConfigurationError,
    MiniClusterError,
    RoleStartError,
)
from minicluster.logging import LoggingConfig, Logger
from minicluster.models import (
    COORDINATOR_KINDS,
    RoleHandle,
    RoleKind,
)
from minicluster.observation import ReportChannel
from minicluster.roles import RoleContext, RoleFactory
from minicluster.rpc import RoleClient, RpcClientFactory
from minicluster.storage import (
    CoordinationStore,
    ObjectStorage,
    new_object_storage,
    open_coordination_store,
)

from .health_gate import HealthGate, HealthGateResult
from .identity import IdentityAllocator
from .lifecycle import RoleLifecycleController
from .logging_models import ClusterDebug, ClusterFatal, ClusterInfo, ClusterWarning
from .meta_watcher import MetaWatcher
from .node_pool import NodePoolManager
from .ports import allocate_ports
from .spec import MiniClusterSpec

# One allocated port per fixed role, in this order.
FIXED_PORT_KINDS = (
    RoleKind.ROOT_COORD,
    RoleKind.DATA_COORD,
    RoleKind.QUERY_COORD,
    RoleKind.DATA_NODE,
    RoleKind.QUERY_NODE,
    RoleKind.STREAMING_NODE,
    RoleKind.GATEWAY,
)

REQUIRED_KINDS = (
    RoleKind.ROOT_COORD,
    RoleKind.DATA_COORD,
    RoleKind.QUERY_COORD,
    RoleKind.DATA_NODE,
    RoleKind.QUERY_NODE,
    RoleKind.GATEWAY,
)

# Teardown order for the fixed control-plane roles.
CONTROL_PLANE_STOP_ORDER = (
    RoleKind.GATEWAY,
    RoleKind.QUERY_COORD,
    RoleKind.DATA_COORD,
    RoleKind.ROOT_COORD,
)

WORKER_STOP_ORDER = (
    RoleKind.STREAMING_NODE,
    RoleKind.QUERY_NODE,
    RoleKind.DATA_NODE,
)


class MiniCluster:
    def __init__(
        self,
        factories: Mapping[RoleKind, RoleFactory],
        env: Env | None = None,
        spec: MiniClusterSpec | None = None,
        client_factory: RpcClientFactory | None = None,
        coordination_store: CoordinationStore | None = None,
        storage: ObjectStorage | None = None,
        logger: Logger | None = None,
    ) -> None:
        if env is None:
            env = load_env(Env)

        if spec is None:
            spec = MiniClusterSpec()

        self._env = env
        self._spec = spec

        self.host = spec.host or env.MINICLUSTER_HOST
        self.streaming_enabled = (
            spec.streaming_enabled
            if spec.streaming_enabled is not None
            else env.MINICLUSTER_STREAMING_ENABLED
        )
        self.health_timeout = (
            spec.health_timeout
            if spec.health_timeout is not None
            else env.MINICLUSTER_HEALTH_TIMEOUT
        )
        self.health_interval = (
            spec.health_interval
            if spec.health_interval is not None
            else env.MINICLUSTER_HEALTH_INTERVAL
        )

        required = list(REQUIRED_KINDS)
        if self.streaming_enabled:
            required.append(RoleKind.STREAMING_NODE)

        missing = [kind.value for kind in required if kind not in factories]
        if missing:
            raise ConfigurationError(
                f"Missing role factories for: {', '.join(missing)}"
            )

        self._factories: dict[RoleKind, RoleFactory] = dict(factories)

        self.overlay = ConfigOverlay.defaults(env, namespace=spec.namespace)
        self.overlay.update(spec.params)

        LoggingConfig().update(
            log_level=env.MINICLUSTER_LOG_LEVEL,
            log_directory=env.MINICLUSTER_LOGS_DIRECTORY,
        )

        self._owns_logger = logger is None
        if logger is None:
            logger = Logger()

        if self._owns_logger and env.MINICLUSTER_LOGS_DIRECTORY:
            logger.configure(
                path=os.path.join(env.MINICLUSTER_LOGS_DIRECTORY, "minicluster.json"),
            )

        self._logger = logger

        if client_factory is None:
            client_factory = RpcClientFactory(env.get_dial_options())

        self._client_factory = client_factory
        self._coordination_store = coordination_store
        self._storage = storage
        self._report_channel = ReportChannel()

        self._identities = IdentityAllocator.from_env(env)
        self._lifecycle = RoleLifecycleController(logger=logger)
        self._pool = NodePoolManager(
            self._identities,
            self._lifecycle,
            self._build_dynamic_node,
            namespace=self.namespace,
            logger=logger,
        )

        self._ports: dict[RoleKind, int] = {}
        self._snapshot: Mapping[str, str] | None = None
        self._coordinators: dict[RoleKind, RoleHandle | None] = {
            kind: None for kind in COORDINATOR_KINDS
        }
        self._gateway: RoleHandle | None = None
        self._clients: dict[RoleKind, RoleClient] = {}
        self._service_client: RoleClient | None = None

        self._started = False
        self._torn_down = False

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def env(self) -> Env:
        return self._env

    @property
    def logger(self) -> Logger:
        return self._logger

    @property
    def namespace(self) -> str:
        return self.overlay.namespace

    @property
    def ports(self) -> dict[RoleKind, int]:
        return dict(self._ports)

    @property
    def identities(self) -> IdentityAllocator:
        return self._identities

    @property
    def report_channel(self) -> ReportChannel:
        return self._report_channel

    @property
    def coordination_store(self) -> CoordinationStore | None:
        return self._coordination_store

    @property
    def storage(self) -> ObjectStorage | None:
        return self._storage

    @property
    def meta_watcher(self) -> MetaWatcher:
        if self._coordination_store is None:
            raise MiniClusterError("Coordination store is not open")

        return MetaWatcher(
            self._coordination_store,
            self.overlay.coordination_root_path,
        )

    @property
    def service_client(self) -> RoleClient | None:
        return self._service_client

    @property
    def root_coord(self) -> RoleHandle | None:
        return self._coordinators[RoleKind.ROOT_COORD]

    @property
    def data_coord(self) -> RoleHandle | None:
        return self._coordinators[RoleKind.DATA_COORD]

    @property
    def query_coord(self) -> RoleHandle | None:
        return self._coordinators[RoleKind.QUERY_COORD]

    @property
    def gateway(self) -> RoleHandle | None:
        return self._gateway

    @property
    def data_node(self) -> RoleHandle | None:
        return self._pool.primary(RoleKind.DATA_NODE)

    @property
    def query_node(self) -> RoleHandle | None:
        return self._pool.primary(RoleKind.QUERY_NODE)

    @property
    def streaming_node(self) -> RoleHandle | None:
        return self._pool.primary(RoleKind.STREAMING_NODE)

    def client(self, kind: RoleKind) -> RoleClient:
        if (client := self._clients.get(kind)) is None:
            raise MiniClusterError(f"No RPC client for {kind.value}")

        return client

    @property
    def root_coord_client(self) -> RoleClient:
        return self.client(RoleKind.ROOT_COORD)

    @property
    def data_coord_client(self) -> RoleClient:
        return self.client(RoleKind.DATA_COORD)

    @property
    def query_coord_client(self) -> RoleClient:
        return self.client(RoleKind.QUERY_COORD)

    @property
    def gateway_client(self) -> RoleClient:
        return self.client(RoleKind.GATEWAY)

    @property
    def data_node_client(self) -> RoleClient:
        return self.client(RoleKind.DATA_NODE)

    @property
    def query_node_client(self) -> RoleClient:
        return self.client(RoleKind.QUERY_NODE)

    # =========================================================================
    # Construction
    # =========================================================================

    def _build_handle(self, kind: RoleKind, node_id: int, port: int) -> RoleHandle:
        if (factory := self._factories.get(kind)) is None:
            raise ConfigurationError(f"No role factory registered for {kind.value}")

        context = RoleContext(
            kind=kind,
            node_id=node_id,
            host=self.host,
            port=port,
            bind_host=self._env.MINICLUSTER_BIND_HOST,
            overlay=self._snapshot,
            env=self._env,
            coordination_store=self._coordination_store,
            storage=self._storage,
            report_channel=self._report_channel,
        )

        try:
            role = factory(context)

        except Exception as err:
            raise RoleStartError(kind, node_id, "construct", err) from err

        return RoleHandle(
            kind=kind,
            node_id=node_id,
            host=self.host,
            port=port,
            role=role,
        )

    def _build_dynamic_node(self, kind: RoleKind, node_id: int) -> RoleHandle:
        [port] = allocate_ports(1, host=self._env.MINICLUSTER_BIND_HOST)
        return self._build_handle(kind, node_id, port)

    async def _construct(self) -> None:
        ports = allocate_ports(
            len(FIXED_PORT_KINDS),
            host=self._env.MINICLUSTER_BIND_HOST,
        )
        self._ports = dict(zip(FIXED_PORT_KINDS, ports))

        await self._log(
            ClusterDebug,
            f"Allocated ports {', '.join(f'{kind.value}={port}' for kind, port in self._ports.items())}",
            "startup",
        )

        self._snapshot = self.overlay.freeze()

        if self._coordination_store is None:
            self._coordination_store = open_coordination_store(
                self._env.MINICLUSTER_COORDINATION_STORE_URL
            )

        if self._storage is None:
            self._storage = new_object_storage(self._snapshot, self._env)

        client_kinds = list(REQUIRED_KINDS)
        if self.streaming_enabled:
            client_kinds.append(RoleKind.STREAMING_NODE)

        for kind in client_kinds:
            self._clients[kind] = self._client_factory.create(
                kind,
                f"{self.host}:{self._ports[kind]}",
            )

        primary_id = self._identities.primary_node_id

        for kind in COORDINATOR_KINDS:
            self._coordinators[kind] = self._build_handle(kind, primary_id, self._ports[kind])

        for kind in (RoleKind.DATA_NODE, RoleKind.QUERY_NODE):
            self._pool.set_primary(
                kind,
                self._build_handle(kind, primary_id, self._ports[kind]),
            )

        if self.streaming_enabled:
            self._pool.set_primary(
                RoleKind.STREAMING_NODE,
                self._build_handle(
                    RoleKind.STREAMING_NODE,
                    primary_id,
                    self._ports[RoleKind.STREAMING_NODE],
                ),
            )

        self._gateway = self._build_handle(
            RoleKind.GATEWAY,
            primary_id,
            self._ports[RoleKind.GATEWAY],
        )

    # =========================================================================
    # Startup
    # =========================================================================

    async def start(self) -> MiniCluster:
        """
        Construct and start every fixed role, then wait for the gateway
        to report healthy.

        Order: root, data and query coordinators, data node, query node,
        gateway, health gate, streaming node (when enabled), gateway
        service client. Construction and start failures tear the cluster
        down and raise ClusterStartupError. A health gate timeout raises
        ClusterUnhealthyError and leaves the roles running.
        """
        if self._started:
            raise ClusterStartupError(f"Cluster {self.namespace} was already started")

        self._started = True

        await self._log(ClusterInfo, "Starting mini cluster", "startup")

        try:
            await self._construct()

            for kind in COORDINATOR_KINDS:
                await self._lifecycle.start(self._coordinators[kind])

            await self._lifecycle.start(self._pool.primary(RoleKind.DATA_NODE))
            await self._lifecycle.start(self._pool.primary(RoleKind.QUERY_NODE))
            await self._lifecycle.start(self._gateway)

        except Exception as err:
            await self._abort_startup(err)

        result = await self.wait_healthy()
        if not result.healthy:
            raise ClusterUnhealthyError(result, cluster=self)

        try:
            if self.streaming_enabled:
                await self._lifecycle.start(self._pool.primary(RoleKind.STREAMING_NODE))

            self._service_client = await self._client_factory.dial(
                RoleKind.GATEWAY,
                self._gateway.address,
            )

        except Exception as err:
            await self._abort_startup(err)

        await self._log(ClusterInfo, "Mini cluster started", "startup")

        return self

    async def _abort_startup(self, err: Exception):
        await self._log(ClusterFatal, f"Mini cluster failed to start: {err}", "startup")
        await self.stop()

        raise ClusterStartupError(
            f"Mini cluster {self.namespace} failed to start: {err}"
        ) from err

    async def wait_healthy(self) -> HealthGateResult:
        gate = HealthGate(
            self.client(RoleKind.GATEWAY),
            timeout=self.health_timeout,
            interval=self.health_interval,
            namespace=self.namespace,
            logger=self._logger,
        )

        return await gate.wait_healthy()

    def _check_running(self):
        if not self._started or self._torn_down:
            raise MiniClusterError(f"Cluster {self.namespace} is not running")

    # =========================================================================
    # Coordinator replacement
    # =========================================================================

    def _check_coordinator(self, kind: RoleKind):
        if not kind.is_coordinator:
            raise ConfigurationError(f"Role kind {kind.value} is not a coordinator")

    async def stop_coordinator(self, kind: RoleKind) -> RoleHandle | None:
        """Stop a coordinator and clear its slot. Stop failures raise RoleStopError."""
        self._check_coordinator(kind)

        if (handle := self._coordinators[kind]) is None:
            return None

        self._coordinators[kind] = None
        await self._lifecycle.stop(handle)
        return handle

    async def start_coordinator(self, kind: RoleKind) -> RoleHandle:
        """
        Start a fresh coordinator instance on the slot's address if the
        slot is empty. The replacement takes the next identity of its kind.
        """
        self._check_coordinator(kind)
        self._check_running()

        if (handle := self._coordinators[kind]) is not None:
            return handle

        handle = self._build_handle(
            kind,
            self._identities.next_identity(kind),
            self._ports[kind],
        )

        try:
            await self._lifecycle.start(handle)

        except Exception:
            await self._lifecycle.stop_quietly(handle)
            raise

        self._coordinators[kind] = handle
        return handle

    async def stop_root_coord(self):
        return await self.stop_coordinator(RoleKind.ROOT_COORD)

    async def start_root_coord(self):
        return await self.start_coordinator(RoleKind.ROOT_COORD)

    async def stop_data_coord(self):
        return await self.stop_coordinator(RoleKind.DATA_COORD)

    async def start_data_coord(self):
        return await self.start_coordinator(RoleKind.DATA_COORD)

    async def stop_query_coord(self):
        return await self.stop_coordinator(RoleKind.QUERY_COORD)

    async def start_query_coord(self):
        return await self.start_coordinator(RoleKind.QUERY_COORD)

    # =========================================================================
    # Dynamic nodes
    # =========================================================================

    async def add_node(self, kind: RoleKind) -> RoleHandle:
        self._check_running()

        if kind not in self._factories:
            raise ConfigurationError(f"No role factory registered for {kind.value}")

        return await self._pool.add_node(kind)

    async def add_nodes(self, kind: RoleKind, count: int) -> list[RoleHandle]:
        self._check_running()

        if kind not in self._factories:
            raise ConfigurationError(f"No role factory registered for {kind.value}")

        return await self._pool.add_nodes(kind, count)

    async def add_query_node(self) -> RoleHandle:
        return await self.add_node(RoleKind.QUERY_NODE)

    async def add_query_nodes(self, count: int) -> list[RoleHandle]:
        return await self.add_nodes(RoleKind.QUERY_NODE, count)

    async def add_data_node(self) -> RoleHandle:
        return await self.add_node(RoleKind.DATA_NODE)

    async def add_streaming_node(self) -> RoleHandle:
        return await self.add_node(RoleKind.STREAMING_NODE)

    def get_nodes(self, kind: RoleKind) -> list[RoleHandle]:
        return self._pool.nodes(kind)

    def get_all_nodes(self, kind: RoleKind) -> list[RoleHandle]:
        return self._pool.all_nodes(kind)

    def get_all_query_nodes(self) -> list[RoleHandle]:
        return self._pool.all_nodes(RoleKind.QUERY_NODE)

    async def stop_all_nodes(self, kind: RoleKind) -> list[RoleHandle]:
        return await self._pool.remove_all(kind)

    async def stop_all_query_nodes(self) -> list[RoleHandle]:
        return await self._pool.remove_all(RoleKind.QUERY_NODE)

    async def stop_all_data_nodes(self) -> list[RoleHandle]:
        return await self._pool.remove_all(RoleKind.DATA_NODE)

    async def stop_all_streaming_nodes(self) -> list[RoleHandle]:
        return await self._pool.remove_all(RoleKind.STREAMING_NODE)

    # =========================================================================
    # Teardown
    # =========================================================================

    async def stop(self) -> None:
        """
        Stop every role and wipe the cluster namespace.

        Order: gateway service client, gateway, query, data and root
        coordinators, streaming nodes, query nodes, data nodes, RPC
        clients, coordination-store namespace, object-storage root.
        Every step is best-effort: failures are logged and teardown
        continues. Calling stop() again is a no-op. A logger the cluster
        created is closed last; a logger passed in stays open.
        """
        if self._torn_down:
            return

        self._torn_down = True

        await self._log(ClusterInfo, "Stopping mini cluster", "teardown")

        if self._service_client is not None:
            await self._close_client(self._service_client)

        for kind in CONTROL_PLANE_STOP_ORDER:
            handle = (
                self._gateway
                if kind == RoleKind.GATEWAY
                else self._coordinators[kind]
            )

            if handle is not None:
                await self._lifecycle.stop_quietly(handle)

        for kind in WORKER_STOP_ORDER:
            await self._pool.remove_all(kind)

        # Replaced coordinators and half-started nodes
        await self._lifecycle.stop_all_quietly()

        for client in self._clients.values():
            await self._close_client(client)

        await self._cleanup_coordination_store()
        await self._cleanup_storage()

        await self._log(ClusterInfo, "Mini cluster stopped", "teardown")

        if self._owns_logger:
            await self._logger.close()

    async def _close_client(self, client: RoleClient):
        try:
            await client.close()

        except Exception as err:
            await self._log(
                ClusterWarning,
                f"Failed to close RPC client for {client.address}: {err!r}",
                "teardown",
            )

    async def _cleanup_coordination_store(self):
        if (store := self._coordination_store) is None:
            return

        root_path = self.overlay.coordination_root_path

        try:
            removed = await store.delete_prefix(root_path)
            await self._log(
                ClusterDebug,
                f"Removed {removed} keys under {root_path}",
                "teardown",
            )

        except Exception as err:
            await self._log(
                ClusterWarning,
                f"Failed to delete coordination store prefix {root_path}: {err!r}",
                "teardown",
            )

        try:
            await store.close()

        except Exception as err:
            await self._log(
                ClusterWarning,
                f"Failed to close coordination store: {err!r}",
                "teardown",
            )

    async def _cleanup_storage(self):
        storage = self._storage

        if storage is None:
            try:
                storage = new_object_storage(self.overlay.snapshot(), self._env)

            except Exception as err:
                await self._log(
                    ClusterWarning,
                    f"Failed to create object storage to clean test data: {err!r}",
                    "teardown",
                )
                return

        try:
            removed = await storage.remove_with_prefix(storage.root_path)
            await self._log(
                ClusterDebug,
                f"Removed {removed} objects under {storage.root_path}",
                "teardown",
            )

        except Exception as err:
            await self._log(
                ClusterWarning,
                f"Failed to remove objects under {storage.root_path}: {err!r}",
                "teardown",
            )

        try:
            await storage.close()

        except Exception as err:
            await self._log(
                ClusterWarning,
                f"Failed to close object storage: {err!r}",
                "teardown",
            )

    async def _log(self, model: type, message: str, phase: str):
        await self._logger.log(
            model(
                message=message,
                namespace=self.namespace,
                phase=phase,
            )
        )

    async def __aenter__(self) -> MiniCluster:
        try:
            return await self.start()

        except ClusterUnhealthyError:
            await self.stop()
            raise

    async def __aexit__(self, *args: Any) -> None:
        await self.stop()


async def start_mini_cluster(
    factories: Mapping[RoleKind, RoleFactory],
    env: Env | None = None,
    spec: MiniClusterSpec | None = None,
    client_factory: RpcClientFactory | None = None,
    **kwargs: Any,
) -> MiniCluster:
    cluster = MiniCluster(
        factories,
        env=env,
        spec=spec,
        client_factory=client_factory,
        **kwargs,
    )

    return await cluster.start()
