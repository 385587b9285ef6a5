"""
Serves a role's component-state and health queries over gRPC.

Roles are free to serve RPC however they like. RoleRpcServer is the
ready-made option: it exposes GetComponentStates for every role and
CheckHealth for roles that implement it, using the same msgspec JSON
codec as RoleClient.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

import grpc
import msgspec

from minicluster.models import (
    CheckHealthRequest,
    ComponentStatesRequest,
    RoleKind,
)

from .codec import decoder_for, encode

Handler = Callable[[Any, grpc.aio.ServicerContext], Awaitable[msgspec.Struct]]


class RoleRpcServer:
    def __init__(
        self,
        kind: RoleKind,
        role: Any,
        bind_address: str,
    ) -> None:
        self.kind = kind
        self.bind_address = bind_address
        self._role = role
        self._server: grpc.aio.Server | None = None
        self._handlers: dict[str, grpc.RpcMethodHandler] = {}
        self.bound_port: int | None = None

        self.add_method(
            "GetComponentStates",
            ComponentStatesRequest,
            self._get_component_states,
        )

        if callable(getattr(role, "check_health", None)):
            self.add_method(
                "CheckHealth",
                CheckHealthRequest,
                self._check_health,
            )

    @property
    def running(self) -> bool:
        return self._server is not None

    def add_method(
        self,
        method: str,
        request_type: type[msgspec.Struct],
        handler: Handler,
    ) -> None:
        if self._server is not None:
            raise RuntimeError(f"Cannot add {method} to a running server")

        self._handlers[method] = grpc.unary_unary_rpc_method_handler(
            handler,
            request_deserializer=decoder_for(request_type),
            response_serializer=encode,
        )

    async def _get_component_states(self, request, context):
        return await self._role.get_component_states()

    async def _check_health(self, request, context):
        return await self._role.check_health()

    async def start(self) -> int:
        server = grpc.aio.server()
        server.add_generic_rpc_handlers((
            grpc.method_handlers_generic_handler(
                self.kind.service_name,
                self._handlers,
            ),
        ))

        port = server.add_insecure_port(self.bind_address)
        if port == 0:
            raise OSError(f"Failed to bind RPC server to {self.bind_address}")

        await server.start()

        self._server = server
        self.bound_port = port
        return port

    async def stop(self, grace: float | None = None) -> None:
        if self._server is None:
            return

        server = self._server
        self._server = None
        await server.stop(grace)
