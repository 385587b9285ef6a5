"""
RPC clients for cluster roles.

RpcClientFactory builds one RoleClient per role address. Clients for
internal roles are created lazily: the channel connects on first use.
The gateway service client is dialed with a blocking connect bounded
by the dial timeout so that the cluster never hands out a client that
cannot reach its gateway.
"""

from __future__ import annotations

import asyncio
import time
from typing import TypeVar

import grpc
import msgspec

from minicluster.errors import RpcDialError
from minicluster.models import (
    CheckHealthRequest,
    CheckHealthResponse,
    ComponentStates,
    ComponentStatesRequest,
    RoleKind,
)
from minicluster.reliability import (
    JitterStrategy,
    RetryExecutor,
    calculate_jittered_delay,
)

from .codec import decoder_for, encode
from .dial_options import DialOptions
from .retry_interceptor import UnaryRetryInterceptor

T = TypeVar("T", bound=msgspec.Struct)


class RoleClient:
    def __init__(
        self,
        kind: RoleKind,
        address: str,
        channel: grpc.aio.Channel,
    ) -> None:
        self.kind = kind
        self.address = address
        self._channel = channel
        self._callables: dict[str, grpc.aio.UnaryUnaryMultiCallable] = {}
        self._closed = False

    @property
    def channel(self) -> grpc.aio.Channel:
        return self._channel

    @property
    def closed(self) -> bool:
        return self._closed

    def _method(
        self,
        method: str,
        response_type: type[T],
    ) -> grpc.aio.UnaryUnaryMultiCallable:
        if (callable_ := self._callables.get(method)) is None:
            callable_ = self._channel.unary_unary(
                f"/{self.kind.service_name}/{method}",
                request_serializer=encode,
                response_deserializer=decoder_for(response_type),
            )
            self._callables[method] = callable_

        return callable_

    async def call(
        self,
        method: str,
        request: msgspec.Struct,
        response_type: type[T],
        timeout: float | None = None,
    ) -> T:
        return await self._method(method, response_type)(
            request,
            timeout=timeout,
        )

    async def get_component_states(
        self,
        timeout: float | None = None,
    ) -> ComponentStates:
        return await self.call(
            "GetComponentStates",
            ComponentStatesRequest(),
            ComponentStates,
            timeout=timeout,
        )

    async def check_health(
        self,
        timeout: float | None = None,
    ) -> CheckHealthResponse:
        return await self.call(
            "CheckHealth",
            CheckHealthRequest(),
            CheckHealthResponse,
            timeout=timeout,
        )

    async def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        await self._channel.close()

    def __repr__(self) -> str:
        return f"RoleClient(kind={self.kind.value}, address={self.address})"


class RpcClientFactory:
    def __init__(self, options: DialOptions | None = None) -> None:
        self._options = options or DialOptions()

    @property
    def options(self) -> DialOptions:
        return self._options

    def _create_channel(self, address: str) -> grpc.aio.Channel:
        return grpc.aio.insecure_channel(
            address,
            options=self._options.channel_options(),
            interceptors=[
                UnaryRetryInterceptor(self._options.unary_retry),
            ],
        )

    def create(self, kind: RoleKind, address: str) -> RoleClient:
        return RoleClient(kind, address, self._create_channel(address))

    async def dial(self, kind: RoleKind, address: str) -> RoleClient:
        """
        Create a client and wait until its channel is ready.

        Each connection attempt waits max(min_connect_timeout, backoff)
        for the channel to become ready, with jittered exponential
        backoff between attempts. Raises RpcDialError once the dial
        timeout elapses.
        """
        backoff = self._options.connect_backoff
        dial_timeout = self._options.dial_timeout

        channel = self._create_channel(address)
        executor = RetryExecutor(backoff.to_retry_config(dial_timeout))
        deadline = time.monotonic() + dial_timeout
        attempt = 0

        async def connect():
            nonlocal attempt

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise RpcDialError(address, f"dial timeout of {dial_timeout}s elapsed")

            connect_timeout = max(
                backoff.min_connect_timeout,
                calculate_jittered_delay(
                    attempt,
                    base_delay=backoff.base_delay,
                    max_delay=backoff.max_delay,
                    multiplier=backoff.multiplier,
                    jitter=JitterStrategy.NONE,
                ),
            )
            attempt += 1

            await asyncio.wait_for(
                channel.channel_ready(),
                timeout=min(connect_timeout, remaining),
            )

        try:
            await executor.execute(connect, operation_name=f"dial {address}")

        except RpcDialError:
            await channel.close()
            raise

        except Exception as err:
            await channel.close()
            raise RpcDialError(
                address,
                f"not ready after {attempt} attempts: {err!r}",
            ) from err

        return RoleClient(kind, address, channel)
