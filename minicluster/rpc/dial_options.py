"""
RPC dial configuration.

Every client the orchestrator builds shares one policy: bounded
connection establishment with exponential backoff and jitter between
attempts, keep-alive probing, and a unary retry interceptor that
retries only transient status codes.
"""

import asyncio
import sys
from dataclasses import dataclass, field

import grpc

from minicluster.reliability import JitterStrategy, RetryConfig


@dataclass(slots=True)
class KeepaliveConfig:
    time: float = 5.0
    timeout: float = 10.0
    permit_without_stream: bool = True


@dataclass(slots=True)
class ConnectBackoffConfig:
    base_delay: float = 0.1
    multiplier: float = 1.6
    jitter: float = 0.2
    max_delay: float = 3.0
    min_connect_timeout: float = 3.0

    def to_retry_config(self, timeout: float | None) -> RetryConfig:
        return RetryConfig(
            max_attempts=sys.maxsize,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            multiplier=self.multiplier,
            jitter=JitterStrategy.PROPORTIONAL,
            jitter_fraction=self.jitter,
            timeout=timeout,
            retryable_exceptions=(
                asyncio.TimeoutError,
                ConnectionError,
            ),
        )


@dataclass(slots=True)
class UnaryRetryConfig:
    max_attempts: int = 6
    base_delay: float = 0.06
    multiplier: float = 3.0
    max_delay: float = 30.0
    retryable_codes: tuple[grpc.StatusCode, ...] = (
        grpc.StatusCode.UNAVAILABLE,
        grpc.StatusCode.RESOURCE_EXHAUSTED,
    )

    def is_retryable(self, exc: Exception) -> bool:
        return isinstance(exc, grpc.aio.AioRpcError) and exc.code() in self.retryable_codes

    def to_retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            multiplier=self.multiplier,
            jitter=JitterStrategy.NONE,
            is_retryable=self.is_retryable,
        )


@dataclass(slots=True)
class DialOptions:
    keepalive: KeepaliveConfig = field(default_factory=KeepaliveConfig)
    connect_backoff: ConnectBackoffConfig = field(default_factory=ConnectBackoffConfig)
    unary_retry: UnaryRetryConfig = field(default_factory=UnaryRetryConfig)
    dial_timeout: float = 30.0

    def channel_options(self) -> list[tuple[str, int]]:
        return [
            ("grpc.keepalive_time_ms", int(self.keepalive.time * 1000)),
            ("grpc.keepalive_timeout_ms", int(self.keepalive.timeout * 1000)),
            (
                "grpc.keepalive_permit_without_calls",
                1 if self.keepalive.permit_without_stream else 0,
            ),
            (
                "grpc.initial_reconnect_backoff_ms",
                int(self.connect_backoff.base_delay * 1000),
            ),
            (
                "grpc.max_reconnect_backoff_ms",
                int(self.connect_backoff.max_delay * 1000),
            ),
            (
                "grpc.min_reconnect_backoff_ms",
                int(self.connect_backoff.min_connect_timeout * 1000),
            ),
            # retries are owned by UnaryRetryInterceptor
            ("grpc.enable_retries", 0),
        ]
