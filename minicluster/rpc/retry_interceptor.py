from typing import Any, Callable

import grpc

from minicluster.reliability import RetryExecutor

from .dial_options import UnaryRetryConfig


class UnaryRetryInterceptor(grpc.aio.UnaryUnaryClientInterceptor):
    """
    Retry unary calls failing with a transient status code.

    Delay before retry n (zero-based) is base_delay * multiplier^n.
    Every other status propagates to the caller on the first failure.
    """

    def __init__(self, config: UnaryRetryConfig | None = None) -> None:
        self._config = config or UnaryRetryConfig()
        self._retry_config = self._config.to_retry_config()

    async def intercept_unary_unary(
        self,
        continuation: Callable[[grpc.aio.ClientCallDetails, Any], Any],
        client_call_details: grpc.aio.ClientCallDetails,
        request: Any,
    ) -> Any:
        executor = RetryExecutor(self._retry_config)

        async def attempt():
            call = await continuation(client_call_details, request)
            return await call

        method = client_call_details.method
        if isinstance(method, bytes):
            method = method.decode()

        return await executor.execute(
            attempt,
            operation_name=method,
        )
