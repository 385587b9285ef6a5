from .client import (
    RoleClient as RoleClient,
    RpcClientFactory as RpcClientFactory,
)
from .dial_options import (
    ConnectBackoffConfig as ConnectBackoffConfig,
    DialOptions as DialOptions,
    KeepaliveConfig as KeepaliveConfig,
    UnaryRetryConfig as UnaryRetryConfig,
)
from .retry_interceptor import UnaryRetryInterceptor as UnaryRetryInterceptor
from .server import RoleRpcServer as RoleRpcServer
