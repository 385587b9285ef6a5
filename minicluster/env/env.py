from __future__ import annotations
import os
from pydantic import BaseModel, StrictBool, StrictStr, StrictInt, StrictFloat
from typing import Callable, Dict, Literal, Union

PrimaryType = Union[str, int, float, bytes, bool]


def _to_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Env(BaseModel):
    MINICLUSTER_HOST: StrictStr = "localhost"
    MINICLUSTER_BIND_HOST: StrictStr = "0.0.0.0"
    MINICLUSTER_LOG_LEVEL: StrictStr = "info"
    MINICLUSTER_LOGS_DIRECTORY: StrictStr | None = None

    # Health gate
    MINICLUSTER_HEALTH_TIMEOUT: StrictFloat = 120.0
    MINICLUSTER_HEALTH_INTERVAL: StrictFloat = 1.0

    # Identities
    MINICLUSTER_PRIMARY_NODE_ID: StrictInt = 1
    MINICLUSTER_QUERY_NODE_ID_BASE: StrictInt = 10000
    MINICLUSTER_DATA_NODE_ID_BASE: StrictInt = 20000
    MINICLUSTER_STREAMING_NODE_ID_BASE: StrictInt = 30000

    MINICLUSTER_STREAMING_ENABLED: StrictBool = False

    # Coordination store and object storage
    MINICLUSTER_COORDINATION_STORE_URL: StrictStr = "memory://"
    MINICLUSTER_STORAGE_TYPE: Literal["local", "remote"] = "local"
    MINICLUSTER_LOCAL_STORAGE_DIRECTORY: StrictStr = "/tmp"
    MINICLUSTER_S3_BUCKET: StrictStr = "minicluster"
    MINICLUSTER_S3_ENDPOINT_URL: StrictStr | None = None
    MINICLUSTER_S3_REGION: StrictStr | None = None
    MINICLUSTER_S3_ACCESS_KEY_ID: StrictStr | None = None
    MINICLUSTER_S3_SECRET_ACCESS_KEY: StrictStr | None = None

    # Role overlay defaults
    MINICLUSTER_MQ_TYPE: StrictStr = "rocksmq"
    MINICLUSTER_GRACEFUL_STOP_TIMEOUT: StrictInt = 30
    MINICLUSTER_FORCE_SYNC_ENABLED: StrictBool = False

    # RPC dial
    MINICLUSTER_RPC_KEEPALIVE_TIME: StrictFloat = 5.0
    MINICLUSTER_RPC_KEEPALIVE_TIMEOUT: StrictFloat = 10.0
    MINICLUSTER_RPC_CONNECT_BASE_DELAY: StrictFloat = 0.1
    MINICLUSTER_RPC_CONNECT_MULTIPLIER: StrictFloat = 1.6
    MINICLUSTER_RPC_CONNECT_JITTER: StrictFloat = 0.2
    MINICLUSTER_RPC_CONNECT_MAX_DELAY: StrictFloat = 3.0
    MINICLUSTER_RPC_MIN_CONNECT_TIMEOUT: StrictFloat = 3.0
    MINICLUSTER_RPC_DIAL_TIMEOUT: StrictFloat = 30.0

    # RPC unary retry
    MINICLUSTER_RPC_RETRY_MAX_ATTEMPTS: StrictInt = 6
    MINICLUSTER_RPC_RETRY_BASE_DELAY: StrictFloat = 0.06
    MINICLUSTER_RPC_RETRY_MULTIPLIER: StrictFloat = 3.0

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "MINICLUSTER_HOST": str,
            "MINICLUSTER_BIND_HOST": str,
            "MINICLUSTER_LOG_LEVEL": str,
            "MINICLUSTER_LOGS_DIRECTORY": str,
            "MINICLUSTER_HEALTH_TIMEOUT": float,
            "MINICLUSTER_HEALTH_INTERVAL": float,
            "MINICLUSTER_PRIMARY_NODE_ID": int,
            "MINICLUSTER_QUERY_NODE_ID_BASE": int,
            "MINICLUSTER_DATA_NODE_ID_BASE": int,
            "MINICLUSTER_STREAMING_NODE_ID_BASE": int,
            "MINICLUSTER_STREAMING_ENABLED": _to_bool,
            "MINICLUSTER_COORDINATION_STORE_URL": str,
            "MINICLUSTER_STORAGE_TYPE": str,
            "MINICLUSTER_LOCAL_STORAGE_DIRECTORY": str,
            "MINICLUSTER_S3_BUCKET": str,
            "MINICLUSTER_S3_ENDPOINT_URL": str,
            "MINICLUSTER_S3_REGION": str,
            "MINICLUSTER_S3_ACCESS_KEY_ID": str,
            "MINICLUSTER_S3_SECRET_ACCESS_KEY": str,
            "MINICLUSTER_MQ_TYPE": str,
            "MINICLUSTER_GRACEFUL_STOP_TIMEOUT": int,
            "MINICLUSTER_FORCE_SYNC_ENABLED": _to_bool,
            # RPC dial settings
            "MINICLUSTER_RPC_KEEPALIVE_TIME": float,
            "MINICLUSTER_RPC_KEEPALIVE_TIMEOUT": float,
            "MINICLUSTER_RPC_CONNECT_BASE_DELAY": float,
            "MINICLUSTER_RPC_CONNECT_MULTIPLIER": float,
            "MINICLUSTER_RPC_CONNECT_JITTER": float,
            "MINICLUSTER_RPC_CONNECT_MAX_DELAY": float,
            "MINICLUSTER_RPC_MIN_CONNECT_TIMEOUT": float,
            "MINICLUSTER_RPC_DIAL_TIMEOUT": float,
            # RPC retry settings
            "MINICLUSTER_RPC_RETRY_MAX_ATTEMPTS": int,
            "MINICLUSTER_RPC_RETRY_BASE_DELAY": float,
            "MINICLUSTER_RPC_RETRY_MULTIPLIER": float,
        }

    def get_dial_options(self):
        """
        Get RPC dial options from environment settings.

        Imported lazily as the rpc package depends on the reliability
        package, which is independent of settings.
        """
        from minicluster.rpc.dial_options import (
            ConnectBackoffConfig,
            DialOptions,
            KeepaliveConfig,
            UnaryRetryConfig,
        )

        return DialOptions(
            keepalive=KeepaliveConfig(
                time=self.MINICLUSTER_RPC_KEEPALIVE_TIME,
                timeout=self.MINICLUSTER_RPC_KEEPALIVE_TIMEOUT,
                permit_without_stream=True,
            ),
            connect_backoff=ConnectBackoffConfig(
                base_delay=self.MINICLUSTER_RPC_CONNECT_BASE_DELAY,
                multiplier=self.MINICLUSTER_RPC_CONNECT_MULTIPLIER,
                jitter=self.MINICLUSTER_RPC_CONNECT_JITTER,
                max_delay=self.MINICLUSTER_RPC_CONNECT_MAX_DELAY,
                min_connect_timeout=self.MINICLUSTER_RPC_MIN_CONNECT_TIMEOUT,
            ),
            unary_retry=UnaryRetryConfig(
                max_attempts=self.MINICLUSTER_RPC_RETRY_MAX_ATTEMPTS,
                base_delay=self.MINICLUSTER_RPC_RETRY_BASE_DELAY,
                multiplier=self.MINICLUSTER_RPC_RETRY_MULTIPLIER,
            ),
            dial_timeout=self.MINICLUSTER_RPC_DIAL_TIMEOUT,
        )

    def get_local_storage_path(self, namespace: str) -> str:
        return os.path.join(self.MINICLUSTER_LOCAL_STORAGE_DIRECTORY, namespace)
