"""
Configuration overlay handed to role constructors.

The overlay isolates one cluster instance: it carries the namespace used
for coordination-store keys, message channel names and object-storage
paths. It is written once while the cluster is being assembled and
frozen before the first role is constructed; roles receive a read-only
snapshot through their RoleContext.
"""

from __future__ import annotations

import os
import time
import uuid
from collections.abc import Iterator, Mapping, MutableMapping
from types import MappingProxyType

from minicluster.env import Env
from minicluster.errors import ConfigurationError, OverlayFrozenError


MQ_TYPE = "mq.type"
COORDINATION_ROOT_PATH = "etcd.rootPath"
CHANNEL_NAME_PREFIX = "msgChannel.chanNamePrefix.cluster"
STORAGE_ROOT_PATH = "minio.rootPath"
LOCAL_STORAGE_PATH = "localStorage.path"
STORAGE_TYPE = "common.storageType"
FORCE_SYNC_ENABLED = "dataNode.memory.forceSyncEnable"
GRACEFUL_STOP_TIMEOUT = "common.gracefulStopTimeout"

REQUIRED_KEYS = (
    MQ_TYPE,
    COORDINATION_ROOT_PATH,
    CHANNEL_NAME_PREFIX,
    STORAGE_ROOT_PATH,
    LOCAL_STORAGE_PATH,
    STORAGE_TYPE,
    FORCE_SYNC_ENABLED,
    GRACEFUL_STOP_TIMEOUT,
)


def new_namespace(prefix: str = "minicluster") -> str:
    return f"{prefix}-{int(time.time())}-{uuid.uuid4().hex[:8]}"


class ConfigOverlay(MutableMapping[str, str]):
    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = {}
        self._frozen = False

        if values:
            for key, value in values.items():
                self[key] = value

    @classmethod
    def defaults(cls, env: Env, namespace: str | None = None) -> ConfigOverlay:
        if namespace is None:
            namespace = new_namespace()

        # local execution prints too many logs with force sync enabled
        force_sync = "true" if env.MINICLUSTER_FORCE_SYNC_ENABLED else "false"

        return cls({
            MQ_TYPE: env.MINICLUSTER_MQ_TYPE,
            COORDINATION_ROOT_PATH: namespace,
            CHANNEL_NAME_PREFIX: namespace,
            STORAGE_ROOT_PATH: namespace,
            LOCAL_STORAGE_PATH: os.path.join(
                env.MINICLUSTER_LOCAL_STORAGE_DIRECTORY,
                namespace,
            ),
            STORAGE_TYPE: env.MINICLUSTER_STORAGE_TYPE,
            FORCE_SYNC_ENABLED: force_sync,
            GRACEFUL_STOP_TIMEOUT: str(env.MINICLUSTER_GRACEFUL_STOP_TIMEOUT),
        })

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def namespace(self) -> str:
        return self._values[COORDINATION_ROOT_PATH]

    @property
    def coordination_root_path(self) -> str:
        return self._values[COORDINATION_ROOT_PATH]

    @property
    def storage_root_path(self) -> str:
        return self._values[STORAGE_ROOT_PATH]

    @property
    def local_storage_path(self) -> str:
        return self._values[LOCAL_STORAGE_PATH]

    @property
    def storage_type(self) -> str:
        return self._values[STORAGE_TYPE]

    def freeze(self) -> Mapping[str, str]:
        missing = [key for key in REQUIRED_KEYS if key not in self._values]
        if missing:
            raise ConfigurationError(
                f"Configuration overlay is missing required keys: {', '.join(missing)}"
            )

        self._frozen = True
        return self.snapshot()

    def snapshot(self) -> Mapping[str, str]:
        return MappingProxyType(dict(self._values))

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __setitem__(self, key: str, value: str) -> None:
        if self._frozen:
            raise OverlayFrozenError(key)

        if not isinstance(value, str):
            value = str(value)

        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        if self._frozen:
            raise OverlayFrozenError(key)

        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ConfigOverlay({self._values!r}, frozen={self._frozen})"
