"""
Object storage interface and backend selection.

Roles persist their data under the cluster's storage root. On teardown
the orchestrator removes every object under that root, constructing a
transient storage handle if it does not already hold one.
"""

from collections.abc import Mapping
from typing import Protocol

from minicluster.config import (
    LOCAL_STORAGE_PATH,
    STORAGE_ROOT_PATH,
    STORAGE_TYPE,
)
from minicluster.env import Env
from minicluster.errors import ConfigurationError


class ObjectStorage(Protocol):

    @property
    def root_path(self) -> str:
        ...

    async def put(self, key: str, data: bytes) -> None:
        ...

    async def list_with_prefix(self, prefix: str) -> list[str]:
        ...

    async def remove_with_prefix(self, prefix: str) -> int:
        """Remove every object under the prefix, returning the number removed."""
        ...

    async def close(self) -> None:
        ...


def new_object_storage(overlay: Mapping[str, str], env: Env) -> ObjectStorage:
    storage_type = overlay.get(STORAGE_TYPE, env.MINICLUSTER_STORAGE_TYPE)
    root_path = overlay[STORAGE_ROOT_PATH]

    if storage_type == "local":
        from .local_storage import LocalObjectStorage

        return LocalObjectStorage(
            directory=overlay[LOCAL_STORAGE_PATH],
            root_path=root_path,
        )

    elif storage_type in ("remote", "minio", "s3"):
        from .s3_storage import S3ObjectStorage

        return S3ObjectStorage(
            bucket=env.MINICLUSTER_S3_BUCKET,
            root_path=root_path,
            endpoint_url=env.MINICLUSTER_S3_ENDPOINT_URL,
            region_name=env.MINICLUSTER_S3_REGION,
            aws_access_key_id=env.MINICLUSTER_S3_ACCESS_KEY_ID,
            aws_secret_access_key=env.MINICLUSTER_S3_SECRET_ACCESS_KEY,
        )

    raise ConfigurationError(f"Unsupported storage type '{storage_type}'")
