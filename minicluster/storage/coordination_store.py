"""
Coordination store interface and backend selection.

The coordination store is the key-value service roles use for metadata
and service discovery. The orchestrator only needs to open it, scope
reads under the cluster namespace, delete everything under that
namespace on teardown and close it.
"""

from typing import Protocol
from urllib.parse import urlparse

from minicluster.errors import ConfigurationError


class CoordinationStore(Protocol):

    async def put(self, key: str, value: bytes) -> None:
        ...

    async def get(self, key: str) -> bytes | None:
        ...

    async def get_prefix(self, prefix: str) -> dict[str, bytes]:
        ...

    async def delete_prefix(self, prefix: str) -> int:
        """Delete every key under the prefix, returning the number removed."""
        ...

    async def close(self) -> None:
        ...


def open_coordination_store(url: str) -> CoordinationStore:
    scheme = urlparse(url).scheme

    if scheme == "memory":
        from .memory_store import MemoryCoordinationStore

        return MemoryCoordinationStore()

    elif scheme in ("redis", "rediss", "unix"):
        from .redis_store import RedisCoordinationStore

        return RedisCoordinationStore(url=url)

    raise ConfigurationError(
        f"Unsupported coordination store URL scheme '{scheme}' in '{url}'"
    )
