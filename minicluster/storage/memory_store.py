import asyncio

from minicluster.errors import CoordinationStoreError


class MemoryCoordinationStore:
    """Embedded, process-local coordination store."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self):
        if self._closed:
            raise CoordinationStoreError("Coordination store is closed")

    async def put(self, key: str, value: bytes) -> None:
        self._check_open()
        async with self._lock:
            self._data[key] = value

    async def get(self, key: str) -> bytes | None:
        self._check_open()
        return self._data.get(key)

    async def get_prefix(self, prefix: str) -> dict[str, bytes]:
        self._check_open()
        return {
            key: value
            for key, value in sorted(self._data.items())
            if key.startswith(prefix)
        }

    async def delete_prefix(self, prefix: str) -> int:
        self._check_open()
        async with self._lock:
            keys = [key for key in self._data if key.startswith(prefix)]
            for key in keys:
                del self._data[key]

        return len(keys)

    def keys(self) -> list[str]:
        return sorted(self._data)

    async def close(self) -> None:
        self._closed = True
