import re

import redis.asyncio as redis

from minicluster.errors import CoordinationStoreError


_PATTERN_SPECIALS = re.compile(r"([*?\[\]\\])")

_BATCH_SIZE = 500


def _prefix_pattern(prefix: str) -> str:
    return _PATTERN_SPECIALS.sub(r"\\\1", prefix) + "*"


class RedisCoordinationStore:
    """Coordination store backed by a Redis server."""

    def __init__(
        self,
        url: str | None = None,
        client: redis.Redis | None = None,
    ) -> None:
        if client is None and url is None:
            raise CoordinationStoreError("RedisCoordinationStore requires a url or a client")

        if client is None:
            client = redis.Redis.from_url(url)

        self._client = client
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self):
        if self._closed:
            raise CoordinationStoreError("Coordination store is closed")

    async def _scan_keys(self, prefix: str) -> list[str]:
        keys: list[str] = []
        async for key in self._client.scan_iter(
            match=_prefix_pattern(prefix),
            count=_BATCH_SIZE,
        ):
            keys.append(key.decode() if isinstance(key, bytes) else key)

        return sorted(keys)

    async def put(self, key: str, value: bytes) -> None:
        self._check_open()
        await self._client.set(key, value)

    async def get(self, key: str) -> bytes | None:
        self._check_open()
        return await self._client.get(key)

    async def get_prefix(self, prefix: str) -> dict[str, bytes]:
        self._check_open()
        keys = await self._scan_keys(prefix)

        values: dict[str, bytes] = {}
        for offset in range(0, len(keys), _BATCH_SIZE):
            batch = keys[offset:offset + _BATCH_SIZE]
            for key, value in zip(batch, await self._client.mget(batch)):
                if value is not None:
                    values[key] = value

        return values

    async def delete_prefix(self, prefix: str) -> int:
        self._check_open()
        keys = await self._scan_keys(prefix)

        deleted = 0
        for offset in range(0, len(keys), _BATCH_SIZE):
            deleted += await self._client.delete(*keys[offset:offset + _BATCH_SIZE])

        return deleted

    async def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        await self._client.aclose()
