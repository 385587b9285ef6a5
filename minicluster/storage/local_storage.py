import asyncio
import pathlib

from minicluster.errors import ObjectStorageError


class LocalObjectStorage:
    """Object storage rooted in a local directory, keyed by relative POSIX path."""

    def __init__(
        self,
        directory: str,
        root_path: str,
    ) -> None:
        self._directory = pathlib.Path(directory)
        self._root_path = root_path
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def root_path(self) -> str:
        return self._root_path

    @property
    def directory(self) -> pathlib.Path:
        return self._directory

    def _get_loop(self):
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        return self._loop

    def _resolve(self, key: str) -> pathlib.Path:
        path = (self._directory / key).resolve()
        if self._directory.resolve() not in path.parents:
            raise ObjectStorageError(f"Key '{key}' escapes storage directory {self._directory}")

        return path

    async def put(self, key: str, data: bytes) -> None:
        await self._get_loop().run_in_executor(
            None,
            self._write,
            key,
            data,
        )

    def _write(self, key: str, data: bytes):
        path = self._resolve(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def list_with_prefix(self, prefix: str) -> list[str]:
        return await self._get_loop().run_in_executor(
            None,
            self._list,
            prefix,
        )

    def _list(self, prefix: str) -> list[str]:
        if not self._directory.exists():
            return []

        return sorted(
            path.relative_to(self._directory).as_posix()
            for path in self._directory.rglob("*")
            if path.is_file()
            and path.relative_to(self._directory).as_posix().startswith(prefix)
        )

    async def remove_with_prefix(self, prefix: str) -> int:
        return await self._get_loop().run_in_executor(
            None,
            self._remove,
            prefix,
        )

    def _remove(self, prefix: str) -> int:
        keys = self._list(prefix)
        for key in keys:
            (self._directory / key).unlink(missing_ok=True)

        self._prune_empty_directories()
        return len(keys)

    def _prune_empty_directories(self):
        if not self._directory.exists():
            return

        directories = sorted(
            (path for path in self._directory.rglob("*") if path.is_dir()),
            key=lambda path: len(path.parts),
            reverse=True,
        )

        for directory in directories:
            if not any(directory.iterdir()):
                directory.rmdir()

        if not any(self._directory.iterdir()):
            self._directory.rmdir()

    async def close(self) -> None:
        pass
