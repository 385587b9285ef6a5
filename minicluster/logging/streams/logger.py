from __future__ import annotations

import sys

from minicluster.logging.models import Entry, Log

from .logger_stream import LoggerStream


class Logger:
    def __init__(self) -> None:
        self._streams: dict[str, LoggerStream] = {}

    def __getitem__(self, name: str) -> LoggerStream:
        if self._streams.get(name) is None:
            self._streams[name] = LoggerStream(name=name)

        return self._streams[name]

    @property
    def open_files(self) -> list[str]:
        return [stream.path for stream in self._streams.values() if stream.is_open]

    def configure(
        self,
        name: str = 'default',
        template: str | None = None,
        path: str | None = None,
    ):
        """Replace the named stream. Call before the first entry is logged."""
        self._streams[name] = LoggerStream(
            name=name,
            template=template,
            path=path,
        )

    async def log(
        self,
        entry: Entry,
        name: str = 'default',
    ):
        frame = sys._getframe(1)
        code = frame.f_code

        await self[name].log(
            Log(
                entry=entry,
                filename=code.co_filename,
                function_name=code.co_name,
                line_number=frame.f_lineno,
            )
        )

    async def close(self):
        for stream in self._streams.values():
            await stream.close()
