import asyncio
import io
import os
import pathlib
import sys

import msgspec

from minicluster.logging.config import LoggingConfig, StreamType
from minicluster.logging.models import Log


DEFAULT_TEMPLATE = "{timestamp} - {level} - {thread_id} - {filename}:{function_name}.{line_number} - {message}"


class LoggerStream:
    """
    Writes the entries of one named logger.

    With a path, entries are appended to that .json file as one msgspec
    encoded Log per line. Without one, they are rendered with the line
    template onto stdout or stderr. Relative paths resolve against the
    configured log directory.
    """

    def __init__(
        self,
        name: str = "default",
        template: str | None = None,
        path: str | None = None,
    ) -> None:
        self._name = name
        self._template = template or DEFAULT_TEMPLATE
        self._config = LoggingConfig()

        self._path = self._to_logfile_path(path) if path else None
        self._file: io.BufferedRandom | None = None
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> str | None:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._file is not None and self._file.closed is False

    def _to_logfile_path(self, path: str) -> str:
        logfile_path = pathlib.Path(path)

        if logfile_path.suffix != ".json":
            raise ValueError(f"Log file {path} must be a JSON file")

        if not logfile_path.is_absolute() and self._config.directory:
            logfile_path = pathlib.Path(self._config.directory) / logfile_path

        return str(logfile_path.absolute())

    async def log(self, log: Log):
        if self._config.enabled(self._name, log.entry.level) is False:
            return

        loop = asyncio.get_running_loop()

        if self._path is None:
            line = log.entry.to_template(
                self._template,
                context={
                    "filename": log.filename,
                    "function_name": log.function_name,
                    "line_number": log.line_number,
                    "thread_id": log.thread_id,
                    "timestamp": log.timestamp,
                },
            )

            await loop.run_in_executor(
                None,
                self._write_to_stream,
                line,
                self._config.output,
            )
            return

        async with self._lock:
            await loop.run_in_executor(
                None,
                self._write_to_file,
                log,
            )

    def _write_to_stream(
        self,
        line: str,
        stream_type: StreamType,
    ):
        stream = sys.stdout if stream_type == StreamType.STDOUT else sys.stderr
        if stream is None or stream.closed:
            return

        stream.write(line + "\n")
        stream.flush()

    def _write_to_file(self, log: Log):
        if not self.is_open:
            os.makedirs(os.path.dirname(self._path), exist_ok=True)
            self._file = open(self._path, "ab+")

        self._file.write(msgspec.json.encode(log) + b"\n")
        self._file.flush()

    async def close(self):
        async with self._lock:
            if self.is_open:
                await asyncio.get_running_loop().run_in_executor(
                    None,
                    self._file.close,
                )

            self._file = None
