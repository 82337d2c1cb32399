import asyncio
import datetime
import io
import os
import pathlib
import sys
import threading
from collections import defaultdict
from typing import (
    Dict,
    TypeVar,
)

import msgspec

from cubewarden.logging.config.logging_config import LoggingConfig
from cubewarden.logging.config.stream_type import StreamType
from cubewarden.logging.models import Entry, Log

T = TypeVar('T', bound=Entry)

DEFAULT_TEMPLATE = "{timestamp} - {level} - {thread_id} - {filename}:{function_name}.{line_number} - {message}"
ERROR_TEMPLATE = "{timestamp} - {level} - {thread_id}.{filename}:{function_name}.{line_number} - {error}"


class LoggerStream:
    def __init__(
        self,
        name: str | None = None,
        filename: str | None = None,
        directory: str | None = None,
    ) -> None:
        if name is None:
            name = "default"

        self._name = name
        self._template = DEFAULT_TEMPLATE
        self._default_logfile = filename
        self._default_log_directory = directory

        self._init_lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None

        self._files: Dict[str, io.FileIO] = {}
        self._file_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._cwd: str | None = None

        self._config = LoggingConfig()
        self._initialized: bool = False
        self._closed = False

    async def initialize(self):

        async with self._init_lock:

            if self._initialized:
                return

            if self._loop is None:
                self._loop = asyncio.get_running_loop()

            if self._default_log_directory is None and self._default_logfile is None:
                self._default_log_directory = self._config.directory

            self._closed = False
            self._initialized = True

    async def open_file(
        self,
        filename: str,
        directory: str | None = None,
    ):
        if self._cwd is None:
            self._cwd = await self._loop.run_in_executor(
                None,
                os.getcwd,
            )

        logfile_path = self._to_logfile_path(filename, directory=directory)
        file_lock = self._file_locks[logfile_path]

        async with file_lock:
            logfile = self._files.get(logfile_path)
            if logfile is None or logfile.closed:
                self._files[logfile_path] = await self._loop.run_in_executor(
                    None,
                    self._open_file,
                    logfile_path,
                )

        return logfile_path

    def _open_file(self, logfile_path: str):
        path = pathlib.Path(logfile_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        return open(path, "ab+")

    def _to_logfile_path(
        self,
        filename: str,
        directory: str | None = None,
    ):
        if directory is None:
            directory = os.path.join(self._cwd, "logs")

        return os.path.join(directory, filename)

    async def close(self):
        self._closed = True

        for logfile_path, logfile in list(self._files.items()):
            async with self._file_locks[logfile_path]:
                if logfile.closed is False:
                    await self._loop.run_in_executor(None, logfile.close)

        self._files.clear()
        self._initialized = False

    async def log(
        self,
        entry: T | Log[T],
        path: str | None = None,
    ):
        filename: str | None = None
        directory: str | None = None

        if path:
            logfile_path = pathlib.Path(path)
            is_logfile = len(logfile_path.suffix) > 0

            filename = logfile_path.name if is_logfile else None
            directory = str(logfile_path.parent.absolute()) if is_logfile else str(logfile_path.absolute())

        if filename is None:
            filename = self._default_logfile

        if directory is None:
            directory = self._default_log_directory

        if filename or directory:
            await self._log_to_file(
                entry,
                filename=filename,
                directory=directory,
            )

        else:
            await self._log(entry)

    async def _log(
        self,
        entry_or_log: T | Log[T],
    ):
        entry = entry_or_log.entry if isinstance(entry_or_log, Log) else entry_or_log

        if self._closed or self._config.enabled(entry.level) is False:
            return

        if isinstance(entry_or_log, Log):
            log_file = entry_or_log.filename
            line_number = entry_or_log.line_number
            function_name = entry_or_log.function_name

        else:
            log_file, line_number, function_name = self._find_caller()

        stream = sys.stdout if self._config.output == StreamType.STDOUT else sys.stderr

        try:
            stream.write(
                entry.to_template(
                    self._template,
                    context={
                        "filename": log_file,
                        "function_name": function_name,
                        "line_number": line_number,
                        "thread_id": threading.get_native_id(),
                        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
                    },
                )
                + "\n"
            )
            stream.flush()

        except (KeyError, IndexError, ValueError, OSError) as err:
            sys.stderr.write(
                entry.to_template(
                    ERROR_TEMPLATE,
                    context={
                        "filename": log_file,
                        "function_name": function_name,
                        "line_number": line_number,
                        "error": str(err),
                        "thread_id": threading.get_native_id(),
                        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
                    },
                )
                + "\n"
            )

    async def _log_to_file(
        self,
        entry_or_log: T | Log[T],
        filename: str | None = None,
        directory: str | None = None,
    ):
        entry = entry_or_log.entry if isinstance(entry_or_log, Log) else entry_or_log

        if self._closed or self._config.enabled(entry.level) is False:
            return

        if filename is None:
            filename = "logs.json"

        logfile_path = await self.open_file(
            filename,
            directory=directory,
        )

        if isinstance(entry_or_log, Log):
            log = entry_or_log

        else:
            log_file, line_number, function_name = self._find_caller()

            log = Log(
                entry=entry,
                filename=log_file,
                function_name=function_name,
                line_number=line_number
            )

        async with self._file_locks[logfile_path]:
            await self._loop.run_in_executor(
                None,
                self._write_to_file,
                log,
                logfile_path,
            )

    def _write_to_file(
        self,
        log: Log,
        logfile_path: str,
    ):
        if (
            logfile := self._files.get(logfile_path)
        ) and (
            logfile.closed is False
        ):

            logfile.write(msgspec.json.encode(log) + b"\n")
            logfile.flush()

    def _find_caller(self):
        """
        Find the stack frame of the caller so that we can note the source
        file name, line number and function name.
        """
        frame = sys._getframe(3)
        code = frame.f_code

        return (
            code.co_filename,
            frame.f_lineno,
            code.co_name,
        )
