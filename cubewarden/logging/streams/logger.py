from __future__ import annotations

import asyncio
import datetime
import pathlib
import sys
import threading
from typing import (
    Dict,
    TypeVar,
)

from cubewarden.logging.models import Entry, Log

from .logger_context import LoggerContext

T = TypeVar('T', bound=Entry)


class Logger:
    """
    Async structured logger shared by every cubewarden component.

    Entries go to stderr (or stdout) through the entry template unless a
    log file or directory is given, either per call through `path` or
    process-wide through `LoggingConfig.update(log_directory=...)`, in
    which case each entry is appended as one JSON line.
    """

    def __init__(self) -> None:
        self._contexts: Dict[str, LoggerContext] = {}

    def context(
        self,
        name: str | None = None,
        path: str | None = None,
        nested: bool = False,
    ):
        if name is None:
            name = 'default'

        filename, directory = self._parse_path(path)

        if self._contexts.get(name) is None:

            self._contexts[name] = LoggerContext(
                name=name,
                filename=filename,
                directory=directory,
                nested=nested,
            )

        else:
            self._contexts[name].filename = filename if filename else self._contexts[name].filename
            self._contexts[name].directory = directory if directory else self._contexts[name].directory
            self._contexts[name].nested = nested

        return self._contexts[name]

    def _parse_path(self, path: str | None):
        filename: str | None = None
        directory: str | None = None

        if path:
            logfile_path = pathlib.Path(path)
            is_logfile = len(logfile_path.suffix) > 0

            filename = logfile_path.name if is_logfile else None
            directory = str(logfile_path.parent.absolute()) if is_logfile else str(logfile_path.absolute())

        return filename, directory

    async def log(
        self,
        entry: T,
        name: str | None = None,
        path: str | None = None,
    ):
        if name is None:
            name = 'default'

        frame = sys._getframe(1)
        code = frame.f_code

        async with self.context(
            name=name,
            nested=True,
        ) as ctx:
            await ctx.log(
                Log(
                    entry=entry,
                    filename=code.co_filename,
                    function_name=code.co_name,
                    line_number=frame.f_lineno,
                    thread_id=threading.get_native_id(),
                    timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat()
                ),
                path=path,
            )

    async def close(self):
        if self._contexts:
            await asyncio.gather(*[
                context.stream.close() for context in self._contexts.values()
            ])
