#!/usr/bin/env python3
"""Local file sink.

Appends every delivered message as one line to a plain UTF-8 text file.

Construction does not touch the filesystem. The first deliver() starts a
single writer task that opens the file and then drains a bounded mailbox;
it is the only code that writes to the file handle. deliver() waits until
its own message has been appended and flushed, so messages land in call
order and a successful return means the line is in the file.

If the file cannot be opened, the failure is raised as DeliveryError from
the first deliver() and from every deliver() after it.

Messages still queued when the writer stops are rejected with
SinkClosedError.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import IO, Any

from cliptrack.errors import DeliveryError, SinkClosedError
from cliptrack.resolver import expand_home

logger = logging.getLogger(__name__)

# Capacity of the writer mailbox. deliver() blocks while it is full.
MAILBOX_SIZE: int = 100

# Permissions for directories created on first delivery.
DIR_MODE: int = 0o755

_STOP = object()


def open_log_file(path: str, name: str) -> IO[str]:
    """Open the target file in append mode, creating directories as needed.

    Args:
        path: Target directory, may start with "~".
        name: File name inside the directory.

    Returns:
        A text file object opened for appending.

    Raises:
        OSError: If the directory cannot be created or the file opened.
        ValueError: If the name contains a NUL byte.
    """
    directory = expand_home(path)
    os.makedirs(directory, mode=DIR_MODE, exist_ok=True)
    return open(os.path.join(directory, name), "a", encoding="utf-8")


def _settle(done: asyncio.Future[None], error: Exception | None = None) -> None:
    # The caller may have been cancelled while waiting.
    if done.done():
        return
    if error is None:
        done.set_result(None)
    else:
        done.set_exception(error)


class LocalSink:
    """Sink that appends messages to a local text file."""

    def __init__(self, path: str, name: str) -> None:
        self._path = path
        self._name = name
        self._file: IO[str] | None = None
        self._mailbox: asyncio.Queue[Any] | None = None
        self._writer_task: asyncio.Task[None] | None = None
        self._open_error: Exception | None = None
        self._closed = False

    @property
    def sink_name(self) -> str:
        return "local"

    @property
    def file_path(self) -> str:
        """Return the full path of the target file."""
        return os.path.join(expand_home(self._path), self._name)

    @property
    def closed(self) -> bool:
        return self._closed

    async def deliver(self, message: str) -> None:
        """Append message and a newline to the target file.

        Raises:
            DeliveryError: If the file could not be opened or written.
            SinkClosedError: If close() was already called, or the sink was
                closed while this call waited for room in the mailbox.
        """
        if self._closed:
            raise SinkClosedError("Local sink is closed")
        if self._open_error is not None:
            raise self._open_failure()

        if self._writer_task is None:
            self._mailbox = asyncio.Queue(maxsize=MAILBOX_SIZE)
            self._writer_task = asyncio.create_task(self._run_writer())

        assert self._mailbox is not None
        done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        await self._mailbox.put((message, done))
        if self._writer_task.done():
            # The writer stopped while this call was blocked on a full mailbox.
            self._reject_pending()
        await done

    async def close(self) -> None:
        """Drain pending messages, stop the writer and close the file."""
        if self._closed:
            return
        self._closed = True

        try:
            if self._writer_task is not None:
                assert self._mailbox is not None
                if not self._writer_task.done():
                    await self._mailbox.put(_STOP)
                await self._writer_task
        finally:
            self._reject_pending()
            if self._file is not None:
                self._file.close()
                self._file = None
                logger.debug("Closed %s", self.file_path)

    def _open_failure(self) -> DeliveryError:
        error = DeliveryError(f"Cannot open {self.file_path}: {self._open_error}")
        error.__cause__ = self._open_error
        return error

    def _reject_pending(self) -> None:
        """Fail every message still in the mailbox with SinkClosedError."""
        if self._mailbox is None:
            return
        while not self._mailbox.empty():
            item = self._mailbox.get_nowait()
            if item is _STOP:
                continue
            _, done = item
            error = SinkClosedError("Local sink closed before the message was written")
            _settle(done, error)

    def _append(self, message: str) -> None:
        assert self._file is not None
        self._file.write(message + "\n")
        self._file.flush()

    async def _run_writer(self) -> None:
        """Open the file, then append queued messages until told to stop."""
        assert self._mailbox is not None
        try:
            try:
                self._file = await asyncio.to_thread(
                    open_log_file, self._path, self._name
                )
                logger.debug("Appending to %s", self.file_path)
            except Exception as e:
                # OSError, or ValueError for a name with a NUL byte.
                logger.error("Failed to open %s: %s", self.file_path, e)
                self._open_error = e

            while True:
                item = await self._mailbox.get()
                if item is _STOP:
                    return
                message, done = item
                if self._open_error is not None:
                    _settle(done, self._open_failure())
                    continue
                try:
                    await asyncio.to_thread(self._append, message)
                except Exception as e:
                    error = DeliveryError(f"Failed to write to {self.file_path}: {e}")
                    error.__cause__ = e
                    _settle(done, error)
                else:
                    _settle(done, None)
        finally:
            self._reject_pending()
