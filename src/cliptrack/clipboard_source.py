#!/usr/bin/env python3
"""X11 CLIPBOARD change source.

X11ClipboardSource integrates the X11 display file descriptor into the
asyncio event loop using add_reader() and yields the clipboard content
each time another application takes ownership of the CLIPBOARD selection.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import TYPE_CHECKING

from cliptrack.clipboard import (
    create_hidden_window,
    get_display_fd,
    register_xfixes_events,
    validate_display,
)
from cliptrack.clipboard_io import collect_owner_changes, read_clipboard_content
from cliptrack.errors import ChangeSourceError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from Xlib.display import Display
    from Xlib.protocol.rq import Event
    from Xlib.xobject.drawable import Window

logger = logging.getLogger(__name__)


class X11ClipboardSource:
    """Change source backed by the X11 CLIPBOARD selection."""

    def __init__(self) -> None:
        self._display: Display | None = None
        self._window: Window | None = None
        self._clipboard_atom = 0
        self._deferred_events: list[Event] = []

    def initialize(self) -> None:
        """Open the display and register for CLIPBOARD owner changes.

        Raises:
            ChangeSourceError: If X11 or the XFixes extension is unavailable.
        """
        display = validate_display()
        window = create_hidden_window(display)
        self._clipboard_atom = register_xfixes_events(display, window)
        self._display = display
        self._window = window
        logger.debug("Watching CLIPBOARD atom %s", self._clipboard_atom)

    async def subscribe(self, stop: asyncio.Event) -> AsyncIterator[bytes]:
        """Yield clipboard content on every CLIPBOARD owner change.

        Args:
            stop: Event that ends the subscription once set.

        Raises:
            ChangeSourceError: If initialize() has not been called.
        """
        if self._display is None or self._window is None:
            raise ChangeSourceError("Clipboard source is not initialized")
        display = self._display
        window = self._window

        loop = asyncio.get_running_loop()
        x11_event = asyncio.Event()
        display_fd = get_display_fd(display)
        loop.add_reader(display_fd, x11_event.set)
        # Events may already sit in Xlib's buffer.
        x11_event.set()
        try:
            while not stop.is_set():
                x11_task = asyncio.create_task(x11_event.wait())
                stop_task = asyncio.create_task(stop.wait())
                try:
                    await asyncio.wait(
                        {x11_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
                    )
                finally:
                    for task in (x11_task, stop_task):
                        task.cancel()
                        with suppress(asyncio.CancelledError):
                            await task
                if stop.is_set():
                    return

                x11_event.clear()
                changes = collect_owner_changes(
                    display, self._clipboard_atom, self._deferred_events
                )
                if not changes:
                    continue

                content = await read_clipboard_content(
                    display, window, self._clipboard_atom, self._deferred_events
                )
                # Signal ourselves if events were deferred during the read
                if self._deferred_events:
                    x11_event.set()
                if not content:
                    logger.debug("Clipboard read returned empty/None, skipping")
                    continue
                yield content
        finally:
            loop.remove_reader(display_fd)
