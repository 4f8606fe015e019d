"""X11 clipboard I/O operations.

This module provides functions for reading X11 clipboard content and for
collecting XFixes owner-change notifications without blocking the asyncio
event loop.

The module handles:
- Reading clipboard content with timeout handling
- Deferring unrelated events seen while waiting for SelectionNotify
- Collecting pending SetSelectionOwnerNotify events
"""

from __future__ import annotations

import asyncio
import logging

from Xlib import X

from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.xobject.drawable import Window
    from Xlib.protocol.rq import Event

logger = logging.getLogger(__name__)

# Timeout in seconds for clipboard read operations to prevent hangs
# when the clipboard owner is unresponsive
CLIPBOARD_TIMEOUT: float = 2.0

# Property on our window that receives converted selection data.
SELECTION_PROPERTY: str = "CLIPTRACK_SEL"


def is_owner_change(event: Event) -> bool:
    """Return True for XFixes SetSelectionOwnerNotify events."""
    return type(event).__name__ == "SetSelectionOwnerNotify"


def wait_for_event_type(
    display: Display,
    target_event_type: int,
    deferred_events: list[Event],
) -> Event:
    """Block until an event of the target type arrives.

    Owner-change notifications read along the way are appended to
    deferred_events so the watcher can process them later. This should
    only be called when the event is expected (after convert_selection).

    Args:
        display: The X11 display connection.
        target_event_type: The X11 event type to wait for.
        deferred_events: List to collect owner-change events during wait.

    Returns:
        The matching event of target_event_type.
    """
    while True:
        event = display.next_event()
        if event.type == target_event_type:
            return event
        if is_owner_change(event):
            deferred_events.append(event)


def collect_owner_changes(
    display: Display, selection_atom: int, deferred_events: list[Event]
) -> list[Event]:
    """Collect owner-change events for selection_atom without blocking.

    Deferred events come first to preserve ordering, then every event the
    display already has pending.

    Args:
        display: The X11 display connection.
        selection_atom: Only changes of this selection are returned.
        deferred_events: Events deferred during clipboard reads. Drained.

    Returns:
        Owner-change events for the selection, oldest first.
    """
    events: list[Event] = list(deferred_events)
    deferred_events.clear()
    while display.pending_events() > 0:
        event = display.next_event()
        logger.debug("X11 event type=%s class=%s", event.type, type(event).__name__)
        events.append(event)
    return [e for e in events if is_owner_change(e) and e.selection == selection_atom]


async def read_clipboard_content(
    display: Display,
    window: Window,
    selection_atom: int,
    deferred_events: list[Event],
) -> bytes | None:
    """Read clipboard content from the current selection owner.

    Requests the UTF8_STRING target from the current owner and returns the
    content bytes. The blocking wait for SelectionNotify runs in a thread,
    bounded by CLIPBOARD_TIMEOUT.

    Args:
        display: The X11 display connection.
        window: The window to receive selection data.
        selection_atom: The selection atom to read.
        deferred_events: List to collect events deferred during the wait.

    Returns:
        Content bytes if successful, None on failure/empty/timeout.
    """
    try:
        owner = display.get_selection_owner(selection_atom)
        if owner == X.NONE:
            logger.debug("No selection owner for atom %s", selection_atom)
            return None

        utf8_atom = display.intern_atom("UTF8_STRING")
        prop_atom = display.intern_atom(SELECTION_PROPERTY)
        window.convert_selection(selection_atom, utf8_atom, prop_atom, X.CurrentTime)
        display.flush()

        event = await asyncio.wait_for(
            asyncio.to_thread(
                wait_for_event_type, display, X.SelectionNotify, deferred_events
            ),
            timeout=CLIPBOARD_TIMEOUT,
        )
        if event.property == X.NONE:
            logger.debug("Selection owner refused conversion to UTF8_STRING")
            return None
        return _read_selection_property(display, window, prop_atom)

    except asyncio.TimeoutError:
        logger.debug("Clipboard read timed out after %s seconds", CLIPBOARD_TIMEOUT)
        return None
    except Exception as e:
        logger.debug("Clipboard read failed: %s", e)
        return None


def _read_selection_property(
    display: Display, window: Window, prop_atom: int
) -> bytes | None:
    """Read and delete selection property from window.

    Args:
        display: The X11 display connection.
        window: The window containing the property.
        prop_atom: The property atom to read.

    Returns:
        Content bytes if successful, None on failure.
    """
    prop = window.get_full_property(prop_atom, X.AnyPropertyType)
    window.delete_property(prop_atom)
    display.flush()

    if prop is None:
        logger.debug("Selection property was empty")
        return None

    data = prop.value
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)
