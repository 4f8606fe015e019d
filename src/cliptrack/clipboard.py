"""X11 clipboard monitoring via XFixes extension.

This module provides the setup functions for watching the X11 CLIPBOARD
selection with the python-xlib library and the XFixes extension. XFixes
gives true event-driven notification when clipboard ownership changes,
avoiding the need for polling.

The module handles:
- Validating X11 display connectivity
- Creating a hidden window to receive selection data
- Registering for XFixes SetSelectionOwnerNotify events
"""

from __future__ import annotations

import os

from Xlib import X

from typing import TYPE_CHECKING

from cliptrack.errors import ChangeSourceError

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.xobject.drawable import Window


def validate_display() -> Display:
    """Validate X11 connectivity and return Display object.

    Checks that the DISPLAY environment variable is set and opens an X11
    connection.

    Returns:
        Display object for X11 operations.

    Raises:
        ChangeSourceError: If DISPLAY is unset or X11 connection fails.
    """
    display_name = os.environ.get("DISPLAY")
    if not display_name:
        raise ChangeSourceError(
            "DISPLAY environment variable is not set; "
            "X11 display is required for clipboard access"
        )

    try:
        from Xlib.display import Display as XDisplay
        return XDisplay(display_name)
    except Exception as e:
        raise ChangeSourceError(f"Failed to connect to X11 display: {e}") from e


def get_display_fd(display: Display) -> int:
    """Get the file descriptor for the X11 display connection.

    The file descriptor can be integrated into asyncio's event loop using
    loop.add_reader() for event-driven X11 event processing.

    Args:
        display: The X11 display connection.

    Returns:
        File descriptor number for the display connection.
    """
    return display.fileno()


def create_hidden_window(display: Display) -> Window:
    """Create a 1x1 unmapped window for receiving selection data.

    Converting a selection requires a requestor window whose property
    receives the content.

    Args:
        display: The X11 display connection.

    Returns:
        A Window object used as the selection requestor.
    """
    screen = display.screen()
    window = screen.root.create_window(
        0, 0, 1, 1, 0, screen.root_depth, event_mask=X.PropertyChangeMask,
    )
    return window


def register_xfixes_events(display: Display, window: Window) -> int:
    """Register for XFixes CLIPBOARD owner change notifications.

    Args:
        display: The X11 display connection.
        window: The window to receive selection events.

    Returns:
        The CLIPBOARD atom.

    Raises:
        ChangeSourceError: If the XFixes extension is not available.
    """
    from Xlib.ext import xfixes

    if not display.has_extension("XFIXES"):
        raise ChangeSourceError("X server does not support the XFIXES extension")

    xfixes.query_version(display)
    clipboard_atom = display.intern_atom("CLIPBOARD")
    mask = xfixes.XFixesSetSelectionOwnerNotifyMask
    xfixes.select_selection_input(display, window.id, clipboard_atom, mask)
    display.flush()
    return clipboard_atom
