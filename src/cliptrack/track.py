#!/usr/bin/env python3
"""Entry point for a tracking run.

run_track() resolves the configuration, builds the sink, registers signal
handlers for a clean shutdown and runs the tracker until it stops.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Mapping
from typing import TYPE_CHECKING

from cliptrack.resolver import resolve_config
from cliptrack.sink_factory import DEFAULT_SINK_FACTORIES, SinkFactory, create_sink
from cliptrack.tracker import ClipboardTracker

if TYPE_CHECKING:
    from cliptrack.config import Config
    from cliptrack.source import ChangeSource
    from cliptrack.tracker_state import StopReason

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


async def run_track(
    config: Config,
    source: ChangeSource | None = None,
    factories: Mapping[str, SinkFactory] = DEFAULT_SINK_FACTORIES,
    shutdown_requested: asyncio.Event | None = None,
) -> StopReason:
    """Track the clipboard with the given configuration.

    Args:
        config: A possibly partial configuration; resolved here.
        source: Change source; defaults to the X11 CLIPBOARD source.
        factories: Sink factory table.
        shutdown_requested: Event that stops the run; SIGINT and SIGTERM
            set it.

    Returns:
        Why the run stopped.

    Raises:
        TrackError: On configuration, sink construction or clipboard
            initialization failures.
    """
    resolved = resolve_config(config)
    sink = create_sink(resolved, factories)

    if source is None:
        from cliptrack.clipboard_source import X11ClipboardSource
        source = X11ClipboardSource()

    if shutdown_requested is None:
        shutdown_requested = asyncio.Event()

    assert resolved.app.idle is not None
    tracker = ClipboardTracker(source, sink, resolved.app.idle)

    # Register signal handlers for clean shutdown
    loop = asyncio.get_running_loop()
    for sig in SHUTDOWN_SIGNALS:
        loop.add_signal_handler(sig, shutdown_requested.set)
    try:
        return await tracker.run(shutdown_requested)
    finally:
        for sig in SHUTDOWN_SIGNALS:
            loop.remove_signal_handler(sig)
