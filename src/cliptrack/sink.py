#!/usr/bin/env python3
"""Sink protocol for cliptrack.

A sink is the single delivery target of a tracking run. The tracker owns it
for the whole run: deliver() is awaited once per clipboard change and
close() is awaited exactly once when the run drains.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Sink(Protocol):
    """Protocol implemented by every cliptrack sink.

    Attributes:
        sink_name: Short identifier used in log messages ("local",
            "telegram").
    """

    @property
    def sink_name(self) -> str:
        """Return the name of this sink."""
        ...

    async def deliver(self, message: str) -> None:
        """Deliver one message.

        Args:
            message: The clipboard text to forward.

        Raises:
            DeliveryError: If this message could not be delivered.
            SinkClosedError: If the sink was already closed.
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the sink."""
        ...
