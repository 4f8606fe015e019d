#!/usr/bin/env python3
"""Change source protocol.

A change source produces clipboard snapshots: immutable byte strings, one
per observed content change. initialize() is a startup precondition and is
called once before the first subscription. Each subscribe() call returns a
fresh, effectively infinite async iterator that ends once the stop event
is set; a finished subscription is never reused.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import asyncio
    from collections.abc import AsyncIterator


@runtime_checkable
class ChangeSource(Protocol):
    """Protocol for clipboard change sources."""

    def initialize(self) -> None:
        """Prepare the source.

        Raises:
            ChangeSourceError: If the clipboard is not available.
        """
        ...

    def subscribe(self, stop: asyncio.Event) -> AsyncIterator[bytes]:
        """Return a new async iterator of clipboard snapshots."""
        ...
