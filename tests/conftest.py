#!/usr/bin/env python3
"""Pytest fixtures for cliptrack tests.

Provides a fake home directory, a scripted change source and a recording
sink for exercising the tracker without X11 or the network.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

import pytest


class ScriptedSource:
    """Change source yielding (delay, snapshot) pairs, then idling forever."""

    def __init__(self, script: list[tuple[float, bytes]] | None = None) -> None:
        self.script = script or []
        self.initialized = False
        self.subscriptions = 0
        self.closed = False

    def initialize(self) -> None:
        self.initialized = True

    async def subscribe(self, stop: asyncio.Event) -> AsyncIterator[bytes]:
        self.subscriptions += 1
        try:
            for delay, snapshot in self.script:
                await asyncio.sleep(delay)
                yield snapshot
            await stop.wait()
        finally:
            self.closed = True


class RecordingSink:
    """Sink recording delivered messages and close calls."""

    def __init__(self, fail: bool = False, delay: float = 0.0) -> None:
        self.fail = fail
        self.delay = delay
        self.messages: list[str] = []
        self.close_calls = 0

    @property
    def sink_name(self) -> str:
        return "recording"

    async def deliver(self, message: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            from cliptrack.errors import DeliveryError
            raise DeliveryError("simulated failure")
        self.messages.append(message)

    async def close(self) -> None:
        self.close_calls += 1


@pytest.fixture
def fake_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the user's home directory at a temporary directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def recording_sink() -> RecordingSink:
    """Create a fresh RecordingSink."""
    return RecordingSink()
