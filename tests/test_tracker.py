#!/usr/bin/env python3
"""Tests for the tracker watching loop: delivery, idle timeout and draining."""
import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from conftest import RecordingSink, ScriptedSource

from cliptrack.errors import ChangeSourceError
from cliptrack.local_sink import LocalSink
from cliptrack.tracker import ClipboardTracker
from cliptrack.tracker_state import StopReason, TrackerPhase


@pytest.mark.asyncio
async def test_snapshots_are_delivered_in_order() -> None:
    """Every snapshot reaches the sink as text, in observation order."""
    source = ScriptedSource([(0, b"one"), (0, b"two"), (0.01, b"three")])
    sink = RecordingSink()
    tracker = ClipboardTracker(source, sink, idle=0.05)

    reason = await asyncio.wait_for(tracker.run(), timeout=2.0)

    assert reason is StopReason.IDLE
    assert sink.messages == ["one", "two", "three"]
    assert tracker.state.delivered == 3


@pytest.mark.asyncio
async def test_identical_snapshots_are_not_deduplicated() -> None:
    """Repeated content is delivered every time it is observed."""
    source = ScriptedSource([(0, b"same"), (0, b"same")])
    sink = RecordingSink()
    await asyncio.wait_for(ClipboardTracker(source, sink, idle=0.05).run(), timeout=2.0)
    assert sink.messages == ["same", "same"]


@pytest.mark.asyncio
async def test_invalid_utf8_is_replaced() -> None:
    """Undecodable bytes are delivered with replacement characters."""
    source = ScriptedSource([(0, b"ok \xff")])
    sink = RecordingSink()
    await asyncio.wait_for(ClipboardTracker(source, sink, idle=0.05).run(), timeout=2.0)
    assert sink.messages == ["ok �"]


@pytest.mark.asyncio
async def test_idle_without_snapshots_stops_and_closes_once() -> None:
    """With idle 50ms and no changes the run stops shortly after 50ms."""
    source = ScriptedSource()
    sink = RecordingSink()
    tracker = ClipboardTracker(source, sink, idle=0.05)
    loop = asyncio.get_running_loop()

    start = loop.time()
    reason = await asyncio.wait_for(tracker.run(), timeout=2.0)
    elapsed = loop.time() - start

    assert reason is StopReason.IDLE
    assert 0.045 <= elapsed < 0.08
    assert sink.close_calls == 1
    assert tracker.state.phase is TrackerPhase.STOPPED
    assert source.closed


@pytest.mark.asyncio
async def test_snapshot_resets_idle_timer() -> None:
    """A change at 10ms with idle 50ms keeps the run alive until ~60ms."""
    source = ScriptedSource([(0.01, b"change")])
    sink = RecordingSink()
    tracker = ClipboardTracker(source, sink, idle=0.05)
    loop = asyncio.get_running_loop()

    start = loop.time()
    await asyncio.wait_for(tracker.run(), timeout=2.0)
    elapsed = loop.time() - start

    assert sink.messages == ["change"]
    assert 0.058 <= elapsed < 0.09
    assert sink.close_calls == 1


@pytest.mark.asyncio
async def test_failed_delivery_keeps_loop_and_resets_idle_timer() -> None:
    """Failed deliveries are counted, the loop continues and idle restarts."""
    source = ScriptedSource([(0.03, b"a"), (0.03, b"b")])
    sink = RecordingSink(fail=True)
    tracker = ClipboardTracker(source, sink, idle=0.05)
    loop = asyncio.get_running_loop()

    start = loop.time()
    reason = await asyncio.wait_for(tracker.run(), timeout=2.0)
    elapsed = loop.time() - start

    assert reason is StopReason.IDLE
    assert tracker.state.failed == 2
    assert tracker.state.delivered == 0
    # Second failure at ~60ms pushes the deadline to ~110ms.
    assert elapsed >= 0.1
    assert sink.close_calls == 1


@pytest.mark.asyncio
async def test_unopenable_local_sink_does_not_block_idle_stop(tmp_path: Path) -> None:
    """A local sink that cannot open its file fails deliveries without hanging."""
    source = ScriptedSource([(0, b"hi")])
    sink = LocalSink(str(tmp_path), "a\x00b.txt")
    tracker = ClipboardTracker(source, sink, idle=0.05)

    reason = await asyncio.wait_for(tracker.run(), timeout=1.0)

    assert reason is StopReason.IDLE
    assert tracker.state.failed == 1
    assert tracker.state.delivered == 0
    assert sink.closed


@pytest.mark.asyncio
async def test_exhausted_source_still_stops_on_idle() -> None:
    """A subscription that ends early does not stop the run by itself."""

    class FiniteSource(ScriptedSource):
        async def subscribe(self, stop: asyncio.Event) -> AsyncIterator[bytes]:
            yield b"only"

    sink = RecordingSink()
    tracker = ClipboardTracker(FiniteSource(), sink, idle=0.05)
    reason = await asyncio.wait_for(tracker.run(), timeout=2.0)
    assert reason is StopReason.IDLE
    assert sink.messages == ["only"]
    assert sink.close_calls == 1


@pytest.mark.asyncio
async def test_initialize_failure_is_fatal_and_closes_sink() -> None:
    """A source that cannot initialize stops the run before watching."""

    class BrokenSource(ScriptedSource):
        def initialize(self) -> None:
            raise ChangeSourceError("no display")

    source = BrokenSource()
    sink = RecordingSink()
    tracker = ClipboardTracker(source, sink, idle=0.05)

    with pytest.raises(ChangeSourceError, match="no display"):
        await tracker.run()

    assert source.subscriptions == 0
    assert sink.close_calls == 1
    assert tracker.state.phase is TrackerPhase.STOPPED


@pytest.mark.asyncio
async def test_subscription_failure_drains_and_raises() -> None:
    """An error from the subscription is raised after the sink is closed."""

    class FailingSource(ScriptedSource):
        async def subscribe(self, stop: asyncio.Event) -> AsyncIterator[bytes]:
            yield b"before"
            raise RuntimeError("X connection lost")

    sink = RecordingSink()
    tracker = ClipboardTracker(FailingSource(), sink, idle=1.0)

    with pytest.raises(ChangeSourceError, match="X connection lost"):
        await asyncio.wait_for(tracker.run(), timeout=2.0)

    assert sink.messages == ["before"]
    assert sink.close_calls == 1
    assert tracker.state.phase is TrackerPhase.STOPPED


@pytest.mark.asyncio
async def test_start_line_is_printed_to_stderr(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """The start line shows the idle timeout and sink without any logging setup."""
    source = ScriptedSource([])
    sink = RecordingSink()
    await asyncio.wait_for(ClipboardTracker(source, sink, idle=0.02).run(), timeout=2.0)

    captured = capsys.readouterr()
    assert (
        "Starting clipboard tracking. Idle timeout: 0.02s. Sink: recording"
        in captured.err
    )
