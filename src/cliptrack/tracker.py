#!/usr/bin/env python3
"""Clipboard tracking loop.

ClipboardTracker wires a change source to a sink. It initializes the
source, then waits for whichever comes first of a new snapshot, a
shutdown request or the idle deadline. Every snapshot is delivered to the
sink and pushes the idle deadline back, whether or not delivery succeeded.

Every way out of the loop (idle timeout, shutdown request, task
cancellation, source failure) goes through the same draining code, which
stops the subscription and closes the sink exactly once.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import suppress
from typing import TYPE_CHECKING

from cliptrack.errors import ChangeSourceError
from cliptrack.tracker_state import StopReason, TrackerPhase, TrackerState

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from cliptrack.sink import Sink
    from cliptrack.source import ChangeSource

logger = logging.getLogger(__name__)


async def next_snapshot(snapshots: AsyncIterator[bytes]) -> bytes | None:
    """Return the next snapshot, or None once the subscription has ended."""
    try:
        return await snapshots.__anext__()
    except StopAsyncIteration:
        return None


def print_startup_message(idle: float, sink_name: str) -> None:
    """Print the tracking start line to stderr, whatever the log level.

    Args:
        idle: Idle timeout in seconds.
        sink_name: Name of the sink receiving changes.
    """
    print(
        f"Starting clipboard tracking. Idle timeout: {idle}s. Sink: {sink_name}",
        file=sys.stderr,
    )

class ClipboardTracker:
    """Forward clipboard changes to a sink until idle or shut down.

    Args:
        source: The clipboard change source.
        sink: The sink receiving every change. Owned by the tracker.
        idle: Idle timeout in seconds.
    """

    def __init__(self, source: ChangeSource, sink: Sink, idle: float) -> None:
        self._source = source
        self._sink = sink
        self._idle = idle
        self._read_task: asyncio.Task[bytes | None] | None = None
        self.state = TrackerState()

    async def run(self, shutdown_requested: asyncio.Event | None = None) -> StopReason:
        """Track clipboard changes until idle timeout or shutdown.

        Args:
            shutdown_requested: Event that stops the run once set.

        Returns:
            Why the run stopped.

        Raises:
            ChangeSourceError: If the source cannot be initialized or the
                subscription fails.
        """
        if shutdown_requested is None:
            shutdown_requested = asyncio.Event()
        state = self.state

        state.phase = TrackerPhase.STARTING
        try:
            self._source.initialize()
        except BaseException:
            await self._close_sink()
            state.phase = TrackerPhase.STOPPED
            raise

        stop = asyncio.Event()
        snapshots: AsyncIterator[bytes] | None = None
        try:
            snapshots = self._source.subscribe(stop)
            state.phase = TrackerPhase.WATCHING
            print_startup_message(self._idle, self._sink.sink_name)
            state.stop_reason = await self._watch(snapshots, shutdown_requested)
            return state.stop_reason
        finally:
            state.phase = TrackerPhase.DRAINING
            stop.set()
            await self._cancel_read()
            await self._end_subscription(snapshots)
            await self._close_sink()
            state.phase = TrackerPhase.STOPPED
            logger.info(
                "Stopped clipboard tracking: %s (%d delivered, %d failed)",
                state.stop_reason.value if state.stop_reason else "aborted",
                state.delivered,
                state.failed,
            )

    async def _watch(
        self, snapshots: AsyncIterator[bytes], shutdown_requested: asyncio.Event
    ) -> StopReason:
        """Run the watching loop and return why it ended."""
        loop = asyncio.get_running_loop()
        state = self.state
        state.deadline = loop.time() + self._idle
        exhausted = False

        shutdown_task = asyncio.create_task(shutdown_requested.wait())
        try:
            while True:
                waiting: set[asyncio.Task] = {shutdown_task}
                if not exhausted:
                    if self._read_task is None:
                        self._read_task = asyncio.create_task(next_snapshot(snapshots))
                    waiting.add(self._read_task)

                timeout = max(0.0, state.deadline - loop.time())
                done, _ = await asyncio.wait(
                    waiting, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
                )

                if shutdown_task in done:
                    logger.info("Shutdown requested, stopping clipboard tracking.")
                    return StopReason.CANCELLED

                if self._read_task is not None and self._read_task in done:
                    read_task, self._read_task = self._read_task, None
                    snapshot = self._snapshot_result(read_task)
                    if snapshot is None:
                        logger.debug("Change source ended, waiting for idle timeout")
                        exhausted = True
                        continue
                    await self._deliver(snapshot)
                    state.deadline = loop.time() + self._idle
                    continue

                if not done:
                    logger.info("Idle timeout reached, stopping clipboard tracking.")
                    return StopReason.IDLE
        finally:
            shutdown_task.cancel()
            with suppress(asyncio.CancelledError):
                await shutdown_task

    @staticmethod
    def _snapshot_result(read_task: asyncio.Task[bytes | None]) -> bytes | None:
        try:
            return read_task.result()
        except ChangeSourceError:
            raise
        except Exception as e:
            raise ChangeSourceError(f"Clipboard subscription failed: {e}") from e

    async def _deliver(self, snapshot: bytes) -> None:
        """Deliver one snapshot. Failures are logged, never raised."""
        state = self.state
        message = snapshot.decode("utf-8", errors="replace")
        state.in_flight = True
        try:
            await self._sink.deliver(message)
        except Exception as e:
            state.failed += 1
            logger.warning(
                "Error sending clipboard content via %s sink: %s",
                self._sink.sink_name,
                e,
            )
        else:
            state.delivered += 1
            logger.debug("%s: sent clipboard content => %s", self._sink.sink_name, message)
        finally:
            state.in_flight = False

    async def _cancel_read(self) -> None:
        """Cancel a pending snapshot read and wait for it to settle."""
        read_task, self._read_task = self._read_task, None
        if read_task is None:
            return
        read_task.cancel()
        try:
            await read_task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug("Pending clipboard read failed during shutdown: %s", e)

    @staticmethod
    async def _end_subscription(snapshots: AsyncIterator[bytes] | None) -> None:
        """Finalize the subscription iterator if it supports aclose()."""
        aclose = getattr(snapshots, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except Exception as e:
            logger.debug("Error ending clipboard subscription: %s", e)

    async def _close_sink(self) -> None:
        """Close the sink once. Errors are logged, never raised."""
        state = self.state
        if state.sink_closed:
            return
        state.sink_closed = True
        try:
            await self._sink.close()
        except Exception as e:
            logger.error("Error closing %s sink: %s", self._sink.sink_name, e)
