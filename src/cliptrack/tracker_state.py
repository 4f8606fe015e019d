#!/usr/bin/env python3
"""Tracker run state.

This module provides the phase and stop-reason enums and the TrackerState
dataclass that holds the transient state of one tracking run.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TrackerPhase(Enum):
    """Lifecycle phases of a tracking run."""

    STARTING = "starting"
    WATCHING = "watching"
    DRAINING = "draining"
    STOPPED = "stopped"


class StopReason(Enum):
    """Why a tracking run stopped."""

    IDLE = "idle timeout reached"
    CANCELLED = "shutdown requested"


@dataclass
class TrackerState:
    """State of a single tracking run.

    Attributes:
        phase: Current lifecycle phase.
        deadline: Event loop time at which the idle timer fires, or None
            before watching starts.
        delivered: Number of successful deliveries.
        failed: Number of failed deliveries.
        in_flight: True while a delivery is awaited.
        sink_closed: True once the sink has been closed.
        stop_reason: Why the run stopped, once known.
    """

    phase: TrackerPhase = TrackerPhase.STARTING
    deadline: float | None = None
    delivered: int = 0
    failed: int = 0
    in_flight: bool = False
    sink_closed: bool = False
    stop_reason: StopReason | None = None
