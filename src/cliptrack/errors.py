#!/usr/bin/env python3
"""
Exception hierarchy for cliptrack.

Startup errors (configuration, sink construction, clipboard initialization)
abort a run before the tracker starts watching. DeliveryError is transient:
the tracker logs it and keeps going.
"""


class TrackError(Exception):
    """Base class for all cliptrack errors."""


class ConfigFileError(TrackError):
    """Raised when a YAML configuration file cannot be read or is malformed."""


class MissingCredentialsError(TrackError):
    """Raised when the Telegram sink is selected without a token or chat id."""


class UnknownSinkKindError(TrackError):
    """Raised when no factory is registered for the configured sink kind."""


class ChangeSourceError(TrackError):
    """Raised when the clipboard change source cannot be initialized."""


class DeliveryError(TrackError):
    """Raised when a single message could not be delivered to a sink."""


class SinkClosedError(TrackError):
    """Raised when deliver() is called on a sink that was already closed."""
