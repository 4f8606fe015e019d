#!/usr/bin/env python3
"""Sink construction from a resolved configuration.

Factories are looked up by sink kind in an explicit table. The default
table knows the local and Telegram sinks; callers (and tests) may pass
their own table instead.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType

from cliptrack.config import Config, SinkKind
from cliptrack.errors import UnknownSinkKindError
from cliptrack.local_sink import LocalSink
from cliptrack.resolver import resolve_file_config, validate_telegram_config
from cliptrack.sink import Sink
from cliptrack.telegram_sink import TelegramSink

logger = logging.getLogger(__name__)

SinkFactory = Callable[[Config], Sink]


def make_local_sink(config: Config) -> Sink:
    """Build a LocalSink. Never fails; file errors surface on delivery."""
    file_config = resolve_file_config(config.file)
    return LocalSink(file_config.path or "", file_config.name or "")


def make_telegram_sink(config: Config) -> Sink:
    """Build a TelegramSink.

    Raises:
        MissingCredentialsError: If the token or the chat id is missing.
    """
    validate_telegram_config(config.telegram)
    return TelegramSink(config.telegram.token or "", config.telegram.chat_id or "")


DEFAULT_SINK_FACTORIES: Mapping[str, SinkFactory] = MappingProxyType(
    {
        SinkKind.LOCAL.value: make_local_sink,
        SinkKind.TELEGRAM.value: make_telegram_sink,
    }
)


def create_sink(
    config: Config,
    factories: Mapping[str, SinkFactory] = DEFAULT_SINK_FACTORIES,
) -> Sink:
    """Construct the sink selected by config.app.sink.

    Args:
        config: A resolved configuration.
        factories: Table mapping sink kind names to factories.

    Returns:
        The constructed sink.

    Raises:
        UnknownSinkKindError: If no factory is registered for the kind.
        MissingCredentialsError: If the Telegram sink lacks credentials.
    """
    kind = config.app.sink or ""
    factory = factories.get(kind)
    if factory is None:
        known = ", ".join(sorted(factories))
        raise UnknownSinkKindError(f"Unknown sink kind {kind!r} (known: {known})")
    sink = factory(config)
    logger.debug("Created %s sink", sink.sink_name)
    return sink
