#!/usr/bin/env python3
"""Configuration resolution.

This module fills in defaults on a partially-specified Config:
- sink kind defaults to local
- idle timeout defaults to 10 seconds
- local sink path/name default to ~/Downloads and a timestamped file name
- the Telegram sink requires both a token and a chat id

Resolution returns a new Config and never mutates its input. Resolving an
already-resolved configuration returns an equal configuration.
"""

from __future__ import annotations

import os
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from cliptrack.config import (
    DEFAULT_DOWNLOAD_DIR,
    DEFAULT_IDLE,
    FILE_NAME_PREFIX,
    FILE_NAME_SUFFIX,
    FILE_NAME_TIME_FORMAT,
    Config,
    FileConfig,
    SinkKind,
    TelegramConfig,
)
from cliptrack.errors import MissingCredentialsError


def expand_home(path: str) -> str:
    """Expand a leading "~" in path to the user's home directory.

    Only the current user's home is supported: "~" and "~/rest" become
    "<home>" and "<home>/rest". Paths without a leading "~" are returned
    unchanged.

    Args:
        path: Directory path, possibly starting with "~".

    Returns:
        The expanded path.
    """
    if not path.startswith("~"):
        return path
    home = str(Path.home())
    rest = path[1:].lstrip("/" + os.sep)
    if not rest:
        return home
    return os.path.join(home, rest)


def generate_file_name(now: datetime | None = None) -> str:
    """Return a timestamped local sink file name.

    Args:
        now: Timestamp to use; defaults to the current local time.

    Returns:
        A name such as "resource-2024-05-01-13-45-10.txt".
    """
    if now is None:
        now = datetime.now()
    return f"{FILE_NAME_PREFIX}{now.strftime(FILE_NAME_TIME_FORMAT)}{FILE_NAME_SUFFIX}"


def resolve_file_config(cfg: FileConfig) -> FileConfig:
    """Default the local sink path and file name."""
    path = cfg.path
    if not path:
        path = os.path.join(str(Path.home()), DEFAULT_DOWNLOAD_DIR)
    else:
        path = expand_home(path)
    name = cfg.name or generate_file_name()
    return replace(cfg, path=path, name=name)


def validate_telegram_config(cfg: TelegramConfig) -> None:
    """Check that both Telegram credentials are present.

    Raises:
        MissingCredentialsError: If the token or the chat id is empty.
    """
    missing = [
        label
        for label, value in (("token", cfg.token), ("chat id", cfg.chat_id))
        if not value
    ]
    if missing:
        raise MissingCredentialsError(
            f"Telegram sink requires a {' and a '.join(missing)}"
        )


def resolve_config(config: Config) -> Config:
    """Return a fully-defaulted copy of config.

    Args:
        config: A possibly partial configuration.

    Returns:
        The resolved configuration.

    Raises:
        MissingCredentialsError: If the Telegram sink is selected without
            both a token and a chat id.
    """
    app = config.app
    if not app.sink:
        app = replace(app, sink=SinkKind.LOCAL.value)
    if app.idle is None or app.idle <= 0:
        app = replace(app, idle=DEFAULT_IDLE)

    resolved = replace(config, app=app)

    if app.sink == SinkKind.LOCAL:
        resolved = replace(resolved, file=resolve_file_config(config.file))
    elif app.sink == SinkKind.TELEGRAM:
        validate_telegram_config(config.telegram)

    return resolved
