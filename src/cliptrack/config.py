#!/usr/bin/env python3
"""Configuration model for cliptrack.

A Config may be partially specified (any field None). The resolver module
turns it into a fully-defaulted configuration before a sink is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# Idle timeout in seconds used when none (or a non-positive one) is given.
DEFAULT_IDLE: float = 10.0

# Directory under the user's home where the local sink writes by default.
DEFAULT_DOWNLOAD_DIR: str = "Downloads"

# Generated local file names look like resource-2024-05-01-13-45-10.txt.
FILE_NAME_PREFIX: str = "resource-"
FILE_NAME_TIME_FORMAT: str = "%Y-%m-%d-%H-%M-%S"
FILE_NAME_SUFFIX: str = ".txt"


class SinkKind(str, Enum):
    """Known delivery sink kinds."""

    LOCAL = "local"
    TELEGRAM = "telegram"


@dataclass(frozen=True)
class AppConfig:
    """Application settings.

    Attributes:
        sink: Sink kind name, normally one of SinkKind.
        idle: Idle timeout in seconds.
    """

    sink: str | None = None
    idle: float | None = None


@dataclass(frozen=True)
class FileConfig:
    """Local sink settings.

    Attributes:
        path: Target directory, may start with "~".
        name: Target file name inside path.
    """

    path: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class TelegramConfig:
    """Telegram Bot API credentials."""

    token: str | None = None
    chat_id: str | None = None


@dataclass(frozen=True)
class Config:
    """Complete cliptrack configuration tree."""

    app: AppConfig = field(default_factory=AppConfig)
    file: FileConfig = field(default_factory=FileConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
