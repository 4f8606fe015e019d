#!/usr/bin/env python3
"""
Configuration loading from YAML files and override merging.

A configuration file looks like:

    app:
      sink: telegram
      idle: 30s
    file:
      path: ~/clips
      name: clipboard.txt
    telegram:
      token: "123:abc"
      chat_id: "42"

Every key is optional. Values given on the command line (or through the
matching environment variables) override values from the file.
"""

from __future__ import annotations

import re
from dataclasses import fields, replace
from pathlib import Path
from typing import Any

import yaml

from cliptrack.config import AppConfig, Config, FileConfig, TelegramConfig
from cliptrack.errors import ConfigFileError

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")

_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: str | float | int) -> float:
    """
    Parse a duration into seconds.

    Accepts plain numbers (seconds) and strings made of number/unit pairs
    with units ms, s, m and h, such as "500ms", "10s" or "1m30s".

    Args:
        value: Duration to parse.

    Returns:
        The duration in seconds.

    Raises:
        ValueError: If the value is not a valid duration.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise ValueError(f"Invalid duration: {value!r}")
    return total


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigFileError(f"Section {name!r} must be a mapping")
    return section


def _text(section: dict[str, Any], key: str) -> str | None:
    value = section.get(key)
    if value is None:
        return None
    return str(value)


def config_from_mapping(data: dict[str, Any]) -> Config:
    """
    Build a Config from a parsed YAML mapping.

    Args:
        data: Mapping with optional app, file and telegram sections.

    Returns:
        The (unresolved) configuration.

    Raises:
        ConfigFileError: If a section is not a mapping or the idle value is
            not a valid duration.
    """
    app = _section(data, "app")
    file = _section(data, "file")
    telegram = _section(data, "telegram")

    idle = app.get("idle")
    if idle is not None:
        try:
            idle = parse_duration(idle)
        except (TypeError, ValueError) as e:
            raise ConfigFileError(str(e)) from e

    return Config(
        app=AppConfig(sink=_text(app, "sink"), idle=idle),
        file=FileConfig(path=_text(file, "path"), name=_text(file, "name")),
        telegram=TelegramConfig(
            token=_text(telegram, "token"), chat_id=_text(telegram, "chat_id")
        ),
    )


def load_config_file(path: str | Path) -> Config:
    """
    Load a Config from a YAML file.

    Args:
        path: Path of the YAML file.

    Returns:
        The (unresolved) configuration. An empty file yields an empty Config.

    Raises:
        ConfigFileError: If the file cannot be read or is malformed.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError(f"Cannot read config file {path}: {e}") from e

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigFileError(f"Config file {path} must contain a mapping")
    return config_from_mapping(data)


def _override(base: Any, overrides: Any) -> Any:
    changes = {
        f.name: getattr(overrides, f.name)
        for f in fields(overrides)
        if getattr(overrides, f.name) is not None
    }
    return replace(base, **changes)


def merge_config(base: Config, overrides: Config) -> Config:
    """
    Return base with every non-None field of overrides applied on top.
    """
    return Config(
        app=_override(base.app, overrides.app),
        file=_override(base.file, overrides.file),
        telegram=_override(base.telegram, overrides.telegram),
    )
