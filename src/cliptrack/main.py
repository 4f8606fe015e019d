"""CLI handling for cliptrack.

This module provides the command-line interface for cliptrack, handling
argument parsing via click, logging configuration, optional YAML config
files and reporting why a tracking run stopped.

Usage:
    cliptrack [--sink local|telegram] [--idle DURATION] [--config FILE] [--verbose]
"""

import click
import sys

from cliptrack.config import AppConfig, Config, FileConfig, SinkKind, TelegramConfig
from cliptrack.main_logging import configure_logging
from cliptrack.main_options import DURATION


@click.command()
@click.option(
    "--sink",
    type=click.Choice([kind.value for kind in SinkKind]),
    envvar="CLIPTRACK_SINK",
    help="Where clipboard changes are sent (default: local)",
)
@click.option(
    "--idle",
    type=DURATION,
    envvar="CLIPTRACK_IDLE",
    help="Stop after this long without clipboard changes (default: 10s)",
)
@click.option(
    "--file-path",
    envvar="CLIPTRACK_FILE_PATH",
    help="Directory of the local sink file (default: ~/Downloads)",
)
@click.option(
    "--file-name",
    envvar="CLIPTRACK_FILE_NAME",
    help="Name of the local sink file (default: resource-<timestamp>.txt)",
)
@click.option("--token", envvar="TELEGRAM_TOKEN", help="Telegram bot token")
@click.option("--chat-id", envvar="TELEGRAM_CHAT_ID", help="Telegram chat id")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    envvar="CLIPTRACK_CONFIG",
    help="YAML configuration file",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable DEBUG-level logging",
)
def main(
    sink: str | None,
    idle: float | None,
    file_path: str | None,
    file_name: str | None,
    token: str | None,
    chat_id: str | None,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Forward X11 clipboard changes to a file or a Telegram chat."""
    configure_logging(verbose)

    overrides = Config(
        app=AppConfig(sink=sink, idle=idle),
        file=FileConfig(path=file_path, name=file_name),
        telegram=TelegramConfig(token=token, chat_id=chat_id),
    )
    _run(overrides, config_path)


def _run(overrides: Config, config_path: str | None) -> None:
    """Load the config file, run the tracker and report why it stopped.

    Args:
        overrides: Configuration given on the command line.
        config_path: Optional YAML configuration file.
    """
    import asyncio

    from cliptrack.config_loader import load_config_file, merge_config
    from cliptrack.errors import TrackError
    from cliptrack.track import run_track

    try:
        config = overrides
        if config_path:
            config = merge_config(load_config_file(config_path), overrides)
        reason = asyncio.run(run_track(config))
    except TrackError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Stopped: {reason.value}", err=True)
