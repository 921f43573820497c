"""Command-line interface for the nebula library.

This is the main entry point that delegates to command modules.
"""

import locale
import logging
from pathlib import Path
from typing import Any

import click

from ..utils.logging_config import configure_third_party_loggers, setup_logging
from .commands import (
    LibraryApp,
    add_command,
    list_command,
    remove_command,
    songs_command,
    sync_command,
)

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Set logging level",
)
@click.option("--log-file", type=click.Path(), help="Log to file")
@click.pass_context
def cli(ctx: Any, log_level: str, log_file: str) -> None:
    """Nebula library.

    Turns local music folders into playlists that survive restarts.
    """
    setup_logging(log_level=log_level, log_file=Path(log_file) if log_file else None)
    configure_third_party_loggers()

    try:
        # Song titles are ordered with the user's collation rules
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning("Cannot apply the system collation locale: %s", e)

    app = LibraryApp()
    ctx.call_on_close(app.close)
    ctx.obj = app


cli.add_command(add_command)
cli.add_command(list_command)
cli.add_command(songs_command)
cli.add_command(sync_command)
cli.add_command(remove_command)


if __name__ == "__main__":
    cli()
