from __future__ import annotations

import logging

import typer

from sports_sync.cli.staging import app as staging_app
from sports_sync.cli.sync import app as sync_app
from sports_sync.core.config import settings

app = typer.Typer(no_args_is_help=True)
app.add_typer(sync_app, name="sync")
app.add_typer(staging_app, name="staging")


@app.callback()
def main(
    log_level: str = typer.Option(
        settings.log_level, "--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)."
    ),
) -> None:
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
