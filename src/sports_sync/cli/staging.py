from __future__ import annotations

import typer

from sports_sync.cli.common import session_scope
from sports_sync.core.config import settings
from sports_sync.sync.staging import RawStagingStore

app = typer.Typer(help="Maintain the raw provider payload archive.")


@app.command("cleanup")
def cleanup_cmd(
    retention_days: int = typer.Option(
        settings.raw_retention_days,
        "--retention-days",
        help="Delete payloads ingested more than this many days ago.",
    ),
) -> None:
    """Delete staged payloads older than the retention window."""

    with session_scope() as session:
        deleted = RawStagingStore(session).cleanup(retention_days)

    typer.echo(f"Staging cleanup: deleted={deleted} retention_days={retention_days}")
