from __future__ import annotations

import json

import typer

from sports_sync.cli.common import session_factory
from sports_sync.core.config import settings
from sports_sync.ingestion.providers.registry import build_providers
from sports_sync.sync.orchestrator import SyncOrchestrator, SyncStatusStore
from sports_sync.sync.pipelines import PIPELINES, get_pipeline

app = typer.Typer(help="Run sync pipelines against the configured providers.")


def _split_csv(value: str | None) -> list[str] | None:
    if value is None:
        return None
    parts = [p.strip() for p in value.split(",")]
    return [p for p in parts if p]


@app.command("list")
def list_cmd() -> None:
    """Show every pipeline and its steps in run order."""

    for pipeline in PIPELINES.values():
        typer.echo(f"{pipeline.name}: {' -> '.join(pipeline.step_names)}")


@app.command("run")
def run_cmd(
    pipeline_name: str = typer.Argument(..., help=f"One of: {', '.join(PIPELINES)}."),
    steps_csv: str | None = typer.Option(
        None, "--steps", help="Comma-separated subset of steps to run (e.g. field,live)."
    ),
    event_id: int | None = typer.Option(
        None, "--event-id", help="Canonical event id to anchor event-scoped steps."
    ),
    season: int | None = typer.Option(None, "--season", help="NFL season (e.g. 2025)."),
    week: int | None = typer.Option(None, "--week", help="NFL week for weekly stats."),
    year: int | None = typer.Option(None, "--year", help="Calendar/stat year for golf steps."),
    tour: str | None = typer.Option(None, "--tour", help="DataGolf tour code (default pga)."),
    limit: int | None = typer.Option(
        None, "--limit", help="Completed events to backfill from ESPN (default 5)."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the run summary as JSON."),
) -> None:
    """Run a pipeline; failed steps are reported and the exit code is 1."""

    try:
        pipeline = get_pipeline(pipeline_name)
        steps = _split_csv(steps_csv)
        if steps:
            pipeline = pipeline.only(steps)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    params = {
        k: v
        for k, v in {
            "event_id": event_id,
            "season": season,
            "week": week,
            "year": year,
            "tour": tour,
            "limit": limit,
        }.items()
        if v is not None
    }

    SessionLocal = session_factory()
    providers = build_providers(settings)
    try:
        orchestrator = SyncOrchestrator(
            SessionLocal, providers, SyncStatusStore(SessionLocal), settings
        )
        summary = orchestrator.run(pipeline, **params)
    finally:
        providers.close()

    if as_json:
        typer.echo(json.dumps(summary.to_dict(), indent=2, default=str))
    else:
        for outcome in summary.steps:
            r = outcome.result
            typer.echo(
                " ".join(
                    [
                        f"{outcome.step}:",
                        f"status={outcome.status.value}",
                        f"created={r.created}",
                        f"updated={r.updated}",
                        f"skipped={r.skipped}",
                        f"total={r.total}",
                    ]
                )
            )
            for error in r.errors[:5]:
                typer.echo(f"  error: {error}")

    if not summary.ok:
        raise typer.Exit(code=1)


@app.command("status")
def status_cmd(
    step: str = typer.Argument(..., help="Step name (e.g. live, nfl_schedule)."),
) -> None:
    """Show the most recent recorded run of a step."""

    row = SyncStatusStore(session_factory()).latest(step)
    if row is None:
        typer.echo(f"{step}: never run")
        raise typer.Exit(code=1)

    typer.echo(
        " ".join(
            [
                f"{row.pipeline}/{row.step}:",
                f"status={row.status.value}",
                f"started_at={row.started_at.isoformat()}",
                f"finished_at={row.finished_at.isoformat() if row.finished_at else '-'}",
                f"created={row.created}",
                f"updated={row.updated}",
                f"skipped={row.skipped}",
            ]
        )
    )
