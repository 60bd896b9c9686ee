from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import httpx
import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

import sports_sync.db.models  # noqa: F401
from sports_sync.core.config import Settings
from sports_sync.db import DatabaseConfig, create_db_engine, create_session_factory
from sports_sync.db.base import Base
from sports_sync.db.enums import StepStatusEnum
from sports_sync.db.models.core.player import Player
from sports_sync.ingestion.providers.registry import build_providers
from sports_sync.sync.orchestrator import (
    Pipeline,
    StepResult,
    SyncContext,
    SyncOrchestrator,
    SyncStatusStore,
)
from sports_sync.sync.pipelines import GOLF_EVENT, get_pipeline

NOW = datetime(2025, 4, 11, 15, 0, tzinfo=UTC)


def _make_factory(tmp_path: Path) -> sessionmaker[Session]:
    url = f"sqlite+pysqlite:///{tmp_path / 'sync.db'}"
    engine = create_db_engine(DatabaseConfig(database_url=url))
    Base.metadata.create_all(engine)
    return create_session_factory(engine)


def _orchestrator(factory: sessionmaker[Session]) -> SyncOrchestrator:
    settings = Settings(_env_file=None)
    providers = build_providers(
        settings, transport=httpx.MockTransport(lambda request: httpx.Response(404))
    )
    return SyncOrchestrator(
        factory, providers, SyncStatusStore(factory), settings, clock=lambda: NOW
    )


def _add_player(ctx: SyncContext) -> StepResult:
    ctx.session.add(Player(name="Scottie Scheffler", name_norm="scottie scheffler"))
    return StepResult(created=1, total=1)


def _add_then_fail(ctx: SyncContext) -> StepResult:
    ctx.session.add(Player(name="Rory McIlroy", name_norm="rory mcilroy"))
    ctx.session.flush()
    raise RuntimeError("upstream exploded")


def _count_players(ctx: SyncContext) -> StepResult:
    count = ctx.session.scalar(select(func.count()).select_from(Player))
    return StepResult(total=count, details={"players": count, "season": ctx.param("season")})


PIPELINE = Pipeline(
    "test",
    (
        ("add", _add_player),
        ("boom", _add_then_fail),
        ("count", _count_players),
    ),
)


def test_failed_step_is_rolled_back_and_later_steps_still_run(tmp_path: Path) -> None:
    factory = _make_factory(tmp_path)
    orchestrator = _orchestrator(factory)

    summary = orchestrator.run(PIPELINE, season=2025)
    orchestrator.providers.close()

    assert not summary.ok
    assert summary.failed_steps == ["boom"]
    assert [s.step for s in summary.steps] == ["add", "boom", "count"]

    boom = summary.step("boom")
    assert boom is not None
    assert boom.result.errors == ["RuntimeError: upstream exploded"]

    count = summary.step("count")
    assert count is not None
    assert count.status is StepStatusEnum.SUCCEEDED
    # The failed step's insert never reached the database.
    assert count.result.details == {"players": 1, "season": 2025}


def test_step_status_is_persisted_per_run(tmp_path: Path) -> None:
    factory = _make_factory(tmp_path)
    orchestrator = _orchestrator(factory)
    store = orchestrator.status_store

    summary = orchestrator.run(PIPELINE)
    orchestrator.providers.close()

    rows = store.for_run(summary.run_id)
    assert [(r.step, r.status) for r in rows] == [
        ("add", StepStatusEnum.SUCCEEDED),
        ("boom", StepStatusEnum.FAILED),
        ("count", StepStatusEnum.SUCCEEDED),
    ]
    assert rows[0].created == 1
    assert rows[1].errors == ["RuntimeError: upstream exploded"]
    assert all(r.finished_at is not None for r in rows)

    latest = store.latest("boom")
    assert latest is not None
    assert latest.run_id == summary.run_id


def test_summary_totals_and_dict(tmp_path: Path) -> None:
    factory = _make_factory(tmp_path)
    orchestrator = _orchestrator(factory)

    summary = orchestrator.run(PIPELINE.only(["add", "count"]))
    orchestrator.providers.close()

    assert summary.ok
    data = summary.to_dict()
    assert data["pipeline"] == "test"
    assert data["ok"] is True
    assert data["created"] == 1
    assert data["total"] == 2
    assert [s["status"] for s in data["steps"]] == ["SUCCEEDED", "SUCCEEDED"]


def test_unknown_step_and_pipeline_names_are_rejected() -> None:
    with pytest.raises(ValueError, match="unknown steps"):
        GOLF_EVENT.only(["field", "nope"])
    with pytest.raises(ValueError, match="unknown pipeline"):
        get_pipeline("hockey")

    assert GOLF_EVENT.only(["live", "field"]).step_names == ["field", "live"]


def test_step_results_combine() -> None:
    a = StepResult(created=1, updated=2, total=3, errors=["x"], details={"a": 1})
    b = StepResult(updated=1, skipped=4, total=5, errors=["y"], details={"b": 2})

    combined = a.combine(b)

    assert (combined.created, combined.updated, combined.skipped, combined.total) == (1, 3, 4, 8)
    assert combined.errors == ["x", "y"]
    assert combined.details == {"a": 1, "b": 2}
