from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

import sports_sync.db.models  # noqa: F401
from sports_sync.db import DatabaseConfig, create_db_engine
from sports_sync.db.base import Base
from sports_sync.db.models.core.player import Player
from sports_sync.sync.upsert import CanonicalUpsertEngine

NOW = datetime(2025, 4, 10, 12, 0, tzinfo=UTC)


def _make_session() -> Session:
    engine = create_db_engine(DatabaseConfig(database_url="sqlite+pysqlite:///:memory:"))
    Base.metadata.create_all(engine)
    return Session(engine)


def _engine(session: Session, **kwargs) -> CanonicalUpsertEngine:
    return CanonicalUpsertEngine(session, clock=lambda: NOW, **kwargs)


def _row(dg_id: str, name: str, **extra) -> dict:
    return {"datagolf_id": dg_id, "name": name, "name_norm": Player.norm(name), **extra}


def _count(session: Session) -> int:
    return session.execute(select(func.count()).select_from(Player)).scalar_one()


def test_upsert_is_idempotent() -> None:
    session = _make_session()
    upserts = _engine(session)
    rows = [
        _row("1", "Scottie Scheffler"),
        _row("2", "Rory McIlroy"),
        _row("3", "Xander Schauffele"),
    ]

    first = upserts.upsert(Player, rows, key=("datagolf_id",), source="datagolf")
    second = upserts.upsert(Player, rows, key=("datagolf_id",), source="datagolf")

    assert (first.created, first.updated, first.skipped) == (3, 0, 0)
    assert (second.created, second.updated, second.skipped) == (0, 3, 0)
    assert _count(session) == 3

    scheffler = session.execute(select(Player).where(Player.datagolf_id == "1")).scalar_one()
    assert scheffler.source_provider == "datagolf"
    assert scheffler.source_ingested_at is not None


def test_existing_values_are_overwritten_except_fill_only_columns() -> None:
    session = _make_session()
    upserts = _engine(session)
    upserts.upsert(
        Player,
        [_row("1", "Scottie Scheffler", draftkings_id="dk-1", country="USA")],
        key=("datagolf_id",),
    )

    upserts.upsert(
        Player,
        [
            _row("1", "Scottie Scheffler", draftkings_id="dk-9", country="United States"),
            _row("2", "Rory McIlroy", draftkings_id="dk-2"),
        ],
        key=("datagolf_id",),
        fill_only=("draftkings_id",),
    )

    players = {p.datagolf_id: p for p in session.execute(select(Player)).scalars()}
    assert players["1"].draftkings_id == "dk-1"
    assert players["1"].country == "United States"
    assert players["2"].draftkings_id == "dk-2"


def test_duplicate_keys_in_one_batch_collapse_to_the_last_row() -> None:
    session = _make_session()
    result = _engine(session).upsert(
        Player,
        [_row("1", "Scheffler"), _row("1", "Scottie Scheffler")],
        key=("datagolf_id",),
    )

    assert result.created == 1
    assert session.execute(select(Player.name)).scalar_one() == "Scottie Scheffler"


def test_rows_without_a_key_are_skipped() -> None:
    session = _make_session()
    result = _engine(session).upsert(
        Player,
        [_row("1", "Scottie Scheffler"), _row(None, "Nobody")],  # type: ignore[arg-type]
        key=("datagolf_id",),
    )

    assert (result.created, result.skipped) == (1, 1)
    assert len(result.errors) == 1


def test_one_bad_row_does_not_sink_the_batch() -> None:
    session = _make_session()
    rows = [_row(str(i), f"Player {i}") for i in range(500)]
    rows[250] = {"datagolf_id": "250", "name": None, "name_norm": "player"}

    result = _engine(session, max_chunk_rows=100).upsert(Player, rows, key=("datagolf_id",))

    assert result.created == 499
    assert result.skipped == 1
    assert len(result.errors) == 1
    assert "250" in result.errors[0]
    assert _count(session) == 499


def test_update_rows_counts_unknown_ids_as_skipped() -> None:
    session = _make_session()
    upserts = _engine(session)
    upserts.upsert(Player, [_row("1", "Scottie Scheffler")], key=("datagolf_id",))
    player_id = session.execute(select(Player.id)).scalar_one()

    result = upserts.update_rows(
        Player,
        [{"id": player_id, "owgr_rank": 1, "owgr_points": 18.2}, {"id": 9999, "owgr_rank": 2}],
        source="owgr",
    )

    assert (result.updated, result.skipped) == (1, 1)
    player = session.get(Player, player_id)
    assert player is not None
    assert player.owgr_rank == 1
    assert player.owgr_points == pytest.approx(18.2)
    assert player.source_provider == "owgr"


def test_unknown_columns_are_rejected() -> None:
    session = _make_session()
    with pytest.raises(ValueError, match="unknown columns"):
        _engine(session).upsert(
            Player, [_row("1", "Scottie Scheffler", nickname="Scottie")], key=("datagolf_id",)
        )


def test_chunk_size_respects_parameter_ceiling() -> None:
    upserts = _engine(_make_session(), max_chunk_rows=500, max_params=1000)
    assert upserts.chunk_size(10) == 100
    assert upserts.chunk_size(1) == 500
    assert upserts.chunk_size(5000) == 1
