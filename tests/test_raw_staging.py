from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

import sports_sync.db.models  # noqa: F401
from sports_sync.db import DatabaseConfig, create_db_engine
from sports_sync.db.base import Base
from sports_sync.db.models.core.player import Player
from sports_sync.db.models.ingestion.raw_payload import RawPayload
from sports_sync.sync.staging import RawStagingStore, record_count

NOW = datetime(2025, 4, 10, 12, 0, tzinfo=UTC)


def _make_session() -> Session:
    engine = create_db_engine(DatabaseConfig(database_url="sqlite+pysqlite:///:memory:"))
    Base.metadata.create_all(engine)
    return Session(engine)


def test_stage_records_payload_and_count() -> None:
    session = _make_session()
    store = RawStagingStore(session, clock=lambda: NOW)

    record_id = store.stage(
        "datagolf",
        "field",
        "14",
        {"event_name": "Masters", "field": [{"dg_id": 1}, {"dg_id": 2}], "date": date(2025, 4, 10)},
    )

    assert record_id is not None
    row = session.get(RawPayload, record_id)
    assert row is not None
    assert (row.provider, row.data_type, row.event_ref) == ("datagolf", "field", "14")
    assert row.record_count == 2
    assert row.payload["date"] == "2025-04-10"
    assert row.processed_at is None

    store.mark_processed(record_id)
    session.expire_all()
    assert session.get(RawPayload, record_id).processed_at is not None


def test_record_count_shapes() -> None:
    assert record_count([1, 2, 3]) == 3
    assert record_count({"rankings": [1]}) == 1
    assert record_count({"unexpected": [1]}) is None
    assert record_count("csv text") is None


def test_disabled_store_and_empty_payload_write_nothing() -> None:
    session = _make_session()
    assert RawStagingStore(session, enabled=False).stage("espn", "calendar", None, [1]) is None
    assert RawStagingStore(session).stage("espn", "calendar", None, None) is None
    assert session.execute(select(func.count()).select_from(RawPayload)).scalar_one() == 0


def test_staging_failure_leaves_the_callers_transaction_intact() -> None:
    session = _make_session()
    session.add(Player(name="Viktor Hovland", name_norm="viktor hovland"))
    session.flush()

    circular: list = []
    circular.append(circular)
    assert RawStagingStore(session).stage("owgr", "rankings", None, circular) is None

    session.commit()
    assert session.execute(select(func.count()).select_from(Player)).scalar_one() == 1


def test_cleanup_removes_only_expired_payloads() -> None:
    session = _make_session()
    RawStagingStore(session, clock=lambda: NOW - timedelta(days=120)).stage(
        "espn", "scorecard", "401", {"competitors": []}
    )
    RawStagingStore(session, clock=lambda: NOW - timedelta(days=10)).stage(
        "espn", "scorecard", "402", {"competitors": []}
    )

    deleted = RawStagingStore(session, clock=lambda: NOW).cleanup(retention_days=90)

    assert deleted == 1
    refs = session.execute(select(RawPayload.event_ref)).scalars().all()
    assert refs == ["402"]
