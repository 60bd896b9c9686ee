from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import httpx
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

import sports_sync.db.models  # noqa: F401
from sports_sync.core.config import Settings
from sports_sync.core.text import normalize_event_name
from sports_sync.db import DatabaseConfig, create_db_engine, create_session_factory
from sports_sync.db.base import Base
from sports_sync.db.enums import DfsPlatformEnum, EventStatusEnum, SportEnum, StepStatusEnum
from sports_sync.db.models.core.event import Event
from sports_sync.db.models.core.fantasy_projection import FantasyProjection
from sports_sync.db.models.core.performance import Performance
from sports_sync.db.models.core.player import Player
from sports_sync.db.models.core.venue import Venue
from sports_sync.ingestion.providers.registry import build_providers
from sports_sync.sync.orchestrator import SyncOrchestrator, SyncStatusStore
from sports_sync.sync.pipelines import GOLF_EVENT

# Friday of Masters week; the Tuesday after is past end + late-finish buffer.
FRIDAY = datetime(2025, 4, 11, 15, 0, tzinfo=UTC)
TUESDAY = datetime(2025, 4, 15, 12, 0, tzinfo=UTC)

SCHEDULE = {
    "tour": "pga",
    "schedule": [
        {
            "event_id": 14,
            "event_name": "Masters Tournament",
            "course": "Augusta National Golf Club",
            "location": "Augusta, GA",
            "date": "2025-04-10",
        },
        {
            "event_id": 12,
            "event_name": "RBC Heritage",
            "course": "Harbour Town Golf Links",
            "location": "Hilton Head Island, SC",
            "date": "2025-04-17",
        },
    ],
}

FIELD = {
    "event_name": "Masters Tournament",
    "field": [
        {"dg_id": 18417, "player_name": "Scheffler, Scottie", "dk_salary": 11000},
        {"dg_id": 10091, "player_name": "McIlroy, Rory"},
    ],
}

PREDICTIONS = {
    "event_name": "Masters Tournament",
    "baseline": [
        {
            "dg_id": 18417,
            "player_name": "Scheffler, Scottie",
            "win": 0.21,
            "top_5": 0.52,
            "top_10": 0.68,
            "make_cut": 0.95,
        },
        {"dg_id": 10091, "player_name": "McIlroy, Rory", "win": 0.09, "make_cut": 0.9},
    ],
}

PROJECTIONS = {
    "event_name": "Masters Tournament",
    "projections": [
        {
            "dg_id": 18417,
            "player_name": "Scheffler, Scottie",
            "salary": 11000,
            "proj_points": 98.5,
            "proj_ownership": 31.2,
        }
    ],
}

LIVE = {
    "info": {"event_name": "Masters Tournament", "current_round": 2},
    "data": [
        {"dg_id": 18417, "player_name": "Scheffler, Scottie", "current_pos": "1",
         "total": "-6", "thru": 9, "current_round": 2, "r1": 68},
        {"dg_id": 10091, "player_name": "McIlroy, Rory", "current_pos": "T2",
         "total": "-5", "thru": 11, "current_round": 2, "r1": 72},
    ],
}

FINAL_STATS = {
    "event_name": "Masters Tournament",
    "live_stats": [
        {"dg_id": 18417, "player_name": "Scheffler, Scottie", "fin_pos": "1",
         "earnings": 4200000, "sg_total": 3.12},
        {"dg_id": 10091, "player_name": "McIlroy, Rory", "fin_pos": "T2",
         "earnings": 1800000, "sg_total": 2.4},
    ],
}

PLAYER_LIST = [
    {"dg_id": 18417, "player_name": "Scheffler, Scottie", "country": "United States",
     "country_code": "USA", "amateur": 0, "dk_id": "123"},
    {"dg_id": 10091, "player_name": "McIlroy, Rory", "country": "Northern Ireland",
     "country_code": "NIR", "amateur": 0},
]

RANKINGS = {
    "rankings": [
        {"dg_id": 18417, "player_name": "Scheffler, Scottie", "datagolf_rank": 1,
         "dg_skill_estimate": 3.2},
        {"dg_id": 10091, "player_name": "McIlroy, Rory", "datagolf_rank": 2,
         "dg_skill_estimate": 2.6},
    ]
}

SKILL_RATINGS = {
    "players": [
        {"dg_id": 18417, "player_name": "Scheffler, Scottie", "sg_total": 2.9, "sg_putt": 0.4}
    ]
}

ROUTES: dict[str, Any] = {
    "/get-player-list": PLAYER_LIST,
    "/preds/get-dg-rankings": RANKINGS,
    "/preds/skill-ratings": SKILL_RATINGS,
    "/get-schedule": SCHEDULE,
    "/field-updates": FIELD,
    "/preds/pre-tournament": PREDICTIONS,
    "/preds/fantasy-projection-defaults": PROJECTIONS,
    "/preds/in-play": LIVE,
    "/preds/live-tournament-stats": FINAL_STATS,
}

EVENT_SCOPED = (
    "/field-updates",
    "/preds/pre-tournament",
    "/preds/fantasy-projection-defaults",
    "/preds/in-play",
    "/preds/live-tournament-stats",
)


def _datagolf(
    routes: dict[str, Any], seen: list[httpx.Request]
) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.host == "feeds.datagolf.com" and request.url.path in routes:
            return httpx.Response(200, json=routes[request.url.path])
        return httpx.Response(404)

    return handler


def _make_factory(tmp_path: Path) -> sessionmaker[Session]:
    url = f"sqlite+pysqlite:///{tmp_path / 'golf.db'}"
    engine = create_db_engine(DatabaseConfig(database_url=url))
    Base.metadata.create_all(engine)
    return create_session_factory(engine)


def _orchestrator(
    factory: sessionmaker[Session],
    *,
    routes: dict[str, Any] | None = None,
    seen: list[httpx.Request] | None = None,
    now: datetime = FRIDAY,
) -> SyncOrchestrator:
    settings = Settings(_env_file=None, datagolf_api_key="test", datagolf_min_interval_s=0.0)
    handler = _datagolf(ROUTES if routes is None else routes, [] if seen is None else seen)
    providers = build_providers(settings, transport=httpx.MockTransport(handler))
    return SyncOrchestrator(
        factory, providers, SyncStatusStore(factory), settings, clock=lambda: now
    )


def _count(session: Session, model: type[Base]) -> int:
    return session.scalar(select(func.count()).select_from(model)) or 0


def _by_datagolf_id(session: Session, model: type[Base], dg_id: str) -> Any:
    return session.scalars(select(model).where(model.datagolf_id == dg_id)).one()


def _performance(session: Session, dg_player_id: str) -> Performance:
    return session.scalars(
        select(Performance)
        .join(Player, Performance.player_id == Player.id)
        .where(Player.datagolf_id == dg_player_id)
    ).one()


def test_event_feeds_are_requested_for_the_anchor_event(tmp_path: Path) -> None:
    factory = _make_factory(tmp_path)
    seen: list[httpx.Request] = []
    orchestrator = _orchestrator(factory, seen=seen)

    summary = orchestrator.run(
        GOLF_EVENT.only(["schedule", "field", "predictions", "projections", "live"])
    )
    orchestrator.providers.close()
    assert summary.ok, summary.to_dict()

    scoped = [r for r in seen if r.url.path in EVENT_SCOPED]
    assert sorted({r.url.path for r in scoped}) == sorted(EVENT_SCOPED[:4])
    assert {r.url.params.get("tour_event") for r in scoped} == {"14"}
    assert all(r.url.params.get("key") == "test" for r in seen)

    projection_sites = [
        r.url.params.get("site")
        for r in scoped
        if r.url.path == "/preds/fantasy-projection-defaults"
    ]
    assert sorted(projection_sites) == ["draftkings", "fanduel"]


def test_feed_for_another_event_fails_the_step(tmp_path: Path) -> None:
    factory = _make_factory(tmp_path)
    routes = {
        **ROUTES,
        "/field-updates": {**FIELD, "event_name": "RBC Heritage"},
        "/preds/in-play": {**LIVE, "info": {"event_id": 12, "event_name": "RBC Heritage"}},
    }
    orchestrator = _orchestrator(factory, routes=routes)

    summary = orchestrator.run(GOLF_EVENT.only(["schedule", "field", "live"]))
    orchestrator.providers.close()

    assert summary.failed_steps == ["field", "live"]
    assert summary.step("field").result.errors[0].startswith("FeedEventMismatchError")
    assert "datagolf event 12" in summary.step("live").result.errors[0]
    with factory() as session:
        assert _count(session, Performance) == 0
        assert _count(session, Player) == 0


def test_event_without_datagolf_id_is_not_fetched(tmp_path: Path) -> None:
    factory = _make_factory(tmp_path)
    with factory() as session:
        session.add(
            Event(
                sport=SportEnum.GOLF,
                name="Masters Tournament",
                name_norm=normalize_event_name("Masters Tournament"),
                start_time=datetime(2025, 4, 10, tzinfo=UTC),
                end_time=datetime(2025, 4, 13, tzinfo=UTC),
                status=EventStatusEnum.IN_PROGRESS,
            )
        )
        session.commit()

    seen: list[httpx.Request] = []
    orchestrator = _orchestrator(factory, seen=seen)
    summary = orchestrator.run(GOLF_EVENT.only(["field", "predictions", "live"]))
    orchestrator.providers.close()

    assert summary.failed_steps == ["field", "predictions", "live"]
    assert all(
        s.result.errors[0].startswith("EventNotLinkedError") for s in summary.steps
    )
    assert seen == []


def test_scheduled_finalize_scores_the_event_that_just_completed(tmp_path: Path) -> None:
    factory = _make_factory(tmp_path)
    during = _orchestrator(factory)
    summary = during.run(GOLF_EVENT.only(["schedule", "field", "live"]))
    during.providers.close()
    assert summary.ok, summary.to_dict()

    # The next scheduled run: schedule flips the Masters to COMPLETED before finalize.
    seen: list[httpx.Request] = []
    after = _orchestrator(factory, seen=seen, now=TUESDAY)
    first = after.run(GOLF_EVENT.only(["schedule", "finalize"]))
    second = after.run(GOLF_EVENT.only(["schedule", "finalize"]))

    assert first.ok, first.to_dict()
    assert second.ok, second.to_dict()

    with factory() as session:
        masters = _by_datagolf_id(session, Event, "14")
        heritage = _by_datagolf_id(session, Event, "12")
        masters_id, heritage_id = masters.id, heritage.id
        assert masters.status == EventStatusEnum.COMPLETED

    finalize = first.step("finalize").result
    assert finalize.details["event_id"] == masters_id
    assert finalize.details["fantasy_points"] == 2
    assert finalize.updated == 2

    final_requests = [r for r in seen if r.url.path == "/preds/live-tournament-stats"]
    assert [r.url.params.get("tour_event") for r in final_requests] == ["14"]

    # Nothing left to score: the follow-up run anchors on the upcoming event and stops.
    again = second.step("finalize").result
    assert again.details == {"event_id": heritage_id, "status": "UPCOMING"}

    explicit = after.run(GOLF_EVENT.only(["finalize"]), event_id=masters_id)
    after.providers.close()
    assert explicit.ok, explicit.to_dict()
    assert explicit.step("finalize").result.created == 0

    with factory() as session:
        leader = _performance(session, "18417")
        runner_up = _performance(session, "10091")
        assert (leader.position, leader.earnings, leader.sg_total) == (1, 4200000.0, 3.12)
        # 30 for the win plus 0.5 per stroke under 70 in R1 (68).
        assert leader.fantasy_points == 31.0
        assert (runner_up.position, runner_up.position_tied) == (2, True)
        assert runner_up.fantasy_points == 20.0

        scheffler = _by_datagolf_id(session, Player, "18417")
        mcilroy = _by_datagolf_id(session, Player, "10091")
        # Two finalizes of the same event still count it once.
        assert (scheffler.events, scheffler.cuts_made, scheffler.wins) == (1, 1, 1)
        assert (scheffler.top5s, scheffler.top10s, scheffler.top25s) == (1, 1, 1)
        assert scheffler.earnings == 4200000.0
        assert (mcilroy.events, mcilroy.wins, mcilroy.top5s) == (1, 0, 1)
        assert mcilroy.earnings == 1800000.0
        assert _count(session, Performance) == 2


def test_finalize_picks_up_a_completed_event_with_no_results_yet(tmp_path: Path) -> None:
    factory = _make_factory(tmp_path)
    seen: list[httpx.Request] = []
    orchestrator = _orchestrator(factory, seen=seen, now=TUESDAY)

    summary = orchestrator.run(GOLF_EVENT.only(["schedule", "finalize"]))
    orchestrator.providers.close()
    assert summary.ok, summary.to_dict()

    with factory() as session:
        masters = _by_datagolf_id(session, Event, "14")
        assert masters.status == EventStatusEnum.COMPLETED
        masters_id = masters.id

    finalize = summary.step("finalize").result
    assert finalize.details["event_id"] == masters_id
    assert finalize.created == 2
    final_requests = [r for r in seen if r.url.path == "/preds/live-tournament-stats"]
    assert [r.url.params.get("tour_event") for r in final_requests] == ["14"]

    with factory() as session:
        assert _performance(session, "18417").fantasy_points == 30.0
        assert _performance(session, "10091").fantasy_points == 20.0


def test_predictions_and_projections_are_stable_across_runs(tmp_path: Path) -> None:
    factory = _make_factory(tmp_path)
    orchestrator = _orchestrator(factory)
    pipeline = GOLF_EVENT.only(["schedule", "field", "predictions", "projections"])

    first = orchestrator.run(pipeline)
    second = orchestrator.run(pipeline)
    orchestrator.providers.close()
    assert first.ok, first.to_dict()
    assert second.ok, second.to_dict()

    # Predictions land on the rows the field created; FanDuel is the only new projection.
    assert first.step("predictions").result.created == 0
    assert first.step("projections").result.created == 1
    assert second.step("predictions").result.created == 0
    assert second.step("projections").result.created == 0

    with factory() as session:
        assert _count(session, Performance) == 2
        assert _count(session, FantasyProjection) == 2

        leader = _performance(session, "18417")
        assert (leader.win_probability, leader.top5_probability) == (0.21, 0.52)
        assert leader.make_cut_probability == 0.95
        assert _performance(session, "10091").top5_probability is None

        projections = {
            p.platform: p
            for p in session.scalars(
                select(FantasyProjection).where(FantasyProjection.player_id == leader.player_id)
            )
        }
        assert set(projections) == {DfsPlatformEnum.DRAFTKINGS, DfsPlatformEnum.FANDUEL}
        for projection in projections.values():
            assert projection.salary == 11000
            assert projection.projected_points == 98.5
            assert projection.projected_ownership == 31.2


def test_player_sync_is_stable_across_runs(tmp_path: Path) -> None:
    factory = _make_factory(tmp_path)
    orchestrator = _orchestrator(factory)
    pipeline = GOLF_EVENT.only(["players"])

    first = orchestrator.run(pipeline)
    second = orchestrator.run(pipeline)
    orchestrator.providers.close()
    assert first.ok, first.to_dict()
    assert second.ok, second.to_dict()

    assert first.step("players").result.created == 2
    assert second.step("players").result.created == 0
    for summary in (first, second):
        details = summary.step("players").result.details
        assert (details["ranked"], details["skill_rated"]) == (2, 1)

    with factory() as session:
        assert _count(session, Player) == 2
        scheffler = _by_datagolf_id(session, Player, "18417")
        assert scheffler.name == "Scottie Scheffler"
        assert (scheffler.first_name, scheffler.last_name) == ("Scottie", "Scheffler")
        assert scheffler.country_code == "USA"
        assert scheffler.draftkings_id == "123"
        assert (scheffler.datagolf_rank, scheffler.datagolf_skill) == (1, 3.2)
        assert (scheffler.sg_total, scheffler.sg_putting) == (2.9, 0.4)

        mcilroy = _by_datagolf_id(session, Player, "10091")
        assert mcilroy.datagolf_rank == 2
        assert mcilroy.sg_total is None


def test_venue_links_are_made_once(tmp_path: Path) -> None:
    factory = _make_factory(tmp_path)
    with factory() as session:
        augusta = Venue(
            name="Augusta National Golf Club",
            name_norm=Venue.norm("Augusta National Golf Club"),
        )
        session.add(augusta)
        for name, course, day in (
            ("Masters Tournament", "Augusta National", 10),
            ("Zurich Classic of New Orleans", "TPC Louisiana", 24),
        ):
            session.add(
                Event(
                    sport=SportEnum.GOLF,
                    name=name,
                    name_norm=Event.norm(name),
                    course_name=course,
                    start_time=datetime(2025, 4, day, tzinfo=UTC),
                    end_time=datetime(2025, 4, day + 3, tzinfo=UTC),
                )
            )
        session.commit()
        augusta_id = augusta.id

    orchestrator = _orchestrator(factory)
    first = orchestrator.run(GOLF_EVENT.only(["venues"]))
    second = orchestrator.run(GOLF_EVENT.only(["venues"]))
    orchestrator.providers.close()

    venues = first.step("venues")
    assert venues.status == StepStatusEnum.SUCCEEDED
    assert (venues.result.updated, venues.result.skipped, venues.result.total) == (1, 1, 2)
    assert venues.result.details["unmatched"] == ["Zurich Classic of New Orleans"]
    again = second.step("venues").result
    assert (again.updated, again.skipped, again.total) == (0, 1, 1)

    with factory() as session:
        assert _count(session, Venue) == 1
        linked = dict(session.execute(select(Event.name, Event.venue_id)).all())
        assert linked == {
            "Masters Tournament": augusta_id,
            "Zurich Classic of New Orleans": None,
        }
