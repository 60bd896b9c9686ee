from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import httpx
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

import sports_sync.db.models  # noqa: F401
from sports_sync.core.config import Settings
from sports_sync.db import DatabaseConfig, create_db_engine, create_session_factory
from sports_sync.db.base import Base
from sports_sync.db.enums import EventStatusEnum, SportEnum
from sports_sync.db.models.core.event import Event
from sports_sync.db.models.core.performance import Performance
from sports_sync.db.models.core.player import Player
from sports_sync.ingestion.dates import ensure_utc
from sports_sync.ingestion.providers.registry import build_providers
from sports_sync.sync.orchestrator import SyncOrchestrator, SyncStatusStore
from sports_sync.sync.pipelines import NFL_SEASON
from sports_sync.sync.steps.nfl import current_season

NOW = datetime(2025, 1, 10, 12, 0, tzinfo=UTC)

PLAYERS_CSV = (
    "gsis_id,display_name,first_name,last_name,position,latest_team,jersey_number,status,"
    "espn_id,birth_date\n"
    "00-0033873,Patrick Mahomes,Patrick,Mahomes,QB,KC,15,ACT,3139477,1995-09-17\n"
    "00-0019596,Tom Brady,Tom,Brady,QB,TB,12,RET,2330,NA\n"
    "00-0099999,Joe Thuney,Joe,Thuney,G,KC,62,ACT,,\n"
)

SCHEDULES_CSV = (
    "game_id,season,week,game_type,gameday,gametime,away_team,home_team,away_score,home_score,"
    "stadium\n"
    "2023_01_DET_KC,2023,1,REG,2023-09-07,20:20,DET,KC,21,20,GEHA Field at Arrowhead Stadium\n"
    "2024_01_BAL_KC,2024,1,REG,2024-09-05,20:20,BAL,KC,20,27,GEHA Field at Arrowhead Stadium\n"
)

STATS_CSV = (
    "player_id,player_display_name,season,week,recent_team,opponent_team,completions,attempts,"
    "passing_yards,passing_tds,interceptions,carries,rushing_yards,rushing_tds,"
    "rushing_fumbles_lost,sack_fumbles_lost,fantasy_points,fantasy_points_ppr\n"
    "00-0033873,Patrick Mahomes,2024,1,KC,BAL,20,28,291,1,1,2,3,0,0,0,19.94,19.94\n"
    "00-0000001,Practice Squad,2024,1,KC,BAL,0,0,0,0,0,0,0,0,0,0,0,0\n"
)

ROUTES = {
    "players/players.csv": PLAYERS_CSV,
    "schedules/schedules.csv": SCHEDULES_CSV,
    "player_stats/player_stats_2024.csv": STATS_CSV,
}


def _handler(request: httpx.Request) -> httpx.Response:
    for suffix, body in ROUTES.items():
        if request.url.path.endswith(suffix):
            return httpx.Response(200, text=body)
    return httpx.Response(404)


def _make_factory(tmp_path: Path) -> sessionmaker[Session]:
    url = f"sqlite+pysqlite:///{tmp_path / 'nfl.db'}"
    engine = create_db_engine(DatabaseConfig(database_url=url))
    Base.metadata.create_all(engine)
    return create_session_factory(engine)


def _orchestrator(factory: sessionmaker[Session]) -> SyncOrchestrator:
    settings = Settings(_env_file=None, nflverse_min_interval_s=0.0)
    providers = build_providers(settings, transport=httpx.MockTransport(_handler))
    return SyncOrchestrator(
        factory, providers, SyncStatusStore(factory), settings, clock=lambda: NOW
    )


def test_current_season_rolls_over_in_march() -> None:
    assert current_season(datetime(2025, 1, 10, tzinfo=UTC)) == 2024
    assert current_season(datetime(2025, 9, 1, tzinfo=UTC)) == 2025


def test_players_schedule_and_weekly_stats(tmp_path: Path) -> None:
    factory = _make_factory(tmp_path)
    orchestrator = _orchestrator(factory)
    pipeline = NFL_SEASON.only(["nfl_players", "nfl_schedule", "nfl_weekly_stats"])

    first = orchestrator.run(pipeline, season=2024)
    second = orchestrator.run(pipeline, season=2024)
    orchestrator.providers.close()

    assert first.ok, first.to_dict()
    assert second.ok, second.to_dict()
    # Retired and non-fantasy players are filtered out by the adapter.
    assert first.step("nfl_players").result.skipped == 2
    assert first.step("nfl_weekly_stats").result.details["no_player"] == 1
    assert second.step("nfl_weekly_stats").result.created == 0

    with factory() as session:
        player = session.scalars(select(Player)).one()
        assert player.sport == SportEnum.NFL
        assert (player.gsis_id, player.espn_id) == ("00-0033873", "3139477")
        assert player.team_abbr == "KC"

        game = session.scalars(select(Event)).one()
        assert game.nflverse_game_id == "2024_01_BAL_KC"
        assert game.name == "BAL @ KC"
        # 20:20 US Eastern kickoff.
        assert ensure_utc(game.start_time) == datetime(2024, 9, 6, 0, 20, tzinfo=UTC)
        assert game.status == EventStatusEnum.COMPLETED
        assert (game.home_score, game.away_score) == (27, 20)

        line = session.scalars(select(Performance)).one()
        assert line.event_id == game.id
        assert line.pass_yards == 291.0
        assert line.pass_tds == 1
        assert line.fantasy_points == 19.94
        assert line.fantasy_points_half == 19.94
        assert session.scalar(select(func.count()).select_from(Performance)) == 1
