"""NFL season pipeline steps fed by nflverse CSV releases."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import select

from sports_sync.core.text import normalize_event_name, normalize_name
from sports_sync.db.enums import EventStatusEnum, PerformanceStatusEnum, ProviderEnum, SportEnum
from sports_sync.db.models.core.event import Event
from sports_sync.db.models.core.performance import Performance
from sports_sync.db.models.core.player import Player
from sports_sync.sync.identity import IdentityResolver
from sports_sync.sync.lifecycle import derive_status, merge_status
from sports_sync.sync.orchestrator import StepResult, SyncContext
from sports_sync.sync.steps.common import ensure_venue, fetch_failed, present, stage

logger = logging.getLogger(__name__)

NFLVERSE = ProviderEnum.NFLVERSE

GAME_DURATION = timedelta(hours=4)

CROSS_ID_COLUMNS = ("espn_id", "yahoo_id", "sleeper_id", "pfr_id")


def current_season(now: datetime) -> int:
    """NFL seasons are labelled by the year they kick off in (September)."""
    return now.year if now.month >= 3 else now.year - 1


def _resolver(ctx: SyncContext) -> IdentityResolver:
    return IdentityResolver(
        ctx.session,
        sport=SportEnum.NFL,
        match_window_days=ctx.settings.event_match_window_days,
    )


def _season(ctx: SyncContext) -> int:
    return int(ctx.param("season", current_season(ctx.now)))


def sync_nfl_players(ctx: SyncContext) -> StepResult:
    """Fantasy-relevant players keyed by GSIS id, cross-platform ids added when free."""

    players = ctx.providers.nflverse.fetch_players()
    if not players.ok:
        return fetch_failed(NFLVERSE, players)
    raw_id = stage(ctx, NFLVERSE, "players", players)

    resolver = _resolver(ctx)
    rows: list[dict[str, Any]] = []
    for p in players.items:
        # A name match backfills gsis_id so the upsert below lands on the existing row.
        match = resolver.resolve_player(
            NFLVERSE, p.gsis_id, p.name, first_name=p.first_name, last_name=p.last_name
        )
        owner_of = match.id if match else None
        cross_ids = {
            column: value
            for column in CROSS_ID_COLUMNS
            if (value := getattr(p, column))
            and resolver.player_id_owner(column, value) in (None, owner_of)
        }
        rows.append(
            present(
                {
                    "gsis_id": p.gsis_id,
                    "sport": SportEnum.NFL,
                    "name": p.name,
                    "name_norm": normalize_name(p.name),
                    "first_name": p.first_name,
                    "last_name": p.last_name,
                    "position": p.position,
                    "team_abbr": p.team_abbr,
                    "jersey_number": p.jersey_number,
                    "college": p.college,
                    "birth_date": p.birth_date,
                    "height": p.height,
                    "weight": p.weight,
                    "headshot_url": p.headshot_url,
                    "is_active": p.is_active,
                    **cross_ids,
                }
            )
        )

    result = ctx.upserts.upsert(
        Player, rows, key=("gsis_id",), source=NFLVERSE.value, fill_only=CROSS_ID_COLUMNS
    )
    ctx.staging.mark_processed(raw_id)
    return StepResult(
        created=result.created,
        updated=result.updated,
        skipped=result.skipped + players.skipped,
        total=len(players.items),
        errors=list(result.errors),
        details={"linked_ids": resolver.linked},
    )


def _game_status(
    ctx: SyncContext, start: datetime, end: datetime, stored: EventStatusEnum | None, final: bool
) -> EventStatusEnum:
    if final:
        return EventStatusEnum.COMPLETED
    derived = derive_status(start, end, ctx.now, ctx.lifecycle_policy)
    return merge_status(stored, derived)


def sync_nfl_schedule(ctx: SyncContext) -> StepResult:
    season = _season(ctx)
    games = ctx.providers.nflverse.fetch_schedule(season)
    if not games.ok:
        return fetch_failed(NFLVERSE, games)
    raw_id = stage(ctx, NFLVERSE, "schedule", games, event_ref=season)

    stored = {
        game_id: status
        for game_id, status in ctx.session.execute(
            select(Event.nflverse_game_id, Event.status).where(
                Event.nflverse_game_id.in_([g.game_id for g in games.items])
            )
        )
    }

    resolver = _resolver(ctx)
    rows: list[dict[str, Any]] = []
    for g in games.items:
        name = f"{g.away_team_abbr} @ {g.home_team_abbr}"
        end = g.start_time + GAME_DURATION
        final = g.home_score is not None and g.away_score is not None
        rows.append(
            present(
                {
                    "nflverse_game_id": g.game_id,
                    "sport": SportEnum.NFL,
                    "name": name,
                    "name_norm": normalize_event_name(name),
                    "short_name": name,
                    "start_time": g.start_time,
                    "end_time": end,
                    "status": _game_status(ctx, g.start_time, end, stored.get(g.game_id), final),
                    "season": g.season,
                    "week": g.week,
                    "game_type": g.game_type,
                    "home_team_abbr": g.home_team_abbr,
                    "away_team_abbr": g.away_team_abbr,
                    "home_score": g.home_score,
                    "away_score": g.away_score,
                    "venue_id": ensure_venue(ctx, resolver, g.stadium),
                }
            )
        )

    result = ctx.upserts.upsert(Event, rows, key=("nflverse_game_id",), source=NFLVERSE.value)
    ctx.staging.mark_processed(raw_id)
    return StepResult.from_upsert(result, total=len(games.items), details={"season": season})


def _games_by_team(ctx: SyncContext, season: int) -> dict[tuple[int, str], int]:
    """(week, team) -> event id for every game of the season."""
    stmt = select(Event.id, Event.week, Event.home_team_abbr, Event.away_team_abbr).where(
        Event.sport == SportEnum.NFL, Event.season == season
    )
    games: dict[tuple[int, str], int] = {}
    for event_id, week, home, away in ctx.session.execute(stmt):
        for team in (home, away):
            if week is not None and team:
                games[(week, team)] = event_id
    return games


def sync_nfl_weekly_stats(ctx: SyncContext) -> StepResult:
    season = _season(ctx)
    week = ctx.param("week")
    stats = ctx.providers.nflverse.fetch_weekly_stats(season, int(week) if week else None)
    if not stats.ok:
        return fetch_failed(NFLVERSE, stats)
    raw_id = stage(ctx, NFLVERSE, "weekly_stats", stats, event_ref=f"{season}:{week or 'all'}")

    resolver = _resolver(ctx)
    games = _games_by_team(ctx, season)
    rows: list[dict[str, Any]] = []
    no_player = no_game = 0
    for s in stats.items:
        player_id = resolver.player_id(NFLVERSE, s.gsis_id)
        if player_id is None:
            no_player += 1
            continue
        event_id = games.get((s.week, s.team_abbr or ""))
        if event_id is None:
            no_game += 1
            continue
        rows.append(
            present(
                {
                    "event_id": event_id,
                    "player_id": player_id,
                    "status": PerformanceStatusEnum.ACTIVE,
                    "team_abbr": s.team_abbr,
                    "fantasy_points": s.stats.get("fantasy_points_std"),
                    **s.stats,
                }
            )
        )

    result = ctx.upserts.upsert(
        Performance,
        rows,
        key=("event_id", "player_id"),
        source=NFLVERSE.value,
        fill_only=("status",),
    )
    ctx.staging.mark_processed(raw_id)
    if no_player or no_game:
        logger.info(
            "nfl weekly stats: %d rows without player, %d without game", no_player, no_game
        )
    return StepResult(
        created=result.created,
        updated=result.updated,
        skipped=result.skipped + no_player + no_game + stats.skipped,
        total=len(stats.items),
        errors=list(result.errors),
        details={"season": season, "week": week, "no_player": no_player, "no_game": no_game},
    )


def sync_nfl_rosters(ctx: SyncContext) -> StepResult:
    """Latest-week roster: team, position, jersey and active flag for known players."""

    season = _season(ctx)
    roster = ctx.providers.nflverse.fetch_latest_roster(season)
    if not roster.ok:
        return fetch_failed(NFLVERSE, roster)
    raw_id = stage(ctx, NFLVERSE, "rosters", roster, event_ref=season)

    resolver = _resolver(ctx)
    rows: list[dict[str, Any]] = []
    unknown = 0
    for r in roster.items:
        player_id = resolver.player_id(NFLVERSE, r.gsis_id)
        if player_id is None:
            unknown += 1
            continue
        rows.append(
            present(
                {
                    "id": player_id,
                    "team_abbr": r.team_abbr,
                    "position": r.position,
                    "jersey_number": r.jersey_number,
                    "is_active": (r.status or "").upper() == "ACT",
                }
            )
        )

    result = ctx.upserts.update_rows(Player, rows, source=NFLVERSE.value)
    ctx.staging.mark_processed(raw_id)
    return StepResult(
        updated=result.updated,
        skipped=result.skipped + unknown,
        total=len(roster.items),
        errors=list(result.errors),
        details={"season": season, "week": roster.items[0].week if roster.items else None},
    )
