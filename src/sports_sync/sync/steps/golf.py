"""Golf event pipeline steps fed by the primary DataGolf feed."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select

from sports_sync.core.text import normalize_event_name, normalize_name
from sports_sync.db.enums import (
    DfsPlatformEnum,
    EventStatusEnum,
    PerformanceStatusEnum,
    ProviderEnum,
    SportEnum,
)
from sports_sync.db.models.core.event import Event
from sports_sync.db.models.core.fantasy_projection import FantasyProjection
from sports_sync.db.models.core.performance import Performance
from sports_sync.db.models.core.player import Player
from sports_sync.db.models.core.round_score import RoundScore
from sports_sync.db.repos.core.event_repo import EventRepository
from sports_sync.db.repos.core.performance_repo import PerformanceRepository
from sports_sync.ingestion.dates import ensure_utc
from sports_sync.ingestion.providers.base.types import FetchResult
from sports_sync.ingestion.providers.datagolf.adapter import feed_event
from sports_sync.sync.errors import EventNotLinkedError, FeedEventMismatchError
from sports_sync.sync.identity import IdentityResolver
from sports_sync.sync.lifecycle import advance, apply_lifecycle, default_end
from sports_sync.sync.orchestrator import StepResult, SyncContext
from sports_sync.sync.scoring import (
    MISSED_CUT_STATUSES,
    calculate_fantasy_points,
    round_input,
)
from sports_sync.sync.steps.common import (
    PlayerSeed,
    anchor_event,
    ensure_players,
    ensure_venue,
    event_map_row,
    fetch_failed,
    present,
    stage,
    write_event_maps,
)
from sports_sync.sync.upsert import UpsertResult

logger = logging.getLogger(__name__)

DG = ProviderEnum.DATAGOLF

PERFORMANCE_KEY = ("event_id", "player_id")
ROUND_SCORE_KEY = ("event_id", "player_id", "round_number")
PROJECTION_KEY = ("event_id", "player_id", "platform")


def _resolver(ctx: SyncContext) -> IdentityResolver:
    return IdentityResolver(
        ctx.session,
        sport=SportEnum.GOLF,
        match_window_days=ctx.settings.event_match_window_days,
    )


def _status(value: str | None) -> PerformanceStatusEnum:
    try:
        return PerformanceStatusEnum(value) if value else PerformanceStatusEnum.ACTIVE
    except ValueError:
        return PerformanceStatusEnum.ACTIVE


def _tour_event(event: Event) -> str:
    """The `tour_event` every event-scoped DataGolf request is pinned to."""
    if not event.datagolf_id:
        raise EventNotLinkedError(f"event {event.id} ({event.name}) has no datagolf_id")
    return event.datagolf_id


def _check_feed_event(event: Event, result: FetchResult[Any], feed: str) -> None:
    """Reject a feed whose header names another event; a header without either is accepted."""

    header = feed_event(result.raw)
    if header.event_id is not None:
        if header.event_id == event.datagolf_id:
            return
        raise FeedEventMismatchError(
            f"{feed} feed is for datagolf event {header.event_id}, "
            f"not event {event.id} (datagolf {event.datagolf_id})"
        )
    if header.name is None:
        return

    incoming = normalize_event_name(header.name)
    stored = normalize_event_name(event.name)
    if incoming and stored and (incoming in stored or stored in incoming):
        return
    raise FeedEventMismatchError(
        f"{feed} feed is for {header.name!r}, not event {event.id} ({event.name})"
    )


# -----------------------------
# Players
# -----------------------------


def sync_players(ctx: SyncContext) -> StepResult:
    """Player list, then DataGolf rank/skill and strokes-gained ratings onto the same rows."""

    players = ctx.providers.datagolf.fetch_players()
    if not players.ok:
        return fetch_failed(DG, players)
    raw_id = stage(ctx, DG, "players", players)

    resolver = _resolver(ctx)
    ids, created = ensure_players(
        ctx,
        resolver,
        DG,
        (
            PlayerSeed(
                provider_id=p.provider_id,
                name=p.name,
                first_name=p.first_name,
                last_name=p.last_name,
                country=p.country,
                country_code=p.country_code,
            )
            for p in players.items
        ),
    )

    updates: list[dict[str, Any]] = []
    for p in players.items:
        player_id = ids.get(p.provider_id)
        if player_id is None:
            continue
        resolver.link_player_ids(
            player_id, {"draftkings_id": p.draftkings_id, "fanduel_id": p.fanduel_id}
        )
        updates.append(
            present(
                {
                    "id": player_id,
                    "name": p.name,
                    "name_norm": normalize_name(p.name),
                    "first_name": p.first_name,
                    "last_name": p.last_name,
                    "country": p.country,
                    "country_code": p.country_code,
                    "is_amateur": p.is_amateur,
                }
            )
        )
    result = created + ctx.upserts.update_rows(Player, updates, source=DG.value)
    ctx.staging.mark_processed(raw_id)

    errors: list[str] = []
    ranked = _sync_rankings(ctx, resolver, errors)
    rated = _sync_skill_ratings(ctx, resolver, errors)

    return StepResult(
        created=result.created,
        # Freshly created rows are part of the update batch too.
        updated=max(0, result.updated - created.created),
        skipped=result.skipped + players.skipped,
        total=len(players.items),
        errors=[*result.errors, *errors],
        details={"ranked": ranked, "skill_rated": rated, "linked_ids": resolver.linked},
    )


def _sync_rankings(ctx: SyncContext, resolver: IdentityResolver, errors: list[str]) -> int:
    rankings = ctx.providers.datagolf.fetch_rankings()
    if not rankings.ok:
        errors.append(f"rankings: {rankings.error}")
        return 0
    raw_id = stage(ctx, DG, "rankings", rankings)

    rows = []
    for r in rankings.items:
        player_id = resolver.player_id(DG, r.provider_id)
        if player_id is None:
            continue
        rows.append(
            present({"id": player_id, "datagolf_rank": r.rank, "datagolf_skill": r.skill_estimate})
        )
    result = ctx.upserts.update_rows(Player, rows, source=DG.value)
    ctx.staging.mark_processed(raw_id)
    return result.updated


def _sync_skill_ratings(ctx: SyncContext, resolver: IdentityResolver, errors: list[str]) -> int:
    ratings = ctx.providers.datagolf.fetch_skill_ratings()
    if not ratings.ok:
        errors.append(f"skill ratings: {ratings.error}")
        return 0
    raw_id = stage(ctx, DG, "skill_ratings", ratings)

    rows = []
    for s in ratings.items:
        player_id = resolver.player_id(DG, s.provider_id)
        if player_id is None:
            continue
        rows.append(
            present(
                {
                    "id": player_id,
                    "sg_total": s.sg_total,
                    "sg_putting": s.sg_putting,
                    "sg_approach": s.sg_approach,
                    "sg_off_tee": s.sg_off_tee,
                    "sg_around_green": s.sg_around_green,
                    "sg_tee_to_green": s.sg_tee_to_green,
                }
            )
        )
    result = ctx.upserts.update_rows(Player, rows, source=DG.value)
    ctx.staging.mark_processed(raw_id)
    return result.updated


# -----------------------------
# Schedule & venues
# -----------------------------


def sync_schedule(ctx: SyncContext) -> StepResult:
    """Events from the authoritative schedule feed; lifecycle recomputed for every row."""

    tour = ctx.param("tour", "pga")
    schedule = ctx.providers.datagolf.fetch_schedule(tour)
    if not schedule.ok:
        return fetch_failed(DG, schedule)
    raw_id = stage(ctx, DG, "schedule", schedule, event_ref=tour)

    policy = ctx.lifecycle_policy
    resolver = _resolver(ctx)

    new_rows: list[dict[str, Any]] = []
    updates: list[dict[str, Any]] = []
    touched: list[int] = []
    venues_seen = 0

    for rec in schedule.items:
        end = rec.end_time or default_end(rec.start_time, policy)
        values = present(
            {
                "name": rec.name,
                "name_norm": normalize_event_name(rec.name),
                "tour": rec.tour,
                "course_name": rec.course_name,
                "start_time": rec.start_time,
                "end_time": end,
                "purse": rec.purse,
                "is_major": rec.is_major,
                "is_signature": rec.is_signature,
                "is_playoff": rec.is_playoff,
            }
        )
        venue_id = ensure_venue(
            ctx,
            resolver,
            rec.course_name,
            city=rec.city,
            state=rec.state,
            country=rec.country,
            latitude=rec.latitude,
            longitude=rec.longitude,
        )
        venues_seen += venue_id is not None

        match = resolver.resolve_event(DG, rec.provider_event_key, rec.name, rec.start_time)
        if match is not None:
            touched.append(match.id)
            updates.append({"id": match.id, **values})
            continue

        state = advance(
            start=rec.start_time,
            end=end,
            stored_status=None,
            stored_round=None,
            now=ctx.now,
            policy=policy,
        )
        new_rows.append(
            present(
                {
                    "datagolf_id": rec.provider_event_key,
                    "sport": SportEnum.GOLF,
                    "status": state.status,
                    "current_round": state.current_round,
                    "venue_id": venue_id,
                    **values,
                }
            )
        )

    result = ctx.upserts.update_rows(Event, updates, source=DG.value)
    result += ctx.upserts.upsert(Event, new_rows, key=("datagolf_id",), source=DG.value)

    # New and updated events both get a lifecycle pass and an id map entry.
    keys = [r.provider_event_key for r in schedule.items]
    events = EventRepository(ctx.session).all_where(
        (Event.datagolf_id.in_(keys)) | (Event.id.in_(touched))
    )
    transitions = sum(apply_lifecycle(e, ctx.now, policy=policy) for e in events)
    ctx.session.flush()

    by_key = {e.datagolf_id: e for e in events if e.datagolf_id}
    maps = [
        event_map_row(
            DG,
            r.provider_event_key,
            by_key[r.provider_event_key].id,
            name=r.name,
            start=r.start_time,
            end=r.end_time,
        )
        for r in schedule.items
        if r.provider_event_key in by_key
    ]
    write_event_maps(ctx, maps)
    ctx.staging.mark_processed(raw_id)

    return StepResult.from_upsert(
        result,
        total=len(schedule.items),
        details={
            "status_transitions": transitions,
            "venues": venues_seen,
            "linked_ids": resolver.linked,
        },
    )


def link_event_venues(ctx: SyncContext) -> StepResult:
    """Events without a venue get one matched by course name; an existing link is kept."""

    resolver = _resolver(ctx)
    events = EventRepository(ctx.session).list_without_venue(SportEnum.GOLF)
    linked = 0
    unmatched: list[str] = []
    for event in events:
        match = resolver.resolve_venue(event.course_name) or resolver.resolve_venue(event.name)
        if match is None:
            unmatched.append(event.name)
            continue
        event.venue_id = match.id
        linked += 1
    ctx.session.flush()

    if unmatched:
        logger.info("no venue match for %d events", len(unmatched))
    return StepResult(
        updated=linked,
        skipped=len(unmatched),
        total=len(events),
        details={"unmatched": unmatched[:20]},
    )


# -----------------------------
# Field, predictions, projections
# -----------------------------


def sync_field(ctx: SyncContext) -> StepResult:
    """Field entries become Performance rows, with R1 tee times and DFS salaries."""

    event = anchor_event(ctx)
    field_result = ctx.providers.datagolf.fetch_field(_tour_event(event))
    if not field_result.ok:
        return fetch_failed(DG, field_result)
    _check_feed_event(event, field_result, "field")
    raw_id = stage(ctx, DG, "field", field_result, event_ref=event.id)

    resolver = _resolver(ctx)
    entries = field_result.items
    seeds = (PlayerSeed(e.provider_player_id, e.name, country=e.country) for e in entries)
    ids, created_players = ensure_players(ctx, resolver, DG, seeds)

    performances: list[dict[str, Any]] = []
    tee_times: list[dict[str, Any]] = []
    salaries: list[dict[str, Any]] = []
    for e in entries:
        player_id = ids.get(e.provider_player_id)
        if player_id is None:
            continue
        resolver.link_player_ids(
            player_id, {"draftkings_id": e.draftkings_id, "fanduel_id": e.fanduel_id}
        )
        performances.append(
            {"event_id": event.id, "player_id": player_id, "status": PerformanceStatusEnum.ACTIVE}
        )
        if e.tee_time is not None:
            tee_times.append(
                {
                    "event_id": event.id,
                    "player_id": player_id,
                    "round_number": 1,
                    "tee_time": e.tee_time,
                }
            )
        for platform, salary in (
            (DfsPlatformEnum.DRAFTKINGS, e.draftkings_salary),
            (DfsPlatformEnum.FANDUEL, e.fanduel_salary),
        ):
            if salary is not None:
                salaries.append(
                    {
                        "event_id": event.id,
                        "player_id": player_id,
                        "platform": platform,
                        "salary": salary,
                    }
                )

    # Field status never overwrites a CUT/WD already recorded by live scoring.
    result = ctx.upserts.upsert(
        Performance, performances, key=PERFORMANCE_KEY, source=DG.value, fill_only=("status",)
    )
    rounds = ctx.upserts.upsert(RoundScore, tee_times, key=ROUND_SCORE_KEY, source=DG.value)
    dfs = ctx.upserts.upsert(FantasyProjection, salaries, key=PROJECTION_KEY, source=DG.value)

    event.field_size = len(performances)
    apply_lifecycle(event, ctx.now, policy=ctx.lifecycle_policy)
    ctx.session.flush()
    ctx.staging.mark_processed(raw_id)

    return StepResult.from_upsert(
        result,
        total=len(entries),
        details={
            "event_id": event.id,
            "players_created": created_players.created,
            "tee_times": rounds.written,
            "salaries": dfs.written,
            "linked_ids": resolver.linked,
        },
    )


def sync_predictions(ctx: SyncContext) -> StepResult:
    event = anchor_event(ctx)
    preds = ctx.providers.datagolf.fetch_predictions(_tour_event(event))
    if not preds.ok:
        return fetch_failed(DG, preds)
    _check_feed_event(event, preds, "predictions")
    raw_id = stage(ctx, DG, "predictions", preds, event_ref=event.id)

    resolver = _resolver(ctx)
    ids, _ = ensure_players(
        ctx, resolver, DG, (PlayerSeed(p.provider_player_id, p.name) for p in preds.items)
    )
    rows = [
        present(
            {
                "event_id": event.id,
                "player_id": ids[p.provider_player_id],
                "status": PerformanceStatusEnum.ACTIVE,
                "win_probability": p.win,
                "top5_probability": p.top5,
                "top10_probability": p.top10,
                "top20_probability": p.top20,
                "make_cut_probability": p.make_cut,
            }
        )
        for p in preds.items
        if p.provider_player_id in ids
    ]
    result = ctx.upserts.upsert(
        Performance, rows, key=PERFORMANCE_KEY, source=DG.value, fill_only=("status",)
    )
    ctx.staging.mark_processed(raw_id)
    return StepResult.from_upsert(
        result, total=len(preds.items), details={"event_id": event.id}
    )


def sync_projections(ctx: SyncContext) -> StepResult:
    """DraftKings and FanDuel projections; one platform failing does not stop the other."""

    event = anchor_event(ctx)
    tour_event = _tour_event(event)
    resolver = _resolver(ctx)
    total = StepResult(details={"event_id": event.id})

    for platform in (DfsPlatformEnum.DRAFTKINGS, DfsPlatformEnum.FANDUEL):
        fetched = ctx.providers.datagolf.fetch_projections(platform, tour_event)
        if not fetched.ok:
            total = total.combine(fetch_failed(DG, fetched))
            continue
        _check_feed_event(event, fetched, f"{platform.value.lower()} projections")
        data_type = f"projections_{platform.value.lower()}"
        raw_id = stage(ctx, DG, data_type, fetched, event_ref=event.id)

        ids, _ = ensure_players(
            ctx, resolver, DG, (PlayerSeed(p.provider_player_id, p.name) for p in fetched.items)
        )
        rows = [
            present(
                {
                    "event_id": event.id,
                    "player_id": ids[p.provider_player_id],
                    "platform": platform,
                    "salary": p.salary,
                    "projected_points": p.projected_points,
                    "projected_ownership": p.projected_ownership,
                }
            )
            for p in fetched.items
            if p.provider_player_id in ids
        ]
        result = ctx.upserts.upsert(FantasyProjection, rows, key=PROJECTION_KEY, source=DG.value)
        ctx.staging.mark_processed(raw_id)
        total = total.combine(
            StepResult.from_upsert(
                result, total=len(fetched.items), details={platform.value.lower(): result.written}
            )
        )
    return total


# -----------------------------
# Live scoring
# -----------------------------


def sync_live(ctx: SyncContext) -> StepResult:
    """In-play scores onto Performance and RoundScore; the live round feeds the lifecycle."""

    event = anchor_event(ctx)
    live = ctx.providers.datagolf.fetch_live(_tour_event(event))
    if not live.ok:
        return fetch_failed(DG, live)
    _check_feed_event(event, live, "live")
    raw_id = stage(ctx, DG, "live", live, event_ref=event.id)

    resolver = _resolver(ctx)
    ids, _ = ensure_players(
        ctx, resolver, DG, (PlayerSeed(r.provider_player_id, r.name) for r in live.items)
    )

    performances: list[dict[str, Any]] = []
    round_scores: list[dict[str, Any]] = []
    for r in live.items:
        player_id = ids.get(r.provider_player_id)
        if player_id is None:
            continue
        performances.append(
            present(
                {
                    "event_id": event.id,
                    "player_id": player_id,
                    "status": _status(r.status),
                    "position": r.position,
                    "position_tied": r.position_tied,
                    "total_to_par": r.total_to_par,
                    "today_to_par": r.today_to_par,
                    "thru": r.thru,
                    "current_round": r.current_round,
                    "win_probability": r.win,
                    "top5_probability": r.top5,
                    "top10_probability": r.top10,
                    "top20_probability": r.top20,
                    "make_cut_probability": r.make_cut,
                    **{f"round{n}": strokes for n, strokes in r.rounds.items() if 1 <= n <= 4},
                }
            )
        )
        round_scores.extend(
            {
                "event_id": event.id,
                "player_id": player_id,
                "round_number": n,
                "strokes": strokes,
            }
            for n, strokes in r.rounds.items()
        )

    result = ctx.upserts.upsert(Performance, performances, key=PERFORMANCE_KEY, source=DG.value)
    rounds = ctx.upserts.upsert(RoundScore, round_scores, key=ROUND_SCORE_KEY, source=DG.value)

    live_round = max((r.current_round for r in live.items if r.current_round), default=None)
    changed = apply_lifecycle(event, ctx.now, live_round=live_round, policy=ctx.lifecycle_policy)
    ctx.session.flush()
    ctx.staging.mark_processed(raw_id)

    return StepResult.from_upsert(
        result,
        total=len(live.items),
        details={
            "event_id": event.id,
            "round_scores": rounds.written,
            "live_round": live_round,
            "current_round": event.current_round,
            "lifecycle_changed": changed,
        },
    )


# -----------------------------
# Finalize
# -----------------------------


def _finalize_anchor(ctx: SyncContext) -> Event:
    """`event_id` param, else the latest completed event not yet scored, else the current one."""
    if ctx.param("event_id") is None:
        event = EventRepository(ctx.session).latest_unfinalized()
        if event is not None:
            return event
    return anchor_event(ctx)


def finalize_event(ctx: SyncContext) -> StepResult:
    """Final stats, fantasy points and season aggregates once the event is COMPLETED."""

    event = _finalize_anchor(ctx)
    apply_lifecycle(event, ctx.now, policy=ctx.lifecycle_policy)
    ctx.session.flush()
    if event.status != EventStatusEnum.COMPLETED:
        return StepResult(details={"event_id": event.id, "status": event.status.value})

    event_id = event.id
    season = ensure_utc(event.start_time).year

    final = ctx.providers.datagolf.fetch_final_stats(_tour_event(event))
    result = UpsertResult()
    errors: list[str] = []
    if final.ok:
        _check_feed_event(event, final, "final stats")
        raw_id = stage(ctx, DG, "final_stats", final, event_ref=event_id)
        resolver = _resolver(ctx)
        ids, _ = ensure_players(
            ctx, resolver, DG, (PlayerSeed(f.provider_player_id, f.name) for f in final.items)
        )
        rows = [
            present(
                {
                    "event_id": event_id,
                    "player_id": ids[f.provider_player_id],
                    "status": _status(f.status),
                    "position": f.position,
                    "position_tied": f.position_tied,
                    "earnings": f.earnings,
                    "sg_total": f.sg_total,
                    "sg_putting": f.sg_putting,
                    "sg_approach": f.sg_approach,
                    "sg_off_tee": f.sg_off_tee,
                    "sg_around_green": f.sg_around_green,
                    "sg_tee_to_green": f.sg_tee_to_green,
                }
            )
            for f in final.items
            if f.provider_player_id in ids
        ]
        result = ctx.upserts.upsert(Performance, rows, key=PERFORMANCE_KEY, source=DG.value)
        ctx.staging.mark_processed(raw_id)
    else:
        errors.append(f"final stats: {final.error}")

    scored = recompute_fantasy_points(ctx, event_id)
    player_ids = [p.player_id for p in PerformanceRepository(ctx.session).list_for_event(event_id)]
    aggregated = recompute_season_aggregates(ctx, player_ids, season)

    return StepResult(
        created=result.created,
        updated=result.updated,
        skipped=result.skipped,
        total=len(final.items),
        errors=[*result.errors, *errors],
        details={
            "event_id": event_id,
            "fantasy_points": scored,
            "season_aggregates": aggregated,
        },
    )


def recompute_fantasy_points(ctx: SyncContext, event_id: int) -> int:
    performances = PerformanceRepository(ctx.session).list_for_event(event_id)
    rounds: dict[int, list[RoundScore]] = defaultdict(list)
    stmt = select(RoundScore).where(RoundScore.event_id == event_id)
    for rs in ctx.session.execute(stmt).scalars():
        rounds[rs.player_id].append(rs)

    rows = []
    for perf in performances:
        inputs = [
            round_input(rs.strokes, rs.holes)
            for rs in sorted(rounds.get(perf.player_id, []), key=lambda r: r.round_number)
        ]
        points = calculate_fantasy_points(perf.position, perf.status, inputs)
        rows.append({"id": perf.id, "fantasy_points": points})
    return ctx.upserts.update_rows(Performance, rows).updated


def recompute_season_aggregates(ctx: SyncContext, player_ids: list[int], season: int) -> int:
    """Rebuild season counters from completed-event Performance rows (no increments)."""

    if not player_ids:
        return 0
    start = datetime(season, 1, 1, tzinfo=UTC)
    end = datetime(season + 1, 1, 1, tzinfo=UTC)
    stmt = (
        select(
            Performance.player_id,
            Performance.status,
            Performance.position,
            Performance.earnings,
        )
        .join(Event, Performance.event_id == Event.id)
        .where(
            Performance.player_id.in_(player_ids),
            Event.sport == SportEnum.GOLF,
            Event.status == EventStatusEnum.COMPLETED,
            Event.start_time >= start,
            Event.start_time < end,
        )
    )

    totals: dict[int, dict[str, Any]] = {
        pid: {
            "id": pid,
            "events": 0,
            "cuts_made": 0,
            "wins": 0,
            "top5s": 0,
            "top10s": 0,
            "top25s": 0,
            "earnings": 0.0,
        }
        for pid in player_ids
    }
    for player_id, status, position, earnings in ctx.session.execute(stmt):
        t = totals[player_id]
        t["events"] += 1
        if status not in MISSED_CUT_STATUSES:
            t["cuts_made"] += 1
        if position is not None:
            t["wins"] += position == 1
            t["top5s"] += position <= 5
            t["top10s"] += position <= 10
            t["top25s"] += position <= 25
        t["earnings"] += earnings or 0.0

    return ctx.upserts.update_rows(Player, list(totals.values())).updated
