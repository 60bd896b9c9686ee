"""ESPN enrichment: calendar matching, results backfill, hole-by-hole scores, bios."""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import timedelta
from typing import Any

from sqlalchemy import select

from sports_sync.db.enums import EventStatusEnum, PerformanceStatusEnum, ProviderEnum, SportEnum
from sports_sync.db.models.core.event import Event
from sports_sync.db.models.core.performance import Performance
from sports_sync.db.models.core.player import Player
from sports_sync.db.models.core.round_score import RoundScore
from sports_sync.sync.identity import IdentityResolver
from sports_sync.sync.orchestrator import StepResult, SyncContext
from sports_sync.sync.scoring import count_holes
from sports_sync.sync.steps.common import (
    anchor_event,
    event_map_row,
    fetch_failed,
    present,
    stage,
    write_event_maps,
)

logger = logging.getLogger(__name__)

ESPN = ProviderEnum.ESPN

BIO_COLUMNS = (
    "birth_date",
    "birth_place",
    "college",
    "height",
    "weight",
    "headshot_url",
    "turned_pro",
)


def _resolver(ctx: SyncContext) -> IdentityResolver:
    return IdentityResolver(
        ctx.session,
        sport=SportEnum.GOLF,
        match_window_days=ctx.settings.event_match_window_days,
    )


def sync_calendar(ctx: SyncContext) -> StepResult:
    """Match ESPN's season calendar onto existing events; never creates events."""

    year = int(ctx.param("year", ctx.now.year))
    calendar = ctx.providers.espn.fetch_calendar(year)
    if not calendar.ok:
        return fetch_failed(ESPN, calendar)
    raw_id = stage(ctx, ESPN, "calendar", calendar, event_ref=year)

    resolver = _resolver(ctx)
    maps: list[dict[str, Any]] = []
    unmatched: list[str] = []
    for rec in calendar.items:
        match = resolver.resolve_event(ESPN, rec.provider_event_key, rec.name, rec.start_time)
        if match is None:
            unmatched.append(rec.name)
            continue
        maps.append(
            event_map_row(
                ESPN,
                rec.provider_event_key,
                match.id,
                name=rec.name,
                start=rec.start_time,
                end=rec.end_time,
            )
        )

    result = write_event_maps(ctx, maps)
    ctx.staging.mark_processed(raw_id)
    if unmatched:
        logger.info("espn calendar: %d events without a canonical match", len(unmatched))

    return StepResult(
        created=result.created,
        updated=result.updated,
        skipped=len(unmatched) + calendar.skipped + result.skipped,
        total=len(calendar.items),
        errors=list(result.errors),
        details={"linked_ids": resolver.linked, "unmatched": unmatched[:20]},
    )


def _completed_espn_events(ctx: SyncContext, limit: int) -> list[Event]:
    stmt = (
        select(Event)
        .where(
            Event.sport == SportEnum.GOLF,
            Event.status == EventStatusEnum.COMPLETED,
            Event.espn_event_id.is_not(None),
        )
        .order_by(Event.start_time.desc())
        .limit(limit)
    )
    return list(ctx.session.execute(stmt).scalars().all())


def backfill_results(ctx: SyncContext) -> StepResult:
    """Position and total for completed events, only where the primary feed left gaps."""

    resolver = _resolver(ctx)
    total = StepResult()
    events = _completed_espn_events(ctx, int(ctx.param("limit", 5)))
    for event in events:
        event_id, espn_id = event.id, event.espn_event_id
        card = ctx.providers.espn.fetch_scorecard(espn_id)
        if not card.ok:
            total = total.combine(fetch_failed(ESPN, card))
            continue
        raw_id = stage(ctx, ESPN, "scorecard", card, event_ref=espn_id)

        rows = []
        unmatched = 0
        for c in card.items:
            match = resolver.resolve_player(ESPN, c.provider_player_id, c.name)
            if match is None:
                unmatched += 1
                continue
            rows.append(
                present(
                    {
                        "event_id": event_id,
                        "player_id": match.id,
                        "status": PerformanceStatusEnum.ACTIVE,
                        "position": c.position,
                        "total_to_par": c.total_to_par,
                    }
                )
            )
        result = ctx.upserts.upsert(
            Performance,
            rows,
            key=("event_id", "player_id"),
            source=ESPN.value,
            fill_only=("status", "position", "total_to_par"),
        )
        ctx.staging.mark_processed(raw_id)
        total = total.combine(
            StepResult(
                created=result.created,
                updated=result.updated,
                skipped=result.skipped + unmatched,
                total=len(card.items),
                errors=list(result.errors),
            )
        )
    return total.combine(StepResult(details={"events": len(events)}))


def sync_hole_scores(ctx: SyncContext) -> StepResult:
    """Hole-by-hole RoundScore rows with eagle/birdie/par/bogey counts for the anchor event."""

    event = anchor_event(ctx)
    if not event.espn_event_id:
        return StepResult(details={"event_id": event.id, "reason": "no espn_event_id"})
    event_id, espn_id = event.id, event.espn_event_id

    card = ctx.providers.espn.fetch_scorecard(espn_id)
    if not card.ok:
        return fetch_failed(ESPN, card)
    raw_id = stage(ctx, ESPN, "scorecard", card, event_ref=espn_id)

    resolver = _resolver(ctx)
    rows: list[dict[str, Any]] = []
    unmatched = 0
    for c in card.items:
        match = resolver.resolve_player(ESPN, c.provider_player_id, c.name)
        if match is None:
            unmatched += 1
            continue
        for line in c.rounds:
            if not line.holes:
                continue
            holes = [asdict(h) for h in sorted(line.holes, key=lambda h: h.hole)]
            counts = count_holes(holes)
            rows.append(
                present(
                    {
                        "event_id": event_id,
                        "player_id": match.id,
                        "round_number": line.round_number,
                        "strokes": line.strokes,
                        "holes": holes,
                        "eagles": counts.eagles + counts.holes_in_one,
                        "birdies": counts.birdies,
                        "pars": counts.pars,
                        "bogeys": counts.bogeys,
                        "double_bogeys": counts.double_bogeys,
                        "worse_than_double": counts.worse_than_double,
                    }
                )
            )

    result = ctx.upserts.upsert(
        RoundScore, rows, key=("event_id", "player_id", "round_number"), source=ESPN.value
    )
    ctx.staging.mark_processed(raw_id)
    return StepResult(
        created=result.created,
        updated=result.updated,
        skipped=result.skipped + unmatched,
        total=len(rows),
        errors=list(result.errors),
        details={"event_id": event_id, "competitors": len(card.items)},
    )


def sync_bios(ctx: SyncContext) -> StepResult:
    """
    Fill empty bio fields for players ESPN knows; populated fields are left alone.

    Every lookup stamps `bio_checked_at`, so players ESPN has no data for drop out of the
    batch until the recheck interval passes and never-checked players go first.
    """

    limit = int(ctx.param("bio_limit", ctx.settings.espn_bio_limit))
    recheck_before = ctx.now - timedelta(days=ctx.settings.espn_bio_recheck_days)
    stmt = (
        select(Player)
        .where(
            Player.sport == SportEnum.GOLF,
            Player.espn_id.is_not(None),
            Player.birth_date.is_(None) | Player.headshot_url.is_(None),
            Player.bio_checked_at.is_(None) | (Player.bio_checked_at < recheck_before),
        )
        .order_by(Player.bio_checked_at.nulls_first(), Player.id)
        .limit(limit)
    )
    players = list(ctx.session.execute(stmt).scalars().all())

    rows: list[dict[str, Any]] = []
    errors: list[str] = []
    enriched = 0
    for player in players:
        checked = {"id": player.id, "bio_checked_at": ctx.now}
        fetched = ctx.providers.espn.fetch_athlete_bio(player.espn_id)
        if not fetched.ok or not fetched.items:
            errors.append(f"athlete {player.espn_id}: {fetched.error or 'empty'}")
            rows.append(checked)
            continue
        stage(ctx, ESPN, "athlete", fetched, event_ref=player.espn_id)
        bio = fetched.items[0]
        row = {
            column: getattr(bio, column)
            for column in BIO_COLUMNS
            if getattr(player, column) is None and getattr(bio, column) is not None
        }
        enriched += bool(row)
        rows.append({**checked, **row})

    result = ctx.upserts.update_rows(Player, rows, source=ESPN.value)
    return StepResult(
        updated=result.updated,
        skipped=result.skipped + len(errors),
        total=len(players),
        errors=[*result.errors, *errors],
        details={"enriched": enriched},
    )
