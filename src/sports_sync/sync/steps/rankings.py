"""Scraped player enrichment: OWGR world ranking and PGA Tour traditional stats."""

from __future__ import annotations

from collections import defaultdict
from typing import Any

from sports_sync.db.enums import ProviderEnum, SportEnum
from sports_sync.db.models.core.player import Player
from sports_sync.ingestion.providers.base.types import TourStatRecord
from sports_sync.sync.identity import IdentityResolver
from sports_sync.sync.orchestrator import StepResult, SyncContext
from sports_sync.sync.steps.common import fetch_failed, present, stage


def sync_owgr(ctx: SyncContext) -> StepResult:
    owgr = ctx.providers.owgr.fetch_rankings()
    if not owgr.ok:
        return fetch_failed(ProviderEnum.OWGR, owgr)
    raw_id = stage(ctx, ProviderEnum.OWGR, "rankings", owgr)

    resolver = IdentityResolver(ctx.session, sport=SportEnum.GOLF)
    rows: list[dict[str, Any]] = []
    unmatched = 0
    for r in owgr.items:
        match = resolver.resolve_player(ProviderEnum.OWGR, r.provider_id, r.name)
        if match is None:
            unmatched += 1
            continue
        points = r.points_total if r.points_total is not None else r.points
        rows.append(present({"id": match.id, "owgr_rank": r.rank, "owgr_points": points}))

    result = ctx.upserts.update_rows(Player, rows, source=ProviderEnum.OWGR.value)
    ctx.staging.mark_processed(raw_id)
    return StepResult(
        updated=result.updated,
        skipped=result.skipped + unmatched,
        total=len(owgr.items),
        errors=list(result.errors),
        details={"linked_ids": resolver.linked},
    )


def _group_by_player(records: list[TourStatRecord]) -> dict[tuple[str | None, str], dict[str, Any]]:
    grouped: dict[tuple[str | None, str], dict[str, Any]] = defaultdict(dict)
    for r in records:
        grouped[(r.provider_id, r.name)][r.stat] = r.value
    return grouped


def sync_tour_stats(ctx: SyncContext) -> StepResult:
    year = ctx.param("year")
    stats = ctx.providers.pgatour.fetch_stats(year=int(year) if year else None)
    if not stats.ok:
        return fetch_failed(ProviderEnum.PGATOUR, stats)
    raw_id = stage(ctx, ProviderEnum.PGATOUR, "stats", stats, event_ref=year)

    resolver = IdentityResolver(ctx.session, sport=SportEnum.GOLF)
    merged: dict[int, dict[str, Any]] = {}
    unmatched = 0
    for (provider_id, name), values in _group_by_player(stats.items).items():
        match = resolver.resolve_player(ProviderEnum.PGATOUR, provider_id, name)
        if match is None:
            unmatched += 1
            continue
        merged.setdefault(match.id, {"id": match.id}).update(values)

    result = ctx.upserts.update_rows(
        Player, list(merged.values()), source=ProviderEnum.PGATOUR.value
    )
    ctx.staging.mark_processed(raw_id)
    return StepResult(
        updated=result.updated,
        skipped=result.skipped + unmatched,
        total=len(stats.items),
        errors=list(result.errors),
        details={"players": len(merged), "linked_ids": resolver.linked},
    )
