from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select

from sports_sync.core.text import normalize_event_name, normalize_name, split_name
from sports_sync.db.enums import ProviderEnum
from sports_sync.db.models.core.event import Event
from sports_sync.db.models.core.event_id_map import EventIdMap
from sports_sync.db.models.core.player import Player
from sports_sync.db.models.core.venue import Venue
from sports_sync.db.repos.core.event_repo import EventRepository
from sports_sync.db.repos.core.venue_repo import VenueRepository
from sports_sync.ingestion.providers.base.types import FetchResult
from sports_sync.sync.errors import EventNotFoundError
from sports_sync.sync.identity import IdentityResolver
from sports_sync.sync.orchestrator import StepResult, SyncContext
from sports_sync.sync.upsert import UpsertResult

logger = logging.getLogger(__name__)


def present(values: dict[str, Any]) -> dict[str, Any]:
    """Drop None values so an upsert never blanks a column it has no data for."""
    return {k: v for k, v in values.items() if v is not None}


def stage(
    ctx: SyncContext,
    provider: ProviderEnum,
    data_type: str,
    result: FetchResult[Any],
    event_ref: str | int | None = None,
) -> int | None:
    ref = str(event_ref) if event_ref is not None else None
    return ctx.staging.stage(provider.value, data_type, ref, result.raw)


def fetch_failed(provider: ProviderEnum, result: FetchResult[Any]) -> StepResult:
    return StepResult(
        skipped=result.skipped,
        errors=[f"{provider.value}: {result.error}"],
        details={"provider": provider.value},
    )


def anchor_event(ctx: SyncContext) -> Event:
    """The event a step works on: `event_id` param, else the current or next golf event."""
    repo = EventRepository(ctx.session)
    event_id = ctx.param("event_id")
    if event_id is not None:
        event = repo.get(int(event_id))
        if event is None:
            raise EventNotFoundError(f"event {event_id} does not exist")
        return event

    event = repo.current_or_next(ctx.now)
    if event is None:
        raise EventNotFoundError("no in-progress or upcoming golf event in the store")
    return event


@dataclass(frozen=True)
class PlayerSeed:
    """Minimum needed to create a player first seen in a feed."""

    provider_id: str
    name: str
    first_name: str | None = None
    last_name: str | None = None
    country: str | None = None
    country_code: str | None = None


def ensure_players(
    ctx: SyncContext,
    resolver: IdentityResolver,
    provider: ProviderEnum,
    seeds: Iterable[PlayerSeed],
) -> tuple[dict[str, int], UpsertResult]:
    """Resolve every seed to a player id, creating players nobody knows yet."""

    column = Player.external_id_column(provider)
    ids: dict[str, int] = {}
    new_rows: dict[str, dict[str, Any]] = {}
    new_seeds: dict[str, PlayerSeed] = {}

    for seed in seeds:
        if seed.provider_id in ids or seed.provider_id in new_rows:
            continue
        match = resolver.resolve_player(
            provider,
            seed.provider_id,
            seed.name,
            first_name=seed.first_name,
            last_name=seed.last_name,
        )
        if match is not None:
            ids[seed.provider_id] = match.id
            continue

        first, last = seed.first_name, seed.last_name
        if first is None and last is None:
            first, last = split_name(seed.name)
        new_rows[seed.provider_id] = present(
            {
                column: seed.provider_id,
                "sport": resolver.sport,
                "name": seed.name,
                "name_norm": normalize_name(seed.name),
                "first_name": first or None,
                "last_name": last or None,
                "country": seed.country,
                "country_code": seed.country_code,
            }
        )
        new_seeds[seed.provider_id] = seed

    if not new_rows:
        return ids, UpsertResult()

    result = ctx.upserts.upsert(
        Player, list(new_rows.values()), key=(column,), source=provider.value
    )

    external = getattr(Player, column)
    stmt = select(Player.id, external).where(external.in_(list(new_rows)))
    for player_id, provider_id in ctx.session.execute(stmt):
        seed = new_seeds[provider_id]
        ids[provider_id] = player_id
        resolver.register_player(
            player_id,
            name=seed.name,
            first_name=seed.first_name,
            last_name=seed.last_name,
            external_ids={column: provider_id},
        )
    logger.info("%s: created %d new players", provider.value, result.created)
    return ids, result


def ensure_venue(
    ctx: SyncContext,
    resolver: IdentityResolver,
    name: str | None,
    *,
    city: str | None = None,
    state: str | None = None,
    country: str | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
) -> int | None:
    """Find or create a venue by name; coordinates are filled in when missing."""

    if not name or not normalize_event_name(name):
        return None

    repo = VenueRepository(ctx.session)
    match = resolver.resolve_venue(name)
    if match is not None:
        venue = repo.get(match.id)
        if venue is not None and venue.latitude is None and latitude is not None:
            repo.patch(venue, {"latitude": latitude, "longitude": longitude})
        return match.id

    venue = repo.add(
        Venue(
            name=name,
            name_norm=Venue.norm(name),
            city=city,
            state=state,
            country=country,
            latitude=latitude,
            longitude=longitude,
        )
    )
    resolver.register_venue(venue.id, name)
    return venue.id


def event_map_row(
    provider: ProviderEnum,
    key: str,
    event_id: int,
    *,
    name: str | None = None,
    start: Any = None,
    end: Any = None,
) -> dict[str, Any]:
    return present(
        {
            "provider": provider,
            "provider_event_key": key,
            "event_id": event_id,
            "event_name": name,
            "start_date": start,
            "end_date": end,
        }
    )


def write_event_maps(ctx: SyncContext, rows: list[dict[str, Any]]) -> UpsertResult:
    if not rows:
        return UpsertResult()
    return ctx.upserts.upsert(EventIdMap, rows, key=("provider", "provider_event_key"))
