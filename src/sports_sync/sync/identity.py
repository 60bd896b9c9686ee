"""Map provider representations of players, events and venues onto canonical rows.

Matching order (first hit wins):
  1. external id stored on the canonical row (or an event_id_maps entry)
  2. exact normalized name ("first last" and "last first" for players)
  3. containment of normalized names (events and venues)
  4. start time within +/- N days (events, only when names fail)

A hit via 2-4 writes the provider id back onto the row when that column is empty and
the id is unowned, so the next sync resolves by id. Indices are loaded lazily from the
store and live as long as the resolver, i.e. one step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sports_sync.core.text import name_variants, normalize_event_name, normalize_name
from sports_sync.db.base import Base
from sports_sync.db.enums import ProviderEnum, SportEnum
from sports_sync.db.models.core.event import EVENT_EXTERNAL_ID_COLUMNS, Event
from sports_sync.db.models.core.event_id_map import EventIdMap
from sports_sync.db.models.core.player import (
    CROSS_PLATFORM_ID_COLUMNS,
    PLAYER_EXTERNAL_ID_COLUMNS,
    Player,
)
from sports_sync.db.models.core.venue import Venue
from sports_sync.ingestion.dates import ensure_utc
from sports_sync.ingestion.providers.base.errors import format_failure_reason

logger = logging.getLogger(__name__)

_PLAYER_ID_COLUMNS: tuple[str, ...] = tuple(
    dict.fromkeys([*PLAYER_EXTERNAL_ID_COLUMNS.values(), *CROSS_PLATFORM_ID_COLUMNS])
)
_EVENT_ID_COLUMNS: tuple[str, ...] = tuple(EVENT_EXTERNAL_ID_COLUMNS.values())


class MatchMethod(StrEnum):
    EXTERNAL_ID = "external_id"
    NAME = "name"
    CONTAINS = "contains"
    TIME_WINDOW = "time_window"


@dataclass(frozen=True)
class Match:
    id: int
    method: MatchMethod


@dataclass
class _ExternalIds:
    """column -> external id -> owning row id, plus the reverse per row."""

    owners: dict[str, dict[str, int]] = field(default_factory=dict)
    by_row: dict[int, dict[str, str | None]] = field(default_factory=dict)

    def add(self, row_id: int, values: dict[str, Any]) -> None:
        current = self.by_row.setdefault(row_id, {})
        for column, value in values.items():
            if value is None:
                current.setdefault(column, None)
                continue
            value = str(value)
            current[column] = value
            self.owners.setdefault(column, {})[value] = row_id

    def owner(self, column: str, value: str) -> int | None:
        return self.owners.get(column, {}).get(value)

    def value(self, row_id: int, column: str) -> str | None:
        return self.by_row.get(row_id, {}).get(column)

    def conflicts(self, row_id: int, column: str | None, value: str | None) -> bool:
        """The row already carries a different id for this provider."""
        if column is None or value is None:
            return False
        current = self.value(row_id, column)
        return current is not None and current != value


@dataclass
class _PlayerIndex:
    ids: _ExternalIds = field(default_factory=_ExternalIds)
    sport_ids: set[int] = field(default_factory=set)
    by_name: dict[str, list[int]] = field(default_factory=dict)

    def add_names(self, row_id: int, variants: set[str]) -> None:
        for variant in variants:
            ids = self.by_name.setdefault(variant, [])
            if row_id not in ids:
                ids.append(row_id)


@dataclass(frozen=True)
class _EventEntry:
    id: int
    name_norm: str
    start_time: datetime


@dataclass
class _EventIndex:
    ids: _ExternalIds = field(default_factory=_ExternalIds)
    sport_ids: set[int] = field(default_factory=set)
    entries: list[_EventEntry] = field(default_factory=list)
    # provider -> provider_event_key -> event id
    maps: dict[str, dict[str, int]] = field(default_factory=dict)


@dataclass(frozen=True)
class _VenueEntry:
    id: int
    name_norm: str


class IdentityResolver:
    def __init__(
        self,
        session: Session,
        *,
        sport: SportEnum = SportEnum.GOLF,
        match_window_days: int = 2,
    ) -> None:
        self.session = session
        self.sport = sport
        self.match_window = timedelta(days=match_window_days)
        self.linked = 0

        self._players: _PlayerIndex | None = None
        self._events: _EventIndex | None = None
        self._venues: list[_VenueEntry] | None = None

    def invalidate(self) -> None:
        """Drop all indices; the next lookup reloads from the store."""
        self._players = None
        self._events = None
        self._venues = None

    # -----------------------------
    # Players
    # -----------------------------

    def _player_index(self) -> _PlayerIndex:
        if self._players is not None:
            return self._players

        index = _PlayerIndex()
        stmt = select(
            Player.id,
            Player.sport,
            Player.name,
            Player.first_name,
            Player.last_name,
            *(getattr(Player, c) for c in _PLAYER_ID_COLUMNS),
        ).order_by(Player.id)
        for row in self.session.execute(stmt):
            mapping = row._mapping
            # Ids are unique across sports; names only match within one.
            index.ids.add(row.id, {c: mapping[c] for c in _PLAYER_ID_COLUMNS})
            if row.sport == self.sport:
                index.sport_ids.add(row.id)
                index.add_names(row.id, name_variants(row.name, row.first_name, row.last_name))

        self._players = index
        return index

    def resolve_player(
        self,
        provider: ProviderEnum | str,
        external_id: str | None,
        name: str | None,
        *,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> Match | None:
        index = self._player_index()
        column = PLAYER_EXTERNAL_ID_COLUMNS.get(ProviderEnum(provider))
        external_id = str(external_id) if external_id not in (None, "") else None

        if column and external_id:
            owner = index.ids.owner(column, external_id)
            if owner is not None:
                return Match(owner, MatchMethod.EXTERNAL_ID) if owner in index.sport_ids else None

        primary = normalize_name(name)
        variants = name_variants(name, first_name, last_name)
        ordered = [primary] + sorted(v for v in variants if v != primary)
        for variant in ordered:
            for candidate in index.by_name.get(variant, []):
                if index.ids.conflicts(candidate, column, external_id):
                    continue
                if column and external_id:
                    self._backfill(Player, index.ids, candidate, column, external_id)
                return Match(candidate, MatchMethod.NAME)
        return None

    def player_id(self, provider: ProviderEnum | str, external_id: str | None) -> int | None:
        """Id-only lookup; no name fallback."""
        if external_id in (None, ""):
            return None
        index = self._player_index()
        column = PLAYER_EXTERNAL_ID_COLUMNS[ProviderEnum(provider)]
        owner = index.ids.owner(column, str(external_id))
        return owner if owner in index.sport_ids else None

    def player_ids(self, provider: ProviderEnum | str) -> dict[str, int]:
        index = self._player_index()
        column = PLAYER_EXTERNAL_ID_COLUMNS[ProviderEnum(provider)]
        return {
            value: row_id
            for value, row_id in index.ids.owners.get(column, {}).items()
            if row_id in index.sport_ids
        }

    def player_external_id(self, player_id: int, column: str) -> str | None:
        return self._player_index().ids.value(player_id, column)

    def player_id_owner(self, column: str, value: str) -> int | None:
        """Which player (any sport) holds `value` in `column`."""
        return self._player_index().ids.owner(column, value)

    def link_player_ids(self, player_id: int, values: dict[str, str | None]) -> int:
        """Backfill several id columns (e.g. DFS site ids); returns how many were written."""
        index = self._player_index()
        written = 0
        for column, value in values.items():
            if value in (None, ""):
                continue
            if self._backfill(Player, index.ids, player_id, column, str(value)):
                written += 1
        return written

    def register_player(
        self,
        player_id: int,
        *,
        name: str,
        first_name: str | None = None,
        last_name: str | None = None,
        external_ids: dict[str, str | None] | None = None,
    ) -> None:
        """Make a freshly inserted player resolvable without reloading the index."""
        index = self._player_index()
        index.sport_ids.add(player_id)
        index.ids.add(player_id, external_ids or {})
        index.add_names(player_id, name_variants(name, first_name, last_name))

    # -----------------------------
    # Events
    # -----------------------------

    def _event_index(self) -> _EventIndex:
        if self._events is not None:
            return self._events

        index = _EventIndex()
        stmt = select(
            Event.id,
            Event.sport,
            Event.name_norm,
            Event.start_time,
            *(getattr(Event, c) for c in _EVENT_ID_COLUMNS),
        ).order_by(Event.start_time, Event.id)
        for row in self.session.execute(stmt):
            mapping = row._mapping
            index.ids.add(row.id, {c: mapping[c] for c in _EVENT_ID_COLUMNS})
            if row.sport == self.sport:
                index.sport_ids.add(row.id)
                index.entries.append(
                    _EventEntry(row.id, row.name_norm, ensure_utc(row.start_time))
                )

        for m in self.session.execute(
            select(EventIdMap.provider, EventIdMap.provider_event_key, EventIdMap.event_id)
        ):
            index.maps.setdefault(str(m.provider), {})[m.provider_event_key] = m.event_id

        self._events = index
        return index

    def resolve_event(
        self,
        provider: ProviderEnum | str,
        provider_event_key: str | None,
        name: str | None,
        start_time: datetime | None = None,
    ) -> Match | None:
        index = self._event_index()
        provider = ProviderEnum(provider)
        column = EVENT_EXTERNAL_ID_COLUMNS.get(provider)
        key = str(provider_event_key) if provider_event_key not in (None, "") else None

        if key is not None:
            if column:
                owner = index.ids.owner(column, key)
                if owner is not None:
                    if owner not in index.sport_ids:
                        return None
                    return Match(owner, MatchMethod.EXTERNAL_ID)
            mapped = index.maps.get(provider.value, {}).get(key)
            if mapped is not None:
                return Match(mapped, MatchMethod.EXTERNAL_ID)

        start = ensure_utc(start_time) if start_time is not None else None
        candidates = [
            e
            for e in index.entries
            if not index.ids.conflicts(e.id, column, key)
            and (start is None or e.start_time.year == start.year)
        ]

        match = self._match_event_candidates(candidates, normalize_event_name(name), start)
        if match is not None and column and key:
            self._backfill(Event, index.ids, match.id, column, key)
        return match

    def _match_event_candidates(
        self, candidates: list[_EventEntry], norm: str, start: datetime | None
    ) -> Match | None:
        def closest(entries: list[_EventEntry]) -> _EventEntry:
            if start is None:
                return entries[0]
            return min(entries, key=lambda e: abs(e.start_time - start))

        if norm:
            exact = [e for e in candidates if e.name_norm == norm]
            if exact:
                return Match(closest(exact).id, MatchMethod.NAME)

            # First match in start order wins; ambiguous containment is not disambiguated.
            for e in candidates:
                if e.name_norm and (norm in e.name_norm or e.name_norm in norm):
                    return Match(e.id, MatchMethod.CONTAINS)

        if start is not None:
            window = [e for e in candidates if abs(e.start_time - start) <= self.match_window]
            if window:
                return Match(closest(window).id, MatchMethod.TIME_WINDOW)
        return None

    def event_id(self, provider: ProviderEnum | str, provider_event_key: str | None) -> int | None:
        if provider_event_key in (None, ""):
            return None
        match = self.resolve_event(provider, provider_event_key, None)
        return match.id if match and match.method is MatchMethod.EXTERNAL_ID else None

    def register_event(
        self,
        event_id: int,
        *,
        name: str,
        start_time: datetime,
        external_ids: dict[str, str | None] | None = None,
    ) -> None:
        index = self._event_index()
        index.sport_ids.add(event_id)
        index.ids.add(event_id, external_ids or {})
        index.entries.append(
            _EventEntry(event_id, normalize_event_name(name), ensure_utc(start_time))
        )
        index.entries.sort(key=lambda e: (e.start_time, e.id))

    def register_event_map(self, provider: ProviderEnum | str, key: str, event_id: int) -> None:
        self._event_index().maps.setdefault(ProviderEnum(provider).value, {})[key] = event_id

    # -----------------------------
    # Venues
    # -----------------------------

    def _venue_index(self) -> list[_VenueEntry]:
        if self._venues is None:
            stmt = select(Venue.id, Venue.name_norm).order_by(Venue.id)
            self._venues = [_VenueEntry(r.id, r.name_norm) for r in self.session.execute(stmt)]
        return self._venues

    def resolve_venue(self, name: str | None) -> Match | None:
        norm = normalize_event_name(name)
        if not norm:
            return None
        venues = self._venue_index()
        for v in venues:
            if v.name_norm == norm:
                return Match(v.id, MatchMethod.NAME)
        for v in venues:
            if v.name_norm and (norm in v.name_norm or v.name_norm in norm):
                return Match(v.id, MatchMethod.CONTAINS)
        return None

    def register_venue(self, venue_id: int, name: str) -> None:
        self._venue_index().append(_VenueEntry(venue_id, normalize_event_name(name)))

    # -----------------------------
    # Backfill
    # -----------------------------

    def _backfill(
        self,
        model: type[Base],
        ids: _ExternalIds,
        row_id: int,
        column: str,
        value: str,
    ) -> bool:
        if ids.value(row_id, column) is not None or ids.owner(column, value) is not None:
            return False

        table_column = getattr(model, column)
        try:
            with self.session.begin_nested():
                self.session.execute(
                    update(model)
                    .where(model.id == row_id, table_column.is_(None))  # type: ignore[attr-defined]
                    .values({column: value})
                    .execution_options(synchronize_session=False)
                )
        except IntegrityError as e:
            logger.warning(
                "could not link %s=%s to %s %d: %s",
                column,
                value,
                model.__tablename__,
                row_id,
                format_failure_reason(e),
            )
            return False

        ids.add(row_id, {column: value})
        self.linked += 1
        logger.info("linked %s=%s to %s %d", column, value, model.__tablename__, row_id)
        return True
