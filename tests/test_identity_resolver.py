from __future__ import annotations

from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

import sports_sync.db.models  # noqa: F401
from sports_sync.db import DatabaseConfig, create_db_engine
from sports_sync.db.base import Base
from sports_sync.db.enums import ProviderEnum, SportEnum
from sports_sync.db.models.core.event import Event
from sports_sync.db.models.core.event_id_map import EventIdMap
from sports_sync.db.models.core.player import Player
from sports_sync.db.models.core.venue import Venue
from sports_sync.sync.identity import IdentityResolver, MatchMethod


def _make_session() -> Session:
    engine = create_db_engine(DatabaseConfig(database_url="sqlite+pysqlite:///:memory:"))
    Base.metadata.create_all(engine)
    return Session(engine)


def _player(session: Session, name: str, **kwargs) -> Player:
    first, _, last = name.partition(" ")
    player = Player(
        name=name,
        name_norm=Player.norm(name),
        first_name=first,
        last_name=last,
        **kwargs,
    )
    session.add(player)
    session.flush()
    return player


def _event(session: Session, name: str, start: datetime, **kwargs) -> Event:
    event = Event(
        name=name,
        name_norm=Event.norm(name),
        start_time=start,
        end_time=start + timedelta(days=3),
        **kwargs,
    )
    session.add(event)
    session.flush()
    return event


def test_last_first_name_matches_and_persists_provider_id() -> None:
    session = _make_session()
    hovland = _player(session, "Viktor Hovland")

    resolver = IdentityResolver(session)
    match = resolver.resolve_player(ProviderEnum.DATAGOLF, "12345", "Hovland, Viktor")

    assert match is not None
    assert match.id == hovland.id
    assert match.method == MatchMethod.NAME
    assert resolver.linked == 1
    stored = session.execute(
        select(Player.datagolf_id).where(Player.id == hovland.id)
    ).scalar_one()
    assert stored == "12345"

    # A fresh resolver now finds the row by id alone.
    again = IdentityResolver(session).resolve_player(ProviderEnum.DATAGOLF, "12345", None)
    assert again is not None
    assert again.method == MatchMethod.EXTERNAL_ID


def test_name_match_skips_rows_with_a_different_provider_id() -> None:
    session = _make_session()
    _player(session, "Tom Kim", datagolf_id="999")

    resolver = IdentityResolver(session)
    assert resolver.resolve_player(ProviderEnum.DATAGOLF, "12345", "Tom Kim") is None
    # Another provider's id is still free to link.
    match = resolver.resolve_player(ProviderEnum.ESPN, "e1", "Kim, Tom")
    assert match is not None
    assert resolver.player_external_id(match.id, "espn_id") == "e1"


def test_provider_id_owned_by_another_sport_does_not_match() -> None:
    session = _make_session()
    _player(session, "Josh Allen", sport=SportEnum.NFL, espn_id="3918298")

    resolver = IdentityResolver(session, sport=SportEnum.GOLF)
    assert resolver.resolve_player(ProviderEnum.ESPN, "3918298", "Josh Allen") is None
    assert resolver.player_id_owner("espn_id", "3918298") is not None


def test_backfill_never_steals_an_owned_id() -> None:
    session = _make_session()
    owner = _player(session, "Rory McIlroy", draftkings_id="dk-1")
    other = _player(session, "Shane Lowry")

    resolver = IdentityResolver(session)
    assert resolver.link_player_ids(other.id, {"draftkings_id": "dk-1"}) == 0
    assert resolver.link_player_ids(other.id, {"draftkings_id": "dk-2", "fanduel_id": None}) == 1
    assert resolver.player_id_owner("draftkings_id", "dk-1") == owner.id
    assert resolver.player_id_owner("draftkings_id", "dk-2") == other.id


def test_event_match_order_name_then_containment_then_time_window() -> None:
    session = _make_session()
    start = datetime(2025, 4, 10, 12, 0, tzinfo=UTC)
    masters = _event(session, "Masters Tournament", start, datagolf_id="14")
    heritage = _event(session, "RBC Heritage", start + timedelta(days=7))

    resolver = IdentityResolver(session)

    exact = resolver.resolve_event(ProviderEnum.ESPN, None, "The RBC Heritage", start)
    assert exact is not None
    assert (exact.id, exact.method) == (heritage.id, MatchMethod.NAME)

    contains = resolver.resolve_event(ProviderEnum.ESPN, "401703504", "Masters", start)
    assert contains is not None
    assert (contains.id, contains.method) == (masters.id, MatchMethod.CONTAINS)
    assert resolver.event_id(ProviderEnum.ESPN, "401703504") == masters.id

    window = resolver.resolve_event(
        ProviderEnum.ESPN, None, "Augusta National Invitational", start + timedelta(days=1)
    )
    assert window is not None
    assert (window.id, window.method) == (masters.id, MatchMethod.TIME_WINDOW)

    far = start + timedelta(days=30)
    assert resolver.resolve_event(ProviderEnum.ESPN, None, "Unknown Open", far) is None


def test_event_match_is_limited_to_the_same_year() -> None:
    session = _make_session()
    _event(session, "RBC Heritage", datetime(2024, 4, 18, tzinfo=UTC))

    resolver = IdentityResolver(session)
    assert resolver.resolve_event(
        ProviderEnum.ESPN, None, "RBC Heritage", datetime(2025, 4, 17, tzinfo=UTC)
    ) is None
    assert resolver.resolve_event(
        ProviderEnum.ESPN, None, "RBC Heritage", datetime(2024, 4, 18, tzinfo=UTC)
    ) is not None


def test_event_id_map_resolves_providers_without_an_id_column() -> None:
    session = _make_session()
    event = _event(session, "The Players Championship", datetime(2025, 3, 13, tzinfo=UTC))
    session.add(
        EventIdMap(
            provider=ProviderEnum.PGATOUR,
            provider_event_key="R2025011",
            event_id=event.id,
        )
    )
    session.flush()

    resolver = IdentityResolver(session)
    assert resolver.event_id(ProviderEnum.PGATOUR, "R2025011") == event.id
    assert resolver.event_id(ProviderEnum.PGATOUR, "R2025012") is None


def test_venue_resolution_exact_then_containment() -> None:
    session = _make_session()
    session.add(Venue(name="TPC Sawgrass", name_norm=Venue.norm("TPC Sawgrass")))
    augusta = "Augusta National Golf Club"
    session.add(Venue(name=augusta, name_norm=Venue.norm(augusta)))
    session.flush()

    resolver = IdentityResolver(session)
    exact = resolver.resolve_venue("tpc sawgrass")
    assert exact is not None and exact.method == MatchMethod.NAME
    contains = resolver.resolve_venue("Augusta National")
    assert contains is not None and contains.method == MatchMethod.CONTAINS
    assert resolver.resolve_venue("Pebble Beach Golf Links") is None
    assert resolver.resolve_venue("") is None
