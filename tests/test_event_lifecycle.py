from __future__ import annotations

from datetime import UTC, datetime, timedelta

from sports_sync.db.enums import EventStatusEnum
from sports_sync.db.models.core.event import Event
from sports_sync.sync.lifecycle import (
    LifecyclePolicy,
    advance,
    apply_lifecycle,
    default_end,
    derive_status,
    infer_round,
    merge_status,
)

T = datetime(2025, 4, 10, 12, 0, tzinfo=UTC)


def test_missing_end_defaults_to_three_days_after_start() -> None:
    assert default_end(T) == T + timedelta(days=3)


def test_status_uses_end_plus_buffer() -> None:
    end = default_end(T)

    assert derive_status(T, None, T - timedelta(minutes=1)) == EventStatusEnum.UPCOMING
    assert derive_status(T, None, T) == EventStatusEnum.IN_PROGRESS
    # Still in progress inside the late-finish buffer (weather delays, playoffs).
    assert derive_status(T, None, end + timedelta(hours=28)) == EventStatusEnum.IN_PROGRESS
    assert derive_status(T, None, end + timedelta(hours=30)) == EventStatusEnum.COMPLETED


def test_naive_datetimes_are_treated_as_utc() -> None:
    naive = T.replace(tzinfo=None)
    assert derive_status(naive, None, T + timedelta(hours=1)) == EventStatusEnum.IN_PROGRESS


def test_status_never_moves_backwards() -> None:
    assert merge_status(EventStatusEnum.COMPLETED, EventStatusEnum.UPCOMING) == (
        EventStatusEnum.COMPLETED
    )
    assert merge_status(EventStatusEnum.UPCOMING, EventStatusEnum.IN_PROGRESS) == (
        EventStatusEnum.IN_PROGRESS
    )
    assert merge_status(None, EventStatusEnum.UPCOMING) == EventStatusEnum.UPCOMING


def test_infer_round_is_clamped() -> None:
    assert infer_round(T, T - timedelta(hours=1)) is None
    assert infer_round(T, T) == 1
    assert infer_round(T, T + timedelta(days=1, hours=1)) == 2
    assert infer_round(T, T + timedelta(days=9)) == 4
    assert infer_round(T, T + timedelta(days=9), LifecyclePolicy(max_rounds=5)) == 5


def test_live_round_behind_calendar_keeps_the_later_round() -> None:
    now = T + timedelta(days=2, hours=2)  # calendar says round 3

    state = advance(
        start=T,
        end=None,
        stored_status=EventStatusEnum.IN_PROGRESS,
        stored_round=2,
        now=now,
        live_round=2,
    )

    assert state.current_round == 3
    assert state.status == EventStatusEnum.IN_PROGRESS


def test_live_round_ahead_of_calendar_wins() -> None:
    state = advance(
        start=T,
        end=None,
        stored_status=None,
        stored_round=None,
        now=T + timedelta(hours=3),
        live_round=2,
    )
    assert state.current_round == 2


def test_apply_lifecycle_updates_row_in_place() -> None:
    event = Event(
        name="Masters Tournament",
        name_norm="masters tournament",
        start_time=T,
        end_time=default_end(T),
        status=EventStatusEnum.UPCOMING,
        current_round=None,
    )

    changed = apply_lifecycle(event, T + timedelta(days=1, hours=1))
    assert changed is True
    assert event.status == EventStatusEnum.IN_PROGRESS
    assert event.current_round == 2

    assert apply_lifecycle(event, T + timedelta(days=1, hours=2)) is False
    # An earlier clock cannot pull the event back to UPCOMING.
    apply_lifecycle(event, T - timedelta(days=1))
    assert event.status == EventStatusEnum.IN_PROGRESS
    assert event.current_round == 2
