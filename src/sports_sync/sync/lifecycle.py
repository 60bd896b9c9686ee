"""Tournament lifecycle: status and current round derived from time plus feed signals.

Both are monotonic: a recomputation can only move an event forward.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from sports_sync.db.enums import EventStatusEnum
from sports_sync.db.models.core.event import Event
from sports_sync.ingestion.dates import ensure_utc

STATUS_ORDER: dict[EventStatusEnum, int] = {
    EventStatusEnum.UPCOMING: 0,
    EventStatusEnum.IN_PROGRESS: 1,
    EventStatusEnum.COMPLETED: 2,
}


@dataclass(frozen=True)
class LifecyclePolicy:
    default_duration_days: int = 3
    end_buffer_hours: int = 29
    max_rounds: int = 4


@dataclass(frozen=True)
class LifecycleState:
    status: EventStatusEnum
    current_round: int | None


def default_end(start: datetime, policy: LifecyclePolicy = LifecyclePolicy()) -> datetime:
    return ensure_utc(start) + timedelta(days=policy.default_duration_days)


def effective_end(
    start: datetime, end: datetime | None, policy: LifecyclePolicy = LifecyclePolicy()
) -> datetime:
    """Scheduled end (or start + default duration) plus the late-finish buffer."""
    base = ensure_utc(end) if end is not None else default_end(start, policy)
    return base + timedelta(hours=policy.end_buffer_hours)


def derive_status(
    start: datetime,
    end: datetime | None,
    now: datetime,
    policy: LifecyclePolicy = LifecyclePolicy(),
) -> EventStatusEnum:
    start, now = ensure_utc(start), ensure_utc(now)
    if now > effective_end(start, end, policy):
        return EventStatusEnum.COMPLETED
    if now >= start:
        return EventStatusEnum.IN_PROGRESS
    return EventStatusEnum.UPCOMING


def merge_status(
    stored: EventStatusEnum | None, derived: EventStatusEnum
) -> EventStatusEnum:
    """The later of the two states; never moves backwards."""
    if stored is None:
        return derived
    return stored if STATUS_ORDER[stored] >= STATUS_ORDER[derived] else derived


def infer_round(
    start: datetime, now: datetime, policy: LifecyclePolicy = LifecyclePolicy()
) -> int | None:
    start, now = ensure_utc(start), ensure_utc(now)
    if now < start:
        return None
    days = (now - start) // timedelta(days=1)
    return max(1, min(policy.max_rounds, days + 1))


def merge_round(*candidates: int | None) -> int | None:
    present = [c for c in candidates if c is not None]
    return max(present) if present else None


def advance(
    *,
    start: datetime,
    end: datetime | None,
    stored_status: EventStatusEnum | None,
    stored_round: int | None,
    now: datetime,
    live_round: int | None = None,
    policy: LifecyclePolicy = LifecyclePolicy(),
) -> LifecycleState:
    status = merge_status(stored_status, derive_status(start, end, now, policy))
    current_round = merge_round(stored_round, live_round, infer_round(start, now, policy))
    return LifecycleState(status=status, current_round=current_round)


def apply_lifecycle(
    event: Event,
    now: datetime,
    *,
    live_round: int | None = None,
    policy: LifecyclePolicy = LifecyclePolicy(),
) -> bool:
    """Recompute status/current_round on an event row in place; True if anything changed."""
    state = advance(
        start=event.start_time,
        end=event.end_time,
        stored_status=event.status,
        stored_round=event.current_round,
        now=now,
        live_round=live_round,
        policy=policy,
    )
    changed = (state.status, state.current_round) != (event.status, event.current_round)
    event.status = state.status
    event.current_round = state.current_round
    return changed
