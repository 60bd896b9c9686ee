from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from sports_sync.db.enums import EventStatusEnum, SportEnum
from sports_sync.db.models.core.event import Event
from sports_sync.db.models.core.performance import Performance
from sports_sync.db.models.core.venue import Venue
from sports_sync.db.repos.base import BaseRepository


class EventRepository(BaseRepository[Event]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=Event)

    def list_without_venue(self, sport: SportEnum = SportEnum.GOLF) -> list[Event]:
        return self.all_where(Event.sport == sport, Event.venue_id.is_(None))

    def list_weather_candidates(self, *, until: datetime, limit: int) -> list[Event]:
        """Upcoming/in-progress golf events with venue coordinates starting before `until`."""

        stmt = (
            select(Event)
            .join(Venue, Event.venue_id == Venue.id)
            .where(
                Event.sport == SportEnum.GOLF,
                Event.status.in_((EventStatusEnum.UPCOMING, EventStatusEnum.IN_PROGRESS)),
                Event.start_time <= until,
                Venue.latitude.is_not(None),
                Venue.longitude.is_not(None),
            )
            .order_by(Event.start_time)
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all())

    def latest_unfinalized(self) -> Event | None:
        """
        The COMPLETED golf event finalize should work on when none is named.

        The most recent completed event if nothing was recorded for it yet, else the most
        recent one with performances that have no fantasy points.
        """

        completed = (Event.sport == SportEnum.GOLF, Event.status == EventStatusEnum.COMPLETED)
        latest = self.session.execute(
            select(Event).where(*completed).order_by(Event.start_time.desc()).limit(1)
        ).scalars().first()
        if latest is None:
            return None
        recorded = select(Performance.id).where(Performance.event_id == latest.id).exists()
        if not self.session.scalar(select(recorded)):
            return latest

        unscored = (
            select(Performance.id)
            .where(Performance.event_id == Event.id, Performance.fantasy_points.is_(None))
            .exists()
        )
        stmt = select(Event).where(*completed, unscored).order_by(Event.start_time.desc()).limit(1)
        return self.session.execute(stmt).scalars().first()

    def current_or_next(self, now: datetime) -> Event | None:
        """The in-progress golf event, else the next upcoming one."""

        stmt = (
            select(Event)
            .where(Event.sport == SportEnum.GOLF, Event.status == EventStatusEnum.IN_PROGRESS)
            .order_by(Event.start_time.desc())
            .limit(1)
        )
        event = self.session.execute(stmt).scalars().first()
        if event is not None:
            return event
        stmt = (
            select(Event)
            .where(Event.sport == SportEnum.GOLF, Event.start_time >= now)
            .order_by(Event.start_time)
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()
