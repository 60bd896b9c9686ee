from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sports_sync.core.text import normalize_event_name
from sports_sync.db.base import Base, ProvenanceMixin, TimestampMixin
from sports_sync.db.enums import EventStatusEnum, ProviderEnum, SportEnum


class Event(Base, TimestampMixin, ProvenanceMixin):
    """A scheduled competition: a golf tournament or an NFL game."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(primary_key=True)

    sport: Mapped[SportEnum] = mapped_column(nullable=False, default=SportEnum.GOLF)

    datagolf_id: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)
    espn_event_id: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)
    nflverse_game_id: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)

    name: Mapped[str] = mapped_column(String(160), nullable=False)
    name_norm: Mapped[str] = mapped_column(String(160), nullable=False)
    short_name: Mapped[str | None] = mapped_column(String(80), nullable=True)
    tour: Mapped[str | None] = mapped_column(String(32), nullable=True)
    course_name: Mapped[str | None] = mapped_column(String(160), nullable=True)

    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Derived by the lifecycle machine on every sync.
    status: Mapped[EventStatusEnum] = mapped_column(
        nullable=False, default=EventStatusEnum.UPCOMING
    )
    current_round: Mapped[int | None] = mapped_column(Integer, nullable=True)

    purse: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_major: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    is_signature: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    is_playoff: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    field_size: Mapped[int | None] = mapped_column(Integer, nullable=True)

    venue_id: Mapped[int | None] = mapped_column(
        ForeignKey("venues.id", ondelete="SET NULL"), nullable=True
    )

    # NFL
    season: Mapped[int | None] = mapped_column(Integer, nullable=True)
    week: Mapped[int | None] = mapped_column(Integer, nullable=True)
    game_type: Mapped[str | None] = mapped_column(String(8), nullable=True)
    home_team_abbr: Mapped[str | None] = mapped_column(String(8), nullable=True)
    away_team_abbr: Mapped[str | None] = mapped_column(String(8), nullable=True)
    home_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    away_score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    venue: Mapped[Venue | None] = relationship(back_populates="events")
    performances: Mapped[list[Performance]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_events_sport_start_time", "sport", "start_time"),
        Index("ix_events_status_start_time", "status", "start_time"),
        Index("ix_events_name_norm", "name_norm"),
        Index("ix_events_season_week", "season", "week"),
    )

    @staticmethod
    def norm(value: str) -> str:
        return normalize_event_name(value)


EVENT_EXTERNAL_ID_COLUMNS: dict[ProviderEnum, str] = {
    ProviderEnum.DATAGOLF: "datagolf_id",
    ProviderEnum.ESPN: "espn_event_id",
    ProviderEnum.NFLVERSE: "nflverse_game_id",
}


from sports_sync.db.models.core.performance import Performance  # noqa: E402
from sports_sync.db.models.core.venue import Venue  # noqa: E402
