from __future__ import annotations

from sqlalchemy import Boolean, Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sports_sync.db.base import Base, ProvenanceMixin, TimestampMixin
from sports_sync.db.enums import PerformanceStatusEnum


class Performance(Base, TimestampMixin, ProvenanceMixin):
    """One player's result in one event; filled in as field -> live -> final data arrives."""

    __tablename__ = "performances"

    id: Mapped[int] = mapped_column(primary_key=True)

    event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )

    status: Mapped[PerformanceStatusEnum] = mapped_column(
        nullable=False, default=PerformanceStatusEnum.ACTIVE
    )
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    position_tied: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    total_to_par: Mapped[int | None] = mapped_column(Integer, nullable=True)
    today_to_par: Mapped[int | None] = mapped_column(Integer, nullable=True)
    thru: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_round: Mapped[int | None] = mapped_column(Integer, nullable=True)

    round1: Mapped[int | None] = mapped_column(Integer, nullable=True)
    round2: Mapped[int | None] = mapped_column(Integer, nullable=True)
    round3: Mapped[int | None] = mapped_column(Integer, nullable=True)
    round4: Mapped[int | None] = mapped_column(Integer, nullable=True)

    win_probability: Mapped[float | None] = mapped_column(Float, nullable=True)
    top5_probability: Mapped[float | None] = mapped_column(Float, nullable=True)
    top10_probability: Mapped[float | None] = mapped_column(Float, nullable=True)
    top20_probability: Mapped[float | None] = mapped_column(Float, nullable=True)
    make_cut_probability: Mapped[float | None] = mapped_column(Float, nullable=True)

    sg_total: Mapped[float | None] = mapped_column(Float, nullable=True)
    sg_putting: Mapped[float | None] = mapped_column(Float, nullable=True)
    sg_approach: Mapped[float | None] = mapped_column(Float, nullable=True)
    sg_off_tee: Mapped[float | None] = mapped_column(Float, nullable=True)
    sg_around_green: Mapped[float | None] = mapped_column(Float, nullable=True)
    sg_tee_to_green: Mapped[float | None] = mapped_column(Float, nullable=True)

    earnings: Mapped[float | None] = mapped_column(Float, nullable=True)
    fantasy_points: Mapped[float | None] = mapped_column(Float, nullable=True)

    # NFL weekly stat line
    team_abbr: Mapped[str | None] = mapped_column(String(8), nullable=True)
    pass_attempts: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pass_completions: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pass_yards: Mapped[float | None] = mapped_column(Float, nullable=True)
    pass_tds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    interceptions: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rush_attempts: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rush_yards: Mapped[float | None] = mapped_column(Float, nullable=True)
    rush_tds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    fumbles_lost: Mapped[int | None] = mapped_column(Integer, nullable=True)
    targets: Mapped[int | None] = mapped_column(Integer, nullable=True)
    receptions: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rec_yards: Mapped[float | None] = mapped_column(Float, nullable=True)
    rec_tds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    fantasy_points_std: Mapped[float | None] = mapped_column(Float, nullable=True)
    fantasy_points_ppr: Mapped[float | None] = mapped_column(Float, nullable=True)
    fantasy_points_half: Mapped[float | None] = mapped_column(Float, nullable=True)

    event: Mapped[Event] = relationship(back_populates="performances")
    player: Mapped[Player] = relationship(back_populates="performances")

    __table_args__ = (
        UniqueConstraint("event_id", "player_id", name="uq_performances_event_player"),
        Index("ix_performances_player", "player_id"),
    )


from sports_sync.db.models.core.event import Event  # noqa: E402
from sports_sync.db.models.core.player import Player  # noqa: E402
