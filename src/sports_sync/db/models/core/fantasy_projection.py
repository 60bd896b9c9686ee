from __future__ import annotations

from sqlalchemy import Float, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sports_sync.db.base import Base, ProvenanceMixin, TimestampMixin
from sports_sync.db.enums import DfsPlatformEnum


class FantasyProjection(Base, TimestampMixin, ProvenanceMixin):
    __tablename__ = "fantasy_projections"

    id: Mapped[int] = mapped_column(primary_key=True)

    event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    platform: Mapped[DfsPlatformEnum] = mapped_column(nullable=False)

    salary: Mapped[int | None] = mapped_column(Integer, nullable=True)
    projected_points: Mapped[float | None] = mapped_column(Float, nullable=True)
    projected_ownership: Mapped[float | None] = mapped_column(Float, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "event_id", "player_id", "platform", name="uq_fantasy_projections_event_player_platform"
        ),
    )
