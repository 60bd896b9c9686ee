from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from sports_sync.db.base import Base, ProvenanceMixin, TimestampMixin


class RoundScore(Base, TimestampMixin, ProvenanceMixin):
    __tablename__ = "round_scores"

    id: Mapped[int] = mapped_column(primary_key=True)

    event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    round_number: Mapped[int] = mapped_column(Integer, nullable=False)

    strokes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tee_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # [{"hole": 1, "par": 4, "strokes": 3, "to_par": -1}, ...]
    holes: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=True
    )

    eagles: Mapped[int | None] = mapped_column(Integer, nullable=True)
    birdies: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pars: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bogeys: Mapped[int | None] = mapped_column(Integer, nullable=True)
    double_bogeys: Mapped[int | None] = mapped_column(Integer, nullable=True)
    worse_than_double: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "event_id", "player_id", "round_number", name="uq_round_scores_event_player_round"
        ),
    )
