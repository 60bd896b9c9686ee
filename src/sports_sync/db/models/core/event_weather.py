from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import JSON, Date, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from sports_sync.db.base import Base, ProvenanceMixin, TimestampMixin


class EventWeather(Base, TimestampMixin, ProvenanceMixin):
    __tablename__ = "event_weather"

    id: Mapped[int] = mapped_column(primary_key=True)

    event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    round_number: Mapped[int] = mapped_column(Integer, nullable=False)
    forecast_date: Mapped[date] = mapped_column(Date, nullable=False)

    temp_high: Mapped[float | None] = mapped_column(Float, nullable=True)
    temp_low: Mapped[float | None] = mapped_column(Float, nullable=True)
    wind_speed: Mapped[float | None] = mapped_column(Float, nullable=True)
    wind_gust: Mapped[float | None] = mapped_column(Float, nullable=True)
    wind_direction: Mapped[str | None] = mapped_column(String(4), nullable=True)
    precipitation: Mapped[float | None] = mapped_column(Float, nullable=True)
    conditions: Mapped[str | None] = mapped_column(String(40), nullable=True)
    difficulty_impact: Mapped[float | None] = mapped_column(Float, nullable=True)
    hourly: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("event_id", "round_number", name="uq_event_weather_event_round"),
    )
