from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sports_sync.core.text import normalize_event_name
from sports_sync.db.base import Base, TimestampMixin


class Venue(Base, TimestampMixin):
    __tablename__ = "venues"

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(160), nullable=False)
    name_norm: Mapped[str] = mapped_column(String(160), nullable=False)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    state: Mapped[str | None] = mapped_column(String, nullable=True)
    country: Mapped[str | None] = mapped_column(String, nullable=True)

    latitude: Mapped[Decimal | None] = mapped_column(nullable=True)
    longitude: Mapped[Decimal | None] = mapped_column(nullable=True)
    timezone: Mapped[str | None] = mapped_column(String, nullable=True)

    par: Mapped[int | None] = mapped_column(Integer, nullable=True)
    yardage: Mapped[int | None] = mapped_column(Integer, nullable=True)

    events: Mapped[list[Event]] = relationship(back_populates="venue")

    __table_args__ = (
        UniqueConstraint("name_norm", "city", name="uq_venues_name_norm_city"),
        Index("ix_venues_lat_lon", "latitude", "longitude"),
    )

    @staticmethod
    def norm(value: str) -> str:
        return normalize_event_name(value)


from sports_sync.db.models.core.event import Event  # noqa: E402
