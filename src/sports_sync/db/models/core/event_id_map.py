from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sports_sync.db.base import Base, TimestampMixin
from sports_sync.db.enums import ProviderEnum


class EventIdMap(Base, TimestampMixin):
    """Provider event key -> canonical event, with cached name/dates for later matching."""

    __tablename__ = "event_id_maps"

    id: Mapped[int] = mapped_column(primary_key=True)

    provider: Mapped[ProviderEnum] = mapped_column(nullable=False)
    provider_event_key: Mapped[str] = mapped_column(String(64), nullable=False)

    event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )

    event_name: Mapped[str | None] = mapped_column(String(160), nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("provider", "provider_event_key", name="uq_event_id_maps_provider_key"),
        Index("ix_event_id_maps_event", "event_id"),
    )
