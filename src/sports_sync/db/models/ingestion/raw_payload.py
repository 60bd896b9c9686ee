from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from sports_sync.db.base import Base


class RawPayload(Base):
    """Immutable snapshot of one provider fetch; only processed_at is ever updated."""

    __tablename__ = "raw_payloads"

    id: Mapped[int] = mapped_column(primary_key=True)

    provider: Mapped[str] = mapped_column(String(32), nullable=False)  # e.g., "datagolf"
    data_type: Mapped[str] = mapped_column(String(64), nullable=False)  # "schedule", "field"
    event_ref: Mapped[str | None] = mapped_column(String(64), nullable=True)

    payload: Mapped[Any] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
    )
    record_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    ingested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_raw_payloads_lookup", "provider", "data_type", "event_ref", "ingested_at"),
        Index("ix_raw_payloads_ingested_at", "ingested_at"),
    )
