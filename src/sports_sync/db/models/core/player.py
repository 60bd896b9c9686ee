from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sports_sync.core.text import normalize_name
from sports_sync.db.base import Base, ProvenanceMixin, TimestampMixin
from sports_sync.db.enums import ProviderEnum, SportEnum


class Player(Base, TimestampMixin, ProvenanceMixin):
    __tablename__ = "players"

    id: Mapped[int] = mapped_column(primary_key=True)

    sport: Mapped[SportEnum] = mapped_column(nullable=False, default=SportEnum.GOLF)

    # One external id per provider; additive, never overwritten with a conflicting value.
    datagolf_id: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)
    espn_id: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)
    pgatour_id: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)
    owgr_id: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)
    gsis_id: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)

    # Cross-platform ids
    draftkings_id: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)
    fanduel_id: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)
    yahoo_id: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)
    sleeper_id: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)
    pfr_id: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(60), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(60), nullable=True)
    name_norm: Mapped[str] = mapped_column(String(120), nullable=False)

    country: Mapped[str | None] = mapped_column(String(64), nullable=True)
    country_code: Mapped[str | None] = mapped_column(String(8), nullable=True)
    primary_tour: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_amateur: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )

    # Rankings / skill
    datagolf_rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    datagolf_skill: Mapped[float | None] = mapped_column(Float, nullable=True)
    owgr_rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    owgr_points: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Strokes-gained breakdown
    sg_total: Mapped[float | None] = mapped_column(Float, nullable=True)
    sg_putting: Mapped[float | None] = mapped_column(Float, nullable=True)
    sg_approach: Mapped[float | None] = mapped_column(Float, nullable=True)
    sg_off_tee: Mapped[float | None] = mapped_column(Float, nullable=True)
    sg_around_green: Mapped[float | None] = mapped_column(Float, nullable=True)
    sg_tee_to_green: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Traditional tour stats
    scoring_avg: Mapped[float | None] = mapped_column(Float, nullable=True)
    driving_distance: Mapped[float | None] = mapped_column(Float, nullable=True)
    driving_accuracy: Mapped[float | None] = mapped_column(Float, nullable=True)
    gir: Mapped[float | None] = mapped_column(Float, nullable=True)
    scrambling: Mapped[float | None] = mapped_column(Float, nullable=True)
    putts_per_round: Mapped[float | None] = mapped_column(Float, nullable=True)
    sand_saves: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Season aggregates, recomputed from performances
    events: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    cuts_made: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    top5s: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    top10s: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    top25s: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    earnings: Mapped[float | None] = mapped_column(Float, nullable=True)

    # NFL
    position: Mapped[str | None] = mapped_column(String(8), nullable=True)
    team_abbr: Mapped[str | None] = mapped_column(String(8), nullable=True)
    jersey_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )

    # Bio
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    birth_place: Mapped[str | None] = mapped_column(String(120), nullable=True)
    college: Mapped[str | None] = mapped_column(String(120), nullable=True)
    height: Mapped[str | None] = mapped_column(String(16), nullable=True)
    weight: Mapped[int | None] = mapped_column(Integer, nullable=True)
    headshot_url: Mapped[str | None] = mapped_column(String, nullable=True)
    turned_pro: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Last ESPN bio lookup, successful or not.
    bio_checked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    performances: Mapped[list[Performance]] = relationship(back_populates="player")

    __table_args__ = (
        Index("ix_players_name_norm", "name_norm"),
        Index("ix_players_sport", "sport"),
    )

    @staticmethod
    def norm(value: str) -> str:
        return normalize_name(value)

    @staticmethod
    def external_id_column(provider: ProviderEnum | str) -> str:
        return PLAYER_EXTERNAL_ID_COLUMNS[ProviderEnum(provider)]


PLAYER_EXTERNAL_ID_COLUMNS: dict[ProviderEnum, str] = {
    ProviderEnum.DATAGOLF: "datagolf_id",
    ProviderEnum.ESPN: "espn_id",
    ProviderEnum.PGATOUR: "pgatour_id",
    ProviderEnum.OWGR: "owgr_id",
    ProviderEnum.NFLVERSE: "gsis_id",
}

CROSS_PLATFORM_ID_COLUMNS: tuple[str, ...] = (
    "draftkings_id",
    "fanduel_id",
    "yahoo_id",
    "sleeper_id",
    "pfr_id",
    "espn_id",
)


from sports_sync.db.models.core.performance import Performance  # noqa: E402
