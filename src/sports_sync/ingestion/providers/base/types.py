from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """What every adapter method returns; adapters never raise past this boundary."""

    items: list[T] = field(default_factory=list)
    raw: Any = None
    error: str | None = None
    skipped: int = 0  # rows dropped by per-row mapping errors

    @property
    def ok(self) -> bool:
        return self.error is None


# -----------------------------
# Golf
# -----------------------------


@dataclass(frozen=True)
class PlayerRecord:
    provider_id: str
    name: str
    first_name: str | None = None
    last_name: str | None = None
    country: str | None = None
    country_code: str | None = None
    is_amateur: bool = False
    draftkings_id: str | None = None
    fanduel_id: str | None = None


@dataclass(frozen=True)
class RankingRecord:
    name: str
    rank: int
    provider_id: str | None = None
    previous_rank: int | None = None
    points: float | None = None
    points_total: float | None = None
    events_played: int | None = None
    country: str | None = None
    country_code: str | None = None
    skill_estimate: float | None = None
    owgr_rank: int | None = None


@dataclass(frozen=True)
class SkillRecord:
    provider_id: str
    name: str
    sg_total: float | None = None
    sg_putting: float | None = None
    sg_approach: float | None = None
    sg_off_tee: float | None = None
    sg_around_green: float | None = None
    sg_tee_to_green: float | None = None


@dataclass(frozen=True)
class ScheduleRecord:
    provider_event_key: str
    name: str
    start_time: datetime
    end_time: datetime | None = None
    tour: str | None = None
    course_name: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    purse: float | None = None
    is_major: bool = False
    is_signature: bool = False
    is_playoff: bool = False


@dataclass(frozen=True)
class FieldEntryRecord:
    provider_player_id: str
    name: str
    country: str | None = None
    tee_time: datetime | None = None
    start_hole: int | None = None
    draftkings_salary: int | None = None
    fanduel_salary: int | None = None
    draftkings_id: str | None = None
    fanduel_id: str | None = None


@dataclass(frozen=True)
class PredictionRecord:
    provider_player_id: str
    name: str
    win: float | None = None
    top5: float | None = None
    top10: float | None = None
    top20: float | None = None
    make_cut: float | None = None


@dataclass(frozen=True)
class ProjectionRecord:
    provider_player_id: str
    name: str
    salary: int | None = None
    projected_points: float | None = None
    projected_ownership: float | None = None


@dataclass(frozen=True)
class LiveScoreRecord:
    provider_player_id: str
    name: str
    position: int | None = None
    position_tied: bool | None = None
    total_to_par: int | None = None
    today_to_par: int | None = None
    thru: int | None = None
    current_round: int | None = None
    status: str | None = None  # ACTIVE / CUT / WD / DQ
    rounds: dict[int, int] = field(default_factory=dict)
    win: float | None = None
    top5: float | None = None
    top10: float | None = None
    top20: float | None = None
    make_cut: float | None = None


@dataclass(frozen=True)
class FinalStatRecord:
    provider_player_id: str
    name: str
    position: int | None = None
    position_tied: bool | None = None
    status: str | None = None
    earnings: float | None = None
    sg_total: float | None = None
    sg_putting: float | None = None
    sg_approach: float | None = None
    sg_off_tee: float | None = None
    sg_around_green: float | None = None
    sg_tee_to_green: float | None = None


@dataclass(frozen=True)
class HoleScore:
    hole: int
    strokes: int
    par: int | None = None
    to_par: int | None = None


@dataclass(frozen=True)
class RoundLine:
    round_number: int
    strokes: int | None
    holes: list[HoleScore] = field(default_factory=list)


@dataclass(frozen=True)
class CompetitorRecord:
    provider_player_id: str
    name: str
    position: int | None = None
    total_to_par: int | None = None
    rounds: list[RoundLine] = field(default_factory=list)


@dataclass(frozen=True)
class AthleteBio:
    provider_player_id: str
    birth_date: date | None = None
    birth_place: str | None = None
    college: str | None = None
    height: str | None = None
    weight: int | None = None
    headshot_url: str | None = None
    turned_pro: int | None = None


@dataclass(frozen=True)
class TourStatRecord:
    stat: str  # canonical Player column, e.g. "scoring_avg"
    name: str
    value: float
    provider_id: str | None = None
    rank: int | None = None


@dataclass(frozen=True)
class WeatherDay:
    forecast_date: date
    temp_high: float | None
    temp_low: float | None
    wind_speed: float | None
    wind_gust: float | None
    wind_direction: str | None
    precipitation: float | None
    conditions: str
    difficulty_impact: float
    hourly: list[dict[str, Any]] = field(default_factory=list)


# -----------------------------
# NFL
# -----------------------------


@dataclass(frozen=True)
class NflPlayerRecord:
    gsis_id: str
    name: str
    first_name: str | None = None
    last_name: str | None = None
    position: str | None = None
    team_abbr: str | None = None
    jersey_number: int | None = None
    college: str | None = None
    birth_date: date | None = None
    height: str | None = None
    weight: int | None = None
    headshot_url: str | None = None
    is_active: bool = True
    espn_id: str | None = None
    yahoo_id: str | None = None
    sleeper_id: str | None = None
    pfr_id: str | None = None


@dataclass(frozen=True)
class NflGameRecord:
    game_id: str
    season: int
    week: int
    game_type: str
    start_time: datetime
    home_team_abbr: str
    away_team_abbr: str
    home_score: int | None = None
    away_score: int | None = None
    stadium: str | None = None


@dataclass(frozen=True)
class NflWeeklyStatRecord:
    gsis_id: str
    name: str
    season: int
    week: int
    team_abbr: str | None
    opponent_abbr: str | None
    stats: dict[str, float | int | None] = field(default_factory=dict)


@dataclass(frozen=True)
class NflRosterRecord:
    gsis_id: str
    name: str
    week: int
    team_abbr: str | None
    position: str | None
    jersey_number: int | None
    status: str | None
