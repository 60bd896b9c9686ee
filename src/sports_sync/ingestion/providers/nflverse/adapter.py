from __future__ import annotations

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from sports_sync.db.enums import ProviderEnum
from sports_sync.ingestion.codes import FANTASY_POSITIONS, normalize_position, normalize_team_abbr
from sports_sync.ingestion.dates import ensure_utc, parse_date_or_none
from sports_sync.ingestion.providers.base.adapter import guarded_fetch, map_rows
from sports_sync.ingestion.providers.base.errors import ProviderMappingError
from sports_sync.ingestion.providers.base.fields import FieldMap, to_float, to_int
from sports_sync.ingestion.providers.base.types import (
    FetchResult,
    NflGameRecord,
    NflPlayerRecord,
    NflRosterRecord,
    NflWeeklyStatRecord,
)
from sports_sync.ingestion.providers.nflverse.client import NflverseClient

# Kickoff times in schedules.csv are US Eastern.
_KICKOFF_TZ = ZoneInfo("America/New_York")

_RETIRED_STATUSES = {"RET", "RES"}

PLAYER_FIELDS = FieldMap(
    {
        "id": ("gsis_id",),
        "name": ("display_name", "full_name"),
        "first": ("first_name",),
        "last": ("last_name",),
        "position": ("position",),
        "team": ("team_abbr", "latest_team"),
        "jersey": ("jersey_number",),
        "college": ("college_name", "college"),
        "birth_date": ("birth_date",),
        "height": ("height",),
        "weight": ("weight",),
        "headshot": ("headshot", "headshot_url"),
        "status": ("status",),
        "espn_id": ("espn_id",),
        "yahoo_id": ("yahoo_id",),
        "sleeper_id": ("sleeper_id",),
        "pfr_id": ("pfr_id",),
    }
)

GAME_FIELDS = FieldMap(
    {
        "id": ("game_id",),
        "season": ("season",),
        "week": ("week",),
        "game_type": ("game_type",),
        "gameday": ("gameday",),
        "gametime": ("gametime",),
        "home": ("home_team",),
        "away": ("away_team",),
        "home_score": ("home_score",),
        "away_score": ("away_score",),
        "stadium": ("stadium",),
    }
)

STAT_FIELDS = FieldMap(
    {
        "id": ("player_id",),
        "name": ("player_display_name", "player_name"),
        "season": ("season",),
        "week": ("week",),
        "team": ("recent_team", "team"),
        "opponent": ("opponent_team",),
    }
)

# Performance column -> nflverse player_stats column(s), summed when several.
STAT_COLUMNS: dict[str, tuple[str, ...]] = {
    "pass_completions": ("completions",),
    "pass_attempts": ("attempts",),
    "pass_yards": ("passing_yards",),
    "pass_tds": ("passing_tds",),
    "interceptions": ("interceptions",),
    "rush_attempts": ("carries",),
    "rush_yards": ("rushing_yards",),
    "rush_tds": ("rushing_tds",),
    "fumbles_lost": ("rushing_fumbles_lost", "receiving_fumbles_lost", "sack_fumbles_lost"),
    "targets": ("targets",),
    "receptions": ("receptions",),
    "rec_yards": ("receiving_yards",),
    "rec_tds": ("receiving_tds",),
    "fantasy_points_std": ("fantasy_points",),
    "fantasy_points_ppr": ("fantasy_points_ppr",),
}

_INT_STATS = {
    "pass_completions",
    "pass_attempts",
    "pass_tds",
    "interceptions",
    "rush_attempts",
    "rush_tds",
    "fumbles_lost",
    "targets",
    "receptions",
    "rec_tds",
}

ROSTER_FIELDS = FieldMap(
    {
        "id": ("gsis_id",),
        "name": ("full_name", "football_name"),
        "week": ("week",),
        "team": ("team",),
        "position": ("position",),
        "jersey": ("jersey_number",),
        "status": ("status",),
    }
)


def _required(fields: FieldMap, row: dict[str, Any], name: str) -> str:
    value = fields.get_str(row, name)
    if value is None:
        raise ProviderMappingError(f"nflverse row without {name}")
    return value


def _stat_value(row: dict[str, Any], column: str, sources: tuple[str, ...]) -> float | int | None:
    values = [v for v in (to_float(row.get(s)) for s in sources) if v is not None]
    if not values:
        return None
    total = sum(values)
    return int(total) if column in _INT_STATS else round(total, 2)


class NflverseAdapter:
    provider_key = ProviderEnum.NFLVERSE.value

    def __init__(self, client: NflverseClient) -> None:
        self.client = client

    def close(self) -> None:
        self.client.close()

    def fetch_players(self) -> FetchResult[NflPlayerRecord]:
        def fetch() -> tuple[list[NflPlayerRecord], Any, int]:
            rows = self.client.get_csv("players/players.csv")
            items, skipped = map_rows(self.provider_key, rows, self._player)
            return items, rows, skipped

        return guarded_fetch(self.provider_key, "players", fetch)

    def _player(self, row: dict[str, Any]) -> NflPlayerRecord | None:
        status = (PLAYER_FIELDS.get_str(row, "status") or "").upper()
        position = normalize_position(PLAYER_FIELDS.get_str(row, "position"))
        if status in _RETIRED_STATUSES or position not in FANTASY_POSITIONS:
            return None
        return NflPlayerRecord(
            gsis_id=_required(PLAYER_FIELDS, row, "id"),
            name=_required(PLAYER_FIELDS, row, "name"),
            first_name=PLAYER_FIELDS.get_str(row, "first"),
            last_name=PLAYER_FIELDS.get_str(row, "last"),
            position=position,
            team_abbr=normalize_team_abbr(PLAYER_FIELDS.get_str(row, "team")),
            jersey_number=PLAYER_FIELDS.get_int(row, "jersey"),
            college=PLAYER_FIELDS.get_str(row, "college"),
            birth_date=parse_date_or_none(PLAYER_FIELDS.get(row, "birth_date")),
            height=PLAYER_FIELDS.get_str(row, "height"),
            weight=PLAYER_FIELDS.get_int(row, "weight"),
            headshot_url=PLAYER_FIELDS.get_str(row, "headshot"),
            is_active=status != "INA",
            espn_id=PLAYER_FIELDS.get_str(row, "espn_id"),
            yahoo_id=PLAYER_FIELDS.get_str(row, "yahoo_id"),
            sleeper_id=PLAYER_FIELDS.get_str(row, "sleeper_id"),
            pfr_id=PLAYER_FIELDS.get_str(row, "pfr_id"),
        )

    def fetch_schedule(self, season: int) -> FetchResult[NflGameRecord]:
        def fetch() -> tuple[list[NflGameRecord], Any, int]:
            rows = [
                r
                for r in self.client.get_csv("schedules/schedules.csv")
                if to_int(r.get("season")) == season
            ]
            items, skipped = map_rows(self.provider_key, rows, self._game)
            return items, rows, skipped

        return guarded_fetch(self.provider_key, "schedule", fetch)

    def _game(self, row: dict[str, Any]) -> NflGameRecord:
        gameday = _required(GAME_FIELDS, row, "gameday")
        gametime = GAME_FIELDS.get_str(row, "gametime") or "13:00"
        kickoff = datetime.fromisoformat(f"{gameday}T{gametime}").replace(tzinfo=_KICKOFF_TZ)
        return NflGameRecord(
            game_id=_required(GAME_FIELDS, row, "id"),
            season=int(_required(GAME_FIELDS, row, "season")),
            week=int(_required(GAME_FIELDS, row, "week")),
            game_type=GAME_FIELDS.get_str(row, "game_type") or "REG",
            start_time=ensure_utc(kickoff),
            home_team_abbr=normalize_team_abbr(_required(GAME_FIELDS, row, "home")) or "",
            away_team_abbr=normalize_team_abbr(_required(GAME_FIELDS, row, "away")) or "",
            home_score=GAME_FIELDS.get_int(row, "home_score"),
            away_score=GAME_FIELDS.get_int(row, "away_score"),
            stadium=GAME_FIELDS.get_str(row, "stadium"),
        )

    def fetch_weekly_stats(
        self, season: int, week: int | None = None
    ) -> FetchResult[NflWeeklyStatRecord]:
        def fetch() -> tuple[list[NflWeeklyStatRecord], Any, int]:
            rows = self.client.get_csv(f"player_stats/player_stats_{season}.csv")
            if week is not None:
                rows = [r for r in rows if to_int(r.get("week")) == week]
            items, skipped = map_rows(self.provider_key, rows, self._weekly_stat)
            return items, rows, skipped

        return guarded_fetch(self.provider_key, "weekly_stats", fetch)

    def _weekly_stat(self, row: dict[str, Any]) -> NflWeeklyStatRecord:
        stats = {col: _stat_value(row, col, src) for col, src in STAT_COLUMNS.items()}
        std, ppr = stats.get("fantasy_points_std"), stats.get("fantasy_points_ppr")
        if std is not None and ppr is not None:
            stats["fantasy_points_half"] = round((std + ppr) / 2, 2)
        return NflWeeklyStatRecord(
            gsis_id=_required(STAT_FIELDS, row, "id"),
            name=STAT_FIELDS.get_str(row, "name") or "",
            season=int(_required(STAT_FIELDS, row, "season")),
            week=int(_required(STAT_FIELDS, row, "week")),
            team_abbr=normalize_team_abbr(STAT_FIELDS.get_str(row, "team")),
            opponent_abbr=normalize_team_abbr(STAT_FIELDS.get_str(row, "opponent")),
            stats=stats,
        )

    def fetch_latest_roster(self, season: int) -> FetchResult[NflRosterRecord]:
        """Roster rows for the most recent week present in the season file."""

        def fetch() -> tuple[list[NflRosterRecord], Any, int]:
            rows = self.client.get_csv(f"weekly_rosters/roster_weekly_{season}.csv")
            weeks = [w for w in (to_int(r.get("week")) for r in rows) if w is not None]
            if not weeks:
                return [], rows, 0
            latest = max(weeks)
            latest_rows = [r for r in rows if to_int(r.get("week")) == latest]
            items, skipped = map_rows(self.provider_key, latest_rows, self._roster)
            return items, latest_rows, skipped

        return guarded_fetch(self.provider_key, "rosters", fetch)

    def _roster(self, row: dict[str, Any]) -> NflRosterRecord:
        return NflRosterRecord(
            gsis_id=_required(ROSTER_FIELDS, row, "id"),
            name=ROSTER_FIELDS.get_str(row, "name") or "",
            week=int(_required(ROSTER_FIELDS, row, "week")),
            team_abbr=normalize_team_abbr(ROSTER_FIELDS.get_str(row, "team")),
            position=normalize_position(ROSTER_FIELDS.get_str(row, "position")),
            jersey_number=ROSTER_FIELDS.get_int(row, "jersey"),
            status=ROSTER_FIELDS.get_str(row, "status"),
        )
