from __future__ import annotations

import re
from typing import Any

from sports_sync.db.enums import ProviderEnum
from sports_sync.ingestion.dates import parse_date_or_none, parse_datetime, parse_datetime_or_none
from sports_sync.ingestion.providers.base.adapter import guarded_fetch, map_rows
from sports_sync.ingestion.providers.base.errors import ExtractionError, ProviderMappingError
from sports_sync.ingestion.providers.base.fields import FieldMap, parse_to_par, to_int
from sports_sync.ingestion.providers.base.types import (
    AthleteBio,
    CompetitorRecord,
    FetchResult,
    HoleScore,
    RoundLine,
    ScheduleRecord,
)
from sports_sync.ingestion.providers.espn.client import EspnClient

CALENDAR_FIELDS = FieldMap(
    {
        "id": ("id",),
        "name": ("name", "shortName"),
        "start": ("date", "startDate"),
        "end": ("endDate",),
    }
)

COMPETITOR_FIELDS = FieldMap(
    {
        "id": ("id",),
        "order": ("order",),
        "score": ("score",),
    }
)

ATHLETE_NAME_FIELDS = FieldMap({"name": ("fullName", "displayName"), "id": ("id",)})

BIO_FIELDS = FieldMap(
    {
        "birth_date": ("dateOfBirth", "birthDate"),
        "birth_place": ("displayBirthPlace",),
        "height": ("displayHeight", "height"),
        "weight": ("displayWeight", "weight"),
        "turned_pro": ("turnedPro", "debutYear"),
    }
)

_digits_re = re.compile(r"\d+")


def _leading_int(value: Any) -> int | None:
    if value is None:
        return None
    match = _digits_re.search(str(value))
    return int(match.group()) if match else None


def _hole(raw: dict[str, Any]) -> HoleScore | None:
    hole = to_int(raw.get("period"))
    strokes = to_int(raw.get("value"))
    if hole is None or strokes is None:
        return None
    score_type = raw.get("scoreType") or {}
    to_par = parse_to_par(score_type.get("displayValue"))
    par = strokes - to_par if to_par is not None else None
    return HoleScore(hole=hole, strokes=strokes, par=par, to_par=to_par)


def _round(raw: dict[str, Any]) -> RoundLine | None:
    round_number = to_int(raw.get("period"))
    if round_number is None:
        return None
    holes = [h for h in (_hole(x) for x in raw.get("linescores") or []) if h is not None]
    return RoundLine(round_number=round_number, strokes=to_int(raw.get("value")), holes=holes)


class EspnAdapter:
    provider_key = ProviderEnum.ESPN.value

    def __init__(self, client: EspnClient) -> None:
        self.client = client

    def close(self) -> None:
        self.client.close()

    def fetch_calendar(self, year: int) -> FetchResult[ScheduleRecord]:
        def fetch() -> tuple[list[ScheduleRecord], Any, int]:
            payload = self.client.get("scoreboard", params={"dates": year})
            events = payload.get("events")
            if not isinstance(events, list):
                raise ExtractionError("espn scoreboard without events list")
            items, skipped = map_rows(self.provider_key, events, self._calendar_event)
            return items, payload, skipped

        return guarded_fetch(self.provider_key, "calendar", fetch)

    def _calendar_event(self, row: dict[str, Any]) -> ScheduleRecord | None:
        key = CALENDAR_FIELDS.get_str(row, "id")
        name = CALENDAR_FIELDS.get_str(row, "name")
        start = CALENDAR_FIELDS.get(row, "start")
        if key is None or name is None or start is None:
            return None
        return ScheduleRecord(
            provider_event_key=key,
            name=name,
            start_time=parse_datetime(start),
            end_time=parse_datetime_or_none(CALENDAR_FIELDS.get(row, "end")),
        )

    def fetch_scorecard(self, espn_event_id: str) -> FetchResult[CompetitorRecord]:
        def fetch() -> tuple[list[CompetitorRecord], Any, int]:
            payload = self.client.get(f"scoreboard/{espn_event_id}")
            competitions = payload.get("competitions") or []
            if not competitions:
                return [], payload, 0
            competitors = competitions[0].get("competitors") or []
            items, skipped = map_rows(self.provider_key, competitors, self._competitor)
            return items, payload, skipped

        return guarded_fetch(self.provider_key, f"scorecard[{espn_event_id}]", fetch)

    def _competitor(self, row: dict[str, Any]) -> CompetitorRecord:
        athlete = row.get("athlete") or {}
        player_id = COMPETITOR_FIELDS.get_str(row, "id") or ATHLETE_NAME_FIELDS.get_str(
            athlete, "id"
        )
        name = ATHLETE_NAME_FIELDS.get_str(athlete, "name")
        if player_id is None or name is None:
            raise ProviderMappingError("espn competitor without id/name", context={"id": player_id})

        score = COMPETITOR_FIELDS.get(row, "score")
        if isinstance(score, dict):
            score = score.get("displayValue")

        rounds = [r for r in (_round(x) for x in row.get("linescores") or []) if r is not None]
        return CompetitorRecord(
            provider_player_id=player_id,
            name=name,
            position=COMPETITOR_FIELDS.get_int(row, "order"),
            total_to_par=parse_to_par(score),
            rounds=rounds,
        )

    def fetch_athlete_bio(self, athlete_id: str) -> FetchResult[AthleteBio]:
        def fetch() -> tuple[list[AthleteBio], Any, int]:
            payload = self.client.get_athlete(athlete_id)
            athlete = payload.get("athlete")
            if not isinstance(athlete, dict):
                raise ExtractionError("espn athlete payload without athlete object")
            return [self._bio(athlete_id, athlete)], payload, 0

        return guarded_fetch(self.provider_key, f"athlete[{athlete_id}]", fetch)

    def _bio(self, athlete_id: str, athlete: dict[str, Any]) -> AthleteBio:
        headshot = athlete.get("headshot") or {}
        college = athlete.get("college") or {}
        return AthleteBio(
            provider_player_id=athlete_id,
            birth_date=parse_date_or_none(BIO_FIELDS.get(athlete, "birth_date")),
            birth_place=BIO_FIELDS.get_str(athlete, "birth_place"),
            college=college.get("name") if isinstance(college, dict) else None,
            height=BIO_FIELDS.get_str(athlete, "height"),
            weight=_leading_int(BIO_FIELDS.get(athlete, "weight")),
            headshot_url=headshot.get("href") if isinstance(headshot, dict) else None,
            turned_pro=_leading_int(BIO_FIELDS.get(athlete, "turned_pro")),
        )
