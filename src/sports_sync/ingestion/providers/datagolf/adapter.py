from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sports_sync.core.text import reorder_last_first, split_name
from sports_sync.db.enums import DfsPlatformEnum, PerformanceStatusEnum, ProviderEnum
from sports_sync.ingestion.codes import country_name, normalize_country_code, normalize_tour
from sports_sync.ingestion.dates import parse_datetime, parse_datetime_or_none
from sports_sync.ingestion.providers.base.adapter import guarded_fetch, map_rows
from sports_sync.ingestion.providers.base.errors import ExtractionError, ProviderMappingError
from sports_sync.ingestion.providers.base.fields import FieldMap, parse_position, parse_to_par
from sports_sync.ingestion.providers.base.types import (
    FetchResult,
    FieldEntryRecord,
    FinalStatRecord,
    LiveScoreRecord,
    PlayerRecord,
    PredictionRecord,
    ProjectionRecord,
    RankingRecord,
    ScheduleRecord,
    SkillRecord,
)
from sports_sync.ingestion.providers.datagolf.client import DataGolfClient

PLAYER_FIELDS = FieldMap(
    {
        "id": ("dg_id",),
        "name": ("player_name", "name"),
        "country": ("country",),
        "country_code": ("country_code",),
        "amateur": ("amateur",),
        "dk_id": ("dk_id",),
        "fd_id": ("fd_id",),
    }
)

RANKING_FIELDS = FieldMap(
    {
        "id": ("dg_id",),
        "name": ("player_name", "name"),
        "rank": ("datagolf_rank", "rank"),
        "skill": ("dg_skill_estimate",),
        "owgr_rank": ("owgr_rank",),
        "country": ("country",),
    }
)

SKILL_FIELDS = FieldMap(
    {
        "id": ("dg_id",),
        "name": ("player_name", "name"),
        "sg_total": ("sg_total",),
        "sg_putting": ("sg_putt",),
        "sg_approach": ("sg_app",),
        "sg_off_tee": ("sg_ott",),
        "sg_around_green": ("sg_arg",),
        "sg_tee_to_green": ("sg_t2g",),
    }
)

SCHEDULE_FIELDS = FieldMap(
    {
        "id": ("event_id", "dg_id"),
        "name": ("event_name", "name"),
        "course": ("course", "location"),
        "location": ("location",),
        "start": ("date", "start_date"),
        "end": ("end_date",),
        "tour": ("tour",),
        "purse": ("purse",),
        "major": ("major",),
        "signature": ("signature",),
        "playoff": ("playoff",),
        "latitude": ("latitude",),
        "longitude": ("longitude",),
    }
)

FIELD_FIELDS = FieldMap(
    {
        "id": ("dg_id",),
        "name": ("player_name", "name"),
        "country": ("country",),
        "tee_time": ("r1_teetime", "tee_time"),
        "start_hole": ("start_hole",),
        "dk_salary": ("dk_salary",),
        "fd_salary": ("fd_salary",),
        "dk_id": ("dk_id",),
        "fd_id": ("fd_id",),
    }
)

PREDICTION_FIELDS = FieldMap(
    {
        "id": ("dg_id",),
        "name": ("player_name", "name"),
        "win": ("win",),
        "top5": ("top_5",),
        "top10": ("top_10",),
        "top20": ("top_20",),
        "make_cut": ("make_cut",),
    }
)

PROJECTION_FIELDS = FieldMap(
    {
        "id": ("dg_id",),
        "name": ("player_name", "name"),
        "salary": ("salary",),
        "points": ("proj_points", "projection"),
        "ownership": ("proj_ownership", "ownership"),
    }
)

LIVE_FIELDS = FieldMap(
    {
        "id": ("dg_id",),
        "name": ("player_name", "name"),
        "round": ("current_round", "round"),
        "thru": ("thru", "holes_completed"),
        "position": ("current_pos", "position"),
        "total": ("total", "total_to_par"),
        "today": ("today", "today_to_par"),
        "status": ("status",),
        "win": ("win_prob", "win"),
        "top5": ("top_5_prob", "top_5"),
        "top10": ("top_10_prob", "top_10"),
        "top20": ("top_20_prob", "top_20"),
        "make_cut": ("make_cut_prob", "make_cut"),
        **{f"r{n}": (f"r{n}", f"round_{n}") for n in range(1, 5)},
    }
)

FINAL_FIELDS = FieldMap(
    {
        "id": ("dg_id",),
        "name": ("player_name", "name"),
        "position": ("fin_pos", "position"),
        "earnings": ("earnings",),
        "sg_total": ("sg_total",),
        "sg_putting": ("sg_putt",),
        "sg_approach": ("sg_app",),
        "sg_off_tee": ("sg_ott",),
        "sg_around_green": ("sg_arg",),
        "sg_tee_to_green": ("sg_t2g",),
    }
)

_STATUS_CODES: dict[str, PerformanceStatusEnum] = {
    "CUT": PerformanceStatusEnum.CUT,
    "MC": PerformanceStatusEnum.CUT,
    "WD": PerformanceStatusEnum.WD,
    "DQ": PerformanceStatusEnum.DQ,
}

_PROJECTION_SITES: dict[DfsPlatformEnum, str] = {
    DfsPlatformEnum.DRAFTKINGS: "draftkings",
    DfsPlatformEnum.FANDUEL: "fanduel",
}

LIVE_STATS = "sg_putt,sg_arg,sg_app,sg_ott,sg_t2g,sg_total"


def _collection(payload: Any, *keys: str) -> list[dict[str, Any]]:
    """Rows from a bare list, or from the first list-valued key of an object."""
    if isinstance(payload, list):
        rows = payload
    elif isinstance(payload, dict):
        rows = next((payload[k] for k in keys if isinstance(payload.get(k), list)), None)
        if rows is None:
            raise ExtractionError(f"expected one of {keys} in datagolf payload")
    else:
        raise ExtractionError(f"unexpected datagolf payload type {type(payload).__name__}")
    return [r for r in rows if isinstance(r, dict)]


def _required_id(fields: FieldMap, row: dict[str, Any]) -> str:
    value = fields.get_str(row, "id")
    if value is None:
        raise ProviderMappingError("datagolf row without dg_id", context={"row": row})
    return value


def _player_name(fields: FieldMap, row: dict[str, Any]) -> str:
    # DataGolf names are "Last, First".
    return reorder_last_first(fields.get_str(row, "name") or "")


def _status(raw_status: Any, raw_position: Any) -> str:
    for value in (raw_status, raw_position):
        if isinstance(value, str) and value.strip().upper() in _STATUS_CODES:
            return _STATUS_CODES[value.strip().upper()].value
    return PerformanceStatusEnum.ACTIVE.value


@dataclass(frozen=True)
class FeedEvent:
    """Which event a current-event feed says it is for."""

    event_id: str | None = None
    name: str | None = None


def feed_event(payload: Any) -> FeedEvent:
    """Event id and name from a feed header (top level, or `info` on the in-play feed)."""
    if not isinstance(payload, dict):
        return FeedEvent()
    info = payload.get("info") if isinstance(payload.get("info"), dict) else {}
    event_id = payload.get("event_id", info.get("event_id"))
    name = payload.get("event_name") or info.get("event_name")
    return FeedEvent(event_id=_text(event_id), name=_text(name))


def _text(value: Any) -> str | None:
    text = "" if value is None else str(value).strip()
    return text or None


class DataGolfAdapter:
    provider_key = ProviderEnum.DATAGOLF.value

    def __init__(self, client: DataGolfClient) -> None:
        self.client = client

    def close(self) -> None:
        self.client.close()

    # -----------------------------
    # Players & rankings
    # -----------------------------

    def fetch_players(self) -> FetchResult[PlayerRecord]:
        def fetch() -> tuple[list[PlayerRecord], Any, int]:
            payload = self.client.get("/get-player-list")
            rows = _collection(payload, "players")
            items, skipped = map_rows(self.provider_key, rows, self._player)
            return items, payload, skipped

        return guarded_fetch(self.provider_key, "players", fetch)

    def _player(self, row: dict[str, Any]) -> PlayerRecord:
        raw_name = PLAYER_FIELDS.get_str(row, "name") or ""
        first, last = split_name(raw_name)
        code = normalize_country_code(PLAYER_FIELDS.get_str(row, "country_code"))
        return PlayerRecord(
            provider_id=_required_id(PLAYER_FIELDS, row),
            name=reorder_last_first(raw_name),
            first_name=first or None,
            last_name=last or None,
            country=PLAYER_FIELDS.get_str(row, "country") or country_name(code),
            country_code=code,
            is_amateur=PLAYER_FIELDS.get_bool(row, "amateur"),
            draftkings_id=PLAYER_FIELDS.get_str(row, "dk_id"),
            fanduel_id=PLAYER_FIELDS.get_str(row, "fd_id"),
        )

    def fetch_rankings(self) -> FetchResult[RankingRecord]:
        def fetch() -> tuple[list[RankingRecord], Any, int]:
            payload = self.client.get("/preds/get-dg-rankings")
            items, skipped = map_rows(
                self.provider_key, _collection(payload, "rankings"), self._ranking
            )
            return items, payload, skipped

        return guarded_fetch(self.provider_key, "rankings", fetch)

    def _ranking(self, row: dict[str, Any]) -> RankingRecord | None:
        rank = RANKING_FIELDS.get_int(row, "rank")
        if rank is None:
            return None
        return RankingRecord(
            provider_id=_required_id(RANKING_FIELDS, row),
            name=_player_name(RANKING_FIELDS, row),
            rank=rank,
            skill_estimate=RANKING_FIELDS.get_float(row, "skill"),
            owgr_rank=RANKING_FIELDS.get_int(row, "owgr_rank"),
            country=RANKING_FIELDS.get_str(row, "country"),
        )

    def fetch_skill_ratings(self) -> FetchResult[SkillRecord]:
        def fetch() -> tuple[list[SkillRecord], Any, int]:
            payload = self.client.get("/preds/skill-ratings", params={"display": "value"})
            rows = _collection(payload, "players")
            items, skipped = map_rows(self.provider_key, rows, self._skill)
            return items, payload, skipped

        return guarded_fetch(self.provider_key, "skill_ratings", fetch)

    def _skill(self, row: dict[str, Any]) -> SkillRecord:
        return SkillRecord(
            provider_id=_required_id(SKILL_FIELDS, row),
            name=_player_name(SKILL_FIELDS, row),
            sg_total=SKILL_FIELDS.get_float(row, "sg_total"),
            sg_putting=SKILL_FIELDS.get_float(row, "sg_putting"),
            sg_approach=SKILL_FIELDS.get_float(row, "sg_approach"),
            sg_off_tee=SKILL_FIELDS.get_float(row, "sg_off_tee"),
            sg_around_green=SKILL_FIELDS.get_float(row, "sg_around_green"),
            sg_tee_to_green=SKILL_FIELDS.get_float(row, "sg_tee_to_green"),
        )

    # -----------------------------
    # Schedule & field
    # -----------------------------

    def fetch_schedule(self, tour: str = "pga") -> FetchResult[ScheduleRecord]:
        def fetch() -> tuple[list[ScheduleRecord], Any, int]:
            payload = self.client.get("/get-schedule", params={"tour": tour})
            items, skipped = map_rows(
                self.provider_key,
                _collection(payload, "schedule"),
                lambda row: self._schedule(row, default_tour=tour),
            )
            return items, payload, skipped

        return guarded_fetch(self.provider_key, "schedule", fetch)

    def _schedule(self, row: dict[str, Any], *, default_tour: str) -> ScheduleRecord | None:
        raw_start = SCHEDULE_FIELDS.get(row, "start")
        name = SCHEDULE_FIELDS.get_str(row, "name")
        if raw_start is None or name is None:
            return None

        city, state = None, None
        location = SCHEDULE_FIELDS.get_str(row, "location")
        if location and "," in location:
            city, _, state = (part.strip() for part in location.partition(","))

        return ScheduleRecord(
            provider_event_key=_required_id(SCHEDULE_FIELDS, row),
            name=name,
            start_time=parse_datetime(raw_start),
            end_time=parse_datetime_or_none(SCHEDULE_FIELDS.get(row, "end")),
            tour=normalize_tour(SCHEDULE_FIELDS.get_str(row, "tour") or default_tour),
            course_name=SCHEDULE_FIELDS.get_str(row, "course"),
            city=city,
            state=state or None,
            latitude=SCHEDULE_FIELDS.get_float(row, "latitude"),
            longitude=SCHEDULE_FIELDS.get_float(row, "longitude"),
            purse=SCHEDULE_FIELDS.get_float(row, "purse"),
            is_major=SCHEDULE_FIELDS.get_bool(row, "major"),
            is_signature=SCHEDULE_FIELDS.get_bool(row, "signature"),
            is_playoff=SCHEDULE_FIELDS.get_bool(row, "playoff"),
        )

    def fetch_field(self, tour_event: str | None = None) -> FetchResult[FieldEntryRecord]:
        def fetch() -> tuple[list[FieldEntryRecord], Any, int]:
            params = {"tour_event": tour_event} if tour_event else None
            payload = self.client.get("/field-updates", params=params)
            items, skipped = map_rows(self.provider_key, _collection(payload, "field"), self._field)
            return items, payload, skipped

        return guarded_fetch(self.provider_key, "field", fetch)

    def _field(self, row: dict[str, Any]) -> FieldEntryRecord:
        return FieldEntryRecord(
            provider_player_id=_required_id(FIELD_FIELDS, row),
            name=_player_name(FIELD_FIELDS, row),
            country=FIELD_FIELDS.get_str(row, "country"),
            tee_time=parse_datetime_or_none(FIELD_FIELDS.get(row, "tee_time")),
            start_hole=FIELD_FIELDS.get_int(row, "start_hole"),
            draftkings_salary=FIELD_FIELDS.get_int(row, "dk_salary"),
            fanduel_salary=FIELD_FIELDS.get_int(row, "fd_salary"),
            draftkings_id=FIELD_FIELDS.get_str(row, "dk_id"),
            fanduel_id=FIELD_FIELDS.get_str(row, "fd_id"),
        )

    # -----------------------------
    # Predictions, projections, live
    # -----------------------------

    def fetch_predictions(
        self, tour_event: str | None = None, market: str = "win"
    ) -> FetchResult[PredictionRecord]:
        def fetch() -> tuple[list[PredictionRecord], Any, int]:
            params: dict[str, Any] = {"market": market}
            if tour_event:
                params["tour_event"] = tour_event
            payload = self.client.get("/preds/pre-tournament", params=params)
            rows = _collection(payload, "baseline", "data")
            items, skipped = map_rows(self.provider_key, rows, self._prediction)
            return items, payload, skipped

        return guarded_fetch(self.provider_key, "predictions", fetch)

    def _prediction(self, row: dict[str, Any]) -> PredictionRecord:
        return PredictionRecord(
            provider_player_id=_required_id(PREDICTION_FIELDS, row),
            name=_player_name(PREDICTION_FIELDS, row),
            win=PREDICTION_FIELDS.get_float(row, "win"),
            top5=PREDICTION_FIELDS.get_float(row, "top5"),
            top10=PREDICTION_FIELDS.get_float(row, "top10"),
            top20=PREDICTION_FIELDS.get_float(row, "top20"),
            make_cut=PREDICTION_FIELDS.get_float(row, "make_cut"),
        )

    def fetch_projections(
        self, platform: DfsPlatformEnum, tour_event: str | None = None
    ) -> FetchResult[ProjectionRecord]:
        def fetch() -> tuple[list[ProjectionRecord], Any, int]:
            params: dict[str, Any] = {"site": _PROJECTION_SITES[platform]}
            if tour_event:
                params["tour_event"] = tour_event
            payload = self.client.get("/preds/fantasy-projection-defaults", params=params)
            rows = _collection(payload, "projections")
            items, skipped = map_rows(self.provider_key, rows, self._projection)
            return items, payload, skipped

        return guarded_fetch(self.provider_key, f"projections[{platform.value}]", fetch)

    def _projection(self, row: dict[str, Any]) -> ProjectionRecord:
        return ProjectionRecord(
            provider_player_id=_required_id(PROJECTION_FIELDS, row),
            name=_player_name(PROJECTION_FIELDS, row),
            salary=PROJECTION_FIELDS.get_int(row, "salary"),
            projected_points=PROJECTION_FIELDS.get_float(row, "points"),
            projected_ownership=PROJECTION_FIELDS.get_float(row, "ownership"),
        )

    def fetch_live(self, tour_event: str | None = None) -> FetchResult[LiveScoreRecord]:
        def fetch() -> tuple[list[LiveScoreRecord], Any, int]:
            params = {"tour_event": tour_event} if tour_event else None
            payload = self.client.get("/preds/in-play", params=params)
            rows = _collection(payload, "data", "players")
            items, skipped = map_rows(self.provider_key, rows, self._live)
            return items, payload, skipped

        return guarded_fetch(self.provider_key, "live", fetch)

    def _live(self, row: dict[str, Any]) -> LiveScoreRecord:
        raw_position = LIVE_FIELDS.get(row, "position")
        position, tied = parse_position(raw_position)
        rounds = {
            n: score
            for n in range(1, 5)
            if (score := LIVE_FIELDS.get_int(row, f"r{n}")) is not None
        }
        return LiveScoreRecord(
            provider_player_id=_required_id(LIVE_FIELDS, row),
            name=_player_name(LIVE_FIELDS, row),
            position=position,
            position_tied=tied,
            total_to_par=parse_to_par(LIVE_FIELDS.get(row, "total")),
            today_to_par=parse_to_par(LIVE_FIELDS.get(row, "today")),
            thru=LIVE_FIELDS.get_int(row, "thru"),
            current_round=LIVE_FIELDS.get_int(row, "round"),
            status=_status(LIVE_FIELDS.get(row, "status"), raw_position),
            rounds=rounds,
            win=LIVE_FIELDS.get_float(row, "win"),
            top5=LIVE_FIELDS.get_float(row, "top5"),
            top10=LIVE_FIELDS.get_float(row, "top10"),
            top20=LIVE_FIELDS.get_float(row, "top20"),
            make_cut=LIVE_FIELDS.get_float(row, "make_cut"),
        )

    def fetch_final_stats(self, tour_event: str | None = None) -> FetchResult[FinalStatRecord]:
        def fetch() -> tuple[list[FinalStatRecord], Any, int]:
            params: dict[str, Any] = {"stats": LIVE_STATS}
            if tour_event:
                params["tour_event"] = tour_event
            payload = self.client.get("/preds/live-tournament-stats", params=params)
            rows = _collection(payload, "live_stats", "data")
            items, skipped = map_rows(self.provider_key, rows, self._final)
            return items, payload, skipped

        return guarded_fetch(self.provider_key, "final_stats", fetch)

    def _final(self, row: dict[str, Any]) -> FinalStatRecord:
        raw_position = FINAL_FIELDS.get(row, "position")
        position, tied = parse_position(raw_position)
        return FinalStatRecord(
            provider_player_id=_required_id(FINAL_FIELDS, row),
            name=_player_name(FINAL_FIELDS, row),
            position=position,
            position_tied=tied,
            status=_status(None, raw_position),
            earnings=FINAL_FIELDS.get_float(row, "earnings"),
            sg_total=FINAL_FIELDS.get_float(row, "sg_total"),
            sg_putting=FINAL_FIELDS.get_float(row, "sg_putting"),
            sg_approach=FINAL_FIELDS.get_float(row, "sg_approach"),
            sg_off_tee=FINAL_FIELDS.get_float(row, "sg_off_tee"),
            sg_around_green=FINAL_FIELDS.get_float(row, "sg_around_green"),
            sg_tee_to_green=FINAL_FIELDS.get_float(row, "sg_tee_to_green"),
        )
