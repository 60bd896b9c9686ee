from __future__ import annotations

from dataclasses import asdict
from typing import Any

from sports_sync.db.enums import ProviderEnum
from sports_sync.ingestion.codes import country_name, normalize_country_code
from sports_sync.ingestion.providers.base.adapter import guarded_fetch
from sports_sync.ingestion.providers.base.errors import ExtractionError
from sports_sync.ingestion.providers.base.fields import FieldMap, to_float, to_int
from sports_sync.ingestion.providers.base.html import (
    dehydrated_queries,
    extract_next_data,
    table_rows,
)
from sports_sync.ingestion.providers.base.strategies import (
    ExtractionStrategy,
    StrategyKind,
    run_strategy_chain,
)
from sports_sync.ingestion.providers.base.types import FetchResult, RankingRecord
from sports_sync.ingestion.providers.owgr.client import OwgrClient


API_FIELDS = FieldMap(
    {
        "rank": ("rank",),
        "previous_rank": ("lastWeekRank",),
        "points": ("pointsAverage",),
        "points_total": ("pointsTotal",),
        "events": ("divisorActual",),
    }
)

API_PLAYER_FIELDS = FieldMap(
    {
        "id": ("id",),
        "name": ("fullName",),
        "first": ("firstName",),
        "last": ("lastName",),
    }
)

# Embedded page data has used several spellings over time.
EMBEDDED_FIELDS = FieldMap(
    {
        "rank": ("rank", "currentRank", "position"),
        "previous_rank": ("lastWeekRank", "previousRank"),
        "name": ("playerName", "name", "fullName"),
        "country": ("country", "nationality", "countryName"),
        "points": ("avgPoints", "averagePoints", "avgPts", "pointsAverage"),
        "points_total": ("totalPoints", "totalPts", "points", "pointsTotal"),
        "events": ("totalEvents", "eventsPlayed", "events", "divisorActual"),
    }
)


def _api_record(raw: dict[str, Any]) -> RankingRecord | None:
    player = raw.get("player") or {}
    parts = (API_PLAYER_FIELDS.get_str(player, "first"), API_PLAYER_FIELDS.get_str(player, "last"))
    name = API_PLAYER_FIELDS.get_str(player, "name") or " ".join(p for p in parts if p)
    rank = API_FIELDS.get_int(raw, "rank")
    if not name or rank is None:
        return None
    country = player.get("country") or {}
    code = normalize_country_code(country.get("code3"))
    return RankingRecord(
        provider_id=API_PLAYER_FIELDS.get_str(player, "id"),
        name=name,
        rank=rank,
        previous_rank=API_FIELDS.get_int(raw, "previous_rank"),
        points=API_FIELDS.get_float(raw, "points"),
        points_total=API_FIELDS.get_float(raw, "points_total"),
        events_played=API_FIELDS.get_int(raw, "events"),
        country=country.get("name") or country_name(code),
        country_code=code,
    )


def _embedded_record(raw: dict[str, Any]) -> RankingRecord | None:
    name = EMBEDDED_FIELDS.get_str(raw, "name")
    if name is None and (raw.get("firstName") or raw.get("lastName")):
        name = f"{raw.get('firstName') or ''} {raw.get('lastName') or ''}".strip()
    rank = EMBEDDED_FIELDS.get_int(raw, "rank")
    if not name or rank is None:
        return None
    country = EMBEDDED_FIELDS.get(raw, "country")
    return RankingRecord(
        name=name,
        rank=rank,
        previous_rank=EMBEDDED_FIELDS.get_int(raw, "previous_rank"),
        points=EMBEDDED_FIELDS.get_float(raw, "points"),
        points_total=EMBEDDED_FIELDS.get_float(raw, "points_total"),
        events_played=EMBEDDED_FIELDS.get_int(raw, "events"),
        country=country if isinstance(country, str) else None,
    )


def parse_api_rankings(payload: dict[str, Any]) -> list[RankingRecord]:
    rankings = payload.get("rankingsList")
    if not isinstance(rankings, list):
        raise ExtractionError("No rankingsList in OWGR API response")
    return [r for r in (_api_record(x) for x in rankings if isinstance(x, dict)) if r]


def parse_embedded_rankings(html: str) -> list[RankingRecord]:
    page_props = extract_next_data(html)
    candidates: list[Any] = [page_props.get("rankingsList"), page_props.get("rankings")]
    for query in dehydrated_queries(page_props):
        data = (query.get("state") or {}).get("data") or {}
        if isinstance(data, dict):
            candidates.extend([data.get("rankingsList"), data.get("rankings")])

    for candidate in candidates:
        if isinstance(candidate, list) and candidate:
            records = []
            for raw in candidate:
                if not isinstance(raw, dict):
                    continue
                # API-shaped rows nest the player; flat rows carry playerName.
                record = _api_record(raw) if "player" in raw else _embedded_record(raw)
                if record is not None:
                    records.append(record)
            if records:
                return records
    raise ExtractionError("Could not find rankings in __NEXT_DATA__")


def parse_table_rankings(html: str) -> list[RankingRecord]:
    records: list[RankingRecord] = []
    for cells in table_rows(html, min_cells=5):
        rank = to_int(cells[0])
        if rank is None:
            continue
        name = cells[2] or cells[3]
        if not name:
            continue
        records.append(
            RankingRecord(
                name=name,
                rank=rank,
                previous_rank=to_int(cells[1]),
                country=cells[3] or None,
                points=to_float(cells[-3]),
                points_total=to_float(cells[-2]),
                events_played=to_int(cells[-1]),
            )
        )
    return records


class OwgrAdapter:
    provider_key = ProviderEnum.OWGR.value

    def __init__(self, client: OwgrClient, *, max_pages: int = 3, page_size: int = 200) -> None:
        self.client = client
        self.max_pages = max_pages
        self.page_size = page_size

    def close(self) -> None:
        self.client.close()

    def _page_strategies(self, page: int) -> list[ExtractionStrategy[RankingRecord]]:
        html_cache: dict[int, str] = {}

        def page_html() -> str:
            if page not in html_cache:
                html_cache[page] = self.client.get_rankings_page(page)
            return html_cache[page]

        return [
            ExtractionStrategy(
                StrategyKind.API,
                lambda: parse_api_rankings(self.client.get_rankings_api(page, self.page_size)),
            ),
            ExtractionStrategy(
                StrategyKind.EMBEDDED_DATA, lambda: parse_embedded_rankings(page_html())
            ),
            ExtractionStrategy(StrategyKind.HTML_TABLE, lambda: parse_table_rankings(page_html())),
        ]

    def fetch_rankings(self) -> FetchResult[RankingRecord]:
        """Page through the ranking until a page comes back short or empty."""

        def fetch() -> tuple[list[RankingRecord], Any, int]:
            records: list[RankingRecord] = []
            failures: list[str] = []
            for page in range(1, self.max_pages + 1):
                outcome = run_strategy_chain(
                    self._page_strategies(page), source=f"owgr rankings page {page}"
                )
                if not outcome.items:
                    failures.extend(outcome.failures)
                    break
                records.extend(outcome.items)
                if len(outcome.items) < self.page_size:
                    break
            if not records:
                raise ExtractionError(
                    "OWGR data unavailable: " + "; ".join(failures or ["no records"])
                )
            return records, [asdict(r) for r in records], 0

        return guarded_fetch(self.provider_key, "rankings", fetch)
