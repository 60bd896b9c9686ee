from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any

from sports_sync.db.enums import ProviderEnum
from sports_sync.ingestion.providers.base.adapter import ADAPTER_ERRORS, guarded_fetch
from sports_sync.ingestion.providers.base.errors import ExtractionError, format_failure_reason
from sports_sync.ingestion.providers.base.fields import to_float, to_int
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
from sports_sync.ingestion.providers.base.types import FetchResult, TourStatRecord
from sports_sync.ingestion.providers.pgatour.client import PgaTourClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatConfig:
    stat_id: str
    label: str
    column: str  # Player column the value lands in


STAT_CONFIGS: tuple[StatConfig, ...] = (
    StatConfig("120", "Scoring Average", "scoring_avg"),
    StatConfig("101", "Driving Distance", "driving_distance"),
    StatConfig("102", "Driving Accuracy", "driving_accuracy"),
    StatConfig("103", "Greens in Regulation", "gir"),
    StatConfig("130", "Scrambling", "scrambling"),
    StatConfig("104", "Putts per Round", "putts_per_round"),
    StatConfig("111", "Sand Saves", "sand_saves"),
)

_letters_re = re.compile(r"[a-zA-Z]")
_number_re = re.compile(r"[\d.]")


def parse_embedded_stat(html: str, config: StatConfig, *, year: int) -> list[TourStatRecord]:
    queries = [
        q
        for q in dehydrated_queries(extract_next_data(html))
        if isinstance(q.get("queryKey"), list)
        and q["queryKey"]
        and q["queryKey"][0] == "statDetails"
        and len(q["queryKey"]) > 1
        and isinstance(q["queryKey"][1], dict)
        and str(q["queryKey"][1].get("statId")) == config.stat_id
    ]
    # Prefer the season-level query for the requested year.
    queries.sort(
        key=lambda q: (
            q["queryKey"][1].get("year") != year,
            bool(q["queryKey"][1].get("eventQuery")),
        )
    )
    if not queries:
        raise ExtractionError(f"No statDetails query for stat {config.stat_id}")

    rows = ((queries[0].get("state") or {}).get("data") or {}).get("rows")
    if not isinstance(rows, list) or not rows:
        raise ExtractionError("No stat rows found in dehydratedState")

    records: list[TourStatRecord] = []
    for row in rows:
        if not isinstance(row, dict) or not row.get("playerName"):
            continue
        stats = row.get("stats") or [{}]
        value = to_float(stats[0].get("statValue"))
        if value is None:
            continue
        records.append(
            TourStatRecord(
                stat=config.column,
                name=str(row["playerName"]).strip(),
                value=value,
                provider_id=str(row["playerId"]) if row.get("playerId") else None,
                rank=to_int(str(row.get("rank") or "").lstrip("T")),
            )
        )
    return records


def parse_table_stat(html: str, config: StatConfig) -> list[TourStatRecord]:
    records: list[TourStatRecord] = []
    for cells in table_rows(html, min_cells=3):
        rank = to_int(cells[0].lstrip("T"))
        if rank is None:
            continue
        name = next(
            (c for c in cells[1:4] if _letters_re.search(c) and " " in c),
            None,
        )
        value = next(
            (to_float(c) for c in reversed(cells[2:]) if _number_re.search(c)),
            None,
        )
        if name is None or value is None:
            continue
        records.append(TourStatRecord(stat=config.column, name=name, value=value, rank=rank))
    return records


class PgaTourStatsAdapter:
    provider_key = ProviderEnum.PGATOUR.value

    def __init__(
        self, client: PgaTourClient, *, stat_configs: tuple[StatConfig, ...] = STAT_CONFIGS
    ) -> None:
        self.client = client
        self.stat_configs = stat_configs

    def close(self) -> None:
        self.client.close()

    def _fetch_stat(self, config: StatConfig, year: int) -> list[TourStatRecord]:
        try:
            html = self.client.get_stat_page(config.stat_id)
        except ADAPTER_ERRORS as e:
            logger.warning(
                "pgatour stat %s fetch failed: %s", config.stat_id, format_failure_reason(e)
            )
            return []

        outcome = run_strategy_chain(
            [
                ExtractionStrategy(
                    StrategyKind.EMBEDDED_DATA,
                    lambda: parse_embedded_stat(html, config, year=year),
                ),
                ExtractionStrategy(StrategyKind.HTML_TABLE, lambda: parse_table_stat(html, config)),
            ],
            source=f"pgatour stat {config.stat_id} ({config.label})",
        )
        return outcome.items

    def fetch_stats(self, *, year: int | None = None) -> FetchResult[TourStatRecord]:
        season = year or datetime.now(UTC).year

        def fetch() -> tuple[list[TourStatRecord], Any, int]:
            records: list[TourStatRecord] = []
            for config in self.stat_configs:
                records.extend(self._fetch_stat(config, season))
            if not records:
                raise ExtractionError("No PGA Tour stats extracted")
            return records, [asdict(r) for r in records], 0

        return guarded_fetch(self.provider_key, "stats", fetch)
