from __future__ import annotations

import json

from sports_sync.ingestion.providers.pgatour.adapter import (
    STAT_CONFIGS,
    parse_embedded_stat,
    parse_table_stat,
)

SCORING = STAT_CONFIGS[0]


def _next_data(queries: list[dict]) -> str:
    data = {"props": {"pageProps": {"dehydratedState": {"queries": queries}}}}
    return (
        f'<html><script id="__NEXT_DATA__" type="application/json">{json.dumps(data)}'
        "</script></html>"
    )


def test_embedded_stat_prefers_season_query_for_year() -> None:
    def query(year: int, value: str, event_query: bool = False) -> dict:
        key = {"statId": "120", "year": year, "eventQuery": event_query}
        rows = [{"playerId": "46046", "playerName": "Scottie Scheffler", "rank": "T1",
                 "stats": [{"statValue": value}]}]
        return {"queryKey": ["statDetails", key], "state": {"data": {"rows": rows}}}

    html = _next_data([query(2024, "68.6"), query(2025, "69.1", True), query(2025, "68.9")])

    (record,) = parse_embedded_stat(html, SCORING, year=2025)

    assert record.stat == "scoring_avg"
    assert record.value == 68.9
    assert record.provider_id == "46046"
    assert record.rank == 1


def test_table_stat_fallback() -> None:
    html = """
    <table><tbody>
      <tr><td>T1</td><td>-</td><td>Scottie Scheffler</td><td>68.65</td></tr>
      <tr><td>2</td><td>-</td><td>Rory McIlroy</td><td>69.02</td></tr>
      <tr><td>Avg</td><td>-</td><td>Tour Average</td><td>71.00</td></tr>
    </tbody></table>
    """

    records = parse_table_stat(html, SCORING)

    assert [(r.name, r.value, r.rank) for r in records] == [
        ("Scottie Scheffler", 68.65, 1),
        ("Rory McIlroy", 69.02, 2),
    ]
