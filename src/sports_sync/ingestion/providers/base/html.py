from __future__ import annotations

import json
from typing import Any

from bs4 import BeautifulSoup

from .errors import ExtractionError


def extract_next_data(html: str) -> dict[str, Any]:
    """Return `props.pageProps` from a Next.js `__NEXT_DATA__` script tag."""

    soup = BeautifulSoup(html, "html.parser")
    script = soup.find("script", id="__NEXT_DATA__")
    if script is None or not script.string:
        raise ExtractionError("No __NEXT_DATA__ found")

    data = json.loads(script.string)
    page_props = (data.get("props") or {}).get("pageProps")
    if not isinstance(page_props, dict):
        raise ExtractionError("No pageProps in __NEXT_DATA__")
    return page_props


def dehydrated_queries(page_props: dict[str, Any]) -> list[dict[str, Any]]:
    queries = (page_props.get("dehydratedState") or {}).get("queries") or []
    return [q for q in queries if isinstance(q, dict)]


def table_rows(html: str, *, min_cells: int = 1) -> list[list[str]]:
    """Text of each `<td>` for every body row of every table on the page."""

    soup = BeautifulSoup(html, "html.parser")
    rows: list[list[str]] = []
    for tr in soup.select("table tbody tr"):
        cells = [td.get_text(" ", strip=True) for td in tr.find_all("td")]
        if len(cells) >= min_cells:
            rows.append(cells)
    if not rows:
        raise ExtractionError("No table rows found in HTML")
    return rows
