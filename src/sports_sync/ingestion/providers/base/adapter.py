from __future__ import annotations

import csv
import logging
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

import httpx

from .errors import ProviderError, format_failure_reason
from .types import FetchResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Anything an adapter may hit while fetching or parsing; surfaced as FetchResult.error.
ADAPTER_ERRORS: tuple[type[BaseException], ...] = (
    ProviderError,
    httpx.HTTPError,
    csv.Error,
    ValueError,
    KeyError,
    TypeError,
)


class ProviderAdapter(Protocol):
    """
    Sync steps depend on this, not on any HTTP client.

    Every public fetch method returns a FetchResult and never raises.
    """

    provider_key: str

    def close(self) -> None: ...


def guarded_fetch(
    provider: str,
    operation: str,
    fetch: Callable[[], tuple[list[T], Any, int]],
) -> FetchResult[T]:
    """Run `fetch` -> (items, raw, skipped) and turn any failure into FetchResult.error."""

    try:
        items, raw, skipped = fetch()
    except ADAPTER_ERRORS as e:
        reason = format_failure_reason(e)
        logger.warning("%s %s failed: %s", provider, operation, reason)
        return FetchResult(items=[], raw=None, error=reason)
    return FetchResult(items=items, raw=raw, skipped=skipped)


def map_rows(
    provider: str,
    rows: list[Any],
    mapper: Callable[[Any], T | None],
) -> tuple[list[T], int]:
    """Map raw rows one by one; a row that fails to map (or maps to None) is skipped."""

    items: list[T] = []
    skipped = 0
    for row in rows:
        try:
            item = mapper(row)
        except (ProviderError, ValueError, KeyError, TypeError, AttributeError) as e:
            skipped += 1
            logger.warning("%s: skipping unmappable row: %s", provider, format_failure_reason(e))
            continue
        if item is None:
            skipped += 1
            continue
        items.append(item)
    return items, skipped
