from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

from .errors import ExtractionError, ProviderError, format_failure_reason

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StrategyKind(StrEnum):
    API = "api"
    EMBEDDED_DATA = "embedded_data"  # e.g. Next.js __NEXT_DATA__ script
    HTML_TABLE = "html_table"


@dataclass(frozen=True)
class ExtractionStrategy(Generic[T]):
    """One way to get a list of normalized records out of a source.

    `run` must return a non-empty list or raise.
    """

    kind: StrategyKind
    run: Callable[[], list[T]]


@dataclass(frozen=True)
class ChainOutcome(Generic[T]):
    items: list[T]
    kind: StrategyKind | None
    failures: list[str]


# Shape problems a strategy is allowed to fail with; anything else is a bug.
STRATEGY_ERRORS: tuple[type[BaseException], ...] = (
    ProviderError,
    ValueError,
    KeyError,
    TypeError,
    IndexError,
    AttributeError,
)


def run_strategy_chain(
    strategies: Sequence[ExtractionStrategy[T]], *, source: str
) -> ChainOutcome[T]:
    """Try each strategy in order and return the first non-empty result."""

    failures: list[str] = []
    for strategy in strategies:
        try:
            items = strategy.run()
            if not items:
                raise ExtractionError(f"{strategy.kind} returned no records")
        except STRATEGY_ERRORS as e:
            reason = format_failure_reason(e)
            logger.info("%s: %s strategy failed: %s", source, strategy.kind, reason)
            failures.append(f"{strategy.kind}: {reason}")
            continue
        logger.info("%s: %s strategy yielded %d records", source, strategy.kind, len(items))
        return ChainOutcome(items=items, kind=strategy.kind, failures=failures)

    logger.warning("%s: all extraction strategies failed (%s)", source, "; ".join(failures))
    return ChainOutcome(items=[], kind=None, failures=failures)
