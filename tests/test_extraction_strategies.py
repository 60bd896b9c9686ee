from __future__ import annotations

import pytest

from sports_sync.ingestion.providers.base.errors import ProviderRequestError
from sports_sync.ingestion.providers.base.strategies import (
    ExtractionStrategy,
    StrategyKind,
    run_strategy_chain,
)


def _raise(exc: BaseException):
    def run() -> list[str]:
        raise exc

    return run


def test_first_non_empty_strategy_wins() -> None:
    calls: list[str] = []

    def embedded() -> list[str]:
        calls.append("embedded")
        return ["a", "b"]

    def table() -> list[str]:
        calls.append("table")
        return ["c"]

    outcome = run_strategy_chain(
        [
            ExtractionStrategy(StrategyKind.API, _raise(ProviderRequestError("HTTP 403"))),
            ExtractionStrategy(StrategyKind.EMBEDDED_DATA, embedded),
            ExtractionStrategy(StrategyKind.HTML_TABLE, table),
        ],
        source="owgr",
    )

    assert outcome.items == ["a", "b"]
    assert outcome.kind == StrategyKind.EMBEDDED_DATA
    assert calls == ["embedded"]
    assert len(outcome.failures) == 1
    assert outcome.failures[0].startswith("api: ProviderRequestError")


def test_empty_result_counts_as_failure() -> None:
    outcome = run_strategy_chain(
        [
            ExtractionStrategy(StrategyKind.API, lambda: []),
            ExtractionStrategy(StrategyKind.HTML_TABLE, _raise(KeyError("rows"))),
        ],
        source="pgatour",
    )

    assert outcome.items == []
    assert outcome.kind is None
    assert [f.split(":")[0] for f in outcome.failures] == ["api", "html_table"]


def test_unexpected_errors_propagate() -> None:
    with pytest.raises(ZeroDivisionError):
        run_strategy_chain(
            [ExtractionStrategy(StrategyKind.API, _raise(ZeroDivisionError()))],
            source="owgr",
        )
