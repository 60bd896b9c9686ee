from __future__ import annotations

import pytest

from sports_sync.core.text import (
    name_variants,
    normalize_event_name,
    normalize_name,
    reorder_last_first,
    split_name,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Hovland, Viktor", "viktor hovland"),
        ("Viktor Hovland", "viktor hovland"),
        ("  Ludvig   Åberg ", "ludvig aberg"),
        ("Nicolai Højgaard", "nicolai hojgaard"),
        ("Thorbjørn Olesen", "thorbjorn olesen"),
        ("Matt Fitzpatrick Jr.", "matt fitzpatrick jr"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_name(raw: str | None, expected: str) -> None:
    assert normalize_name(raw) == expected


def test_normalize_name_is_idempotent() -> None:
    for raw in ("Hovland, Viktor", "Séamus Power", "K.H. Lee", "Byeong Hun An"):
        once = normalize_name(raw)
        assert normalize_name(once) == once


def test_normalize_event_name_keeps_digits_and_drops_leading_the() -> None:
    assert normalize_event_name("The Players Championship") == "players championship"
    assert normalize_event_name("U.S. Open 2025") == "us open 2025"
    assert normalize_event_name("  AT&T Pebble Beach Pro-Am ") == "att pebble beach proam"


def test_reorder_and_split() -> None:
    assert reorder_last_first("Scheffler, Scottie") == "Scottie Scheffler"
    assert reorder_last_first("Scottie Scheffler") == "Scottie Scheffler"
    assert split_name("Scheffler, Scottie") == ("Scottie", "Scheffler")
    assert split_name("Byeong Hun An") == ("Byeong", "Hun An")
    assert split_name("Madonna") == ("Madonna", "")
    assert split_name("  ") == ("", "")


def test_name_variants_cover_both_orders() -> None:
    variants = name_variants("Viktor Hovland", "Viktor", "Hovland")
    assert variants == {"viktor hovland", "hovland viktor"}
    assert name_variants(None, None, None) == set()
