from __future__ import annotations

from sports_sync.db.enums import PerformanceStatusEnum
from sports_sync.sync.scoring import (
    calculate_fantasy_points,
    count_holes,
    position_points,
    round_input,
)


def _holes(to_pars: list[int], par: int = 4) -> list[dict[str, int]]:
    return [
        {"hole": n, "par": par, "strokes": par + tp, "to_par": tp}
        for n, tp in enumerate(to_pars, start=1)
    ]


def test_count_holes_separates_aces_from_eagles() -> None:
    holes = [
        {"hole": 1, "par": 3, "strokes": 1, "to_par": -2},
        {"hole": 2, "par": 5, "strokes": 3, "to_par": -2},
        {"hole": 3, "par": 4, "strokes": 3, "to_par": -1},
        {"hole": 4, "par": 4, "strokes": 7, "to_par": 3},
        {"hole": 5, "par": 4, "strokes": None, "to_par": None},
    ]
    counts = count_holes(holes)
    assert counts.holes_in_one == 1
    assert counts.eagles == 1
    assert counts.birdies == 1
    assert counts.worse_than_double == 1
    assert counts.pars == 0


def test_position_points() -> None:
    assert position_points(1, PerformanceStatusEnum.ACTIVE) == 30
    assert position_points(22, PerformanceStatusEnum.ACTIVE) == 1.5
    assert position_points(28, PerformanceStatusEnum.ACTIVE) == 1
    assert position_points(45, PerformanceStatusEnum.ACTIVE) == 0.5
    assert position_points(None, PerformanceStatusEnum.CUT) == -2
    assert position_points(None, None) == 0.0


def test_bogey_free_round_with_birdie_streak() -> None:
    # Birdies on 1-3, pars elsewhere: 66.
    rnd = round_input(66, _holes([-1, -1, -1] + [0] * 15))
    assert rnd.bogey_free is True
    assert rnd.longest_birdie_streak == 3

    points = calculate_fantasy_points(1, PerformanceStatusEnum.ACTIVE, [rnd])
    # 30 (win) + 9 (birdies) + 3 (bogey free) + 3 (streak) + 2 (4 strokes under 70)
    assert points == 47.0


def test_incomplete_round_is_not_bogey_free() -> None:
    rnd = round_input(None, _holes([0] * 9))
    assert rnd.bogey_free is False
    assert calculate_fantasy_points(None, PerformanceStatusEnum.ACTIVE, [rnd]) == 0.0
