"""Golf fantasy scoring with the standard league configuration."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from sports_sync.db.enums import PerformanceStatusEnum

MISSED_CUT_STATUSES = frozenset(
    {PerformanceStatusEnum.CUT, PerformanceStatusEnum.WD, PerformanceStatusEnum.DQ}
)


@dataclass(frozen=True)
class ScoringConfig:
    position_points: Mapping[int, float]
    top25: float
    top30: float
    made_cut: float
    missed_cut: float
    hole_in_one: float
    eagle: float
    birdie: float
    par: float
    bogey: float
    double_bogey: float
    worse_than_double: float
    bogey_free_round: float
    birdie_streak3: float
    under70_per_stroke: float


STANDARD_CONFIG = ScoringConfig(
    position_points={
        1: 30, 2: 20, 3: 18, 4: 16, 5: 14,
        6: 12, 7: 10, 8: 9, 9: 8, 10: 7,
        11: 6, 12: 5, 13: 5, 14: 4, 15: 4,
        16: 3, 17: 3, 18: 3, 19: 2, 20: 2,
    },
    top25=1.5,
    top30=1,
    made_cut=0.5,
    missed_cut=-2,
    hole_in_one=5,
    eagle=5,
    birdie=3,
    par=0,
    bogey=-1,
    double_bogey=-2,
    worse_than_double=-3,
    bogey_free_round=3,
    birdie_streak3=3,
    under70_per_stroke=0.5,
)


@dataclass(frozen=True)
class HoleCounts:
    holes_in_one: int = 0
    eagles: int = 0
    birdies: int = 0
    pars: int = 0
    bogeys: int = 0
    double_bogeys: int = 0
    worse_than_double: int = 0


@dataclass(frozen=True)
class RoundInput:
    strokes: int | None
    counts: HoleCounts = field(default_factory=HoleCounts)
    bogey_free: bool = False
    longest_birdie_streak: int = 0


def count_holes(holes: Iterable[Mapping[str, Any]]) -> HoleCounts:
    """Tally holes by score relative to par; holes without a to-par are ignored."""
    tally = dict.fromkeys(HoleCounts.__dataclass_fields__, 0)
    for hole in holes:
        to_par = hole.get("to_par")
        if to_par is None:
            continue
        if hole.get("strokes") == 1:
            tally["holes_in_one"] += 1
        elif to_par <= -2:
            tally["eagles"] += 1
        elif to_par == -1:
            tally["birdies"] += 1
        elif to_par == 0:
            tally["pars"] += 1
        elif to_par == 1:
            tally["bogeys"] += 1
        elif to_par == 2:
            tally["double_bogeys"] += 1
        else:
            tally["worse_than_double"] += 1
    return HoleCounts(**tally)


def round_input(strokes: int | None, holes: Sequence[Mapping[str, Any]] | None) -> RoundInput:
    holes = sorted(holes or [], key=lambda h: h.get("hole") or 0)
    scored = [h for h in holes if h.get("to_par") is not None]

    streak = longest = 0
    for hole in scored:
        streak = streak + 1 if hole["to_par"] < 0 else 0
        longest = max(longest, streak)

    return RoundInput(
        strokes=strokes,
        counts=count_holes(scored),
        bogey_free=len(scored) == 18 and all(h["to_par"] <= 0 for h in scored),
        longest_birdie_streak=longest,
    )


def position_points(
    position: int | None,
    status: PerformanceStatusEnum | None,
    config: ScoringConfig = STANDARD_CONFIG,
) -> float:
    if status in MISSED_CUT_STATUSES:
        return config.missed_cut
    if not position:
        return 0.0
    if position in config.position_points:
        return config.position_points[position]
    if position <= 25:
        return config.top25
    if position <= 30:
        return config.top30
    return config.made_cut


def calculate_fantasy_points(
    position: int | None,
    status: PerformanceStatusEnum | None,
    rounds: Sequence[RoundInput],
    config: ScoringConfig = STANDARD_CONFIG,
) -> float:
    total = position_points(position, status, config)

    for rnd in rounds:
        c = rnd.counts
        total += (
            c.holes_in_one * config.hole_in_one
            + c.eagles * config.eagle
            + c.birdies * config.birdie
            + c.pars * config.par
            + c.bogeys * config.bogey
            + c.double_bogeys * config.double_bogey
            + c.worse_than_double * config.worse_than_double
        )
        if rnd.bogey_free:
            total += config.bogey_free_round
        if rnd.longest_birdie_streak >= 3:
            total += config.birdie_streak3
        if rnd.strokes and rnd.strokes < 70:
            total += config.under70_per_stroke * (70 - rnd.strokes)

    return round(total, 2)
