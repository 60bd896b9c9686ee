from __future__ import annotations

from sports_sync.sync.orchestrator import Pipeline
from sports_sync.sync.steps import espn, golf, nfl, rankings, weather

GOLF_EVENT = Pipeline(
    "golf_event",
    (
        ("players", golf.sync_players),
        ("schedule", golf.sync_schedule),
        ("venues", golf.link_event_venues),
        ("field", golf.sync_field),
        ("predictions", golf.sync_predictions),
        ("projections", golf.sync_projections),
        ("live", golf.sync_live),
        ("finalize", golf.finalize_event),
    ),
)

GOLF_ENRICHMENT = Pipeline(
    "golf_enrichment",
    (
        ("espn_calendar", espn.sync_calendar),
        ("espn_backfill", espn.backfill_results),
        ("espn_hole_scores", espn.sync_hole_scores),
        ("espn_bios", espn.sync_bios),
        ("owgr", rankings.sync_owgr),
        ("pgatour", rankings.sync_tour_stats),
        ("weather", weather.sync_weather),
    ),
)

NFL_SEASON = Pipeline(
    "nfl_season",
    (
        ("nfl_players", nfl.sync_nfl_players),
        ("nfl_schedule", nfl.sync_nfl_schedule),
        ("nfl_weekly_stats", nfl.sync_nfl_weekly_stats),
        ("nfl_rosters", nfl.sync_nfl_rosters),
    ),
)

PIPELINES: dict[str, Pipeline] = {p.name: p for p in (GOLF_EVENT, GOLF_ENRICHMENT, NFL_SEASON)}


def get_pipeline(name: str) -> Pipeline:
    try:
        return PIPELINES[name]
    except KeyError:
        known = sorted(PIPELINES)
        raise ValueError(f"unknown pipeline {name!r}; expected one of {known}") from None
