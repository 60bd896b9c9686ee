from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from sports_sync.db.enums import ProviderEnum
from sports_sync.db.models.core.event_weather import EventWeather
from sports_sync.db.repos.core.event_repo import EventRepository
from sports_sync.ingestion.dates import ensure_utc
from sports_sync.sync.orchestrator import StepResult, SyncContext
from sports_sync.sync.steps.common import fetch_failed, stage

logger = logging.getLogger(__name__)

METEO = ProviderEnum.OPEN_METEO


def sync_weather(ctx: SyncContext) -> StepResult:
    """Per-round forecasts for the next events with venue coordinates inside the horizon."""

    horizon = ctx.now + timedelta(days=ctx.settings.weather_forecast_horizon_days)
    events = EventRepository(ctx.session).list_weather_candidates(
        until=horizon, limit=ctx.settings.weather_max_events
    )
    max_rounds = ctx.settings.max_rounds

    total = StepResult(details={"events": [e.id for e in events]})
    for event in events:
        venue = event.venue
        if venue is None or venue.latitude is None or venue.longitude is None:
            continue
        event_id = event.id
        first_day = ensure_utc(event.start_time).date()
        last_day = min(
            ensure_utc(event.end_time).date(),
            first_day + timedelta(days=max_rounds - 1),
            horizon.date(),
        )
        if last_day < first_day:
            continue

        forecast = ctx.providers.open_meteo.fetch_forecast(
            latitude=float(venue.latitude),
            longitude=float(venue.longitude),
            start=first_day,
            end=last_day,
        )
        if not forecast.ok:
            total = total.combine(fetch_failed(METEO, forecast))
            continue
        raw_id = stage(ctx, METEO, "forecast", forecast, event_ref=event_id)

        rows: list[dict[str, Any]] = []
        for day in forecast.items:
            round_number = (day.forecast_date - first_day).days + 1
            if not 1 <= round_number <= max_rounds:
                continue
            rows.append(
                {
                    "event_id": event_id,
                    "round_number": round_number,
                    "forecast_date": day.forecast_date,
                    "temp_high": day.temp_high,
                    "temp_low": day.temp_low,
                    "wind_speed": day.wind_speed,
                    "wind_gust": day.wind_gust,
                    "wind_direction": day.wind_direction,
                    "precipitation": day.precipitation,
                    "conditions": day.conditions,
                    "difficulty_impact": day.difficulty_impact,
                    "hourly": day.hourly,
                }
            )

        # Forecast values are replaced wholesale, including ones that became unknown.
        result = ctx.upserts.upsert(
            EventWeather, rows, key=("event_id", "round_number"), source=METEO.value
        )
        ctx.staging.mark_processed(raw_id)
        total = total.combine(StepResult.from_upsert(result, total=len(forecast.items)))

    return total
