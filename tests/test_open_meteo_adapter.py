from __future__ import annotations

from datetime import date

import pytest

from sports_sync.ingestion.providers.base.errors import ExtractionError
from sports_sync.ingestion.providers.open_meteo.adapter import (
    degrees_to_direction,
    difficulty_impact,
    parse_forecast,
)


@pytest.mark.parametrize(
    ("degrees", "expected"),
    [(0, "N"), (44, "NE"), (180, "S"), (350, "N"), (None, None)],
)
def test_degrees_to_direction(degrees: float | None, expected: str | None) -> None:
    assert degrees_to_direction(degrees) == expected


def test_difficulty_impact_is_capped() -> None:
    calm = difficulty_impact(
        wind_speed=5, wind_gust=10, precipitation=0.0, temp_high=75, temp_low=60
    )
    brutal = difficulty_impact(
        wind_speed=25, wind_gust=40, precipitation=1.2, temp_high=98, temp_low=40
    )

    assert calm == 0.0
    assert brutal == 0.9
    assert difficulty_impact(
        wind_speed=None, wind_gust=None, precipitation=None, temp_high=None, temp_low=None
    ) == 0.0


def test_parse_forecast_daily_with_playing_hours() -> None:
    payload = {
        "daily": {
            "time": ["2025-04-10"],
            "temperature_2m_max": [78.4],
            "temperature_2m_min": [58.1],
            "precipitation_sum": [0.0],
            "windspeed_10m_max": [17.2],
            "windgusts_10m_max": [26.0],
            "winddirection_10m_dominant": [225],
            "weathercode": [2],
        },
        "hourly": {
            "time": ["2025-04-10T05:00", "2025-04-10T08:00", "2025-04-10T20:00"],
            "temperature_2m": [55.0, 61.4, 66.0],
            "windspeed_10m": [4.0, 9.6, 8.0],
            "windgusts_10m": [8.0, 15.2, 12.0],
            "winddirection_10m": [200, 225, 230],
            "precipitation": [0.0, 0.0, 0.0],
            "precipitation_probability": [0, 10, 5],
            "weathercode": [1, 2, 3],
        },
    }

    (day,) = parse_forecast(payload)

    assert day.forecast_date == date(2025, 4, 10)
    assert day.conditions == "Partly Cloudy"
    assert day.wind_direction == "SW"
    assert day.difficulty_impact == 0.25
    # Only hours inside the playing window are kept.
    assert [h["hour"] for h in day.hourly] == [8]
    assert day.hourly[0]["temp"] == 61
    assert day.hourly[0]["wind_dir"] == "SW"


def test_parse_forecast_without_daily_block() -> None:
    with pytest.raises(ExtractionError):
        parse_forecast({"hourly": {}})
