from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sports_sync.db.enums import ProviderEnum
from sports_sync.ingestion.providers.base.adapter import guarded_fetch
from sports_sync.ingestion.providers.base.errors import ExtractionError
from sports_sync.ingestion.providers.base.fields import to_float, to_int
from sports_sync.ingestion.providers.base.types import FetchResult, WeatherDay
from sports_sync.ingestion.providers.open_meteo.client import OpenMeteoClient

WMO_CODES: dict[int, str] = {
    0: "Clear",
    1: "Mainly Clear",
    2: "Partly Cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Rime Fog",
    51: "Light Drizzle",
    53: "Drizzle",
    55: "Heavy Drizzle",
    61: "Light Rain",
    63: "Rain",
    65: "Heavy Rain",
    71: "Light Snow",
    73: "Snow",
    75: "Heavy Snow",
    80: "Light Showers",
    81: "Showers",
    82: "Heavy Showers",
    95: "Thunderstorm",
    96: "Thunderstorm + Hail",
    99: "Severe Thunderstorm",
}

DAILY_VARS = (
    "temperature_2m_max,temperature_2m_min,precipitation_sum,windspeed_10m_max,"
    "windgusts_10m_max,winddirection_10m_dominant,weathercode"
)
HOURLY_VARS = (
    "temperature_2m,windspeed_10m,windgusts_10m,winddirection_10m,precipitation,"
    "precipitation_probability,weathercode"
)

# Playing hours, local time.
FIRST_HOUR = 6
LAST_HOUR = 19

_COMPASS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)


def degrees_to_direction(degrees: float | None) -> str | None:
    if degrees is None:
        return None
    return _COMPASS[round(degrees / 22.5) % 16]


def difficulty_impact(
    *,
    wind_speed: float | None,
    wind_gust: float | None,
    precipitation: float | None,
    temp_high: float | None,
    temp_low: float | None,
) -> float:
    """0..1, higher means tougher scoring conditions."""
    score = 0.0
    wind, gust, precip = wind_speed or 0.0, wind_gust or 0.0, precipitation or 0.0

    if wind > 20:
        score += 0.3
    elif wind > 15:
        score += 0.15

    if gust > 30:
        score += 0.2
    elif gust > 25:
        score += 0.1

    if precip > 0.5:
        score += 0.3
    elif precip > 0.2:
        score += 0.15
    elif precip > 0.05:
        score += 0.05

    low = temp_low if temp_low is not None else 60.0
    high = temp_high if temp_high is not None else 70.0
    if low < 45 or high > 95:
        score += 0.1
    elif low < 50 or high > 90:
        score += 0.05

    return round(min(score, 1.0), 2)


def _series(block: dict[str, Any], name: str, i: int) -> Any:
    values = block.get(name) or []
    return values[i] if i < len(values) else None


def _hourly_by_date(hourly: dict[str, Any]) -> dict[str, list[dict[str, Any]]]:
    by_date: dict[str, list[dict[str, Any]]] = {}
    for i, stamp in enumerate(hourly.get("time") or []):
        hour = datetime.fromisoformat(stamp).hour
        if hour < FIRST_HOUR or hour > LAST_HOUR:
            continue
        temp = to_float(_series(hourly, "temperature_2m", i))
        wind = to_float(_series(hourly, "windspeed_10m", i))
        gust = to_float(_series(hourly, "windgusts_10m", i))
        by_date.setdefault(stamp[:10], []).append(
            {
                "hour": hour,
                "temp": round(temp) if temp is not None else None,
                "wind_speed": round(wind) if wind is not None else None,
                "wind_gust": round(gust) if gust is not None else None,
                "wind_dir": degrees_to_direction(to_float(_series(hourly, "winddirection_10m", i))),
                "precip": round(to_float(_series(hourly, "precipitation", i)) or 0.0, 2),
                "precip_chance": to_int(_series(hourly, "precipitation_probability", i)),
                "weather_code": to_int(_series(hourly, "weathercode", i)),
            }
        )
    return by_date


def parse_forecast(payload: dict[str, Any]) -> list[WeatherDay]:
    daily = payload.get("daily")
    if not isinstance(daily, dict) or not daily.get("time"):
        raise ExtractionError("open-meteo response without daily data")

    hourly = _hourly_by_date(payload.get("hourly") or {})
    days: list[WeatherDay] = []
    for i, day in enumerate(daily["time"]):
        high = to_float(_series(daily, "temperature_2m_max", i))
        low = to_float(_series(daily, "temperature_2m_min", i))
        precip = to_float(_series(daily, "precipitation_sum", i))
        wind = to_float(_series(daily, "windspeed_10m_max", i))
        gust = to_float(_series(daily, "windgusts_10m_max", i))
        code = to_int(_series(daily, "weathercode", i))
        days.append(
            WeatherDay(
                forecast_date=date.fromisoformat(day),
                temp_high=high,
                temp_low=low,
                wind_speed=wind,
                wind_gust=gust,
                wind_direction=degrees_to_direction(
                    to_float(_series(daily, "winddirection_10m_dominant", i))
                ),
                precipitation=precip,
                conditions=WMO_CODES.get(code, "Unknown") if code is not None else "Unknown",
                difficulty_impact=difficulty_impact(
                    wind_speed=wind,
                    wind_gust=gust,
                    precipitation=precip,
                    temp_high=high,
                    temp_low=low,
                ),
                hourly=hourly.get(day, []),
            )
        )
    return days


class OpenMeteoAdapter:
    provider_key = ProviderEnum.OPEN_METEO.value

    def __init__(self, client: OpenMeteoClient) -> None:
        self.client = client

    def close(self) -> None:
        self.client.close()

    def fetch_forecast(
        self, *, latitude: float, longitude: float, start: date, end: date
    ) -> FetchResult[WeatherDay]:
        def fetch() -> tuple[list[WeatherDay], Any, int]:
            payload = self.client.get_forecast(
                {
                    "latitude": latitude,
                    "longitude": longitude,
                    "daily": DAILY_VARS,
                    "hourly": HOURLY_VARS,
                    "temperature_unit": "fahrenheit",
                    "windspeed_unit": "mph",
                    "precipitation_unit": "inch",
                    "start_date": start.isoformat(),
                    "end_date": end.isoformat(),
                    "timezone": "auto",
                }
            )
            return parse_forecast(payload), payload, 0

        return guarded_fetch(self.provider_key, "forecast", fetch)
