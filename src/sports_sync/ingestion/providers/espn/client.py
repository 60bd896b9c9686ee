from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sports_sync.ingestion.providers.base.client import BaseHttpClient, Json
from sports_sync.ingestion.providers.base.rate_limit import MinIntervalRateLimiter


@dataclass
class EspnClient:
    """Public ESPN golf endpoints: scoreboard (site API) and athlete profiles (web API)."""

    http: BaseHttpClient
    athlete_http: BaseHttpClient
    rate_limiter: MinIntervalRateLimiter = field(default_factory=MinIntervalRateLimiter)

    def get(self, path: str, params: Mapping[str, Any] | None = None) -> Json:
        self.rate_limiter.wait()
        return self.http.get_json(path, params=params)

    def get_athlete(self, athlete_id: str) -> Json:
        self.rate_limiter.wait()
        return self.athlete_http.get_json(f"athletes/{athlete_id}")

    def close(self) -> None:
        self.http.close()
        self.athlete_http.close()
