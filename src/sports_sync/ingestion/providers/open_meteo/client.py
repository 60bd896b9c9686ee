from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sports_sync.ingestion.providers.base.client import BaseHttpClient, Json
from sports_sync.ingestion.providers.base.rate_limit import MinIntervalRateLimiter


@dataclass
class OpenMeteoClient:
    http: BaseHttpClient
    rate_limiter: MinIntervalRateLimiter = field(default_factory=MinIntervalRateLimiter)

    def get_forecast(self, params: Mapping[str, Any]) -> Json:
        self.rate_limiter.wait()
        return self.http.get_json("forecast", params=params)

    def close(self) -> None:
        self.http.close()
