from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sports_sync.ingestion.providers.base.client import BaseHttpClient
from sports_sync.ingestion.providers.base.errors import ProviderConfigError, ProviderResponseError
from sports_sync.ingestion.providers.base.rate_limit import MinIntervalRateLimiter


@dataclass
class DataGolfClient:
    """Key-authenticated DataGolf feed; the key travels as the `key` query parameter."""

    http: BaseHttpClient
    api_key: str | None
    rate_limiter: MinIntervalRateLimiter = field(default_factory=MinIntervalRateLimiter)

    def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        if not self.api_key:
            raise ProviderConfigError("DATAGOLF_API_KEY is not set")

        self.rate_limiter.wait()
        data = self.http.get_json_value(path, params={**(params or {}), "key": self.api_key})

        if isinstance(data, dict) and data.get("error"):
            raise ProviderResponseError(f"datagolf returned error: {data['error']}")
        return data

    def close(self) -> None:
        self.http.close()
