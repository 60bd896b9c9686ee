from __future__ import annotations

from dataclasses import dataclass, field

from sports_sync.ingestion.providers.base.client import BaseHttpClient, Json
from sports_sync.ingestion.providers.base.rate_limit import MinIntervalRateLimiter


@dataclass
class OwgrClient:
    """OWGR rankings: the JSON API behind the site, and the site page itself."""

    api_http: BaseHttpClient
    site_http: BaseHttpClient
    rate_limiter: MinIntervalRateLimiter = field(default_factory=MinIntervalRateLimiter)

    def get_rankings_api(self, page: int, page_size: int) -> Json:
        self.rate_limiter.wait()
        return self.api_http.get_json(
            "owgr/rankings/getRankings",
            params={"page": page, "pageSize": page_size},
            headers={"Accept": "application/json"},
        )

    def get_rankings_page(self, page: int) -> str:
        self.rate_limiter.wait()
        params = {"page": page} if page > 1 else None
        return self.site_http.get_text(
            "current-world-ranking", params=params, headers={"Accept": "text/html"}
        )

    def close(self) -> None:
        self.api_http.close()
        self.site_http.close()
