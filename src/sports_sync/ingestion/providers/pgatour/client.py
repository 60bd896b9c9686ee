from __future__ import annotations

from dataclasses import dataclass, field

from sports_sync.ingestion.providers.base.client import BaseHttpClient
from sports_sync.ingestion.providers.base.rate_limit import MinIntervalRateLimiter


@dataclass
class PgaTourClient:
    http: BaseHttpClient
    rate_limiter: MinIntervalRateLimiter = field(default_factory=MinIntervalRateLimiter)

    def get_stat_page(self, stat_id: str) -> str:
        self.rate_limiter.wait()
        return self.http.get_text(
            f"stats/detail/{stat_id}",
            headers={"Accept": "text/html", "Accept-Language": "en-US,en;q=0.9"},
        )

    def close(self) -> None:
        self.http.close()
