from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field

from sports_sync.ingestion.providers.base.client import BaseHttpClient
from sports_sync.ingestion.providers.base.rate_limit import MinIntervalRateLimiter

_MISSING = {"", "NA"}


def _clean(value: str | None) -> str | None:
    if value is None or value.strip() in _MISSING:
        return None
    return value.strip()


@dataclass
class NflverseClient:
    """CSV release assets; GitHub redirects each download to its CDN."""

    http: BaseHttpClient
    rate_limiter: MinIntervalRateLimiter = field(default_factory=MinIntervalRateLimiter)

    def get_csv(self, path: str) -> list[dict[str, str | None]]:
        self.rate_limiter.wait()
        text = self.http.get_text(path)
        reader = csv.DictReader(io.StringIO(text))
        return [{k: _clean(v) for k, v in row.items() if k} for row in reader]

    def close(self) -> None:
        self.http.close()
