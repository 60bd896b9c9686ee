from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class MinIntervalRateLimiter:
    """Keep at least `min_interval_s` between consecutive requests to one provider.

    Clock and sleep are injectable so tests can run without real waiting.
    """

    min_interval_s: float = 0.0
    last_request_monotonic: float | None = None

    _sleep: Any = field(default=time.sleep, repr=False)
    _monotonic: Any = field(default=time.monotonic, repr=False)

    def wait(self) -> None:
        if self.min_interval_s > 0.0 and self.last_request_monotonic is not None:
            elapsed = float(self._monotonic()) - self.last_request_monotonic
            remaining = self.min_interval_s - elapsed
            if remaining > 0:
                self._sleep(remaining)
        self.last_request_monotonic = float(self._monotonic())
