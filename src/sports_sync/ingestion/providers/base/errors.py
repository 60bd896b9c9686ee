from __future__ import annotations

from dataclasses import dataclass


class ProviderError(RuntimeError):
    """Base exception for provider-related failures."""


class ProviderRequestError(ProviderError):
    """HTTP/network/transport layer failures (timeouts, connection errors, non-2xx, etc.)."""


class ProviderRateLimited(ProviderRequestError):
    """Provider throttled the request (e.g., HTTP 429)."""


class ProviderResponseError(ProviderError):
    """Provider returned a well-formed response indicating an application-level error."""


class ProviderConfigError(ProviderError):
    """Required provider configuration (API key, base URL) is missing."""


class ExtractionError(ProviderError):
    """An extraction strategy found nothing usable in the payload."""


@dataclass(frozen=True)
class ProviderMappingError(ProviderError):
    """Mapping/extraction failed due to unexpected schema or values."""

    message: str
    context: dict[str, object] | None = None

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"


def format_failure_reason(exc: BaseException, *, max_len: int = 300) -> str:
    msg = str(exc).strip() or exc.__class__.__name__
    reason = f"{exc.__class__.__name__}: {msg}"
    if len(reason) > max_len:
        return f"{reason[: max_len - 1]}\u2026"
    return reason
