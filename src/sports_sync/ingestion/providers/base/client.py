from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from .errors import ProviderRateLimited, ProviderRequestError

Json = dict[str, Any]


@dataclass
class BaseHttpClient:
    """
    Provider-agnostic HTTP client wrapper.

    - Uses a single underlying httpx.Client for connection pooling.
    - Provides consistent error handling.
    - Provider clients compose it and add their own paths / auth params.
    """

    base_url: str
    timeout_s: float = 30.0
    connect_timeout_s: float = 10.0
    headers: Mapping[str, str] = field(default_factory=dict)
    follow_redirects: bool = False

    transport: httpx.BaseTransport | None = None

    def __post_init__(self) -> None:
        self._client = httpx.Client(
            base_url=self.base_url.rstrip("/") + "/",
            timeout=httpx.Timeout(self.timeout_s, connect=self.connect_timeout_s),
            headers=dict(self.headers),
            transport=self.transport,
            follow_redirects=self.follow_redirects,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> BaseHttpClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """
        Perform an HTTP request and return the successful response.
        Raises ProviderRequestError (including ProviderRateLimited) on transport issues / non-2xx.
        """
        try:
            resp = self._client.request(
                method=method,
                url=path.lstrip("/"),
                params=params,
                headers=headers,
            )
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            raise ProviderRequestError(str(e)) from e

        if resp.status_code == 429:
            raise ProviderRateLimited("Provider rate limited the request (HTTP 429).")

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderRequestError(
                f"HTTP {resp.status_code} for {method} {resp.request.url}"
            ) from e

        return resp

    def get_json_value(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """GET and parse JSON of any shape (object or array)."""
        resp = self.request("GET", path, params=params, headers=headers)
        try:
            return resp.json()
        except ValueError as e:
            raise ProviderRequestError("Response was not valid JSON.") from e

    def get_json(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Json:
        data = self.get_json_value(path, params=params, headers=headers)
        if not isinstance(data, dict):
            raise ProviderRequestError(f"Expected JSON object, got {type(data)}")
        return data

    def get_text(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        return self.request("GET", path, params=params, headers=headers).text
