from __future__ import annotations

from dataclasses import dataclass

import httpx

from sports_sync.core.config import Settings
from sports_sync.ingestion.providers.base.client import BaseHttpClient
from sports_sync.ingestion.providers.base.rate_limit import MinIntervalRateLimiter
from sports_sync.ingestion.providers.datagolf.adapter import DataGolfAdapter
from sports_sync.ingestion.providers.datagolf.client import DataGolfClient
from sports_sync.ingestion.providers.espn.adapter import EspnAdapter
from sports_sync.ingestion.providers.espn.client import EspnClient
from sports_sync.ingestion.providers.nflverse.adapter import NflverseAdapter
from sports_sync.ingestion.providers.nflverse.client import NflverseClient
from sports_sync.ingestion.providers.open_meteo.adapter import OpenMeteoAdapter
from sports_sync.ingestion.providers.open_meteo.client import OpenMeteoClient
from sports_sync.ingestion.providers.owgr.adapter import OwgrAdapter
from sports_sync.ingestion.providers.owgr.client import OwgrClient
from sports_sync.ingestion.providers.pgatour.adapter import PgaTourStatsAdapter
from sports_sync.ingestion.providers.pgatour.client import PgaTourClient


@dataclass
class ProviderBundle:
    """One adapter per upstream source, built once per run."""

    datagolf: DataGolfAdapter
    espn: EspnAdapter
    owgr: OwgrAdapter
    pgatour: PgaTourStatsAdapter
    nflverse: NflverseAdapter
    open_meteo: OpenMeteoAdapter

    def close(self) -> None:
        for adapter in (
            self.datagolf,
            self.espn,
            self.owgr,
            self.pgatour,
            self.nflverse,
            self.open_meteo,
        ):
            adapter.close()


def build_providers(
    settings: Settings, *, transport: httpx.BaseTransport | None = None
) -> ProviderBundle:
    """Wire every adapter from settings; `transport` lets tests swap in httpx.MockTransport."""

    def http(
        base_url: str, *, browser: bool = False, follow_redirects: bool = False
    ) -> BaseHttpClient:
        headers = {"User-Agent": settings.scraper_user_agent} if browser else {}
        return BaseHttpClient(
            base_url=base_url,
            timeout_s=settings.http_timeout_s,
            connect_timeout_s=settings.http_connect_timeout_s,
            headers=headers,
            follow_redirects=follow_redirects,
            transport=transport,
        )

    owgr_headers = {
        "User-Agent": settings.scraper_user_agent,
        "Referer": f"{settings.owgr_site_url}/current-world-ranking",
        "Origin": settings.owgr_site_url,
    }

    return ProviderBundle(
        datagolf=DataGolfAdapter(
            DataGolfClient(
                http=http(settings.datagolf_base_url),
                api_key=settings.datagolf_api_key,
                rate_limiter=MinIntervalRateLimiter(settings.datagolf_min_interval_s),
            )
        ),
        espn=EspnAdapter(
            EspnClient(
                http=http(settings.espn_base_url),
                athlete_http=http(settings.espn_athlete_base_url),
                rate_limiter=MinIntervalRateLimiter(settings.espn_min_interval_s),
            )
        ),
        owgr=OwgrAdapter(
            OwgrClient(
                api_http=BaseHttpClient(
                    base_url=settings.owgr_api_url,
                    timeout_s=settings.http_timeout_s,
                    connect_timeout_s=settings.http_connect_timeout_s,
                    headers=owgr_headers,
                    transport=transport,
                ),
                site_http=http(settings.owgr_site_url, browser=True),
                rate_limiter=MinIntervalRateLimiter(settings.owgr_min_interval_s),
            ),
            max_pages=settings.owgr_max_pages,
            page_size=settings.owgr_page_size,
        ),
        pgatour=PgaTourStatsAdapter(
            PgaTourClient(
                http=http(settings.pgatour_base_url, browser=True),
                rate_limiter=MinIntervalRateLimiter(settings.pgatour_min_interval_s),
            )
        ),
        nflverse=NflverseAdapter(
            NflverseClient(
                http=http(settings.nflverse_base_url, follow_redirects=True),
                rate_limiter=MinIntervalRateLimiter(settings.nflverse_min_interval_s),
            )
        ),
        open_meteo=OpenMeteoAdapter(
            OpenMeteoClient(
                http=http(settings.open_meteo_base_url),
                rate_limiter=MinIntervalRateLimiter(settings.open_meteo_min_interval_s),
            )
        ),
    )
