from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # DB
    database_url: str = Field(
        default="sqlite+pysqlite:///./sports_sync.db",
        validation_alias="DATABASE_URL",
    )
    db_echo: bool = False

    log_level: str = "INFO"

    # HTTP
    http_timeout_s: float = 30.0
    http_connect_timeout_s: float = 10.0
    scraper_user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # datagolf (primary feed)
    datagolf_api_key: str | None = Field(default=None, repr=False)
    datagolf_base_url: str = "https://feeds.datagolf.com"
    datagolf_min_interval_s: float = 0.25

    # espn
    espn_base_url: str = "https://site.api.espn.com/apis/site/v2/sports/golf/pga"
    espn_athlete_base_url: str = "https://site.web.api.espn.com/apis/common/v3/sports/golf/pga"
    espn_min_interval_s: float = 2.0
    espn_bio_limit: int = 25
    espn_bio_recheck_days: int = 30

    # owgr
    owgr_api_url: str = "https://apiweb.owgr.com/api"
    owgr_site_url: str = "https://www.owgr.com"
    owgr_min_interval_s: float = 3.0
    owgr_max_pages: int = 3
    owgr_page_size: int = 200

    # pga tour
    pgatour_base_url: str = "https://www.pgatour.com"
    pgatour_min_interval_s: float = 3.0

    # nflverse
    nflverse_base_url: str = "https://github.com/nflverse/nflverse-data/releases/download"
    nflverse_min_interval_s: float = 0.5

    # open-meteo
    open_meteo_base_url: str = "https://api.open-meteo.com/v1"
    open_meteo_min_interval_s: float = 0.2
    weather_forecast_horizon_days: int = 16
    weather_max_events: int = 3

    # staging
    store_raw_payloads: bool = True
    raw_retention_days: int = 90

    # upsert
    upsert_max_chunk_rows: int = 500
    upsert_max_params: int = 65000
    upsert_max_params_sqlite: int = 32000

    # event lifecycle / matching
    event_default_duration_days: int = 3
    event_end_buffer_hours: int = 29
    event_match_window_days: int = 2
    max_rounds: int = 4


settings = Settings()
