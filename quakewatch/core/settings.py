from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    # Paths
    rivers_path: str = Field(default="", alias="RIVERS_PATH")  # empty → bundled quakewatch/data file

    # ──────────────────────────────────────────────────────────────
    # USGS FDSN event service
    # GeoJSON FeatureCollection, one Point feature per event.
    # No auth required. Hard cap of 20k rows per query upstream.
    # ──────────────────────────────────────────────────────────────

    usgs_feed_url: str = Field(
        default="https://earthquake.usgs.gov/fdsnws/event/1/query",
        alias="USGS_FEED_URL",
    )
    fetch_limit: int = Field(default=10000, alias="FETCH_LIMIT")
    fetch_timeout_s: float = Field(default=30.0, alias="FETCH_TIMEOUT_S")
    fetch_user_agent: str = Field(default="quakewatch/catalog", alias="FETCH_USER_AGENT")

    # Dashboard defaults
    default_start_date: str = Field(default="2015-01-01", alias="DEFAULT_START_DATE")
    default_min_magnitude: float = Field(default=4.0, alias="DEFAULT_MIN_MAGNITUDE")
    default_region: str = Field(default="nepal", alias="DEFAULT_REGION")
    recent_activity_days: int = Field(default=30, alias="RECENT_ACTIVITY_DAYS")
    autoload_on_startup: bool = Field(default=True, alias="AUTOLOAD_ON_STARTUP")

    # Flood buffers
    default_buffer_m: float = Field(default=500.0, alias="DEFAULT_BUFFER_M")
    buffer_quad_segs: int = Field(default=16, alias="BUFFER_QUAD_SEGS")

    # CORS origin of the dashboard page
    dashboard_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000,http://localhost:5500,http://127.0.0.1:5500",
        alias="DASHBOARD_ORIGINS",
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


settings = Settings()
