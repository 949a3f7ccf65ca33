from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LEVEL_BANDS: List[Dict[str, Any]] = [
    {"label": "Developing", "min": 0, "max": 999},
    {"label": "Intermediate", "min": 1000, "max": 2499},
    {"label": "Proficient", "min": 2500, "max": 3999},
    {"label": "Elite", "min": 4000, "max": 5499},
    {"label": "Master", "min": 5500, "max": None},
]


class Settings(BaseSettings):
    # Ignore unrelated env keys so local/dev .env can include frontend settings.
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Apptivia Performance Engine"
    environment: str = "development"
    api_prefix: str = "/api/v1"
    cors_allow_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    supabase_url: str = Field(..., alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(
        default=None, alias="SUPABASE_SERVICE_ROLE_KEY"
    )
    supabase_anon_key: Optional[str] = Field(default=None, alias="SUPABASE_ANON_KEY")
    store_page_size: int = Field(default=1000, alias="STORE_PAGE_SIZE")
    store_chunk_size: int = Field(default=100, alias="STORE_CHUNK_SIZE")

    # JSON list of {"label", "min", "max"}; the last band uses "max": null.
    level_bands: List[Dict[str, Any]] = Field(
        default_factory=lambda: [dict(band) for band in DEFAULT_LEVEL_BANDS],
        alias="LEVEL_BANDS",
    )
    trend_rolling_windows: int = Field(default=5, ge=1, alias="TREND_ROLLING_WINDOWS")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_cors_origins() -> list[str]:
    settings = get_settings()
    return [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
