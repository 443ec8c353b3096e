"""Settings for SeriesForge, loaded from the environment or a .env file.

the two api limits live here because they're properties of the reporting api,
not of any one report - if the api raises them we only want to change one
place (or one env var).
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://www.googleapis.com/analytics/v3/data/ga"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SERIESFORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── API ─────────────────────────────────────────────
    api_base_url: str = DEFAULT_BASE_URL
    api_token: str | None = None
    request_timeout: float = 30.0

    # ── Limits ──────────────────────────────────────────
    max_results_per_request: int = 10000  # hard cap on rows per response
    max_url_length: int = 2000  # longest request url the api accepts
    date_dimension: str = "ga:date"

    # ── App ─────────────────────────────────────────────
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
