"""
config.py — taxregime application settings.

Usage:
    from taxregime.config import settings
    print(settings.default_fiscal_year)

Never use FastAPI Depends() for settings — import directly as a module-level singleton.
"""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore any extra env vars
    )

    # --- Tax engine ---
    # Fiscal year used by GET /api/fiscal-years as the suggested default.
    # The engine itself never falls back to it: callers always name a year.
    default_fiscal_year: str = "2025-26"

    # --- Redis result cache ---
    redis_url: str = "redis://localhost:6379"
    result_cache_enabled: bool = False
    result_cache_ttl: int = 900   # 15 minutes

    # --- CORS ---
    # Comma-separated list of allowed frontend origins
    cors_origins: str = "http://localhost:5173,http://localhost:5174"

    # --- Application ---
    debug: bool = True
    app_version: str = "0.1.0"

    @property
    def cors_origins_list(self) -> List[str]:
        """Split comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Module-level singleton — import this throughout the codebase
settings = Settings()
