import json
import logging
from typing import Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime configuration, read from the environment and an optional .env file.

    Nothing here is required: with no environment at all the API runs against
    a local SQLite file with metadata backfill switched off.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ───────────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./rankd.db"
    SQL_ECHO: bool = False

    # ── Metadata backfill ─────────────────────────────────────────────────────
    TMDB_API_KEY: str = ""
    BACKFILL_DELAY_SECONDS: float = Field(0.3, ge=0)

    # ── HTTP ──────────────────────────────────────────────────────────────────
    PORT: int = 8000
    # Comma-separated (https://a.com,https://b.com) or JSON ["https://a.com"]
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]
    ENABLE_DOCS: bool = True

    # ── Runtime ───────────────────────────────────────────────────────────────
    APP_ENV: str = "development"  # development | production
    LOG_LEVEL: str = "INFO"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v: Union[str, list[str], None]) -> list[str]:
        if v is None:
            return []
        if isinstance(v, list):
            return [str(origin).strip() for origin in v if origin]
        raw = str(v).strip()
        if raw.startswith("["):
            try:
                return [str(origin).strip() for origin in json.loads(raw) if origin]
            except json.JSONDecodeError:
                pass
        return [origin.strip() for origin in raw.split(",") if origin.strip()]

    @field_validator("LOG_LEVEL")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.strip().upper() or "INFO"
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v!r}")
        return level

    @property
    def backfill_enabled(self) -> bool:
        return bool(self.TMDB_API_KEY)


settings = Settings()
