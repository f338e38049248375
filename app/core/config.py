# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    DATABASE_URL: str = Field(default="sqlite:///./tickets.db")
    APP_NAME: str = "Ticket"
    APP_DESC: str = "Support ticket dashboard"
    APP_VERSION: str = "1.0.0"

    # CORS origins, comma separated
    CORS_ORIGINS: str | None = None

    # Auth / session
    SECRET_KEY: str = Field(default="change-me")
    ACCESS_TOKEN_MINUTES: int = 60 * 24
    SESSION_COOKIE: str = "ticket_session"

    # Dashboard
    TIMEZONE: str = "Europe/Rome"
    LOG_LEVEL: str = "INFO"
    SEARCH_DEBOUNCE_MS: int = 300
    STREAM_KEEPALIVE_SECONDS: float = 15.0
    LIST_PLACEHOLDER_ROWS: int = 5
    REPORT_MOTIVE_MAX_CHARS: int = 40

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cors_origins(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
