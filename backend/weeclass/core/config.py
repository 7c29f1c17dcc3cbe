# weeclass/core/config.py

import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# HS256 keys shorter than this are rejected outside demo mode
MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    # Record store. No URL means demo mode (in-memory sample data, nothing persisted)
    DATABASE_URL: str | None = None
    RECORD_FERNET_KEY: str | None = None  # optional, encrypts stored record payloads
    FETCH_LIMIT: int = 50

    # Admin sessions. Required once DATABASE_URL is set; demo mode gets a per-process key
    SESSION_JWT_SECRET: str | None = None
    SESSION_TTL_HOURS: int = 6
    ADMIN_EMAIL: str | None = None
    ADMIN_PASSWORD: str | None = None

    # Demo mode login
    DEMO_ADMIN_EMAIL: str = "admin@demo.school"
    DEMO_PASSWORD: str = "demo1234"

    # Teacher form access code (used when config/teacher_auth is unreadable)
    TEACHER_ACCESS_DEFAULT: str = "2580"
    TEACHER_ACCESS_TTL_MINUTES: int = 60

    WEBHOOK_TIMEOUT_SECONDS: float = 10.0
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @property
    def demo_mode(self) -> bool:
        url = (self.DATABASE_URL or "").strip()
        return not url or url == "undefined"

    @model_validator(mode="after")
    def _check_session_secret(self) -> "Settings":
        secret = self.SESSION_JWT_SECRET or ""
        if self.demo_mode:
            if not secret:
                self.SESSION_JWT_SECRET = secrets.token_urlsafe(MIN_SECRET_LENGTH)
            return self
        if len(secret) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"SESSION_JWT_SECRET must be set to at least {MIN_SECRET_LENGTH} characters "
                "when DATABASE_URL is configured"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
