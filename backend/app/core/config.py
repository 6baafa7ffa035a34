from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
from typing import Any, ClassVar
import json
from pathlib import Path
import os


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"

    # JWT configuration (provide a fallback for local development)
    SECRET_KEY: str = "fallback_secret_for_dev_only"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Database URL
    # Use an absolute path so running the app from different directories
    # (e.g., repo root or backend/) always resolves the same DB file.
    BASE_DIR: ClassVar[Path] = Path(__file__).resolve().parents[2]
    SQLALCHEMY_DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'chefbook.db'}"

    # Redis connection URL for caching and the realtime bus
    REDIS_URL: str = "redis://localhost:6379/0"
    WS_BUS_ENABLED: bool = False

    # CORS origins
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    CORS_ALLOW_ALL: bool = False

    # Default currency code used for balances and withdrawals
    DEFAULT_CURRENCY: str = "USD"

    # Chef-local time is evaluated in this zone unless the chef profile sets one
    DEFAULT_TIMEZONE: str = "UTC"

    # Upper bound on a single booking's duration
    MAX_BOOKING_HOURS: int = 24

    # The event feed only hands out outbox rows at least this old, so a
    # cursor never moves past a lower id that is still being committed
    EVENT_FEED_SETTLE_SECONDS: float = 2.0

    # Availability cache TTL (seconds)
    AVAILABILITY_CACHE_TTL: int = 120

    # Transient storage failures are retried once after this delay
    STORAGE_RETRY_BACKOFF_SECONDS: float = 0.2

    # Admin allowlist: comma-separated emails allowed to approve/reject chefs
    ADMIN_EMAILS: str = ""

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=os.getenv(
            "ENV_FILE", str(Path(__file__).resolve().parents[3] / ".env")
        ),
        case_sensitive=True,
    )

    @field_validator("CORS_ORIGINS", mode="before")
    def split_origins(cls, v: Any) -> list[str]:
        """Parse comma-separated or JSON list of origins from environment."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                pass
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("ADMIN_EMAILS", mode="before")
    def strip_admin_values(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("MAX_BOOKING_HOURS")
    def positive_max_hours(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("MAX_BOOKING_HOURS must be positive")
        return v

    @model_validator(mode="after")
    def allow_all_if_requested(cls, values: "Settings") -> "Settings":
        if values.CORS_ALLOW_ALL:
            values.CORS_ORIGINS = ["*"]
        return values

    @property
    def admin_emails(self) -> set[str]:
        return {e.strip().lower() for e in self.ADMIN_EMAILS.split(",") if e.strip()}


def load_settings() -> "Settings":
    return Settings()


settings = load_settings()
