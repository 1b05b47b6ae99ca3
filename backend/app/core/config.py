"""
Pydantic Settings: centralized configuration loaded from environment variables.
"""

from dateutil import tz as date_tz
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Server ────────────────────────────────
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # ── Database ──────────────────────────────
    # A full connection string wins over the individual parts.
    DATABASE_URI: str = ""
    POSTGRES_USER: str = "policy_user"
    POSTGRES_PASSWORD: str = "policy_pass"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "policy_management"

    @property
    def DATABASE_URL(self) -> str:
        """Async URL for app runtime (asyncpg)."""
        if self.DATABASE_URI:
            return self.DATABASE_URI
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def DATABASE_URL_SYNC(self) -> str:
        """Sync URL for Alembic migrations (psycopg2)."""
        return (
            self.DATABASE_URL
            .replace("postgresql+asyncpg://", "postgresql://")
            .replace("sqlite+aiosqlite://", "sqlite://")
        )

    # ── Redis / Celery ────────────────────────
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"

    # ── Ingestion ─────────────────────────────
    UPLOAD_DIR: str = "uploads"
    INGESTION_MODE: str = "process"   # process | celery | inline
    MAX_CONCURRENT_INGESTIONS: int = 4
    INGESTION_TIMEOUT_SECONDS: int = 600

    # ── Scheduler ─────────────────────────────
    TIMEZONE: str = "UTC"
    SCHEDULER_POLL_INTERVAL_SECONDS: float = 30.0

    @field_validator("TIMEZONE")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        if date_tz.gettz(value) is None:
            raise ValueError(f"Unknown timezone: {value}")
        return value

    # ── CPU watchdog ──────────────────────────
    WATCHDOG_ENABLED: bool = False
    WATCHDOG_INTERVAL_SECONDS: float = 5.0
    WATCHDOG_CPU_THRESHOLD: float = 70.0

    # ── Application ───────────────────────────
    APP_ENV: str = "development"

    model_config = {"env_file": ["../.env", ".env"], "extra": "ignore"}


settings = Settings()
