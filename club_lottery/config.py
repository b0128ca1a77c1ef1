"""Environment-based configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy.engine import URL


def resolve_database_url() -> str:
    """Resolve DB connection string.

    Priority:
      1) DATABASE_URL (explicit)
      2) Build from PG* env vars (common Postgres convention)
      3) Fallback to local sqlite
    """

    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit

    host = os.getenv("PGHOST")
    user = os.getenv("PGUSER")
    database = os.getenv("PGDATABASE")
    port_raw = os.getenv("PGPORT")

    if host and user and database:
        password = os.getenv("PGPASSWORD")
        sslmode = os.getenv("PGSSLMODE", "require")

        try:
            port = int(port_raw) if port_raw else 5432
        except ValueError:
            port = 5432

        query = {"sslmode": sslmode} if sslmode else {}
        url = URL.create(
            drivername="postgresql+psycopg2",
            username=user,
            password=password,
            host=host,
            port=port,
            database=database,
            query=query,
        )
        return str(url)

    return "sqlite:///./club_lottery.db"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class BaseConfig:
    """Base configuration shared by all environments."""

    APP_ENV: str = os.getenv("APP_ENV", "development")
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret")
    TESTING: bool = False

    DATABASE_URL: str = resolve_database_url()
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Certified randomness (RANDOM.ORG signed API)
    RANDOM_ORG_API_KEY: str = os.getenv("RANDOM_ORG_API_KEY", "")
    RANDOM_ORG_URL: str = os.getenv("RANDOM_ORG_URL", "https://api.random.org/json-rpc/4/invoke")
    RANDOM_ORG_TIMEOUT_SECONDS: float = _env_float("RANDOM_ORG_TIMEOUT_SECONDS", 15.0)

    # Transactional email (Resend)
    RESEND_API_KEY: str = os.getenv("RESEND_API_KEY", "")
    RESEND_API_URL: str = os.getenv("RESEND_API_URL", "https://api.resend.com/emails")
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "Club Lottery <noreply@example.org>")
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "lottery-admin@example.org")
    EMAIL_SEND_DELAY_SECONDS: float = _env_float("EMAIL_SEND_DELAY_SECONDS", 0.6)
    EMAIL_TIMEOUT_SECONDS: float = _env_float("EMAIL_TIMEOUT_SECONDS", 10.0)

    LOTTERY_NAME: str = os.getenv("LOTTERY_NAME", "Club Lottery")
    LUCKY_DIP_WINNERS: int = _env_int("LUCKY_DIP_WINNERS", 5)
    LUCKY_DIP_AMOUNT: int = _env_int("LUCKY_DIP_AMOUNT", 50)
    LUCKY_DIP_ONE_PER_SUBSCRIBER: bool = _env_bool("LUCKY_DIP_ONE_PER_SUBSCRIBER", True)
    DEFAULT_JACKPOT: int = _env_int("DEFAULT_JACKPOT", 100)

    # Window during which a completed live draw cannot be re-triggered in-process.
    DRAW_GUARD_COOLDOWN_SECONDS: float = _env_float("DRAW_GUARD_COOLDOWN_SECONDS", 300.0)


@dataclass(frozen=True)
class DevelopmentConfig(BaseConfig):
    """Development configuration."""

    DEBUG: bool = True


@dataclass(frozen=True)
class ProductionConfig(BaseConfig):
    """Production configuration."""

    DEBUG: bool = False


@dataclass(frozen=True)
class TestingConfig(BaseConfig):
    """Configuration used by the test-suite."""

    TESTING: bool = True
    DEBUG: bool = False
    DATABASE_URL: str = "sqlite://"


def get_config() -> type[BaseConfig]:
    """Resolve configuration class based on APP_ENV."""

    env = os.getenv("APP_ENV", "development").lower().strip()
    if env == "production":
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
