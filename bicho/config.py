"""Environment-based configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy.engine import URL


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


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


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

    if host and user and database:
        sslmode = os.getenv("PGSSLMODE", "require")
        url = URL.create(
            drivername="postgresql+psycopg2",
            username=user,
            password=os.getenv("PGPASSWORD"),
            host=host,
            port=_env_int("PGPORT", 5432),
            database=database,
            query={"sslmode": sslmode} if sslmode else {},
        )
        return url.render_as_string(hide_password=False)

    return "sqlite:///./bicho.db"


def resolve_db_backend() -> str:
    """Return "sql" or "mongo"."""

    return (os.getenv("DB_BACKEND") or ("mongo" if os.getenv("MONGODB_URI") else "sql")).lower().strip()


def parse_proxy_list(raw: str | None) -> tuple[str, ...]:
    return tuple(p.strip() for p in (raw or "").split(",") if p.strip())


@dataclass(frozen=True)
class BaseConfig:
    """Base configuration shared by all environments."""

    APP_ENV: str = os.getenv("APP_ENV", "development")
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret")
    DB_BACKEND: str = resolve_db_backend()  # "sql" | "mongo"

    # SQL backend
    DATABASE_URL: str = resolve_database_url()

    # Mongo backend
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    MONGODB_DB: str = os.getenv("MONGODB_DB", "bicho")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Scraping pipeline
    FETCH_TIMEOUT_SECONDS: float = _env_float("FETCH_TIMEOUT_SECONDS", 20.0)
    SCRAPE_MAX_WORKERS: int = _env_int("SCRAPE_MAX_WORKERS", 4)
    PROXY_LIST: tuple[str, ...] = parse_proxy_list(os.getenv("PROXY_LIST"))
    PROXY_ROTATION_ENABLED: bool = _env_bool("PROXY_ROTATION_ENABLED")

    # Analytics
    OVERDUE_MIN_DRAWS: int = _env_int("OVERDUE_MIN_DRAWS", 10)


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
    """Configuration for the test-suite (sqlite, no proxies)."""

    DEBUG: bool = False
    TESTING: bool = True
    DB_BACKEND: str = "sql"
    PROXY_LIST: tuple[str, ...] = ()
    PROXY_ROTATION_ENABLED: bool = False


def get_config() -> type[BaseConfig]:
    """Resolve configuration class based on APP_ENV."""

    env = os.getenv("APP_ENV", "development").lower().strip()
    if env == "production":
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
