from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _normalize_database_url(value: str | None, fallback: str) -> str:
    raw = (value or fallback).strip() or fallback
    # Some dashboards accidentally store quoted values.
    if (raw.startswith('"') and raw.endswith('"')) or (raw.startswith("'") and raw.endswith("'")):
        raw = raw[1:-1].strip()

    if "://" not in raw:
        # sqlx-style "sqlite:./database.db" from the old .env files.
        if raw.startswith("sqlite:"):
            return f"sqlite:///{raw[len('sqlite:'):]}"
        return raw

    scheme, suffix = raw.split("://", 1)
    scheme = scheme.lower()

    if scheme in {
        "postgres",
        "postgresql",
        "postgresql+psycopg",
        "postgresql+psycopg2",
    }:
        return f"postgresql+psycopg2://{suffix}"

    return raw


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    env: str
    host: str
    port: int
    database_url: str
    db_pool_size: int
    db_max_overflow: int
    db_pool_timeout: int
    db_pool_recycle: int
    cors_origins: list[str]
    cors_max_age: int
    log_level: str
    enable_prometheus_metrics: bool
    run_migrations_on_startup: bool

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def is_production(self) -> bool:
        return self.env.lower() not in {"development", "dev", "test", "testing"}

    def validate(self) -> None:
        """Raise early on settings the server cannot start with."""
        if not self.database_url:
            raise RuntimeError("DATABASE_URL must not be empty")
        if not 0 < self.port < 65536:
            raise RuntimeError(f"PORT must be between 1 and 65535, got {self.port}")


def load_settings() -> Settings:
    return Settings(
        env=os.getenv("ENV", "development"),
        host=os.getenv("HOST", "0.0.0.0").strip(),
        port=_as_int(os.getenv("PORT"), 8080),
        database_url=_normalize_database_url(
            os.getenv("DATABASE_URL"),
            "sqlite:///./database.db",
        ),
        db_pool_size=max(1, _as_int(os.getenv("DB_POOL_SIZE"), 5)),
        db_max_overflow=max(0, _as_int(os.getenv("DB_MAX_OVERFLOW"), 10)),
        db_pool_timeout=max(1, _as_int(os.getenv("DB_POOL_TIMEOUT"), 30)),
        db_pool_recycle=max(60, _as_int(os.getenv("DB_POOL_RECYCLE"), 1800)),
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "*")) or ["*"],
        cors_max_age=max(0, _as_int(os.getenv("CORS_MAX_AGE"), 3600)),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        enable_prometheus_metrics=_as_bool(os.getenv("ENABLE_PROMETHEUS_METRICS"), True),
        run_migrations_on_startup=_as_bool(os.getenv("RUN_MIGRATIONS_ON_STARTUP"), True),
    )


settings = load_settings()

settings.validate()
