from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.util.exc import CommandError
from sqlalchemy import create_engine, pool
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .metrics import MIGRATION_RUNS_TOTAL

BACKEND_DIR = Path(__file__).resolve().parents[1]

logger = logging.getLogger("grocerynana.migrations")


class MigrationError(RuntimeError):
    """The migration runner could not bring the store up to date."""


def alembic_config(database_url: str | None = None) -> Config:
    cfg = Config(str(BACKEND_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    url = database_url or settings.database_url
    # Alembic config parser treats `%` as interpolation marker.
    cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    # Keep the application's logging setup when migrating in-process.
    cfg.attributes["configure_logger"] = False
    return cfg


def run_migrations(database_url: str | None = None, revision: str = "head") -> None:
    cfg = alembic_config(database_url)
    try:
        command.upgrade(cfg, revision)
    except (SQLAlchemyError, CommandError) as exc:
        MIGRATION_RUNS_TOTAL.labels(outcome="failed").inc()
        logger.error(
            "Failed to run migrations",
            extra={"event": "migration_failed", "revision": revision, "reason": type(exc).__name__},
            exc_info=True,
        )
        raise MigrationError(f"Failed to run migrations: {exc}") from exc

    MIGRATION_RUNS_TOTAL.labels(outcome="applied").inc()
    logger.info("Migrations applied", extra={"event": "migrations_applied", "revision": revision})


def current_revision(database_url: str | None = None) -> str | None:
    engine = create_engine(database_url or settings.database_url, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            return MigrationContext.configure(connection).get_current_revision()
    finally:
        engine.dispose()
