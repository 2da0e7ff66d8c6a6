"""Run Alembic migrations from application startup.

PostgreSQL deployments get ``alembic upgrade head`` before the app starts
serving; SQLite (local development and tests) relies on ``init_db`` instead.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path


logger = logging.getLogger(__name__)


_TRUE_VALUES = {"1", "true", "yes", "on"}


def _is_truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUE_VALUES


def should_run_migrations(database_url: str) -> bool:
    if os.getenv("PYTEST_CURRENT_TEST") is not None:
        return False

    if _is_truthy(os.getenv("DISABLE_AUTO_MIGRATIONS")):
        return False

    if _is_truthy(os.getenv("AUTO_MIGRATE")):
        return True

    return not database_url.strip().lower().startswith("sqlite")


def run_migrations_if_needed(*, database_url: str) -> bool:
    """Upgrade the report schema to ``head`` when enabled; returns whether it ran."""

    if not should_run_migrations(database_url):
        logger.info("Auto-migrations disabled for this database")
        return False

    from alembic import command
    from alembic.config import Config

    repo_root = Path(__file__).resolve().parents[2]
    alembic_ini = repo_root / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("Auto-migrations skipped: missing alembic.ini at %s", alembic_ini)
        return False

    logger.info("Running Alembic migrations (upgrade head)")
    config = Config(str(alembic_ini))
    config.set_main_option("sqlalchemy.url", database_url)
    config.set_main_option("script_location", str(repo_root / "alembic"))
    command.upgrade(config, "head")
    logger.info("Alembic migrations completed")
    return True


__all__ = ["run_migrations_if_needed", "should_run_migrations"]
