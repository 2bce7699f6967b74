#!/usr/bin/env python3
"""
Migration runner for deployment.
Upgrades the database schema to the latest Alembic revision before the
server starts.
"""
import logging
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.util import CommandError
from sqlalchemy.exc import SQLAlchemyError

from chat_server.config import settings
from chat_server.core.logging_config import configure_logging

logger = logging.getLogger("run_migration")

ALEMBIC_INI = Path(__file__).resolve().parent / "alembic.ini"


def run_migrations(revision: str = "head") -> int:
    """Run `alembic upgrade <revision>`; returns a process exit code."""
    configure_logging(settings)
    logger.info(f"Upgrading database schema to {revision}")

    try:
        command.upgrade(Config(str(ALEMBIC_INI)), revision)
    except (CommandError, SQLAlchemyError):
        logger.exception("Migration failed")
        return 1

    logger.info("Migrations completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(run_migrations(*sys.argv[1:2]))
