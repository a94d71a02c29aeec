"""Alembic runner used by the container entrypoint and by tests.

    python -m app.infra.migrate            # upgrade to head
    python -m app.infra.migrate base       # downgrade everything
"""

from __future__ import annotations

import logging
import os
import sys

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import create_engine

from app.infra.logging_config import configure_logging

logger = logging.getLogger(__name__)

ALEMBIC_CONFIG_PATH = os.getenv("ALEMBIC_CONFIG", "alembic.ini")


def build_config(database_url: str | None = None) -> Config:
    config = Config(ALEMBIC_CONFIG_PATH)
    config.attributes["configure_logging"] = False
    if database_url:
        config.set_main_option("sqlalchemy.url", database_url)
        config.attributes["url_override"] = True
    return config


def run_upgrade(revision: str = "head", *, database_url: str | None = None) -> None:
    logger.info("running migrations", extra={"context": {"target": revision}})
    command.upgrade(build_config(database_url), revision)


def run_downgrade(revision: str = "base", *, database_url: str | None = None) -> None:
    logger.info("reverting migrations", extra={"context": {"target": revision}})
    command.downgrade(build_config(database_url), revision)


def current_revision(database_url: str) -> str | None:
    engine = create_engine(database_url)
    try:
        with engine.connect() as conn:
            return MigrationContext.configure(conn).get_current_revision()
    finally:
        engine.dispose()


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = sys.argv[1:] if argv is None else argv
    target = args[0] if args else "head"
    if target == "base":
        run_downgrade(target)
    else:
        run_upgrade(target)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
