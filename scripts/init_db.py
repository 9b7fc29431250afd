#!/usr/bin/env python3
"""
Prepare the session store for the order scanner backend.

    python scripts/init_db.py                      # create db (postgres), migrate
    python scripts/init_db.py --seed-session       # + store SHOPIFY_SHOP's token
    python scripts/init_db.py --drop-sessions SHOP # forget an uninstalled shop
    python scripts/init_db.py --check-only

--no-migrations builds the tables straight from the models (handy with SQLite).
"""

import argparse
import logging
import subprocess
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from qr_order_scanner.core.config import Settings, load_settings
from qr_order_scanner.core.logging_setup import configure_logging
from qr_order_scanner.db.base import Base
from qr_order_scanner.db.session import build_engine, build_session_factory
from qr_order_scanner.models import models  # noqa: F401
from qr_order_scanner.services.shopify.sessions import delete_sessions_for_shop, store_session

PROJECT_ROOT = Path(__file__).resolve().parent.parent

logger = logging.getLogger("init_db")


def ensure_postgres_database(database_url: str) -> None:
    """CREATE DATABASE when the target postgres db is missing; other backends are left alone."""
    if not database_url.startswith("postgresql"):
        logger.info("Not a PostgreSQL URL, nothing to create")
        return

    parsed = urlparse(database_url)
    name = parsed.path.lstrip("/")
    admin_engine = create_engine(f"{parsed.scheme}://{parsed.netloc}/postgres", isolation_level="AUTOCOMMIT")
    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(text("SELECT 1 FROM pg_database WHERE datname = :name"), {"name": name}).scalar()
            if exists:
                logger.info(f"Database {name} exists")
                return
            logger.info(f"Creating database {name}")
            conn.execute(text(f'CREATE DATABASE "{name}"'))
    finally:
        admin_engine.dispose()


def prepare_database(settings: Settings) -> Optional[Engine]:
    """make sure the database exists and answers; None when it doesn't."""
    try:
        ensure_postgres_database(settings.DATABASE_URL)
        engine = build_engine(settings)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database not reachable: {e}")
        return None
    logger.info("Database connection OK")
    return engine


def migrate() -> bool:
    logger.info("alembic upgrade head")
    proc = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
    )
    if proc.returncode != 0:
        logger.error(f"Migration failed:\n{proc.stderr}")
        return False
    logger.debug(proc.stdout)
    return True


def seed_offline_session(settings: Settings, engine: Engine) -> bool:
    """custom-app mode: keep the static admin token as the shop's offline session."""
    if not settings.has_static_credentials:
        logger.warning("SHOPIFY_SHOP / SHOPIFY_ACCESS_TOKEN not set, nothing to seed")
        return False

    db = build_session_factory(engine)()
    try:
        session = store_session(db, settings.SHOPIFY_SHOP, settings.SHOPIFY_ACCESS_TOKEN, scope=settings.SCOPES)
    finally:
        db.close()
    logger.info(f"Stored offline session {session.id}")
    return True


def drop_sessions(engine: Engine, shop: str) -> int:
    db = build_session_factory(engine)()
    try:
        removed = delete_sessions_for_shop(db, shop)
    finally:
        db.close()
    logger.info(f"Removed {removed} session(s) for {shop}")
    return removed


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Prepare the order scanner session store")
    parser.add_argument("--env-file", default=None, help="read settings from this .env file")
    parser.add_argument("--check-only", action="store_true", help="only check that the database answers")
    parser.add_argument("--no-migrations", action="store_true", help="create tables from the models instead of alembic")
    parser.add_argument("--seed-session", action="store_true", help="store the offline session from the environment")
    parser.add_argument("--drop-sessions", metavar="SHOP", help="delete every stored session of SHOP")
    args = parser.parse_args(argv)

    settings = load_settings(args.env_file)
    configure_logging(settings)

    engine = prepare_database(settings)
    if engine is None:
        return 1
    try:
        if args.check_only:
            return 0

        if args.no_migrations:
            Base.metadata.create_all(engine)
            logger.info("Tables created from models")
        elif not migrate():
            return 1

        if args.drop_sessions:
            drop_sessions(engine, args.drop_sessions)
        if args.seed_session and not seed_offline_session(settings, engine):
            return 1
    finally:
        engine.dispose()

    logger.info("Done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
