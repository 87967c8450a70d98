"""Database engine and session factory for the user management service."""

import logging
from typing import Any, Dict

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from user_management.core.config import Settings, settings

logger = logging.getLogger(__name__)


def _engine_options(config: Settings) -> Dict[str, Any]:
    url = config.database_url
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}

    return {
        "pool_size": config.DB_POOL_SIZE,
        "max_overflow": config.DB_MAX_OVERFLOW,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
        "connect_args": {
            "client_encoding": config.DB_CHARSET,
            "options": f"-c statement_timeout={config.DB_STATEMENT_TIMEOUT_MS}",
        },
    }


def build_engine(config: Settings = settings) -> Engine:
    return create_engine(config.database_url, **_engine_options(config))


engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def verify_database_connection(bind: Engine = engine) -> None:
    """Ensure the service can connect to the configured database."""

    try:
        with bind.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.exception("Database connection validation failed")
        raise RuntimeError("Failed to connect to the user database") from exc


def init_db(bind: Engine = engine) -> None:
    """Create the tables registered on ``Base`` if they do not exist yet."""

    # Registers the models on Base.metadata.
    from user_management import models  # noqa: F401

    Base.metadata.create_all(bind=bind)
    logger.info("Database schema is up to date")


__all__ = [
    "Base",
    "SessionLocal",
    "build_engine",
    "engine",
    "init_db",
    "verify_database_connection",
]
