"""Entry point for the User Management service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from user_management.api import health_router, v1_router
from user_management.core.config import settings
from user_management.core.database import init_db, verify_database_connection
from user_management.core.error_handlers import register_exception_handlers
from user_management.core.middleware import register_middleware

logger = logging.getLogger("user_management")


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s", settings.PROJECT_NAME)
    verify_database_connection()
    if settings.DB_AUTO_MIGRATE:
        init_db()
    yield
    logger.info("Shutting down %s", settings.PROJECT_NAME)


configure_logging()

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

register_exception_handlers(app)
register_middleware(app)

app.include_router(health_router)
app.include_router(v1_router, prefix="/api/v1")


__all__ = ["app"]
