"""
app/main.py

ASGI entrypoint for the SaaS metrics API.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import inspect as sa_inspect
from sqlalchemy import text

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _setup_logging() -> None:
    level_name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=_LOG_FORMAT,
    )


def _require_database_url() -> None:
    """Fail fast when no database URL is reachable from the environment."""
    from db.config import configured_database_url

    if configured_database_url() is None:
        raise RuntimeError(
            "Startup aborted: set DATABASE_URL, CLOUD_DATABASE_URL "
            "or LOCAL_DATABASE_URL."
        )


def _ping_database() -> None:
    from db.session import SessionLocal

    session = SessionLocal()
    try:
        session.execute(text("SELECT 1"))
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc
    finally:
        session.close()


def _missing_tables() -> list[str]:
    """Tables declared on the ORM metadata that the database lacks."""
    import db.models  # noqa: F401  registers the billing and plan tables
    from db.base import Base
    from db.session import get_engine

    present = set(sa_inspect(get_engine()).get_table_names())
    return sorted(set(Base.metadata.tables) - present)


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    _ping_database()
    logger.info("Database connectivity confirmed")

    missing = _missing_tables()
    if missing:
        logger.critical(
            "Tables absent from the database: %s. Run 'alembic upgrade head'.",
            ", ".join(missing),
        )
        raise RuntimeError(f"Schema out of date, missing: {', '.join(missing)}")
    logger.info("Database schema validated")
    yield


def create_app() -> FastAPI:
    """
    Build the API application with every router mounted.

    Migrations are never applied here; a stale schema aborts startup.
    """
    _require_database_url()
    _setup_logging()

    from app.api.routers import (
        client_router,
        metrics_router,
        plan_router,
        transaction_import_router,
    )

    application = FastAPI(title="SaaS Metrics API", version="1.0.0", lifespan=_lifespan)
    for router in (metrics_router, client_router, plan_router, transaction_import_router):
        application.include_router(router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
