"""PostgreSQL wiring for the licensing stores.

`engine` and `async_session_factory` exist only when DATABASE_URL is set;
otherwise both are None and `alignex.api.wiring` falls back to the
in-memory repos.  The Pg repos take the session factory rather than a
session because the resolver and its cache outlive any single request.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from alignex.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Metadata root for user_licenses, organization_modules and rules."""


def _build_engine(url: str) -> AsyncEngine:
    # License and rule reads are small and cached, so a modest pool is enough.
    return create_async_engine(url, echo=SETTINGS.is_dev, pool_size=5, max_overflow=10)


engine = _build_engine(SETTINGS.database_url) if SETTINGS.database_url else None
async_session_factory = (
    async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    if engine is not None
    else None
)


@asynccontextmanager
async def lifespan_db():
    if engine is None:
        logger.info("Licensing stores are in memory; data is lost on restart")
        yield
        return

    logger.info("Licensing stores backed by %s", engine.url.render_as_string())
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Licensing store connections closed")
