"""Liveness endpoint with dependency status.

Always 200 while the process can answer; the `status` field says whether a
configured dependency is impaired.  The license tables being unreachable
does not make the service unhealthy in the sense of "restart me": the
resolver keeps answering with its fallback defaults, and the failures show
up in `permission_store_failures_total`.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter
from sqlalchemy import text

from alignex.db.engine import engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    checks: dict[str, str] = {}
    overall = "ok"

    if engine is not None:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except Exception:
            logger.exception("Database health check failed")
            checks["database"] = "degraded"
            overall = "degraded"
    else:
        checks["database"] = "not_configured"

    return {"status": overall, "checks": checks}
