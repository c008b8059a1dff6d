from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from alignex.api.access import router as access_router
from alignex.api.health import router as health_router
from alignex.api.heatmap import router as heatmap_router
from alignex.api.licenses import router as licenses_router
from alignex.api.licenses import rules_router as permission_rules_router
from alignex.api.metrics_endpoint import router as metrics_router
from alignex.core.config import SETTINGS
from alignex.core.logging import setup_logging
from alignex.db.engine import lifespan_db
from alignex.middleware.metrics import MetricsMiddleware
from alignex.middleware.request_context import RequestContextMiddleware

setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    async with lifespan_db():
        yield


app = FastAPI(
    title="alignex-licensing",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last added runs first: RequestContext → Metrics → CORS → route
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(access_router)
app.include_router(licenses_router)
app.include_router(permission_rules_router)
app.include_router(heatmap_router)

logger.info(
    "alignex-licensing started  env=%s log_level=%s port=%d cache_ttl=%ds fail_open=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    SETTINGS.permission_cache_ttl_seconds,
    SETTINGS.permission_fail_open,
)
