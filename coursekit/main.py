from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coursekit.api.admin import router as admin_router
from coursekit.api.courses import router as courses_router
from coursekit.api.health import router as health_router
from coursekit.api.media import router as media_router
from coursekit.api.meetups import router as meetups_router
from coursekit.api.metrics_endpoint import router as metrics_router
from coursekit.api.progress import router as progress_router
from coursekit.container import build_container, seed_sample_catalog
from coursekit.core.config import SETTINGS
from coursekit.core.errors import CourseKitError
from coursekit.core.logging import setup_logging
from coursekit.db.redis import lifespan_redis
from coursekit.middleware.metrics import MetricsMiddleware
from coursekit.middleware.request_context import RequestContextMiddleware
from coursekit.repos.kv_store import InMemoryKeyValueStore

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    async with lifespan_redis():
        container = app.state.container
        if SETTINGS.is_dev and isinstance(container.store, InMemoryKeyValueStore):
            await seed_sample_catalog(container.catalog)
            logger.info("Seeded sample catalogue into the in-memory store")
        yield


app = FastAPI(
    title="coursekit-service",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

# Built at import so a missing signing setting in prod stops the process
# before it accepts traffic.
app.state.container = build_container(SETTINGS)


@app.exception_handler(CourseKitError)
async def coursekit_error_handler(request: Request, exc: CourseKitError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s: %s", exc.__class__.__name__, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware execution order: last-added runs first (outermost layer).
# RequestContext (outermost) -> Metrics -> CORS -> route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(admin_router)
app.include_router(courses_router)
app.include_router(health_router)
app.include_router(media_router)
app.include_router(meetups_router)
app.include_router(progress_router)

logger.info(
    "coursekit-service started  env=%s log_level=%s port=%d media=%s docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if app.state.container.media_enabled else "off",
    "on" if SETTINGS.is_dev else "off",
)
