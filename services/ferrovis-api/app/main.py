"""FastAPI application wiring for the Ferrovis API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.routes import router as api_router
from .api.routes import system_router
from .catalog import load_seed_catalog
from .config import get_settings
from .domain.bootstrap import bootstrap_catalog
from .domain.service import CatalogService
from .log import configure_logging
from .repository import CatalogRepository
from .schema import apply_schema

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the Postgres pool, prepare schema and catalog, and release the pool on shutdown.

    A fatal bootstrap error propagates out of startup so the server never
    accepts traffic against a half-initialised store.
    """
    logger.info("starting %s version=%s commit=%s", settings.app_name, settings.version, settings.commit)
    pool = ConnectionPool(settings.database_url, open=False, timeout=settings.db_connect_timeout)
    pool.open()
    app.state.pool = pool
    try:
        repository = CatalogRepository(pool)
        if settings.apply_schema:
            apply_schema(pool)
        if settings.seed_on_startup:
            bootstrap_catalog(repository, load_seed_catalog())
        app.state.catalog_service = CatalogService(repository)
        yield
    finally:
        pool.close()
        logger.info("database pool closed")


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allow_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=600,
)

app.include_router(system_router)
app.include_router(api_router)


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    uvicorn.run(app, host=settings.http_host, port=settings.http_port, log_config=None)
