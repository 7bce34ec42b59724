"""Availability service API: FastAPI entry point.

Registers middleware, routers, and lifecycle hooks. Availability lives at
/item/{id}; course reserves under /api/reserves/.
"""

import glob
import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import Response

from api.dependencies import get_settings
from api.middleware import ClaimsMiddleware
from core.integrations.adapter_base import UpstreamError
from core.integrations.ils import ILSConnector
from core.integrations.mailer import Mailer
from core.integrations.solr import SolrClient
from core.observability.log_setup import setup_logging
from core.observability.otel_setup import setup_otel
from patterns.domain_config import ServiceConfig
from verticals.availability.maps import MapResolver

VERSION = "1.1.0"

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

def init_state(app: FastAPI, config: ServiceConfig) -> None:
    """Build the shared clients and the read-only map tables."""
    app.state.config = config
    app.state.ils = ILSConnector(config.ils_api, timeout=config.ils_timeout)
    app.state.solr = SolrClient(config.solr.url, config.solr.core, timeout=config.solr.timeout)
    app.state.mailer = Mailer(config.smtp)
    app.state.maps = MapResolver.load(config.maps.maps_file, config.maps.lookups_file)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown hooks."""
    config = app.state.config
    missing = config.validate()
    if missing:
        raise RuntimeError(f"missing required configuration: {', '.join(missing)}")
    logger.info("ILS Connector API endpoint: %s", config.ils_api)
    logger.info("Solr endpoint: %s/%s", config.solr.url, config.solr.core)
    setup_otel("availability-service")
    init_state(app, config)

    logger.info("===> availability service v%s started <===", VERSION)
    yield
    await app.state.ils.aclose()
    await app.state.solr.aclose()
    logger.info("availability service shutting down")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

def create_app(config: ServiceConfig | None = None) -> FastAPI:
    if config is None:
        load_dotenv()
        config = ServiceConfig.from_env()
    setup_logging(config.log_level)

    app = FastAPI(
        title="Availability Service",
        description="Item availability and course reserves for the library catalog",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(GZipMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ClaimsMiddleware, jwt_key=config.jwt_key)

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------

    from verticals.availability.router import router as availability_router
    from verticals.reserves.router import router as reserves_router

    app.include_router(availability_router, tags=["Availability"])
    app.include_router(reserves_router, prefix="/api/reserves", tags=["Course Reserves"])

    # -----------------------------------------------------------------------
    # Version, health & favicon
    # -----------------------------------------------------------------------

    @app.get("/")
    @app.get("/version")
    async def version():
        build = "unknown"
        files = glob.glob("buildtag.*")
        if len(files) == 1:
            build = files[0].replace("buildtag.", "", 1)
        return {"version": VERSION, "build": build}

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=204)

    @app.get("/healthcheck")
    async def healthcheck(request: Request):
        settings = get_settings(request)
        status = {}
        if settings.ils_api:
            try:
                await request.app.state.ils.ping()
                status["ils_connector"] = {"healthy": True}
            except UpstreamError as err:
                status["ils_connector"] = {"healthy": False, "message": err.message}
        return status

    return app


def run() -> None:
    """Console entry point: serve on the configured port."""
    import uvicorn

    load_dotenv()
    config = ServiceConfig.from_env()
    uvicorn.run(create_app(config), host=os.getenv("HOST", "0.0.0.0"), port=config.port)
