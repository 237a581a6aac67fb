"""
FormFlow API

Form entries with per-template folios and a status workflow gated by role
capabilities and plant work schedules.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config.settings import settings
from .api.routes import api_router
from .api.middleware import CorrelationIdMiddleware, register_error_handlers
from .repositories.mongo_client import create_indexes, close_connection, health_check
from .utils.logger import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)

APP_VERSION = "1.0.0"
API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Indexes on startup (folio and entry uniqueness depend on them); close the client on shutdown"""
    logger.info(f"FormFlow {APP_VERSION} starting ({settings.environment})")
    try:
        create_indexes()
    except Exception as e:
        logger.error(f"Failed to create indexes: {e}")

    yield

    close_connection()
    logger.info("FormFlow stopped")


def _docs_urls() -> Dict[str, Any]:
    if settings.debug and not settings.is_production:
        return {
            "docs_url": "/api/docs",
            "redoc_url": "/api/redoc",
            "openapi_url": "/api/openapi.json",
        }
    return {"docs_url": None, "redoc_url": None, "openapi_url": None}


def create_app() -> FastAPI:
    """Build the application: middleware, error handlers, routes."""
    application = FastAPI(
        title="FormFlow",
        description="Manufacturing form entries with folio sequencing and a role-gated status workflow",
        version=APP_VERSION,
        lifespan=lifespan,
        **_docs_urls(),
    )

    _add_middleware(application)
    register_error_handlers(application)
    application.include_router(api_router, prefix=API_PREFIX)
    _add_health_route(application)

    return application


def _add_middleware(app: FastAPI) -> None:
    wildcard = settings.cors_origins.strip() == "*"
    # Browsers reject credentials together with a wildcard origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if wildcard else settings.cors_origins_list,
        allow_credentials=not wildcard,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )
    app.add_middleware(CorrelationIdMiddleware)


def _add_health_route(app: FastAPI) -> None:

    @app.get("/health", tags=["Health"])
    async def health():
        """Liveness plus MongoDB connectivity; no auth."""
        mongo = health_check()
        return {
            "status": "healthy" if mongo.get("status") == "healthy" else "degraded",
            "version": APP_VERSION,
            "environment": settings.environment,
            "mongo": mongo,
        }


app = create_app()
