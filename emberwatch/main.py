"""
EmberWatch API — Application entry point.

Bootstraps FastAPI, wires up middleware, registers route groups, and owns
the lifecycle of the shared RemoteDataSource + RetrievalController.

One controller per process: this service backs a single dashboard view,
the same way the page holds a single map.

Run locally:
    uvicorn emberwatch.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from emberwatch.core.config import settings
from emberwatch.core.rate_limit import limiter
from emberwatch.routes.dashboard import router as dashboard_router
from emberwatch.routes.health import router as health_router
from emberwatch.services.controller import RetrievalController
from emberwatch.sources.remote_source import RemoteDataSource

# ─── Logging ───────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ─── Lifespan ──────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create the data source and controller on startup; tear both down on
    shutdown. No retrieval is issued here — the browser triggers the first
    one via POST /api/v1/dashboard/activate with its geolocation result.
    """
    logger.info(
        "Starting EmberWatch API (env: %s, backend: %s)",
        settings.environment,
        settings.backend_base_url,
    )
    source = RemoteDataSource(settings)
    app.state.controller = RetrievalController(source, settings)
    yield
    logger.info("Shutting down EmberWatch API")
    app.state.controller.close()
    await source.aclose()


# ─── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="EmberWatch API",
    description=(
        "Wildfire hotspots near a location, from satellite detections and "
        "local weather. Falls back to clearly flagged mock data when the "
        "hotspot backend is unreachable."
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
)


# ─── Rate limiting ─────────────────────────────────────────────────────────────
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ─── Middleware ─────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Routes ────────────────────────────────────────────────────────────────────
app.include_router(health_router, prefix="/health", tags=["health"])
app.include_router(dashboard_router)


@app.get("/", tags=["root"])
async def root():
    """API root — basic metadata."""
    return {
        "name": "EmberWatch API",
        "version": "0.1.0",
        "status": "running",
        "environment": settings.environment,
        "docs": "/docs",
    }
