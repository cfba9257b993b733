"""
Health check endpoint.

Used by:
  - Docker HEALTHCHECK instruction
  - Load balancers / orchestrators
  - The dashboard front-end to check API connectivity

Reports liveness only. Upstream reachability is not probed here: the
dashboard already degrades to mock data when the hotspot backend is down,
so a failing upstream must not mark this service unhealthy.
"""

import logging

from fastapi import APIRouter
from pydantic import BaseModel

logger = logging.getLogger(__name__)
router = APIRouter()


class HealthResponse(BaseModel):
    status: str  # Always "ok" if the API process is alive
    version: str
    environment: str
    backend: str   # configured hotspot backend base URL
    geocoder: str  # configured geocoder base URL


@router.get("", response_model=HealthResponse, summary="API health check")
async def health_check() -> HealthResponse:
    from emberwatch.core.config import settings

    return HealthResponse(
        status="ok",
        version="0.1.0",
        environment=settings.environment,
        backend=settings.backend_base_url,
        geocoder=settings.geocoder_base_url,
    )
