"""
pytest configuration and shared fixtures for the EmberWatch tests.

Key concern: tests must not touch the network. We achieve this by:
  1. Driving the controller with FakeDataSource, an in-memory stand-in for
     RemoteDataSource whose calls can be failed or held open on a gate.
  2. Overriding the get_controller dependency so routes use that controller
     instead of the one main.py's lifespan builds.
  3. Testing RemoteDataSource itself through httpx.MockTransport.
"""

import asyncio
import os
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

# Set env vars BEFORE importing the app so Settings picks them up correctly
os.environ.setdefault("ENVIRONMENT", "test")

from emberwatch.core.config import Settings  # noqa: E402
from emberwatch.models.hotspot import (  # noqa: E402
    Coordinate,
    GeocodeCandidate,
    Hotspot,
    HotspotBundle,
    WeatherSnapshot,
)
from emberwatch.services.controller import RetrievalController  # noqa: E402
from emberwatch.sources.remote_source import DataSourceError  # noqa: E402

FIXED_NOW = datetime(2026, 10, 18, 9, 12, tzinfo=timezone.utc)

DEFAULT_CENTER = Coordinate(lat=34.0522, lng=-118.2437)
NEW_YORK = Coordinate(lat=40.7128, lng=-74.0060)


def make_hotspot(hotspot_id: int, confidence: int, frp: float = 10.0, lat: float = 34.1, lng: float = -118.2) -> Hotspot:
    return Hotspot(
        id=hotspot_id,
        lat=lat,
        lng=lng,
        confidence=confidence,
        frp=frp,
        detection_time=FIXED_NOW,
    )


def make_bundle(*confidences: int, ranked=None, weather=None) -> HotspotBundle:
    hotspots = [make_hotspot(i, c) for i, c in enumerate(confidences, start=1)]
    return HotspotBundle(hotspots=hotspots, top_ranked=ranked, weather=weather)


class FakeDataSource:
    """
    In-memory RemoteDataSource.

    - `bundle` / `bundles[coordinate]`: what fetch_nearby_hotspots returns
    - `candidates`: what geocode returns
    - `fail_fetch` / `fail_geocode`: raise DataSourceError instead
    - `gates[coordinate]`: an asyncio.Event the fetch waits on before answering
    """

    def __init__(self, bundle=None, candidates=None):
        self.bundle = bundle or HotspotBundle()
        self.bundles: dict[Coordinate, HotspotBundle] = {}
        self.candidates: list[GeocodeCandidate] = list(candidates or [])
        self.fail_fetch = False
        self.fail_geocode = False
        self.gates: dict[Coordinate, asyncio.Event] = {}
        self.fetch_calls: list[Coordinate] = []
        self.geocode_calls: list[str] = []

    async def fetch_nearby_hotspots(self, coordinate: Coordinate) -> HotspotBundle:
        self.fetch_calls.append(coordinate)
        gate = self.gates.get(coordinate)
        if gate is not None:
            await gate.wait()
        if self.fail_fetch:
            raise DataSourceError("hotspot backend unreachable: connection refused")
        return self.bundles.get(coordinate, self.bundle)

    async def geocode(self, query: str) -> list[GeocodeCandidate]:
        self.geocode_calls.append(query)
        if self.fail_geocode:
            raise DataSourceError("geocoder unreachable: connection refused")
        return list(self.candidates)


@pytest.fixture()
def settings():
    """Defaults only — ignores any developer .env file."""
    return Settings(_env_file=None)


@pytest.fixture()
def fake_source():
    return FakeDataSource(
        bundle=make_bundle(91, 64, 30, weather=WeatherSnapshot(temp=29.5, humidity=22, wind_speed=12)),
    )


@pytest.fixture()
def controller(fake_source, settings):
    return RetrievalController(fake_source, settings, clock=lambda: FIXED_NOW)


@pytest.fixture()
async def api_client(controller):
    """
    HTTPX async test client wired to the FastAPI app, with the dashboard
    routes bound to the `controller` fixture. Rate-limit counters are reset
    so requests don't bleed between tests.
    """
    from emberwatch.core.rate_limit import limiter
    from emberwatch.main import app
    from emberwatch.routes.dashboard import get_controller

    limiter.reset()
    app.dependency_overrides[get_controller] = lambda: controller
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
