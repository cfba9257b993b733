#!/usr/bin/env python3
"""
lookup_hotspots.py — One-shot hotspot lookup from the command line.

Runs a single dashboard trigger against the configured backend and prints
what the ranked list would show: top hotspots, risk counts and weather.

Usage (from the repository root):
    # Default viewpoint (geolocation unavailable on a terminal)
    python scripts/lookup_hotspots.py

    # A known position, treated as the user's geolocation fix
    python scripts/lookup_hotspots.py --lat 37.75 --lng -119.59

    # Free-text search through the geocoder
    python scripts/lookup_hotspots.py --query "Paradise, California"

Endpoints come from the usual settings (.env or BACKEND_BASE_URL, ...).
When the backend is unreachable the output is the flagged mock data.
"""

import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv
load_dotenv(ROOT / ".env")

from emberwatch.core.config import Settings  # noqa: E402
from emberwatch.models.dashboard import ErrorKind  # noqa: E402
from emberwatch.models.hotspot import Coordinate  # noqa: E402
from emberwatch.services.controller import RetrievalController  # noqa: E402
from emberwatch.services.projection import build_ranked_list_view  # noqa: E402
from emberwatch.sources.geolocation import FixedPositionProvider  # noqa: E402
from emberwatch.sources.remote_source import RemoteDataSource  # noqa: E402


async def lookup(lat: float | None, lng: float | None, query: str | None) -> int:
    settings = Settings()
    source = RemoteDataSource(settings)
    controller = RetrievalController(source, settings)
    try:
        if query:
            await controller.search(query)
        elif lat is not None and lng is not None:
            await controller.activate(FixedPositionProvider(Coordinate(lat=lat, lng=lng)))
        else:
            await controller.activate(None)
    finally:
        await source.aclose()

    state = controller.state
    view = build_ranked_list_view(state, limit=controller.settings.ranked_list_size)

    print(f"Center: {state.center.lat:.4f}, {state.center.lng:.4f}")
    if state.advisory:
        print(f"! {state.advisory}")

    if view.weather:
        w = view.weather
        print(f"Weather: {w.temp}°C, {w.humidity}% humidity, wind {w.wind_speed} km/h")
        if w.high_fire_risk:
            print("! High fire risk conditions detected")

    if view.empty:
        print(view.empty_message)
        print(view.empty_hint)
    for card in view.cards:
        print(
            f"  #{card.rank}  {card.confidence:>3}% ({card.level.value:<6})  "
            f"{card.location}  FRP {card.frp} MW  {card.detected}"
        )

    c = view.counts
    print(f"Total {c.total} · high {c.high} · medium {c.medium} · low {c.low}")

    # Non-zero exit only when the search itself went nowhere.
    return 1 if state.error in (ErrorKind.LOCATION_NOT_FOUND, ErrorKind.SEARCH_FAILED) else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Look up wildfire hotspots near a location")
    parser.add_argument("--lat", type=float, help="Latitude of a known position")
    parser.add_argument("--lng", type=float, help="Longitude of a known position")
    parser.add_argument("--query", help="Free-text location to geocode instead")
    args = parser.parse_args()

    if (args.lat is None) != (args.lng is None):
        parser.error("--lat and --lng must be given together")

    sys.exit(asyncio.run(lookup(args.lat, args.lng, args.query)))
