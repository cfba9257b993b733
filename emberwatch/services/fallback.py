"""
fallback.py — Deterministic mock bundle served when the backend is down.

Five hotspots at fixed offsets from the queried coordinate, fixed
confidences and FRPs, stamped with the supplied time, plus a fixed hot,
dry, windy weather snapshot. Same coordinate + same time → same bundle.
"""

from datetime import datetime

from emberwatch.models.hotspot import Coordinate, Hotspot, HotspotBundle, WeatherSnapshot

# (Δlat, Δlng, confidence, frp MW) — order is the display order.
MOCK_HOTSPOT_TEMPLATE: tuple[tuple[float, float, int, float], ...] = (
    ( 0.10,  0.10, 95, 45.2),
    (-0.15,  0.20, 78, 32.1),
    ( 0.20, -0.10, 62, 18.5),
    (-0.08, -0.15, 45, 12.3),
    ( 0.25,  0.05, 88, 38.7),
)

MOCK_WEATHER = WeatherSnapshot(temp=32, humidity=15, wind_speed=25)


def build_mock_bundle(coordinate: Coordinate, now: datetime) -> HotspotBundle:
    """Synthesise the fallback bundle around `coordinate`."""
    hotspots = [
        Hotspot(
            id=index,
            lat=coordinate.lat + d_lat,
            lng=coordinate.lng + d_lng,
            confidence=confidence,
            frp=frp,
            detection_time=now,
        )
        for index, (d_lat, d_lng, confidence, frp) in enumerate(MOCK_HOTSPOT_TEMPLATE, start=1)
    ]
    # The mock set doubles as its own ranking.
    return HotspotBundle(hotspots=hotspots, top_ranked=list(hotspots), weather=MOCK_WEATHER)
