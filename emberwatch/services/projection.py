"""
projection.py — Presentation-ready views derived from a DashboardSnapshot.

Pure functions, no I/O, never mutate the snapshot. Both views share one
confidence bucketing rule so marker colors, the legend and the stats bar
always agree:

    HIGH    confidence >= 80
    MEDIUM  50 <= confidence < 80
    LOW     confidence < 50

USAGE
─────
    from emberwatch.services.projection import build_map_view, build_ranked_list_view

    map_view  = build_map_view(controller.state)
    list_view = build_ranked_list_view(controller.state, limit=settings.ranked_list_size)
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from emberwatch.models.dashboard import (
    ConfidenceLevel,
    DashboardSnapshot,
    LegendEntry,
    MapMarker,
    MapView,
    RankedCard,
    RankedListView,
    RiskCounts,
    UserMarker,
    WeatherSummary,
)
from emberwatch.models.hotspot import Hotspot, WeatherSnapshot

HIGH_CONFIDENCE_MIN   = 80
MEDIUM_CONFIDENCE_MIN = 50

MAP_ZOOM = 10

MARKER_COLORS: dict[ConfidenceLevel, str] = {
    ConfidenceLevel.HIGH:   "#ef4444",   # danger red
    ConfidenceLevel.MEDIUM: "#f97316",   # warning orange
    ConfidenceLevel.LOW:    "#eab308",   # caution yellow
}
USER_LOCATION_COLOR = "#3b82f6"

LEGEND: list[LegendEntry] = [
    LegendEntry(level=ConfidenceLevel.HIGH,   label="High Confidence (80%+)", color=MARKER_COLORS[ConfidenceLevel.HIGH]),
    LegendEntry(level=ConfidenceLevel.MEDIUM, label="Medium (50-79%)",        color=MARKER_COLORS[ConfidenceLevel.MEDIUM]),
    LegendEntry(level=ConfidenceLevel.LOW,    label="Low (<50%)",             color=MARKER_COLORS[ConfidenceLevel.LOW]),
]

EMPTY_LIST_MESSAGE = "No hotspots detected in this area"
EMPTY_LIST_HINT    = "Try searching a different location"

# Both thresholds are exclusive: exactly 20% humidity or 20 km/h is not flagged.
FIRE_RISK_HUMIDITY_BELOW = 20
FIRE_RISK_WIND_ABOVE     = 20.0


# ── Bucketing ─────────────────────────────────────────────────────────────────

def classify_confidence(confidence: int) -> ConfidenceLevel:
    if confidence >= HIGH_CONFIDENCE_MIN:
        return ConfidenceLevel.HIGH
    if confidence >= MEDIUM_CONFIDENCE_MIN:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def marker_color(confidence: int) -> str:
    return MARKER_COLORS[classify_confidence(confidence)]


def count_by_risk(hotspots: Iterable[Hotspot]) -> RiskCounts:
    """Partition count over the whole sequence; high + medium + low == total."""
    counts = {level: 0 for level in ConfidenceLevel}
    total = 0
    for hotspot in hotspots:
        counts[classify_confidence(hotspot.confidence)] += 1
        total += 1
    return RiskCounts(
        total=total,
        high=counts[ConfidenceLevel.HIGH],
        medium=counts[ConfidenceLevel.MEDIUM],
        low=counts[ConfidenceLevel.LOW],
    )


def select_top(top_ranked: Sequence[Hotspot], limit: int) -> list[Hotspot]:
    """First `limit` of the ranking, order preserved. No client-side re-sorting."""
    return list(top_ranked[:limit])


# ── Formatting ────────────────────────────────────────────────────────────────

def format_coordinate(lat: float, lng: float, degree_sign: bool = False) -> str:
    suffix = "°" if degree_sign else ""
    return f"{lat:.4f}{suffix}, {lng:.4f}{suffix}"


def format_detection_time(detected: datetime) -> str:
    """'Oct 18, 09:12 AM' style."""
    return f"{detected:%b} {detected.day}, {detected:%I:%M %p}"


def summarise_weather(weather: Optional[WeatherSnapshot]) -> Optional[WeatherSummary]:
    if weather is None:
        return None
    return WeatherSummary(
        temp=weather.temp,
        humidity=weather.humidity,
        wind_speed=weather.wind_speed,
        high_fire_risk=(
            weather.humidity < FIRE_RISK_HUMIDITY_BELOW
            and weather.wind_speed > FIRE_RISK_WIND_ABOVE
        ),
    )


# ── Views ─────────────────────────────────────────────────────────────────────

def build_map_view(snapshot: DashboardSnapshot) -> MapView:
    markers = []
    for hotspot in snapshot.hotspots:
        level = classify_confidence(hotspot.confidence)
        markers.append(
            MapMarker(
                hotspot_id=hotspot.id,
                lat=hotspot.lat,
                lng=hotspot.lng,
                level=level,
                color=MARKER_COLORS[level],
                popup=[
                    "Fire Hotspot",
                    f"Confidence: {hotspot.confidence}%",
                    f"FRP: {hotspot.frp} MW",
                    format_coordinate(hotspot.lat, hotspot.lng),
                ],
            )
        )

    user_marker = None
    if snapshot.user_location is not None:
        here = snapshot.user_location
        user_marker = UserMarker(
            lat=here.lat,
            lng=here.lng,
            color=USER_LOCATION_COLOR,
            popup=["Your Location", format_coordinate(here.lat, here.lng)],
        )

    return MapView(
        center=snapshot.center,
        zoom=MAP_ZOOM,
        markers=markers,
        user_marker=user_marker,
        legend=LEGEND,
        loading=snapshot.loading,
        advisory=snapshot.advisory,
    )


def build_ranked_list_view(snapshot: DashboardSnapshot, limit: int) -> RankedListView:
    # The controller always fills top_ranked (falling back to hotspots itself).
    top = select_top(snapshot.top_ranked, limit)
    cards = [
        RankedCard(
            rank=position,
            hotspot_id=hotspot.id,
            confidence=hotspot.confidence,
            level=classify_confidence(hotspot.confidence),
            location=format_coordinate(hotspot.lat, hotspot.lng, degree_sign=True),
            frp=f"{hotspot.frp:.1f}",
            detected=format_detection_time(hotspot.detection_time),
        )
        for position, hotspot in enumerate(top, start=1)
    ]
    empty = not cards
    return RankedListView(
        cards=cards,
        weather=summarise_weather(snapshot.weather),
        counts=count_by_risk(snapshot.hotspots),
        empty=empty,
        empty_message=EMPTY_LIST_MESSAGE if empty else None,
        empty_hint=EMPTY_LIST_HINT if empty else None,
    )
