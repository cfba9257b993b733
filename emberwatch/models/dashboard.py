"""
dashboard.py — Pydantic models for the dashboard state, retrieval outcomes,
presentation projections and request bodies.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from emberwatch.models.hotspot import Coordinate, Hotspot, HotspotBundle, WeatherSnapshot


class ErrorKind(str, Enum):
    GEOLOCATION_UNAVAILABLE = "geolocation_unavailable"  # silent
    BACKEND_UNAVAILABLE     = "backend_unavailable"
    LOCATION_NOT_FOUND      = "location_not_found"
    SEARCH_FAILED           = "search_failed"


# User-visible advisory text. GEOLOCATION_UNAVAILABLE has none.
ADVISORIES: dict[ErrorKind, str] = {
    ErrorKind.BACKEND_UNAVAILABLE: "Failed to fetch hotspot data. Using mock data.",
    ErrorKind.LOCATION_NOT_FOUND:  "Location not found",
    ErrorKind.SEARCH_FAILED:       "Failed to search location",
}


class ConfidenceLevel(str, Enum):
    HIGH   = "high"     # confidence >= 80
    MEDIUM = "medium"   # 50 <= confidence < 80
    LOW    = "low"      # confidence < 50


# ── State ─────────────────────────────────────────────────────────────────────

class DashboardSnapshot(BaseModel):
    """Read-only copy of the controller's retrieval state."""

    model_config = ConfigDict(frozen=True)

    center:        Coordinate
    user_location: Optional[Coordinate]      = None
    hotspots:      list[Hotspot]             = Field(default_factory=list)
    top_ranked:    list[Hotspot]             = Field(default_factory=list)
    weather:       Optional[WeatherSnapshot] = None
    loading:       bool                      = False
    error:         Optional[ErrorKind]       = None
    advisory:      Optional[str]             = None   # display text for `error`


# ── Retrieval outcomes ────────────────────────────────────────────────────────

class Retrieved(BaseModel):
    """The backend answered with a well-formed bundle."""

    kind:       Literal["ok"] = "ok"
    coordinate: Coordinate
    bundle:     HotspotBundle
    sequence:   int
    applied:    bool = False   # False when a newer retrieval superseded this one


class DegradedFallback(BaseModel):
    """The backend failed; bundle is the deterministic mock substitute."""

    kind:       Literal["degraded"] = "degraded"
    coordinate: Coordinate
    bundle:     HotspotBundle
    sequence:   int
    reason:     str
    applied:    bool = False


RetrievalOutcome = Annotated[Union[Retrieved, DegradedFallback], Field(discriminator="kind")]


# ── Map View projection ───────────────────────────────────────────────────────

class MapMarker(BaseModel):
    hotspot_id: int
    lat:        float
    lng:        float
    level:      ConfidenceLevel
    color:      str
    popup:      list[str]


class UserMarker(BaseModel):
    lat:   float
    lng:   float
    color: str
    popup: list[str]


class LegendEntry(BaseModel):
    level: ConfidenceLevel
    label: str
    color: str


class MapView(BaseModel):
    center:      Coordinate
    zoom:        int
    markers:     list[MapMarker]
    user_marker: Optional[UserMarker] = None
    legend:      list[LegendEntry]
    loading:     bool
    advisory:    Optional[str] = None


# ── Ranked List View projection ───────────────────────────────────────────────

class RiskCounts(BaseModel):
    total:  int
    high:   int
    medium: int
    low:    int


class RankedCard(BaseModel):
    rank:       int          # 1-based display position
    hotspot_id: int
    confidence: int
    level:      ConfidenceLevel
    location:   str          # "34.1522°, -118.1437°"
    frp:        str          # one decimal, MW
    detected:   str          # "Oct 18, 09:12 AM"


class WeatherSummary(BaseModel):
    temp:           float
    humidity:       int
    wind_speed:     float
    high_fire_risk: bool


class RankedListView(BaseModel):
    cards:         list[RankedCard]
    weather:       Optional[WeatherSummary] = None
    counts:        RiskCounts
    empty:         bool
    empty_message: Optional[str] = None
    empty_hint:    Optional[str] = None


# ── Request bodies ────────────────────────────────────────────────────────────

class SearchRequest(BaseModel):
    """Free-text location query typed into the search bar."""

    query: str = Field(..., max_length=200)


class ActivateRequest(BaseModel):
    """
    Geolocation result reported by the browser.

    Send {lat, lng} for a position fix. Omit both (optionally with an
    `error` string from the Geolocation API) when the fix failed or the
    browser has no geolocation capability.
    """

    lat:   Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    lng:   Optional[float] = Field(default=None, ge=-180.0, le=180.0)
    error: Optional[str]   = Field(default=None, max_length=200)
