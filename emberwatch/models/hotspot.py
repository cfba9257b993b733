"""
hotspot.py — Pydantic models for the hotspot + weather data consumed from
the aggregation backend and the geocoder.

Wire format (GET <backend>/nearby-hotspots?lat=..&lng=..):

  {
    "weather":  { "temp": 31.5, "humidity": 18, "windSpeed": 22.0 },
    "hotspots": [ { "id": 1, "lat": 34.1, "lng": -118.1, "confidence": 91,
                    "frp": 40.2, "detectionTime": "2026-10-18T09:12:00Z" } ],
    "top5":     [ ...same shape, server-ranked... ]
  }

Every field is optional — absent means empty/absent, never an error.
Field names are snake_case in Python; the camelCase wire names are kept
as aliases so responses round-trip in the browser's format.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    """A (latitude, longitude) pair in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class Hotspot(BaseModel):
    """A single satellite fire detection. Immutable once received."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id:             int
    lat:            float
    lng:            float
    confidence:     int      = Field(..., ge=0, le=100)   # detection certainty %
    frp:            float    = Field(..., ge=0.0)         # fire radiative power, MW
    detection_time: datetime = Field(..., alias="detectionTime")


class WeatherSnapshot(BaseModel):
    """Conditions at the queried coordinate at retrieval time."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    temp:       float                                      # °C
    humidity:   int   = Field(..., ge=0, le=100)           # %
    wind_speed: float = Field(..., ge=0.0, alias="windSpeed")  # km/h


class NearbyHotspotsResponse(BaseModel):
    """Raw body of GET /nearby-hotspots."""

    model_config = ConfigDict(populate_by_name=True)

    weather:  Optional[WeatherSnapshot] = None
    hotspots: Optional[list[Hotspot]]   = None
    top5:     Optional[list[Hotspot]]   = None


class HotspotBundle(BaseModel):
    """
    One retrieval's worth of data, normalised.

    top_ranked is None when the server sent no ranking; an empty list means
    the server ranked nothing.
    """

    model_config = ConfigDict(frozen=True)

    hotspots:   list[Hotspot]            = Field(default_factory=list)
    top_ranked: Optional[list[Hotspot]]  = None
    weather:    Optional[WeatherSnapshot] = None

    @classmethod
    def from_response(cls, response: NearbyHotspotsResponse) -> "HotspotBundle":
        return cls(
            hotspots=response.hotspots or [],
            top_ranked=response.top5,
            weather=response.weather,
        )


class GeocodeCandidate(BaseModel):
    """One element of the Nominatim /search JSON array."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Nominatim sends both as strings; lax mode coerces them to float.
    lat:          float         = Field(..., ge=-90.0, le=90.0)
    lon:          float         = Field(..., ge=-180.0, le=180.0)
    display_name: Optional[str] = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lon)
