"""
RemoteDataSource — async access to the hotspot aggregation backend and the
Nominatim geocoder.

Two calls:
  fetch_nearby_hotspots(coordinate) → HotspotBundle
      GET <backend>/nearby-hotspots?lat=..&lng=..
  geocode(query) → list[GeocodeCandidate]
      GET <geocoder>/search?format=json&q=..

Every failure (transport error, non-2xx status, undecodable JSON, body that
fails validation) is converted to DataSourceError here, at the boundary.
Callers never see httpx or pydantic exceptions.

No retries. The controller degrades to mock data on
the first failure.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from emberwatch.core.config import Settings
from emberwatch.models.hotspot import (
    Coordinate,
    GeocodeCandidate,
    HotspotBundle,
    NearbyHotspotsResponse,
)

logger = logging.getLogger(__name__)


class DataSourceError(Exception):
    """A remote call failed or returned something unusable."""


class RemoteDataSource:
    """
    Thin async wrapper around the backend and geocoder REST endpoints.

    One AsyncClient is shared across calls and closed by aclose(). Pass
    `client` to inject a preconfigured one (tests use httpx.MockTransport).
    """

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> None:
        self.backend_base_url = settings.backend_base_url.rstrip("/")
        self.geocoder_base_url = settings.geocoder_base_url.rstrip("/")
        self._user_agent = settings.geocoder_user_agent
        self._client = client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_nearby_hotspots(self, coordinate: Coordinate) -> HotspotBundle:
        """
        Retrieve hotspots + weather around a coordinate.

        Raises:
            DataSourceError: on any network, status or payload problem.
        """
        data = await self._get_json(
            f"{self.backend_base_url}/nearby-hotspots",
            params={"lat": coordinate.lat, "lng": coordinate.lng},
            what="hotspot backend",
        )
        if not isinstance(data, dict):
            raise DataSourceError(f"hotspot backend returned {type(data).__name__}, expected object")

        try:
            response = NearbyHotspotsResponse.model_validate(data)
        except ValidationError as exc:
            logger.warning("Malformed /nearby-hotspots payload: %s", exc.errors()[:3])
            raise DataSourceError("hotspot backend returned a malformed payload") from exc

        bundle = HotspotBundle.from_response(response)
        logger.debug(
            "Backend returned %d hotspots (ranked=%s) for %.4f,%.4f",
            len(bundle.hotspots),
            "none" if bundle.top_ranked is None else len(bundle.top_ranked),
            coordinate.lat,
            coordinate.lng,
        )
        return bundle

    async def geocode(self, query: str) -> list[GeocodeCandidate]:
        """
        Resolve free text to candidate coordinates, best match first.

        An empty list is a valid answer (nothing matched).

        Raises:
            DataSourceError: on any network, status or payload problem.
        """
        data = await self._get_json(
            f"{self.geocoder_base_url}/search",
            params={"format": "json", "q": query},
            headers={"User-Agent": self._user_agent},
            what="geocoder",
        )
        if not isinstance(data, list):
            raise DataSourceError(f"geocoder returned {type(data).__name__}, expected array")

        try:
            return [GeocodeCandidate.model_validate(item) for item in data]
        except ValidationError as exc:
            logger.warning("Unparseable geocoder candidate for %r: %s", query, exc.errors()[:3])
            raise DataSourceError("geocoder returned an unparseable candidate") from exc

    async def _get_json(
        self,
        url: str,
        *,
        params: dict[str, Any],
        what: str,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        try:
            response = await self._client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as exc:
            logger.warning(
                "%s error: %s — %s",
                what,
                exc.response.status_code,
                exc.response.text[:200],
            )
            raise DataSourceError(f"{what} answered HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning("%s request failed: %s", what, exc)
            raise DataSourceError(f"{what} unreachable: {exc}") from exc
        except ValueError as exc:
            # response.json() raises json.JSONDecodeError, a ValueError
            logger.warning("%s returned invalid JSON: %s", what, exc)
            raise DataSourceError(f"{what} returned invalid JSON") from exc
