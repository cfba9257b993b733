"""
test_remote_source.py — RemoteDataSource against httpx.MockTransport.

Checks the request shape sent to the backend and the geocoder, payload
normalisation, and that every failure mode surfaces as DataSourceError.
"""

import httpx
import pytest

from conftest import DEFAULT_CENTER
from emberwatch.sources.remote_source import DataSourceError, RemoteDataSource

_HOTSPOT = {
    "id": 7,
    "lat": 34.11,
    "lng": -118.19,
    "confidence": 84,
    "frp": 27.4,
    "detectionTime": "2026-10-18T08:45:00Z",
}


def _source(settings, handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteDataSource(settings, client=client)


# ── /nearby-hotspots ──────────────────────────────────────────────────────────

class TestFetchNearbyHotspots:

    async def test_sends_lat_lng_to_backend(self, settings):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"hotspots": []})

        source = _source(settings, handler)
        await source.fetch_nearby_hotspots(DEFAULT_CENTER)

        request = seen[0]
        assert request.method == "GET"
        assert str(request.url).startswith("http://localhost:5000/nearby-hotspots")
        assert float(request.url.params["lat"]) == DEFAULT_CENTER.lat
        assert float(request.url.params["lng"]) == DEFAULT_CENTER.lng

    async def test_trailing_slash_in_base_url(self, settings):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json={})

        settings.backend_base_url = "http://backend.test/"
        await _source(settings, handler).fetch_nearby_hotspots(DEFAULT_CENTER)
        assert seen == ["/nearby-hotspots"]

    async def test_parses_full_payload(self, settings):
        def handler(request):
            return httpx.Response(200, json={
                "weather": {"temp": 31.5, "humidity": 18, "windSpeed": 22.0},
                "hotspots": [_HOTSPOT],
                "top5": [_HOTSPOT],
            })

        bundle = await _source(settings, handler).fetch_nearby_hotspots(DEFAULT_CENTER)

        assert len(bundle.hotspots) == 1
        hotspot = bundle.hotspots[0]
        assert hotspot.id == 7
        assert hotspot.confidence == 84
        assert hotspot.detection_time.year == 2026
        assert bundle.top_ranked == bundle.hotspots
        assert bundle.weather.wind_speed == 22.0
        assert bundle.weather.humidity == 18

    async def test_absent_fields_are_empty_not_errors(self, settings):
        def handler(request):
            return httpx.Response(200, json={})

        bundle = await _source(settings, handler).fetch_nearby_hotspots(DEFAULT_CENTER)

        assert bundle.hotspots == []
        assert bundle.top_ranked is None
        assert bundle.weather is None

    async def test_explicit_empty_ranking_is_kept(self, settings):
        def handler(request):
            return httpx.Response(200, json={"hotspots": [], "top5": []})

        bundle = await _source(settings, handler).fetch_nearby_hotspots(DEFAULT_CENTER)
        assert bundle.top_ranked == []

    async def test_null_fields_are_absent(self, settings):
        def handler(request):
            return httpx.Response(200, json={"weather": None, "hotspots": None, "top5": None})

        bundle = await _source(settings, handler).fetch_nearby_hotspots(DEFAULT_CENTER)
        assert bundle.hotspots == []
        assert bundle.weather is None

    async def test_server_error_raises(self, settings):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        with pytest.raises(DataSourceError, match="502"):
            await _source(settings, handler).fetch_nearby_hotspots(DEFAULT_CENTER)

    async def test_connection_error_raises(self, settings):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(DataSourceError, match="unreachable"):
            await _source(settings, handler).fetch_nearby_hotspots(DEFAULT_CENTER)

    async def test_timeout_raises(self, settings):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(DataSourceError):
            await _source(settings, handler).fetch_nearby_hotspots(DEFAULT_CENTER)

    async def test_invalid_json_raises(self, settings):
        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>")

        with pytest.raises(DataSourceError, match="invalid JSON"):
            await _source(settings, handler).fetch_nearby_hotspots(DEFAULT_CENTER)

    async def test_non_object_body_raises(self, settings):
        def handler(request):
            return httpx.Response(200, json=[_HOTSPOT])

        with pytest.raises(DataSourceError, match="expected object"):
            await _source(settings, handler).fetch_nearby_hotspots(DEFAULT_CENTER)

    @pytest.mark.parametrize("field,value", [
        ("confidence", 140),
        ("frp", -1.0),
        ("detectionTime", "yesterday-ish"),
        ("id", "not-an-id"),
    ])
    async def test_invalid_hotspot_raises(self, settings, field, value):
        def handler(request):
            return httpx.Response(200, json={"hotspots": [{**_HOTSPOT, field: value}]})

        with pytest.raises(DataSourceError, match="malformed"):
            await _source(settings, handler).fetch_nearby_hotspots(DEFAULT_CENTER)


# ── /search (geocoder) ────────────────────────────────────────────────────────

class TestGeocode:

    async def test_sends_query_and_user_agent(self, settings):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        await _source(settings, handler).geocode("Santa Rosa, CA")

        request = seen[0]
        assert request.url.host == "nominatim.openstreetmap.org"
        assert request.url.path == "/search"
        assert request.url.params["format"] == "json"
        assert request.url.params["q"] == "Santa Rosa, CA"
        assert request.headers["User-Agent"] == settings.geocoder_user_agent

    async def test_parses_string_coordinates(self, settings):
        def handler(request):
            return httpx.Response(200, json=[
                {"lat": "40.7127281", "lon": "-74.0060152", "display_name": "New York"},
                {"lat": "43.1561681", "lon": "-75.8449946", "display_name": "New York State"},
            ])

        candidates = await _source(settings, handler).geocode("New York")

        assert [c.display_name for c in candidates] == ["New York", "New York State"]
        assert candidates[0].coordinate.lat == pytest.approx(40.7127281)
        assert candidates[0].coordinate.lng == pytest.approx(-74.0060152)

    async def test_empty_array_is_no_match(self, settings):
        def handler(request):
            return httpx.Response(200, json=[])

        assert await _source(settings, handler).geocode("Atlantis") == []

    async def test_non_array_raises(self, settings):
        def handler(request):
            return httpx.Response(200, json={"error": "Unable to geocode"})

        with pytest.raises(DataSourceError, match="expected array"):
            await _source(settings, handler).geocode("x")

    async def test_unparseable_coordinate_raises(self, settings):
        def handler(request):
            return httpx.Response(200, json=[{"lat": "north-ish", "lon": "0"}])

        with pytest.raises(DataSourceError, match="unparseable"):
            await _source(settings, handler).geocode("x")

    async def test_rate_limited_by_geocoder_raises(self, settings):
        def handler(request):
            return httpx.Response(429, text="Too Many Requests")

        with pytest.raises(DataSourceError, match="429"):
            await _source(settings, handler).geocode("x")


async def test_aclose_closes_injected_client(settings):
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
    source = RemoteDataSource(settings, client=client)
    await source.aclose()
    assert client.is_closed
