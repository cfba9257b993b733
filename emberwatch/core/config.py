"""
Application configuration loaded from environment variables.

Uses pydantic-settings for type-safe env var parsing with automatic
.env file loading. The Settings object is passed explicitly into the
RetrievalController and RemoteDataSource, so tests can build their own
instance against alternate endpoints and defaults.

To extend: add new fields here and document them in .env.example.
See https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from emberwatch.models.hotspot import Coordinate


class Settings(BaseSettings):
    # ─── Core ──────────────────────────────────────────────────────
    environment: str = "development"
    debug: bool = False

    # ─── Upstream endpoints ────────────────────────────────────────
    # Aggregation backend serving GET /nearby-hotspots (satellite + weather).
    backend_base_url: str = "http://localhost:5000"

    # Nominatim requires an identifying User-Agent on every request.
    # https://operations.osmfoundation.org/policies/nominatim/
    geocoder_base_url: str = "https://nominatim.openstreetmap.org"
    geocoder_user_agent: str = "EmberWatch/0.1 (wildfire hotspot dashboard)"

    # Transport-level bound; the controller itself enforces no timeout.
    http_timeout_seconds: float = 10.0

    # ─── Dashboard behaviour ───────────────────────────────────────
    # Viewpoint used when geolocation fails or is unavailable (Los Angeles).
    default_latitude: float = 34.0522
    default_longitude: float = -118.2437

    ranked_list_size: int = 5

    # When False, every completed retrieval writes state in completion order,
    # so a slow stale response can overwrite newer data.
    fence_retrievals: bool = True

    # ─── HTTP surface ──────────────────────────────────────────────
    # Every search hits the public geocoder.
    search_rate_limit: str = "30/minute"

    # Comma-separated allowed origins for the browser dashboard.
    cors_origins_str: str = "http://localhost:5173,http://localhost:3000"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins_str.split(",") if o.strip()]

    @property
    def default_center(self) -> Coordinate:
        return Coordinate(lat=self.default_latitude, lng=self.default_longitude)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Don't fail on unknown env vars
    )


# Module-level singleton — used by the app entry point; library code takes
# a Settings argument instead.
settings = Settings()
