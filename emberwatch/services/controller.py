"""
controller.py — The retrieval controller: single owner of dashboard state.

Three triggers feed it:
  activate(provider)  — auto-geolocation; falls back to the default center
  search(query)       — free-text search through the geocoder
  retrieve(coordinate)— the shared retrieval step both of the above end in

STATE OWNERSHIP
───────────────
Only the handlers in this class write RetrievalState. Consumers read
DashboardSnapshot copies, either by polling `.state` or by subscribing for
a fresh snapshot after every change.

ORDERING
────────
Retrievals are neither serialised nor cancelled. Each gets a sequence
number; with `fence_retrievals` on (the default) only the latest issued
retrieval may write data or clear `loading`, so a slow stale response can
never overwrite newer data. With it off, whichever completion lands last
wins.

LOADING
───────
`loading` is recomputed from the set of in-flight work in a `finally`
block, so neither the success nor the degraded branch can leave it stuck.

FAILURE POLICY
──────────────
No retries. A backend failure substitutes the deterministic mock bundle
(services/fallback.py) and raises the BACKEND_UNAVAILABLE advisory. A
geolocation failure is silent. Search failures only set an advisory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from emberwatch.core.config import Settings
from emberwatch.models.dashboard import (
    ADVISORIES,
    DashboardSnapshot,
    DegradedFallback,
    ErrorKind,
    Retrieved,
    RetrievalOutcome,
)
from emberwatch.models.hotspot import (
    Coordinate,
    GeocodeCandidate,
    Hotspot,
    HotspotBundle,
    WeatherSnapshot,
)
from emberwatch.services.fallback import build_mock_bundle
from emberwatch.services.projection import select_top
from emberwatch.sources.geolocation import GeolocationProvider, GeolocationUnavailable
from emberwatch.sources.remote_source import DataSourceError

logger = logging.getLogger(__name__)

Listener = Callable[[DashboardSnapshot], None]


class HotspotSource(Protocol):
    """What the controller needs from a data source (RemoteDataSource in production)."""

    async def fetch_nearby_hotspots(self, coordinate: Coordinate) -> HotspotBundle: ...

    async def geocode(self, query: str) -> list[GeocodeCandidate]: ...


@dataclass
class RetrievalState:
    center:        Coordinate
    user_location: Optional[Coordinate]      = None
    hotspots:      list[Hotspot]             = field(default_factory=list)
    top_ranked:    list[Hotspot]             = field(default_factory=list)
    weather:       Optional[WeatherSnapshot] = None
    loading:       bool                      = False
    error:         Optional[ErrorKind]       = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RetrievalController:
    def __init__(
        self,
        source: HotspotSource,
        settings: Settings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._source = source
        self._settings = settings
        self._clock = clock
        self._state = RetrievalState(center=settings.default_center)
        self._listeners: list[Listener] = []

        self._issued = 0                  # sequence number of the latest retrieval
        self._in_flight: set[int] = set()
        self._geocoding = 0               # searches waiting on the geocoder

    # ── Read side ─────────────────────────────────────────────────────────────

    @property
    def state(self) -> DashboardSnapshot:
        s = self._state
        return DashboardSnapshot(
            center=s.center,
            user_location=s.user_location,
            hotspots=list(s.hotspots),
            top_ranked=list(s.top_ranked),
            weather=s.weather,
            loading=s.loading,
            error=s.error,
            advisory=ADVISORIES.get(s.error) if s.error else None,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def retrievals_issued(self) -> int:
        return self._issued

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with a fresh snapshot after every state change.

        Returns a callable that removes the subscription.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Detach every subscriber. In-flight retrievals still run to completion."""
        logger.info("Closing retrieval controller (%d subscribers)", len(self._listeners))
        self._listeners.clear()

    # ── Triggers ──────────────────────────────────────────────────────────────

    async def activate(self, geolocation: Optional[GeolocationProvider] = None) -> RetrievalOutcome:
        """
        Auto-geolocation trigger.

        A position fix becomes both user_location and center. No provider, or
        a failing one, silently recentres on the configured default. Either
        way exactly one retrieval is issued.
        """
        position: Optional[Coordinate] = None
        if geolocation is None:
            logger.info("No geolocation capability; using default center")
        else:
            try:
                position = await geolocation.get_current_position()
            except GeolocationUnavailable as exc:
                logger.info("Geolocation failed (%s); using default center", exc)

        if position is None:
            target = self._settings.default_center
        else:
            target = position
            self._state.user_location = position

        self._state.center = target
        return await self.retrieve(target)

    async def search(self, query: str) -> Optional[RetrievalOutcome]:
        """
        Search trigger.

        Returns the retrieval outcome, or None when nothing was retrieved
        (blank query, no match, geocoder failure). user_location is never
        touched.
        """
        text = query.strip()
        if not text:
            return None

        logger.info("Location search: %r", text)
        target: Optional[Coordinate] = None
        self._geocoding += 1
        self._refresh_loading()
        self._notify()
        try:
            candidates = await self._source.geocode(text)
            if candidates:
                target = candidates[0].coordinate
            else:
                logger.info("No location found for %r", text)
                self._state.error = ErrorKind.LOCATION_NOT_FOUND
        except DataSourceError as exc:
            logger.warning("Location search for %r failed: %s", text, exc)
            self._state.error = ErrorKind.SEARCH_FAILED
        finally:
            self._geocoding -= 1
            if target is None:
                self._refresh_loading()
                self._notify()

        if target is None:
            return None

        # retrieve() re-raises loading synchronously, so it never flickers off.
        self._state.center = target
        return await self.retrieve(target)

    async def retrieve(self, coordinate: Coordinate) -> RetrievalOutcome:
        """Fetch hotspots + weather for `coordinate` and publish them."""
        self._issued += 1
        sequence = self._issued
        self._in_flight.add(sequence)
        self._state.error = None
        self._refresh_loading()
        logger.info("Retrieval #%d issued for %.4f,%.4f", sequence, coordinate.lat, coordinate.lng)
        self._notify()

        try:
            outcome = await self._fetch(coordinate, sequence)
            if self._is_current(sequence):
                self._apply(outcome)
                outcome = outcome.model_copy(update={"applied": True})
            else:
                logger.info("Discarding stale retrieval #%d (latest is #%d)", sequence, self._issued)
        finally:
            self._in_flight.discard(sequence)
            self._refresh_loading()
            self._notify()

        return outcome

    # ── Internals ─────────────────────────────────────────────────────────────

    async def _fetch(self, coordinate: Coordinate, sequence: int) -> RetrievalOutcome:
        try:
            bundle = await self._source.fetch_nearby_hotspots(coordinate)
        except DataSourceError as exc:
            logger.warning(
                "Retrieval #%d for %.4f,%.4f failed: %s. Serving mock data.",
                sequence,
                coordinate.lat,
                coordinate.lng,
                exc,
            )
            return DegradedFallback(
                coordinate=coordinate,
                bundle=build_mock_bundle(coordinate, self._clock()),
                sequence=sequence,
                reason=str(exc),
            )
        return Retrieved(coordinate=coordinate, bundle=bundle, sequence=sequence)

    def _is_current(self, sequence: int) -> bool:
        return not self._settings.fence_retrievals or sequence == self._issued

    def _apply(self, outcome: RetrievalOutcome) -> None:
        bundle = outcome.bundle
        # No client-side re-ranking: without a server ranking, take hotspots as received.
        ranked = bundle.top_ranked if bundle.top_ranked is not None else bundle.hotspots

        self._state.hotspots = list(bundle.hotspots)
        self._state.top_ranked = select_top(ranked, self._settings.ranked_list_size)
        self._state.weather = bundle.weather
        # Success leaves `error` alone: retrieve() already cleared it at issue,
        # so anything set since then is a newer search advisory.
        if isinstance(outcome, DegradedFallback):
            self._state.error = ErrorKind.BACKEND_UNAVAILABLE

    def _refresh_loading(self) -> None:
        if self._settings.fence_retrievals:
            retrieving = self._issued in self._in_flight
        else:
            retrieving = bool(self._in_flight)
        self._state.loading = retrieving or self._geocoding > 0

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Dashboard listener %r failed", listener)
