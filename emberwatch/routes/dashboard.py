"""
dashboard.py — HTTP + WebSocket surface of the retrieval controller.

Routes:
  GET  /api/v1/dashboard           — current state snapshot
  GET  /api/v1/dashboard/map       — Map View projection (markers, legend, center)
  GET  /api/v1/dashboard/hotspots  — Ranked List View projection (top 5, counts, weather)
  POST /api/v1/dashboard/activate  — geolocation trigger (browser reports fix or failure)
  POST /api/v1/dashboard/search    — free-text search trigger (rate limited)
  WS   /api/v1/dashboard/stream    — pushes a snapshot on connect and after every change

The trigger routes await the whole resolution + retrieval and answer with
the resulting snapshot. Backend and geocoder failures never surface as 5xx;
they show up as `error` / `advisory` in the snapshot.

  curl -X POST http://localhost:8000/api/v1/dashboard/search \\
    -H 'Content-Type: application/json' -d '{"query": "New York"}'
"""

import asyncio
import logging
from typing import Callable

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect
from fastapi.requests import HTTPConnection

from emberwatch.core.config import settings
from emberwatch.core.rate_limit import limiter
from emberwatch.models.dashboard import (
    ActivateRequest,
    DashboardSnapshot,
    MapView,
    RankedListView,
    SearchRequest,
)
from emberwatch.services.controller import RetrievalController
from emberwatch.services.projection import build_map_view, build_ranked_list_view
from emberwatch.sources.geolocation import provider_from_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


def get_controller(connection: HTTPConnection) -> RetrievalController:
    """
    FastAPI dependency — the controller created in main.py's lifespan.

    Tests swap it out with app.dependency_overrides[get_controller].
    """
    return connection.app.state.controller


# ── Read side ─────────────────────────────────────────────────────────────────

@router.get("", response_model=DashboardSnapshot)
async def get_dashboard(controller: RetrievalController = Depends(get_controller)):
    """Return the current retrieval state (center, hotspots, weather, loading, error)."""
    return controller.state


@router.get("/map", response_model=MapView)
async def get_map(controller: RetrievalController = Depends(get_controller)):
    return build_map_view(controller.state)


@router.get("/hotspots", response_model=RankedListView)
async def get_ranked_hotspots(controller: RetrievalController = Depends(get_controller)):
    """Top hotspots in server order, risk counts over the full set, weather summary."""
    return build_ranked_list_view(controller.state, limit=controller.settings.ranked_list_size)


# ── Triggers ──────────────────────────────────────────────────────────────────

@router.post("/activate", response_model=DashboardSnapshot)
async def activate(
    payload: ActivateRequest,
    controller: RetrievalController = Depends(get_controller),
):
    """
    Initial activation with the browser's geolocation result.

    {lat, lng} adopts the fix as user location + center. An empty body or
    {"error": "..."} silently falls back to the default center.
    """
    provider = provider_from_report(payload.lat, payload.lng, payload.error)
    await controller.activate(provider)
    return controller.state


@router.post("/search", response_model=DashboardSnapshot)
@limiter.limit(settings.search_rate_limit)
async def search(
    request: Request,
    payload: SearchRequest,
    controller: RetrievalController = Depends(get_controller),
):
    """
    Geocode the query and, on a match, recentre and retrieve.

    A blank query is a no-op. No match → error "location_not_found";
    geocoder failure → error "search_failed".
    """
    await controller.search(payload.query)
    return controller.state


# ── WebSocket state stream ────────────────────────────────────────────────────

async def _forward_snapshots(
    websocket: WebSocket,
    queue: "asyncio.Queue[DashboardSnapshot]",
    unsubscribe: Callable[[], None],
) -> None:
    """Send queued snapshots until a send fails; then stop queueing for this socket."""
    try:
        while True:
            snapshot = await queue.get()
            await websocket.send_text(snapshot.model_dump_json(by_alias=True))
    except Exception as exc:
        logger.warning("Dashboard WebSocket send failed: %s", exc)
        unsubscribe()


@router.websocket("/stream")
async def dashboard_stream(
    websocket: WebSocket,
    controller: RetrievalController = Depends(get_controller),
):
    """
    Push DashboardSnapshot JSON frames.

    The first frame is the current state; after that one frame per state
    change (loading on, data applied, loading off, ...). The browser
    re-renders the map and list from each frame. Anything the client sends
    is ignored; reading only serves to notice the disconnect.
    """
    await websocket.accept()
    queue: asyncio.Queue[DashboardSnapshot] = asyncio.Queue()
    queue.put_nowait(controller.state)
    unsubscribe = controller.subscribe(queue.put_nowait)
    sender = asyncio.create_task(_forward_snapshots(websocket, queue, unsubscribe))
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        # Client closed the tab or navigated away — this is normal, not an error
        logger.info("Dashboard WebSocket client disconnected")
    except Exception as exc:
        logger.warning("Dashboard WebSocket error: %s", exc)
    finally:
        unsubscribe()
        sender.cancel()
