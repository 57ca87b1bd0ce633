"""
FastAPI backend: serves the traffic incident list, marker layer and statistics,
and accepts UI commands (refresh, filter, locate, select, layout).
The browser map widget and geolocation stay client-side; this process owns the
single session whose state they render.
"""

import logging
from contextlib import asynccontextmanager
from typing import Literal, Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from core.errors import GeolocationError
from core.models import Coordinate
from core.session import TrafficSession
from core.view_state import (
    ExitLayout,
    Locate,
    Refresh,
    ResizeContainer,
    SelectIncident,
    SetFilter,
    ToggleLayout,
)
from feeds.jartic import JarticFeed

load_dotenv(override=True)

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("traffic_api")


# -----------------------------------------------------------------------------
# Session (one per process, lives for the app's lifetime)
# -----------------------------------------------------------------------------
session = TrafficSession(feed=JarticFeed())


class ReportedPosition:
    """Geolocation capability backed by what the browser reported in the request."""

    def __init__(self, lat: Optional[float], lng: Optional[float], error: Optional[str]):
        self.lat = lat
        self.lng = lng
        self.error = error

    async def request_current_position(self) -> Coordinate:
        if self.error:
            raise GeolocationError(self.error)
        if self.lat is None or self.lng is None:
            raise GeolocationError(GeolocationError.UNSUPPORTED)
        return Coordinate(lat=self.lat, lng=self.lng)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await session.scheduler.refresh()
    session.scheduler.start()
    yield
    await session.scheduler.stop()


app = FastAPI(title="Traffic Incident Map API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------------------------------------------------------
# Request models
# -----------------------------------------------------------------------------
class FilterRequest(BaseModel):
    filter: Literal["all", "highway", "local"]


class LocateRequest(BaseModel):
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    error: Optional[Literal["unsupported", "denied", "timeout"]] = None  # browser geolocation failure


class LayoutRequest(BaseModel):
    mode: Literal["map", "info", "all"]


# -----------------------------------------------------------------------------
# No-cache for dynamic API responses (avoid 304 for stale data)
# -----------------------------------------------------------------------------
NO_CACHE_HEADERS = {"Cache-Control": "no-store, no-cache, must-revalidate", "Pragma": "no-cache"}


def _json(content: dict) -> JSONResponse:
    return JSONResponse(content=content, headers=NO_CACHE_HEADERS)


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------
# Handlers are coroutines so reads run on the loop between render passes.
@app.get("/health")
async def health():
    s = session.scheduler
    return _json({"status": "ok", "source": s.source, "incidents": len(s.dataset), "refreshing": s.busy})


@app.get("/state")
async def get_state():
    """Everything the page renders: list, markers, stats, controls, alerts."""
    return _json(session.snapshot())


@app.get("/incidents")
async def get_incidents():
    return _json({"filter": session.view_state.filter, **session.synchronizer.list.to_dict()})


@app.get("/markers")
async def get_markers():
    return _json(session.map.to_dict())


@app.get("/stats")
async def get_stats():
    s = session.scheduler
    return _json({
        "counts": session.synchronizer.display_stats(),
        "total": len(s.dataset),
        "last_updated": s.last_updated_display,
    })


@app.post("/refresh")
async def post_refresh():
    ran = await session.dispatch(Refresh())
    logger.info("manual refresh ran=%s", ran)
    return _json({"refreshed": ran, **session.snapshot()})


@app.post("/filter")
async def post_filter(body: FilterRequest):
    await session.dispatch(SetFilter(body.filter))
    return _json(session.snapshot())


@app.post("/locate")
async def post_locate(body: LocateRequest):
    session.geolocation = ReportedPosition(body.lat, body.lng, body.error)
    located = await session.dispatch(Locate())
    payload = session.snapshot()
    payload.update(located=located, alerts=session.pop_alerts())
    return _json(payload)


@app.post("/select/{incident_id}")
async def post_select(incident_id: str):
    selected = await session.dispatch(SelectIncident(incident_id))
    return _json({"selected": selected, "focus_id": session.view_state.focus_id, "map": session.map.to_dict()})


@app.post("/layout")
async def post_layout(body: LayoutRequest):
    mode = await session.dispatch(ToggleLayout(body.mode))
    return _json({"layout_mode": mode})


@app.post("/layout/exit")
async def post_layout_exit():
    mode = await session.dispatch(ExitLayout())
    return _json({"layout_mode": mode})


@app.post("/resize")
async def post_resize():
    await session.dispatch(ResizeContainer())
    return _json({"ok": True})
