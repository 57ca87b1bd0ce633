"""Pytest fixtures for traffic incident tests."""

import asyncio
import random
from datetime import datetime, timezone

import httpx
import pytest

from core.errors import FeedError
from core.map_layer import InMemoryMap
from core.models import Coordinate, Incident
from core.session import TrafficSession
from feeds.jartic import JarticFeed

TOKYO = Coordinate(lat=35.6812, lng=139.7671)
FIXED_NOW = datetime(2025, 1, 1, 9, 5, tzinfo=timezone.utc)

# Raw feed records: one highway, one local.
FEED_RECORDS = [
    {"id": "api-0", "category": "highway", "title": "Route A", "location": "KP 1",
     "traffic_volume": 150, "lat": 35.6, "lng": 139.7},
    {"id": "api-1", "category": "local", "title": "Route B", "location": "KP 2",
     "traffic_volume": 20, "lat": 35.5, "lng": 139.6},
]


def make_incident(incident_id="highway-0", kind="congestion", category="highway", lat=35.7, lng=139.7):
    return Incident(
        id=incident_id,
        kind=kind,
        category=category,
        title="Tomei Expressway",
        location="Tokyo IC - Yokohama IC",
        description="Congestion reported.",
        coordinate=Coordinate(lat=lat, lng=lng),
        observed_at=FIXED_NOW,
    )


def feature(volume, road_type="highway", road_name="Route A", location="KP 12.3", lng=139.7, lat=35.6, **extra):
    props = {"traffic_volume": volume, "road_type": road_type, "road_name": road_name, "location": location}
    props.update(extra)
    return {"type": "Feature", "geometry": {"type": "Point", "coordinates": [lng, lat]}, "properties": props}


class FailingFeed:
    """Feed that always fails with the given reason."""

    def __init__(self, reason=FeedError.UNREACHABLE):
        self.reason = reason
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        raise FeedError(self.reason, "test")


class StaticFeed:
    """Feed returning fixed raw records."""

    def __init__(self, records):
        self.records = records
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        return [dict(r) for r in self.records]


class GatedFeed:
    """Feed that blocks until released; counts concurrent fetches."""

    def __init__(self, records=None):
        self.records = records or []
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.gate = asyncio.Event()

    async def fetch(self):
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await self.gate.wait()
            return [dict(r) for r in self.records]
        finally:
            self.in_flight -= 1


class StaticGeolocation:
    def __init__(self, coord=None, error=None):
        self.coord = coord
        self.error = error
        self.calls = 0

    async def request_current_position(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.coord


def mock_feed(handler) -> JarticFeed:
    """JarticFeed over an httpx.MockTransport."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return JarticFeed(client=client, url="https://feed.test/wfs", timeout=5.0)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def map_view():
    return InMemoryMap(TOKYO, 10)


@pytest.fixture
def fallback_session(map_view, rng):
    """Session whose feed always fails, so every refresh renders synthetic data."""
    return TrafficSession(
        feed=FailingFeed(FeedError.BAD_STATUS),
        map_view=map_view,
        rng=rng,
        clock=lambda: FIXED_NOW,
        default_center=TOKYO,
        refetch_on_filter=False,
    )
