"""
JARTIC open traffic feed: 5-minute traffic volume layer via WFS (GeoJSON, EPSG:4326).
Best-effort source: every failure is raised as FeedError so the caller can fall back
to synthetic data. An empty feature collection is treated as malformed.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from core import config
from core.errors import FeedError

logger = logging.getLogger("traffic_api.feeds.jartic")

PLACEHOLDER_LOCATION = "No location data"


def _parse_iso(ts) -> Optional[datetime]:
    if not ts:
        return None
    try:
        s = str(ts).strip().replace("Z", "+00:00")
        d = datetime.fromisoformat(s)
    except ValueError:
        return None
    if d.tzinfo is None:
        d = d.replace(tzinfo=timezone.utc)
    return d


def _volume(value) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _point(geometry) -> tuple[float, float]:
    """Return (lat, lng) from a GeoJSON point; GeoJSON stores (lng, lat)."""
    if not isinstance(geometry, dict):
        raise FeedError(FeedError.MALFORMED, "feature without geometry")
    coords = geometry.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        raise FeedError(FeedError.MALFORMED, "geometry without point coordinates")
    try:
        lng, lat = float(coords[0]), float(coords[1])
    except (TypeError, ValueError):
        raise FeedError(FeedError.MALFORMED, f"non-numeric coordinates {coords[:2]!r}")
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        raise FeedError(FeedError.MALFORMED, f"coordinates out of range {coords[:2]!r}")
    return lat, lng


def normalize_features(collection: dict, fetched_at: Optional[datetime] = None) -> list[dict]:
    """Turn a GeoJSON feature collection into raw records (source order kept)."""
    features = collection.get("features") if isinstance(collection, dict) else None
    if not isinstance(features, list):
        raise FeedError(FeedError.MALFORMED, "payload is not a feature collection")
    if not features:
        raise FeedError(FeedError.MALFORMED, "empty feature collection")
    fetched_at = fetched_at or datetime.now(timezone.utc)
    records = []
    for index, feature in enumerate(features):
        if not isinstance(feature, dict):
            raise FeedError(FeedError.MALFORMED, f"feature {index} is not an object")
        props = feature.get("properties") or {}
        lat, lng = _point(feature.get("geometry"))
        records.append({
            "id": f"api-{index}",
            "category": "highway" if props.get("road_type") == "highway" else "local",
            "title": str(props.get("road_name") or "").strip() or f"Observation point {index + 1}",
            "location": str(props.get("location") or "").strip() or PLACEHOLDER_LOCATION,
            "traffic_volume": _volume(props.get("traffic_volume")),
            "lat": lat,
            "lng": lng,
            "observed_at": _parse_iso(props.get("observation_time")) or fetched_at,
        })
    return records


class JarticFeed:
    """Single-request feed client. Pass an httpx.AsyncClient to share a connection pool (or to mock in tests)."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, url: Optional[str] = None,
                 type_name: Optional[str] = None, timeout: Optional[float] = None):
        self._client = client
        self.url = url or config.feed_url()
        self.type_name = type_name or config.feed_type_name()
        self.timeout = timeout if timeout is not None else config.feed_timeout()

    def query_params(self) -> dict:
        return {
            "service": "WFS",
            "version": "2.0.0",
            "request": "GetFeature",
            "typeName": self.type_name,
            "outputFormat": "application/json",
            "srsName": "EPSG:4326",
        }

    async def _get(self, client: httpx.AsyncClient) -> httpx.Response:
        return await client.get(self.url, params=self.query_params(), timeout=self.timeout)

    async def fetch_remote(self) -> dict:
        """One GET against the WFS endpoint; returns the parsed feature collection."""
        try:
            if self._client is not None:
                r = await self._get(self._client)
            else:
                async with httpx.AsyncClient() as client:
                    r = await self._get(client)
        except httpx.HTTPError as e:
            raise FeedError(FeedError.UNREACHABLE, str(e) or type(e).__name__) from e
        if not r.is_success:
            raise FeedError(FeedError.BAD_STATUS, f"HTTP {r.status_code}")
        try:
            data = r.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise FeedError(FeedError.MALFORMED, f"invalid JSON: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("features"), list):
            raise FeedError(FeedError.MALFORMED, "payload is not a feature collection")
        logger.info("feed fetched url=%s features=%d", self.url, len(data["features"]))
        return data

    async def fetch(self) -> list[dict]:
        """Fetch and normalize into raw records ready for enrichment."""
        collection = await self.fetch_remote()
        return normalize_features(collection)
