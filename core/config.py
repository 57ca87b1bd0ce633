"""
Runtime configuration from environment (optionally loaded from .env by the entry point).

- TRAFFIC_FEED_URL: WFS endpoint for the traffic volume layer.
- TRAFFIC_FEED_TYPE_NAME: WFS layer name (default traffic:traffic_5min).
- TRAFFIC_FEED_TIMEOUT: request timeout in seconds (default 10).
- TRAFFIC_REFRESH_INTERVAL_SECONDS: periodic refresh interval (default 300 = 5 minutes).
- TRAFFIC_DEFAULT_LAT / TRAFFIC_DEFAULT_LNG: synthetic fallback center when no user location is known.
- TRAFFIC_REFETCH_ON_FILTER: 1 = a filter change runs a full refresh instead of re-filtering cached data.
"""

import os

from core.models import Coordinate

DEFAULT_FEED_URL = "https://api.jartic-open-traffic.org/geoserver/wfs"
DEFAULT_FEED_TYPE_NAME = "traffic:traffic_5min"
DEFAULT_FEED_TIMEOUT = 10.0
DEFAULT_REFRESH_INTERVAL = 5 * 60
DEFAULT_CENTER = Coordinate(lat=35.6812, lng=139.7671)  # Tokyo Station

INITIAL_ZOOM = 10
LOCATE_ZOOM = 12
FOCUS_ZOOM = 14


def _env_str(name: str, default: str) -> str:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return default
    return v.strip()


def _env_float(name: str, default: float, lo: float | None = None, hi: float | None = None) -> float:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return default
    try:
        f = float(v.strip())
    except ValueError:
        return default
    if lo is not None:
        f = max(lo, f)
    if hi is not None:
        f = min(hi, f)
    return f


def _env_flag(name: str, default: bool = False) -> bool:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


def feed_url() -> str:
    return _env_str("TRAFFIC_FEED_URL", DEFAULT_FEED_URL)


def feed_type_name() -> str:
    return _env_str("TRAFFIC_FEED_TYPE_NAME", DEFAULT_FEED_TYPE_NAME)


def feed_timeout() -> float:
    return _env_float("TRAFFIC_FEED_TIMEOUT", DEFAULT_FEED_TIMEOUT, lo=0.5, hi=120.0)


def refresh_interval() -> float:
    return _env_float("TRAFFIC_REFRESH_INTERVAL_SECONDS", DEFAULT_REFRESH_INTERVAL, lo=1.0)


def default_center() -> Coordinate:
    lat = _env_float("TRAFFIC_DEFAULT_LAT", DEFAULT_CENTER.lat, lo=-90.0, hi=90.0)
    lng = _env_float("TRAFFIC_DEFAULT_LNG", DEFAULT_CENTER.lng, lo=-180.0, hi=180.0)
    return Coordinate(lat=lat, lng=lng)


def refetch_on_filter() -> bool:
    return _env_flag("TRAFFIC_REFETCH_ON_FILTER", False)
