"""
Synthetic fallback: fixed catalog of Tokyo-area road segments scattered around a center.
Kinds and offsets are random (unseeded unless an rng is injected); ids are catalog-stable.
"""

import logging
import random
from datetime import datetime, timezone
from typing import Optional

from core.models import Coordinate

logger = logging.getLogger("traffic_api.feeds.synthetic")

HIGHWAYS = [
    {"name": "Tomei Expressway", "section": "Tokyo IC - Yokohama IC"},
    {"name": "Chuo Expressway", "section": "Takaido IC - Chofu IC"},
    {"name": "Kan-Etsu Expressway", "section": "Nerima IC - Tokorozawa IC"},
    {"name": "Tohoku Expressway", "section": "Kawaguchi JCT - Urawa IC"},
    {"name": "Joban Expressway", "section": "Misato IC - Nagareyama IC"},
    {"name": "Shuto Expressway", "section": "C1 Inner Circular Route"},
    {"name": "Keiyo Road", "section": "Ichikawa IC - Funabashi IC"},
    {"name": "Gaikan Expressway", "section": "Oizumi JCT - Wako IC"},
]

LOCAL_ROADS = [
    {"name": "Route 246", "section": "Shibuya - Sangenjaya"},
    {"name": "Route 1", "section": "Shinagawa - Kawasaki"},
    {"name": "Loop 7", "section": "Itabashi - Nerima"},
    {"name": "Loop 8", "section": "Setagaya - Suginami"},
    {"name": "Koshu Kaido", "section": "Shinjuku - Chofu"},
    {"name": "Ome Kaido", "section": "Nakano - Tachikawa"},
]

# Road-type events only; "traffic" comes from measured volume, never from here.
SYNTHETIC_KINDS = ("congestion", "restriction", "accident", "warning")

# Total jitter span in degrees (offset = (u - 0.5) * span).
HIGHWAY_SPAN = 0.5
LOCAL_SPAN = 0.3


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def _segment_records(catalog: list[dict], category: str, span: float, center: Coordinate,
                     rng: random.Random, now: datetime) -> list[dict]:
    out = []
    for index, road in enumerate(catalog):
        kind = rng.choice(SYNTHETIC_KINDS)
        lat = center.lat + (rng.random() - 0.5) * span
        lng = center.lng + (rng.random() - 0.5) * span
        out.append({
            "id": f"{category}-{index}",
            "kind": kind,
            "category": category,
            "title": road["name"],
            "location": road["section"],
            "lat": _clamp(lat, -90.0, 90.0),
            "lng": _clamp(lng, -180.0, 180.0),
            "observed_at": now,
        })
    return out


def generate(center: Coordinate, rng: Optional[random.Random] = None, now: Optional[datetime] = None) -> list[dict]:
    """Return raw records for every catalog entry: highways first, then local roads."""
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    records = _segment_records(HIGHWAYS, "highway", HIGHWAY_SPAN, center, rng, now)
    records += _segment_records(LOCAL_ROADS, "local", LOCAL_SPAN, center, rng, now)
    logger.info("synthetic generated records=%d center=%.4f,%.4f", len(records), center.lat, center.lng)
    return records
