"""
Classification and enrichment: raw feed/synthetic records -> Incident.
Feed records carry a measured traffic volume and are thresholded; synthetic
records already carry a kind and only get the canned description.
"""

import logging
from datetime import datetime, timezone

from core.models import Coordinate, Incident

logger = logging.getLogger("traffic_api.classifier")

CONGESTION_THRESHOLD = 100  # strictly greater -> congestion
WARNING_THRESHOLD = 50  # strictly greater (and <= 100) -> warning

KIND_LABELS = {
    "congestion": "Congestion",
    "restriction": "Restriction",
    "accident": "Accident",
    "warning": "Caution",
    "traffic": "Normal",
}

KIND_COLORS = {
    "congestion": "#ef4444",
    "restriction": "#3b82f6",
    "accident": "#8b5cf6",
    "warning": "#f59e0b",
    "traffic": "#10b981",
}

KIND_DESCRIPTIONS = {
    "congestion": "Congestion reported. Expect delays passing through.",
    "restriction": "Lane restrictions in place. Drive with care.",
    "accident": "An accident has occurred. A detour is recommended.",
    "warning": "Weather conditions call for extra caution.",
    "traffic": "Normal traffic volume.",
}

GENERIC_LABEL = "Info"
GENERIC_COLOR = "#6b7280"
GENERIC_DESCRIPTION = "Traffic information available."


def kind_label(kind: str) -> str:
    return KIND_LABELS.get(kind, GENERIC_LABEL)


def kind_color(kind: str) -> str:
    return KIND_COLORS.get(kind, GENERIC_COLOR)


def kind_description(kind: str) -> str:
    return KIND_DESCRIPTIONS.get(kind, GENERIC_DESCRIPTION)


def _format_volume(volume: float) -> str:
    return str(int(volume)) if float(volume).is_integer() else str(volume)


def classify(traffic_volume: float) -> tuple[str, str]:
    """
    Map a 5-minute traffic volume to (kind, description).
    - volume > 100       -> congestion
    - 50 < volume <= 100 -> warning
    - else               -> traffic
    """
    v = _format_volume(traffic_volume)
    if traffic_volume > CONGESTION_THRESHOLD:
        return "congestion", f"Congestion reported. Traffic volume: {v} vehicles/5 min"
    if traffic_volume > WARNING_THRESHOLD:
        return "warning", f"Heavy traffic. Traffic volume: {v} vehicles/5 min"
    return "traffic", f"Traffic volume: {v} vehicles/5 min"


def enrich(record: dict) -> Incident:
    """Build an Incident from a raw record. Records with a `kind` are synthetic; the rest are classified by volume."""
    kind = record.get("kind")
    if kind:
        description = kind_description(kind)
    else:
        kind, description = classify(record.get("traffic_volume") or 0)
    observed_at = record.get("observed_at") or datetime.now(timezone.utc)
    return Incident(
        id=record["id"],
        kind=kind,
        category=record["category"],
        title=record["title"],
        location=record["location"],
        description=description,
        coordinate=Coordinate(lat=float(record["lat"]), lng=float(record["lng"])),
        observed_at=observed_at,
    )


def enrich_all(records: list[dict]) -> tuple:
    """Enrich a whole refresh cycle before anything is rendered."""
    dataset = tuple(enrich(r) for r in records)
    logger.debug("enriched records=%d", len(dataset))
    return dataset
