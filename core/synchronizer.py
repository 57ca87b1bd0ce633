"""
Keep the incident list and the marker layer in exact correspondence.
Both are rebuilt from the same filtered sequence on every render; statistics
come from the unfiltered dataset.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from core import config
from core.classifier import kind_color, kind_label
from core.map_layer import MARKER_GLYPHS, MapCapability, Marker, MarkerIcon
from core.models import KINDS, Incident

logger = logging.getLogger("traffic_api.synchronizer")

LOADING_MESSAGE = "Updating traffic information..."
EMPTY_MESSAGE = "No matching traffic information"

# Kinds shown as counters on the dashboard.
DISPLAY_STAT_KINDS = ("congestion", "restriction", "accident")


def format_clock(ts: datetime) -> str:
    """HH:MM, 24-hour, zero-padded."""
    return f"{ts.hour:02d}:{ts.minute:02d}"


def render_list_entry(incident: Incident) -> dict:
    """Incident -> list row view node."""
    return {
        **incident.to_dict(),
        "observed": format_clock(incident.observed_at),
        "badge": {"label": kind_label(incident.kind), "color": kind_color(incident.kind)},
    }


def render_popup(incident: Incident) -> dict:
    """Incident -> marker popup view node."""
    return {
        "title": incident.title,
        "location": incident.location,
        "description": incident.description,
        "observed": format_clock(incident.observed_at),
        "badge": {"label": kind_label(incident.kind), "color": kind_color(incident.kind)},
    }


def marker_icon(kind: str) -> MarkerIcon:
    if kind not in MARKER_GLYPHS:
        kind = "traffic"
    return MarkerIcon(kind=kind, color=kind_color(kind), glyph=MARKER_GLYPHS[kind])


def compute_stats(dataset) -> dict[str, int]:
    """Per-kind counts over the full dataset (every kind present, zero when absent)."""
    counts = Counter(i.kind for i in dataset)
    return {k: counts.get(k, 0) for k in KINDS}


@dataclass
class IncidentList:
    """List representation: loading spinner, empty placeholder, or one row per incident."""
    mode: str = "loading"
    message: Optional[str] = LOADING_MESSAGE
    entries: list = field(default_factory=list)

    def show_loading(self) -> None:
        self.mode = "loading"
        self.message = LOADING_MESSAGE
        self.entries = []

    def show_entries(self, incidents) -> None:
        if not incidents:
            self.mode = "empty"
            self.message = EMPTY_MESSAGE
            self.entries = []
            return
        self.mode = "entries"
        self.message = None
        self.entries = [render_list_entry(i) for i in incidents]

    def ids(self) -> list[str]:
        return [e["id"] for e in self.entries]

    def to_dict(self):
        return {"mode": self.mode, "message": self.message, "entries": list(self.entries)}


class Synchronizer:
    def __init__(self, map_view: MapCapability, incident_list: Optional[IncidentList] = None):
        self.map = map_view
        self.list = incident_list or IncidentList()
        self.markers: list[Marker] = []
        self.stats: dict[str, int] = compute_stats(())

    def render(self, filtered, dataset) -> None:
        """Rebuild list and markers from `filtered`; publish stats over `dataset`."""
        filtered = tuple(filtered)
        self.list.show_entries(filtered)

        for marker in self.markers:
            self.map.remove_marker(marker)
        self.markers = []
        for incident in filtered:
            marker = self.map.add_marker(
                incident.coordinate,
                marker_icon(incident.kind),
                render_popup(incident),
                {"id": incident.id},
            )
            self.markers.append(marker)

        self.stats = compute_stats(dataset)
        logger.info("rendered entries=%d markers=%d dataset=%d", len(self.list.entries), len(self.markers), len(tuple(dataset)))

    def select(self, incident_id: str) -> bool:
        """Pan to the incident and open its popup; no-op when no marker carries the id."""
        marker = next((m for m in self.markers if m.id == incident_id), None)
        if marker is None:
            logger.debug("select no marker id=%s", incident_id)
            return False
        self.map.set_view(marker.coordinate, config.FOCUS_ZOOM)
        self.map.open_popup(marker)
        return True

    def marker_ids(self) -> list[str]:
        return [m.id for m in self.markers]

    def list_ids(self) -> list[str]:
        return self.list.ids()

    def display_stats(self) -> dict[str, int]:
        return {k: self.stats.get(k, 0) for k in DISPLAY_STAT_KINDS}
