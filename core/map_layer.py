"""
Map capability and an in-memory implementation.
The in-memory map keeps the placed markers and current view so the HTTP surface
can hand them to a browser map widget as JSON.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from core.models import Coordinate

logger = logging.getLogger("traffic_api.map_layer")

MARKER_GLYPHS = {
    "congestion": "🚗",
    "restriction": "🚧",
    "accident": "⚠️",
    "warning": "⚡",
    "traffic": "📊",
}


@dataclass(frozen=True)
class MarkerIcon:
    kind: str
    color: str
    glyph: str
    size: int = 30

    def to_dict(self):
        return {"kind": self.kind, "color": self.color, "glyph": self.glyph, "size": self.size}


USER_LOCATION_ICON = MarkerIcon(kind="user", color="#10b981", glyph="", size=20)


@dataclass
class Marker:
    handle: int
    coordinate: Coordinate
    icon: MarkerIcon
    popup: dict
    metadata: dict = field(default_factory=dict)
    popup_open: bool = False

    @property
    def id(self) -> Optional[str]:
        return self.metadata.get("id")

    def to_dict(self):
        return {
            "id": self.id,
            **self.coordinate.to_dict(),
            "icon": self.icon.to_dict(),
            "popup": self.popup,
            "popup_open": self.popup_open,
        }


class MapCapability(Protocol):
    def set_view(self, coordinate: Coordinate, zoom: int) -> None: ...

    def add_marker(self, coordinate: Coordinate, icon: MarkerIcon, popup: dict, metadata: dict) -> Marker: ...

    def remove_marker(self, marker: Marker) -> None: ...

    def open_popup(self, marker: Marker) -> None: ...

    def invalidate_size(self) -> None: ...


class InMemoryMap:
    """Marker store + view for one page session."""

    def __init__(self, center: Coordinate, zoom: int):
        self.center = center
        self.zoom = zoom
        self.markers: dict[int, Marker] = {}
        self.size_invalidations = 0
        self._handles = itertools.count(1)

    def set_view(self, coordinate: Coordinate, zoom: int) -> None:
        self.center = coordinate
        self.zoom = zoom

    def add_marker(self, coordinate: Coordinate, icon: MarkerIcon, popup: dict, metadata: dict) -> Marker:
        marker = Marker(handle=next(self._handles), coordinate=coordinate, icon=icon, popup=popup, metadata=dict(metadata))
        self.markers[marker.handle] = marker
        return marker

    def remove_marker(self, marker: Marker) -> None:
        self.markers.pop(marker.handle, None)

    def open_popup(self, marker: Marker) -> None:
        # one popup open at a time, like a map widget
        for m in self.markers.values():
            m.popup_open = False
        if marker.handle in self.markers:
            marker.popup_open = True

    def invalidate_size(self) -> None:
        self.size_invalidations += 1
        logger.debug("map size invalidated count=%d", self.size_invalidations)

    def to_dict(self):
        """View plus incident markers; the user-location marker is reported on its own."""
        user = next((m for m in self.markers.values() if m.icon == USER_LOCATION_ICON), None)
        return {
            "center": self.center.to_dict(),
            "zoom": self.zoom,
            "markers": [m.to_dict() for m in self.markers.values() if m is not user],
            "user_marker": user.to_dict() if user else None,
        }
