"""
Page session: owns map, list, view state, synchronizer and refresh scheduler.
Created once at startup and kept for the process lifetime. The UI surface talks
to it only through `dispatch(command)`.
"""

import logging
from typing import Optional, Protocol

from core import config
from core.errors import GeolocationError
from core.map_layer import USER_LOCATION_ICON, InMemoryMap, Marker
from core.models import Coordinate
from core.scheduler import RefreshScheduler
from core.synchronizer import Synchronizer
from core.view_state import (
    LAYOUT_MODES,
    ExitLayout,
    Locate,
    Refresh,
    ResizeContainer,
    SelectIncident,
    SetFilter,
    ToggleLayout,
    ViewState,
)

logger = logging.getLogger("traffic_api.session")

LOCATE_LABEL = "Use my location"
LOCATING_LABEL = "Locating..."


class Geolocation(Protocol):
    async def request_current_position(self) -> Coordinate: ...


class LocateControl:
    def __init__(self):
        self.enabled = True
        self.label = LOCATE_LABEL

    def busy(self) -> None:
        self.enabled = False
        self.label = LOCATING_LABEL

    def restore(self) -> None:
        self.enabled = True
        self.label = LOCATE_LABEL

    def to_dict(self):
        return {"enabled": self.enabled, "label": self.label}


class TrafficSession:
    def __init__(self, feed, map_view=None, geolocation: Optional[Geolocation] = None,
                 refetch_on_filter: Optional[bool] = None, **scheduler_kwargs):
        self.map = map_view or InMemoryMap(config.default_center(), config.INITIAL_ZOOM)
        self.view_state = ViewState()
        self.synchronizer = Synchronizer(self.map)
        self.scheduler = RefreshScheduler(feed, self.synchronizer, self.view_state, **scheduler_kwargs)
        self.geolocation = geolocation
        self.refetch_on_filter = config.refetch_on_filter() if refetch_on_filter is None else refetch_on_filter
        self.locate_control = LocateControl()
        self.layout_mode: Optional[str] = None
        self.alerts: list[str] = []
        self._user_marker: Optional[Marker] = None

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------
    async def dispatch(self, command):
        """Route a typed UI command. Returns the command's result (bool for most)."""
        logger.debug("dispatch command=%r", command)
        if isinstance(command, Refresh):
            return await self.scheduler.refresh()
        if isinstance(command, SetFilter):
            return await self.set_filter(command.filter)
        if isinstance(command, Locate):
            return await self.locate()
        if isinstance(command, SelectIncident):
            return self.select(command.incident_id)
        if isinstance(command, ToggleLayout):
            return self.toggle_layout(command.mode)
        if isinstance(command, ExitLayout):
            return self.exit_layout()
        if isinstance(command, ResizeContainer):
            self.map.invalidate_size()
            return True
        raise ValueError(f"unknown command: {command!r}")

    async def set_filter(self, value: str) -> bool:
        self.view_state.set_filter(value)
        logger.info("filter set filter=%s refetch=%s", value, self.refetch_on_filter)
        if self.scheduler.busy:
            # the in-flight cycle renders with the new filter when its data lands
            return True
        if self.refetch_on_filter:
            return await self.scheduler.refresh()
        self.scheduler.rerender()
        return True

    def select(self, incident_id: str) -> bool:
        if not self.synchronizer.select(incident_id):
            return False
        self.view_state.focus_id = incident_id
        return True

    # -------------------------------------------------------------------------
    # Geolocation
    # -------------------------------------------------------------------------
    def _place_user_marker(self, coord: Coordinate) -> None:
        if self._user_marker is not None:
            self.map.remove_marker(self._user_marker)
        self._user_marker = self.map.add_marker(coord, USER_LOCATION_ICON, {"title": "Current location"}, {"id": "user-location"})

    async def locate(self) -> bool:
        """Ask for the user's position; on success re-center and refresh, on failure alert only."""
        if self.geolocation is None:
            self._alert(GeolocationError(GeolocationError.UNSUPPORTED))
            return False
        if not self.locate_control.enabled:
            logger.info("locate ignored: request already pending")
            return False
        self.locate_control.busy()
        try:
            coord = await self.geolocation.request_current_position()
        except GeolocationError as e:
            self._alert(e)
            return False
        finally:
            self.locate_control.restore()

        self.scheduler.user_location = coord
        self.map.set_view(coord, config.LOCATE_ZOOM)
        self._place_user_marker(coord)
        logger.info("user location lat=%.5f lng=%.5f", coord.lat, coord.lng)
        await self.scheduler.refresh()
        return True

    def _alert(self, error: GeolocationError) -> None:
        logger.warning("geolocation failed reason=%s", error.reason)
        self.alerts.append(error.user_message)

    # -------------------------------------------------------------------------
    # Fullscreen layouts
    # -------------------------------------------------------------------------
    def toggle_layout(self, mode: str) -> Optional[str]:
        """Mutually exclusive layouts; toggling the active one exits. Returns the new mode."""
        if mode not in LAYOUT_MODES:
            raise ValueError(f"unknown layout mode: {mode!r}")
        self.layout_mode = None if self.layout_mode == mode else mode
        self.map.invalidate_size()
        return self.layout_mode

    def exit_layout(self) -> Optional[str]:
        if self.layout_mode is not None:
            self.layout_mode = None
            self.map.invalidate_size()
        return self.layout_mode

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------
    def pop_alerts(self) -> list[str]:
        out, self.alerts = self.alerts, []
        return out

    def snapshot(self) -> dict:
        s = self.scheduler
        return {
            "view": self.view_state.to_dict(),
            "list": self.synchronizer.list.to_dict(),
            "map": self.map.to_dict(),
            "stats": self.synchronizer.display_stats(),
            "stats_all": dict(self.synchronizer.stats),
            "last_updated": s.last_updated_display,
            "source": s.source,
            "refreshing": s.busy,
            "user_location": s.user_location.to_dict() if s.user_location else None,
            "locate_control": self.locate_control.to_dict(),
            "layout_mode": self.layout_mode,
            "alerts": list(self.alerts),
        }
