"""View state (category filter + focused incident) and the typed commands the UI surface emits."""

from dataclasses import dataclass
from typing import Optional

FILTERS = ("all", "highway", "local")
LAYOUT_MODES = ("map", "info", "all")


def apply_filter(dataset, filter_value: str) -> tuple:
    """Derived read-only view: identity for "all", else incidents whose category equals the filter."""
    if filter_value == "all":
        return tuple(dataset)
    return tuple(i for i in dataset if i.category == filter_value)


@dataclass
class ViewState:
    filter: str = "all"
    focus_id: Optional[str] = None  # weak reference into the current dataset

    def set_filter(self, value: str) -> None:
        if value not in FILTERS:
            raise ValueError(f"unknown filter: {value!r}")
        self.filter = value

    def reconcile_focus(self, ids) -> None:
        """Drop the focus silently when its incident is gone from the current dataset."""
        if self.focus_id is not None and self.focus_id not in set(ids):
            self.focus_id = None

    def to_dict(self):
        return {"filter": self.filter, "focus_id": self.focus_id}


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class SetFilter:
    filter: str


@dataclass(frozen=True)
class Refresh:
    pass


@dataclass(frozen=True)
class Locate:
    pass


@dataclass(frozen=True)
class SelectIncident:
    incident_id: str


@dataclass(frozen=True)
class ToggleLayout:
    mode: str


@dataclass(frozen=True)
class ExitLayout:
    """Escape key: leave whichever fullscreen layout is active."""


@dataclass(frozen=True)
class ResizeContainer:
    pass
