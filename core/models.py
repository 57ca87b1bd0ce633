"""Traffic incident models: one normalized record per event, replaced wholesale each refresh."""

from dataclasses import dataclass
from datetime import datetime

KINDS = ("congestion", "restriction", "accident", "warning", "traffic")
CATEGORIES = ("highway", "local")


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def __post_init__(self):
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"longitude out of range: {self.lng}")

    def to_dict(self):
        return {"lat": round(self.lat, 6), "lng": round(self.lng, 6)}


@dataclass(frozen=True)
class Incident:
    id: str
    kind: str
    category: str
    title: str
    location: str
    description: str
    coordinate: Coordinate
    observed_at: datetime  # display only ("last updated"), never used for ordering

    def __post_init__(self):
        if self.kind not in KINDS:
            raise ValueError(f"unknown kind: {self.kind!r}")
        if self.category not in CATEGORIES:
            raise ValueError(f"unknown category: {self.category!r}")
        for name in ("id", "title", "location", "description"):
            if not str(getattr(self, name) or "").strip():
                raise ValueError(f"{name} must be a non-empty string")

    def to_dict(self):
        return {
            "id": self.id,
            "kind": self.kind,
            "category": self.category,
            "title": self.title,
            "location": self.location,
            "description": self.description,
            **self.coordinate.to_dict(),
            "observed_at": self.observed_at.isoformat(),
        }


def dataset_ids_unique(dataset) -> bool:
    """True when every incident in the dataset has a distinct id."""
    ids = [i.id for i in dataset]
    return len(ids) == len(set(ids))
