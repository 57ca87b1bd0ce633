"""Core traffic incident model, classification, filtering and list/marker synchronization."""

from core.models import Incident, Coordinate, KINDS, CATEGORIES
from core.classifier import classify, enrich, enrich_all
from core.view_state import ViewState, apply_filter

__all__ = [
    "Incident",
    "Coordinate",
    "KINDS",
    "CATEGORIES",
    "classify",
    "enrich",
    "enrich_all",
    "ViewState",
    "apply_filter",
]
