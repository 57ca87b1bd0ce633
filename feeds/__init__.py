"""Incident sources: JARTIC traffic volume feed and the synthetic fallback."""

from feeds.jartic import JarticFeed, normalize_features
from feeds.synthetic import generate as generate_synthetic

__all__ = ["JarticFeed", "normalize_features", "generate_synthetic"]
