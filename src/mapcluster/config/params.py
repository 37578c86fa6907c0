from __future__ import annotations

"""Parameter container dataclasses for the mapcluster configuration system.

Clustering behaviour and display behaviour live in separate immutable dataclasses
under one aggregate `MapclusterParams`.
"""

from dataclasses import dataclass, field

from mapcluster.utils.geo import DISTANCE_METRICS

__all__ = [
    "ClusteringParams",
    "DisplayParams",
    "MapclusterParams",
]

IDENTITY_MODES = ("identifier", "coordinate")


# ---------------------------------------------------------------------------
# Clustering parameters – things that influence the partition
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ClusteringParams:
    """Clustering configuration options."""

    # A group forms only when more than this many points would merge
    min_count_for_clustering: int = 2
    # k in threshold = (1 / zoom_scale) * k, for wide views
    distance_scale: float = 10.0
    # tighter k used at or above detail_zoom_level; None keeps distance_scale everywhere
    detail_distance_scale: float | None = None
    detail_zoom_level: float = 16.0
    # clustering is suspended above this zoom level
    max_zoom_level: float = 20.0
    cluster_position: str = "average"
    distance_metric: str = "haversine"
    identity: str = "identifier"

    def __post_init__(self):  # type: ignore[override]
        if self.min_count_for_clustering < 0:
            raise ValueError("ClusteringParams.min_count_for_clustering must be non-negative.")

        for field_name in ("distance_scale", "detail_distance_scale"):
            value = getattr(self, field_name)
            if value is not None and value <= 0:
                raise ValueError(f"ClusteringParams.{field_name} must be positive.")

        if self.distance_metric not in DISTANCE_METRICS:
            raise ValueError(
                f"ClusteringParams.distance_metric must be one of {DISTANCE_METRICS}."
            )

        if self.identity not in IDENTITY_MODES:
            raise ValueError(f"ClusteringParams.identity must be one of {IDENTITY_MODES}.")

    def distance_scale_for_zoom(self, zoom_level: float) -> float:
        """The k constant to use at ``zoom_level``."""
        if self.detail_distance_scale is not None and zoom_level >= self.detail_zoom_level:
            return self.detail_distance_scale
        return self.distance_scale


# ---------------------------------------------------------------------------
# Display parameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DisplayParams:
    """How deltas are applied to the renderer."""

    # keep removed items that are outside the viewport instead of tearing them down
    retain_offscreen: bool = True
    # re-run the last requested view after every point edit
    reload_on_change: bool = True


# ---------------------------------------------------------------------------
# Aggregate container
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class MapclusterParams:
    """Aggregate parameter object passed throughout the codebase."""

    clustering: ClusteringParams = field(default_factory=ClusteringParams)
    display: DisplayParams = field(default_factory=DisplayParams)

    # Convenience accessors so calling code can use `params.X`.
    def __getattr__(self, item):
        if item.startswith("_") or item in ("clustering", "display"):
            raise AttributeError(item)
        for section in (self.clustering, self.display):
            if hasattr(section, item):
                return getattr(section, item)
        raise AttributeError(item)
