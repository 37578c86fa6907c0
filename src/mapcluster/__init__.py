"""mapcluster: incremental point clustering for map views."""

__version__ = "0.1.0"

# Main API
from .api import cluster_points
from .manager import ClusterManager

# Core types
from .config.params import MapclusterParams
from .core_types import (
    ClusterAnnotation,
    ClusterGroup,
    ClusterPolicy,
    Coordinate,
    MapRect,
    PartitionResult,
    Point,
    PointIdentity,
    Viewport,
)
from .exceptions import MapclusterError, PassCancelled
from .interfaces import DeliveryExecutor, PositionStrategy, Renderer

# Building blocks (for advanced users)
from .clustering.differ import VisibleSet, VisibleSetDiffer
from .clustering.neighbors import NeighborCache
from .clustering.partitioner import partition
from .clustering.point_set import PointSet
from .engine.scheduler import RecomputeScheduler

# Extension system
from .registry import register_position_strategy

__all__ = [
    # Version
    "__version__",
    # Main API
    "cluster_points",
    "ClusterManager",
    # Building blocks
    "PointSet",
    "NeighborCache",
    "partition",
    "VisibleSetDiffer",
    "VisibleSet",
    "RecomputeScheduler",
    # Types
    "MapclusterParams",
    "Point",
    "PointIdentity",
    "Coordinate",
    "ClusterGroup",
    "ClusterAnnotation",
    "ClusterPolicy",
    "PartitionResult",
    "MapRect",
    "Viewport",
    "MapclusterError",
    "PassCancelled",
    # Extensions
    "register_position_strategy",
    "Renderer",
    "DeliveryExecutor",
    "PositionStrategy",
]
