"""
Point set, neighbour cache, greedy partitioning and visible-set diffing.
"""

from .differ import VisibleSet, VisibleSetDiffer
from .neighbors import NeighborCache, NeighborTable
from .partitioner import partition, visiting_order
from .point_set import PointSet
from .positions import AveragePosition, NearestCenterPosition

__all__ = [
    "AveragePosition",
    "NearestCenterPosition",
    "NeighborCache",
    "NeighborTable",
    "PointSet",
    "VisibleSet",
    "VisibleSetDiffer",
    "partition",
    "visiting_order",
]
