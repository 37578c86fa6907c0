"""
partitioner.py

Greedy nearest-neighbour partitioning of the point set into protected points, singleton points
and cluster groups for one zoom level.

Algorithm outline
-----------------
1. Above ``max_zoom_level`` clustering is suspended: every point is returned as a singleton.
2. Points are walked once in a fixed order: ascending distance to ``reference`` when one is
   given (stable, so equal distances keep insertion order), otherwise insertion order.
3. For each point *p* that is not yet used:
   a. if the host policy says *p* must not cluster, *p* is protected;
   b. otherwise the candidates are the clusterable, unused neighbours of *p* whose cached
      distance is strictly below ``distance_threshold``;
   c. if *p* plus its candidates number no more than ``min_cluster_size`` they are all emitted
      as singletons, otherwise they form a new ``ClusterGroup``.
   Everything emitted in (a)–(c) is marked used.

Order dependence
----------------
The walk is greedy: a candidate within range of several unused points is claimed by whichever
of them is visited first, and no attempt is made at a globally optimal grouping.  Tests pin the
visiting order so results are reproducible.
"""

import itertools
from collections.abc import Callable, Sequence

import numpy as np

from mapcluster.core_types import (
    ClusterGroup,
    Coordinate,
    PartitionResult,
    Point,
    PointIdentity,
    PointNeighborhood,
    identity_key,
)
from mapcluster.exceptions import PassCancelled
from mapcluster.utils.geo import distances_from
from mapcluster.utils.logging import MapclusterLogger

logger = MapclusterLogger.get_logger(__name__)

# Points visited between two cancellation checkpoints
CHECKPOINT_INTERVAL = 128


def _always_cluster(point: Point) -> bool:
    return True


def visiting_order(
    points: Sequence[Point],
    reference: Coordinate | None = None,
    metric: str = "haversine",
) -> list[Point]:
    """Order in which ``partition`` visits points."""
    if reference is None or len(points) < 2:
        return list(points)
    distances = distances_from(
        [(p.latitude, p.longitude) for p in points], reference.as_tuple(), metric
    )
    return [points[i] for i in np.argsort(distances, kind="stable")]


def partition(
    points: Sequence[Point],
    neighborhoods: Sequence[PointNeighborhood],
    distance_threshold: float,
    min_cluster_size: int,
    max_zoom_level: float,
    current_zoom_level: float,
    should_cluster: Callable[[Point], bool] | None = None,
    *,
    reference: Coordinate | None = None,
    identity: PointIdentity = PointIdentity.IDENTIFIER,
    metric: str = "haversine",
    cancel_check: Callable[[], bool] | None = None,
) -> PartitionResult:
    """Partition ``points`` into protected / singleton / cluster buckets.

    Args:
        points: Current point snapshot.
        neighborhoods: Cached neighbour lists; points without one have no candidates.
        distance_threshold: Neighbours strictly closer than this may merge.
        min_cluster_size: A group forms only when more than this many points would merge.
        max_zoom_level: Above this zoom level clustering is suspended.
        current_zoom_level: Zoom level of the view being computed.
        should_cluster: Host policy; False marks a point as protected. Defaults to always True.
        reference: Optional view centre used to order the walk.
        identity: How points are told apart when tracking used points.
        metric: Metric used to order points by distance to ``reference``.
        cancel_check: Polled at checkpoints; raising ``PassCancelled`` when it returns True.

    Returns:
        PartitionResult: Every input point appears in exactly one bucket.
    """
    should_cluster = should_cluster or _always_cluster

    def checkpoint() -> None:
        if cancel_check is not None and cancel_check():
            raise PassCancelled("partition superseded")

    result = PartitionResult()
    checkpoint()

    if current_zoom_level > max_zoom_level:
        logger.debug(
            f"Zoom level {current_zoom_level} above max {max_zoom_level}; clustering suspended"
        )
        result.singletons = list(points)
        return result

    neighbors_by_key = {
        identity_key(hood.point, identity): hood.neighbors for hood in neighborhoods
    }
    present = {identity_key(p, identity) for p in points}
    clusterable: dict = {}

    def is_clusterable(point: Point) -> bool:
        key = identity_key(point, identity)
        if key not in clusterable:
            clusterable[key] = bool(should_cluster(point))
        return clusterable[key]

    group_ids = itertools.count(1)
    used: set = set()

    for index, point in enumerate(visiting_order(points, reference, metric)):
        if index % CHECKPOINT_INTERVAL == 0:
            checkpoint()

        key = identity_key(point, identity)
        if key in used:
            continue

        if not is_clusterable(point):
            result.protected.append(point)
            used.add(key)
            continue

        candidates = [
            entry.point
            for entry in neighbors_by_key.get(key, [])
            if entry.distance < distance_threshold
            and identity_key(entry.point, identity) in present
            and identity_key(entry.point, identity) not in used
            and is_clusterable(entry.point)
        ]

        used.add(key)
        used.update(identity_key(c, identity) for c in candidates)

        if len(candidates) + 1 <= min_cluster_size:
            result.singletons.append(point)
            result.singletons.extend(candidates)
        else:
            result.clusters.append(ClusterGroup(next(group_ids), [point, *candidates]))

    checkpoint()

    logger.debug(
        f"Partitioned {len(points)} points: {len(result.protected)} protected, "
        f"{len(result.singletons)} singletons, {len(result.clusters)} clusters "
        f"(threshold={distance_threshold:.4g}, min size={min_cluster_size})"
    )
    return result
