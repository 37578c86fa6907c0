"""
manager.py

``ClusterManager`` is the entry point hosts talk to.  It owns the point set, the neighbour
cache and the visible-set record (all behind one reader/writer lock) plus the recompute
scheduler, and exposes the operations a map view needs:

* ``add`` / ``remove`` / ``remove_all`` – fire-and-forget edits that supersede any pass in
  flight and re-run the last requested view when ``display.reload_on_change`` is set;
* ``reload(viewport)`` – schedule a recompute whose delta reaches the renderer on the delivery
  context;
* ``clustered_items(viewport)`` – the synchronous pass the scheduler runs, usable directly.

Passes are serialised: the scheduler's worker and direct ``partition`` / ``clustered_items``
calls share one pass lock, so at most one pass runs at a time.  A pass partitions with the
neighbour table it prepared itself and publishes that table only after its last cancellation
check, together with the visible set.
"""

import threading
from collections.abc import Callable, Iterable

from mapcluster.clustering.differ import VisibleSet, VisibleSetDiffer
from mapcluster.clustering.neighbors import NeighborCache, NeighborTable
from mapcluster.clustering.partitioner import partition
from mapcluster.clustering.point_set import PointSet
from mapcluster.config.params import MapclusterParams
from mapcluster.core_types import (
    ClusterPolicy,
    DisplayItem,
    PartitionResult,
    Point,
    PointIdentity,
    Viewport,
)
from mapcluster.engine.locks import ReadWriteLock
from mapcluster.engine.scheduler import RecomputeScheduler
from mapcluster.exceptions import PassCancelled
from mapcluster.interfaces import DeliveryExecutor, Renderer
from mapcluster.registry import get_position_strategy
from mapcluster.utils.geo import distance_threshold_for_scale
from mapcluster.utils.logging import MapclusterLogger, log_detail
from mapcluster.utils.once import OnceTracker
from mapcluster.utils.time_measurement import TimeRecorder

logger = MapclusterLogger.get_logger(__name__)


def default_cell_size(zoom_level: float) -> float:
    """Tiered grid cell size used when the host policy does not override it."""
    if 13 <= zoom_level <= 15:
        return 64
    if 16 <= zoom_level <= 18:
        return 32
    if zoom_level >= 19:
        return 16
    return 88


def _never_cancelled() -> bool:
    return False


class ClusterManager:
    """Incrementally clusters a dynamic point set for a map view."""

    def __init__(
        self,
        params: MapclusterParams | None = None,
        policy: ClusterPolicy | None = None,
        renderer: Renderer | None = None,
        delivery: DeliveryExecutor | None = None,
    ):
        self.params = params or MapclusterParams()
        self.policy = policy or ClusterPolicy()
        self.renderer = renderer

        clustering = self.params.clustering
        identity = PointIdentity(clustering.identity)
        self._lock = ReadWriteLock()
        self._point_set = PointSet(identity, lock=self._lock)
        self._neighbor_cache = NeighborCache(
            clustering.distance_metric, identity, lock=self._lock
        )
        self._visible = VisibleSet(VisibleSetDiffer(identity), lock=self._lock)
        self._position = get_position_strategy(clustering.cluster_position)
        self._notices = OnceTracker()
        self._last_viewport: Viewport | None = None
        self._viewport_lock = threading.Lock()
        self._pass_lock = threading.Lock()

        self.time_recorder = TimeRecorder()
        self._scheduler = RecomputeScheduler(
            self._compute_pass, delivery=delivery, time_recorder=self.time_recorder
        )
        if renderer is not None:
            self._scheduler.on_complete(renderer.display)

    # ------------------------------------------------------------------
    # Point set edits
    # ------------------------------------------------------------------

    def add(self, point: Point) -> bool:
        self._scheduler.cancel_all()
        added = self._point_set.add(point)
        self._after_edit(added)
        return added

    def add_many(self, points: Iterable[Point]) -> int:
        self._scheduler.cancel_all()
        added = self._point_set.add_many(points)
        self._after_edit(added > 0)
        return added

    def remove(self, point: Point) -> bool:
        self._scheduler.cancel_all()
        removed = self._point_set.remove(point)
        self._after_edit(removed)
        return removed

    def remove_many(self, points: Iterable[Point]) -> int:
        self._scheduler.cancel_all()
        removed = self._point_set.remove_many(points)
        self._after_edit(removed > 0)
        return removed

    def remove_all(self) -> None:
        self._scheduler.cancel_all()
        self._point_set.clear()
        self._after_edit(True)

    def _after_edit(self, changed: bool) -> None:
        if not changed or not self.params.display.reload_on_change:
            return
        # Serialised with reload(): edits re-run the newest requested viewport
        with self._viewport_lock:
            if self._last_viewport is not None:
                self._scheduler.request_recompute(self._last_viewport)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def points(self) -> list[Point]:
        return self._point_set.snapshot()

    @property
    def visible_items(self) -> list[DisplayItem]:
        return self._visible.items

    @property
    def visible_nested_points(self) -> list[Point]:
        return self._visible.nested_points()

    @property
    def neighbor_cache(self) -> NeighborCache:
        return self._neighbor_cache

    @property
    def scheduler(self) -> RecomputeScheduler:
        return self._scheduler

    def cell_size(self, zoom_level: float) -> float:
        """Host override if any, otherwise the tiered default."""
        override = self.policy.cell_size(zoom_level)
        if override is not None:
            return override
        return default_cell_size(zoom_level)

    # ------------------------------------------------------------------
    # Recompute
    # ------------------------------------------------------------------

    def reload(
        self, viewport: Viewport, completion: Callable[[bool], None] | None = None
    ) -> int:
        """Schedule a recompute for ``viewport``.

        The renderer receives the delta on the delivery context, then ``completion(True)``
        is called.  A superseded request calls ``completion(False)`` instead.
        """
        with self._viewport_lock:
            self._last_viewport = viewport
            return self._scheduler.request_recompute(viewport, completion)

    def wait_idle(self, timeout: float | None = None) -> bool:
        return self._scheduler.wait_idle(timeout)

    def partition(
        self, viewport: Viewport, cancel_check: Callable[[], bool] | None = None
    ) -> PartitionResult:
        """Partition the current point set for ``viewport`` without touching the visible set.

        A neighbour table rebuilt for the pass is published only when the pass completes.
        """
        check = cancel_check or _never_cancelled
        with self._pass_lock:
            result, table = self._partition(viewport, check)
            if check():
                raise PassCancelled("pass superseded after partitioning")
            self._neighbor_cache.commit(table)
        return result

    def clustered_items(
        self, viewport: Viewport, cancel_check: Callable[[], bool] | None = None
    ) -> tuple[list[DisplayItem], list[DisplayItem]]:
        """Run one full pass and commit it; returns ``(to_add, to_remove)``."""
        check = cancel_check or _never_cancelled
        with self._pass_lock:
            result, table = self._partition(viewport, check)
            items = result.items(self._position.position)
            return self._visible.commit(
                items,
                retain_offscreen=self.params.display.retain_offscreen,
                viewport=viewport.bounds,
                cancel_check=check,
                on_commit=lambda: self._neighbor_cache.commit_locked(table),
            )

    def _partition(
        self, viewport: Viewport, check: Callable[[], bool]
    ) -> tuple[PartitionResult, NeighborTable]:
        if check():
            raise PassCancelled("pass superseded before start")

        clustering = self.params.clustering
        points, version = self._point_set.snapshot_with_version()
        table = self._neighbor_cache.prepare(points, version, check)

        zoom_level = viewport.zoom_level
        max_zoom_level = (
            viewport.max_zoom_level
            if viewport.max_zoom_level is not None
            else clustering.max_zoom_level
        )
        if zoom_level > max_zoom_level:
            self._notices.once(
                "max-zoom",
                lambda: log_detail(f"Clustering suspended above zoom level {max_zoom_level}"),
            )

        threshold = distance_threshold_for_scale(
            viewport.zoom_scale, clustering.distance_scale_for_zoom(zoom_level)
        )
        result = partition(
            points,
            table.neighborhoods(points),
            distance_threshold=threshold,
            min_cluster_size=clustering.min_count_for_clustering,
            max_zoom_level=max_zoom_level,
            current_zoom_level=zoom_level,
            should_cluster=self.policy.should_cluster,
            reference=viewport.center,
            identity=self._point_set.identity,
            metric=clustering.distance_metric,
            cancel_check=check,
        )
        return result, table

    def _compute_pass(self, viewport: Viewport, cancel_check: Callable[[], bool]):
        return self.clustered_items(viewport, cancel_check)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self, wait: bool = True) -> None:
        self._scheduler.shutdown(wait=wait)
        self._notices.reset()

    def __enter__(self) -> "ClusterManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
