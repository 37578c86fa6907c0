"""
point_set.py

Thread-safe, insertion-ordered collection of input points.

Membership is decided by ``identity_key`` under the configured ``PointIdentity``: by default two
points are the same when they share a ``point_id``; in ``COORDINATE`` mode any two points at the
identical coordinate are treated as one and the second ``add`` is a no-op.

Every successful mutation bumps ``version``.  Consumers (the neighbour cache) compare the version
they last built against to know whether their data is stale.
"""

from collections.abc import Iterable

from mapcluster.core_types import Point, PointIdentity, identity_key
from mapcluster.engine.locks import ReadWriteLock
from mapcluster.utils.logging import MapclusterLogger

logger = MapclusterLogger.get_logger(__name__)


class PointSet:
    """Mutable point collection with shared-read / exclusive-write access."""

    def __init__(
        self,
        identity: PointIdentity = PointIdentity.IDENTIFIER,
        lock: ReadWriteLock | None = None,
    ):
        self.identity = PointIdentity(identity)
        self._lock = lock or ReadWriteLock()
        self._points: dict = {}
        self._version = 0

    # ------------------------------------------------------------------
    # Mutations (exclusive)
    # ------------------------------------------------------------------

    def add(self, point: Point) -> bool:
        """Add ``point``; False if an equal point is already present."""
        with self._lock.write_locked():
            return self._add_unlocked(point)

    def add_many(self, points: Iterable[Point]) -> int:
        with self._lock.write_locked():
            added = sum(1 for point in points if self._add_unlocked(point))
        logger.debug(f"Added {added} points (version {self._version})")
        return added

    def remove(self, point: Point) -> bool:
        """Remove the point matching ``point``; False if none was found."""
        with self._lock.write_locked():
            return self._remove_unlocked(point)

    def remove_many(self, points: Iterable[Point]) -> int:
        with self._lock.write_locked():
            removed = sum(1 for point in points if self._remove_unlocked(point))
        logger.debug(f"Removed {removed} points (version {self._version})")
        return removed

    def clear(self) -> None:
        with self._lock.write_locked():
            if self._points:
                self._points.clear()
                self._version += 1

    def _add_unlocked(self, point: Point) -> bool:
        key = identity_key(point, self.identity)
        if key in self._points:
            return False
        self._points[key] = point
        self._version += 1
        return True

    def _remove_unlocked(self, point: Point) -> bool:
        key = identity_key(point, self.identity)
        if self._points.pop(key, None) is None:
            return False
        self._version += 1
        return True

    # ------------------------------------------------------------------
    # Reads (shared)
    # ------------------------------------------------------------------

    def snapshot(self) -> list[Point]:
        """Points in insertion order."""
        with self._lock.read_locked():
            return list(self._points.values())

    def snapshot_with_version(self) -> tuple[list[Point], int]:
        """Points and the version they belong to, read atomically."""
        with self._lock.read_locked():
            return list(self._points.values()), self._version

    @property
    def version(self) -> int:
        with self._lock.read_locked():
            return self._version

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._points)

    def __contains__(self, point: Point) -> bool:
        with self._lock.read_locked():
            return identity_key(point, self.identity) in self._points
