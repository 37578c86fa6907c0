"""
neighbors.py

Neighbour-distance cache.

For every point the cache keeps the full list of other points sorted by ascending distance.
The table is rebuilt wholesale whenever the point set version changes; there is no incremental
patching, so a table can never contain distances to a point that has since been removed.  The
rebuild is O(n²) and is driven by point-set edits only, not by view changes.

Building and committing are separate steps.  ``prepare`` returns a ``NeighborTable`` for a
snapshot (the cached one when it is current, otherwise a freshly built one held privately by the
caller) and ``commit`` installs it.  A pass partitions with the table it prepared and commits it
only after its last cancellation check, so a superseded pass leaves the cached table and its
version exactly as they were.  Commits never move the cache back to an older version.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import numpy as np

from mapcluster.core_types import (
    NeighborEntry,
    Point,
    PointIdentity,
    PointNeighborhood,
    identity_key,
)
from mapcluster.engine.locks import ReadWriteLock
from mapcluster.exceptions import PassCancelled
from mapcluster.utils.geo import as_coordinate_array, pairwise_distance_matrix
from mapcluster.utils.logging import MapclusterLogger

logger = MapclusterLogger.get_logger(__name__)

# Rows processed between two cancellation checkpoints
CHECKPOINT_INTERVAL = 256

_NEVER_BUILT = -1


@dataclass(frozen=True)
class NeighborTable:
    """Neighbourhoods of one point-set version."""

    version: int
    identity: PointIdentity
    entries: dict = field(default_factory=dict)
    # False when the table is the one already installed in the cache
    fresh: bool = True

    def neighborhoods(self, points: Sequence[Point]) -> list[PointNeighborhood]:
        """Neighbourhoods for ``points``; unknown points get an empty neighbourhood."""
        return [
            self.entries.get(identity_key(p, self.identity)) or PointNeighborhood(p, [])
            for p in points
        ]

    def __len__(self) -> int:
        return len(self.entries)


class NeighborCache:
    """Per-point neighbour lists, invalidated by point-set version changes."""

    def __init__(
        self,
        metric: str = "haversine",
        identity: PointIdentity = PointIdentity.IDENTIFIER,
        lock: ReadWriteLock | None = None,
    ):
        self.metric = metric
        self.identity = PointIdentity(identity)
        self._lock = lock or ReadWriteLock()
        self._table: dict = {}
        self._built_version = _NEVER_BUILT
        # Newest version ever committed; survives invalidate()
        self._newest_version = _NEVER_BUILT

    def is_stale(self, version: int) -> bool:
        with self._lock.read_locked():
            return self._built_version != version

    @property
    def built_version(self) -> int:
        with self._lock.read_locked():
            return self._built_version

    def invalidate(self) -> None:
        """Force the next ``prepare`` to rebuild."""
        with self._lock.write_locked():
            self._built_version = _NEVER_BUILT

    def prepare(
        self,
        points: Sequence[Point],
        version: int,
        cancel_check: Callable[[], bool] | None = None,
    ) -> NeighborTable:
        """Table for ``points`` at ``version`` without touching the cache.

        Returns the cached table when it was built for ``version``, otherwise builds a new one.
        Raises ``PassCancelled`` if ``cancel_check`` reports cancellation during the build.
        """
        with self._lock.read_locked():
            if self._built_version == version:
                return NeighborTable(version, self.identity, self._table, fresh=False)

        entries = self._build(points, cancel_check)
        logger.debug(f"Built neighbour table for {len(points)} points (version {version})")
        return NeighborTable(version, self.identity, entries)

    def commit(self, table: NeighborTable) -> bool:
        """Install ``table`` unless the cache already holds the same or a newer version."""
        with self._lock.write_locked():
            return self.commit_locked(table)

    def commit_locked(self, table: NeighborTable) -> bool:
        """``commit`` for callers that already hold the shared write lock."""
        if not table.fresh:
            return False
        if table.version < self._newest_version or table.version == self._built_version:
            logger.debug(
                f"Skipped neighbour table for version {table.version} "
                f"(cache holds {self._built_version})"
            )
            return False
        self._table = table.entries
        self._built_version = table.version
        self._newest_version = table.version
        return True

    def rebuild_if_dirty(
        self,
        points: Sequence[Point],
        version: int,
        cancel_check: Callable[[], bool] | None = None,
    ) -> bool:
        """Prepare and commit in one step.

        Returns True when the cache now holds a table newly built for ``version``.  Raises
        ``PassCancelled`` if ``cancel_check`` reports cancellation before the commit.
        """
        table = self.prepare(points, version, cancel_check)
        if not table.fresh:
            return False
        if cancel_check is not None and cancel_check():
            raise PassCancelled("neighbour rebuild superseded before commit")
        return self.commit(table)

    def _build(
        self,
        points: Sequence[Point],
        cancel_check: Callable[[], bool] | None,
    ) -> dict:
        coordinates = as_coordinate_array([(p.latitude, p.longitude) for p in points])
        distances = pairwise_distance_matrix(coordinates, self.metric)
        order = np.argsort(distances, axis=1, kind="stable")

        table = {}
        for i, point in enumerate(points):
            if cancel_check is not None and i % CHECKPOINT_INTERVAL == 0 and cancel_check():
                raise PassCancelled("neighbour rebuild superseded")
            row = distances[i]
            neighbors = [
                NeighborEntry(points[j], float(row[j])) for j in order[i] if j != i
            ]
            table[identity_key(point, self.identity)] = PointNeighborhood(point, neighbors)
        return table

    def neighbors_of(self, point: Point) -> list[NeighborEntry]:
        """Ascending neighbour list of ``point``; empty if the point is unknown."""
        with self._lock.read_locked():
            neighborhood = self._table.get(identity_key(point, self.identity))
        if neighborhood is None:
            return []
        return list(neighborhood.neighbors)

    def neighborhoods(self, points: Sequence[Point]) -> list[PointNeighborhood]:
        """Neighbourhoods for ``points``; unknown points get an empty neighbourhood."""
        with self._lock.read_locked():
            table = self._table
        return [
            table.get(identity_key(p, self.identity)) or PointNeighborhood(p, [])
            for p in points
        ]

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._table)
