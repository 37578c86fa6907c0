"""
differ.py

Turns a freshly computed display set into an add/remove delta against what the renderer
currently shows, and keeps the record of what it shows.

Items are compared through ``identity_key``: plain points by the configured point identity,
cluster representatives by member set and position.  With ``retain_offscreen`` enabled, items
that would be removed but lie outside the viewport are left in place instead, which avoids
tearing down and re-adding markers while the user pans.
"""

from collections.abc import Callable, Sequence

from mapcluster.core_types import (
    ClusterAnnotation,
    DisplayItem,
    MapRect,
    Point,
    PointIdentity,
    identity_key,
)
from mapcluster.engine.locks import ReadWriteLock
from mapcluster.exceptions import PassCancelled
from mapcluster.utils.logging import MapclusterLogger

logger = MapclusterLogger.get_logger(__name__)


class VisibleSetDiffer:
    """Pure symmetric-difference computation between two display sets."""

    def __init__(self, identity: PointIdentity = PointIdentity.IDENTIFIER):
        self.identity = PointIdentity(identity)

    def key(self, item: DisplayItem):
        return identity_key(item, self.identity)

    def diff(
        self,
        previous_visible: Sequence[DisplayItem],
        new_items: Sequence[DisplayItem],
        retain_offscreen: bool = False,
        viewport: MapRect | None = None,
    ) -> tuple[list[DisplayItem], list[DisplayItem]]:
        """Return ``(to_add, to_remove)``.

        ``to_add`` holds the items of ``new_items`` absent from ``previous_visible`` and
        ``to_remove`` the items of ``previous_visible`` absent from ``new_items``.  When
        ``retain_offscreen`` is set, removals outside ``viewport`` are dropped from
        ``to_remove``.
        """
        previous_keys = {self.key(item) for item in previous_visible}
        new_keys = {self.key(item) for item in new_items}

        to_add = _unique(
            [item for item in new_items if self.key(item) not in previous_keys], self.key
        )
        to_remove = _unique(
            [item for item in previous_visible if self.key(item) not in new_keys], self.key
        )

        if retain_offscreen and viewport is not None:
            kept = [item for item in to_remove if not viewport.contains(item.coordinate)]
            if kept:
                logger.debug(f"Retaining {len(kept)} off-screen items")
            to_remove = [item for item in to_remove if viewport.contains(item.coordinate)]

        return to_add, to_remove


def _unique(items: list[DisplayItem], key) -> list[DisplayItem]:
    seen = set()
    unique = []
    for item in items:
        k = key(item)
        if k not in seen:
            seen.add(k)
            unique.append(item)
    return unique


class VisibleSet:
    """What the engine believes the renderer currently displays."""

    def __init__(
        self,
        differ: VisibleSetDiffer | None = None,
        lock: ReadWriteLock | None = None,
    ):
        self.differ = differ or VisibleSetDiffer()
        self._lock = lock or ReadWriteLock()
        self._items: list[DisplayItem] = []

    @property
    def items(self) -> list[DisplayItem]:
        with self._lock.read_locked():
            return list(self._items)

    def nested_points(self) -> list[Point]:
        """Visible items with clusters flattened to their members."""
        with self._lock.read_locked():
            items = list(self._items)
        nested: list[Point] = []
        for item in items:
            if isinstance(item, ClusterAnnotation):
                nested.extend(item.members)
            else:
                nested.append(item)
        return nested

    def commit(
        self,
        new_items: Sequence[DisplayItem],
        retain_offscreen: bool = False,
        viewport: MapRect | None = None,
        cancel_check: Callable[[], bool] | None = None,
        on_commit: Callable[[], None] | None = None,
    ) -> tuple[list[DisplayItem], list[DisplayItem]]:
        """Diff against the current record and apply the delta atomically.

        The cancellation check runs under the write lock, immediately before the record is
        mutated; a superseded pass therefore leaves the record untouched.  ``on_commit`` runs
        under the same write lock once the check has passed, for state that must be published
        together with the record (it must not take the lock again).
        """
        with self._lock.write_locked():
            to_add, to_remove = self.differ.diff(
                self._items, new_items, retain_offscreen, viewport
            )
            if cancel_check is not None and cancel_check():
                raise PassCancelled("visible set commit superseded")

            removed_keys = {self.differ.key(item) for item in to_remove}
            self._items = [
                item for item in self._items if self.differ.key(item) not in removed_keys
            ]
            self._items.extend(to_add)
            if on_commit is not None:
                on_commit()

        logger.debug(f"Committed visible set: +{len(to_add)} / -{len(to_remove)}")
        return to_add, to_remove

    def clear(self) -> None:
        with self._lock.write_locked():
            self._items = []
