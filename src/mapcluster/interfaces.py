"""Protocol definitions for the pluggable collaborators of mapcluster."""

from collections.abc import Callable, Sequence
from typing import Any, Protocol

from mapcluster.core_types import Coordinate, DisplayItem, Point


class Renderer(Protocol):
    """The drawing surface. The engine never draws; it only hands over deltas."""

    def display(
        self, to_add: Sequence[DisplayItem], to_remove: Sequence[DisplayItem]
    ) -> None:
        """Remove ``to_remove`` then add ``to_add``."""
        ...


class DeliveryExecutor(Protocol):
    """Execution context the renderer requires (e.g. the UI thread).

    ``concurrent.futures.Executor`` satisfies this protocol; a UI toolkit adapter only needs
    to schedule ``fn(*args)`` on its own thread.
    """

    def submit(self, fn: Callable[..., Any], /, *args: Any) -> Any:
        ...


class PositionStrategy(Protocol):
    """Where a cluster representative is placed."""

    def position(self, members: Sequence[Point]) -> Coordinate:
        ...
