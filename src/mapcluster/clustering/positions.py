"""Built-in cluster position strategies."""

from collections.abc import Sequence

import numpy as np

from mapcluster.core_types import Coordinate, Point
from mapcluster.registry import register_position_strategy
from mapcluster.utils.geo import distances_from, mean_coordinate


@register_position_strategy("average")
class AveragePosition:
    """Computed average of the member coordinates."""

    def position(self, members: Sequence[Point]) -> Coordinate:
        latitude, longitude = mean_coordinate([(p.latitude, p.longitude) for p in members])
        return Coordinate(latitude, longitude)


@register_position_strategy("nearest_center")
class NearestCenterPosition:
    """Snap the marker onto the member closest to the average, so it sits on a real point."""

    def position(self, members: Sequence[Point]) -> Coordinate:
        coordinates = [(p.latitude, p.longitude) for p in members]
        distances = distances_from(coordinates, mean_coordinate(coordinates))
        return members[int(np.argmin(distances))].coordinate
