from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple, Union

import pandas as pd

from mapcluster.utils.geo import mean_coordinate, zoom_level_for_scale


class PointIdentity(Enum):
    """How two points are judged to be "the same point"."""
    IDENTIFIER = "identifier"  # stable point_id, default
    COORDINATE = "coordinate"  # identical (latitude, longitude) snaps together


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class Point:
    """An input point with an opaque identity and a geographic position."""
    point_id: str
    latitude: float
    longitude: float
    payload: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    @staticmethod
    def from_dataframe(df: pd.DataFrame) -> List['Point']:
        """Convert DataFrame to list of Point objects."""
        extra_cols = [col for col in df.columns if col not in ('Point_ID', 'Latitude', 'Longitude')]
        points = []
        for _, row in df.iterrows():
            payload = {col.lower(): row[col] for col in extra_cols}
            points.append(Point(
                point_id=str(row['Point_ID']),
                latitude=float(row['Latitude']),
                longitude=float(row['Longitude']),
                payload=payload,
            ))
        return points

    @staticmethod
    def to_dataframe(points: List['Point']) -> pd.DataFrame:
        """Convert list of Point objects to DataFrame."""
        if len(points) == 0:
            return pd.DataFrame(columns=['Point_ID', 'Latitude', 'Longitude'])
        data = []
        for point in points:
            row = {
                'Point_ID': point.point_id,
                'Latitude': point.latitude,
                'Longitude': point.longitude,
            }
            for key, value in point.payload.items():
                row[key.title()] = value
            data.append(row)
        return pd.DataFrame(data)


@dataclass(frozen=True)
class NeighborEntry:
    """A neighbouring point and its distance to the owning point."""
    point: Point
    distance: float


@dataclass
class PointNeighborhood:
    """A point plus every other point, ascending by distance."""
    point: Point
    neighbors: List[NeighborEntry] = field(default_factory=list)


@dataclass
class ClusterGroup:
    """Members merged during one partition pass; group_id is only valid within that pass."""
    group_id: int
    members: List[Point] = field(default_factory=list)

    def centroid(self) -> Coordinate:
        latitude, longitude = mean_coordinate([(p.latitude, p.longitude) for p in self.members])
        return Coordinate(latitude, longitude)

    def __len__(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class ClusterAnnotation:
    """Displayable representative of a cluster.

    Two representatives are equal when they hold the same members at the same position.
    """
    members: Tuple[Point, ...]
    latitude: float
    longitude: float

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    @property
    def size(self) -> int:
        return len(self.members)


DisplayItem = Union[Point, ClusterAnnotation]


def identity_key(item: DisplayItem, identity: PointIdentity = PointIdentity.IDENTIFIER) -> Hashable:
    """Hashable key used for de-duplication, 'used' tracking and diffing."""
    if isinstance(item, ClusterAnnotation):
        members = frozenset(identity_key(p, identity) for p in item.members)
        return ('cluster', members, (item.latitude, item.longitude))
    if identity == PointIdentity.COORDINATE:
        return ('point', (item.latitude, item.longitude))
    return ('point', item.point_id)


@dataclass
class PartitionResult:
    """The three disjoint buckets produced by one partition pass."""
    protected: List[Point] = field(default_factory=list)
    singletons: List[Point] = field(default_factory=list)
    clusters: List[ClusterGroup] = field(default_factory=list)

    def items(self, position: Optional[Callable[[List[Point]], Coordinate]] = None) -> List[DisplayItem]:
        """Flatten into the display set: protected, then singletons, then cluster representatives."""
        items: List[DisplayItem] = list(self.protected) + list(self.singletons)
        for group in self.clusters:
            coordinate = position(group.members) if position is not None else group.centroid()
            items.append(ClusterAnnotation(
                members=tuple(group.members),
                latitude=coordinate.latitude,
                longitude=coordinate.longitude,
            ))
        return items

    def is_empty(self) -> bool:
        return not (self.protected or self.singletons or self.clusters)

    @property
    def clustered_point_count(self) -> int:
        return sum(len(group) for group in self.clusters)

    @property
    def point_count(self) -> int:
        return len(self.protected) + len(self.singletons) + self.clustered_point_count


@dataclass(frozen=True)
class MapRect:
    """Latitude/longitude bounding box; west > east means it spans the antimeridian."""
    south: float
    west: float
    north: float
    east: float

    @staticmethod
    def world() -> 'MapRect':
        return MapRect(south=-90.0, west=-180.0, north=90.0, east=180.0)

    def contains(self, coordinate: Coordinate) -> bool:
        if not self.south <= coordinate.latitude <= self.north:
            return False
        if self.west <= self.east:
            return self.west <= coordinate.longitude <= self.east
        return coordinate.longitude >= self.west or coordinate.longitude <= self.east


@dataclass(frozen=True)
class Viewport:
    """What the host reports about the current view."""
    zoom_scale: float  # larger = more zoomed in
    bounds: MapRect = field(default_factory=MapRect.world)
    center: Optional[Coordinate] = None
    max_zoom_level: Optional[float] = None

    def __post_init__(self):
        if self.zoom_scale <= 0:
            raise ValueError(f"Viewport.zoom_scale must be positive, got {self.zoom_scale}")

    @property
    def zoom_level(self) -> float:
        return zoom_level_for_scale(self.zoom_scale)


def _always_cluster(point: Point) -> bool:
    return True


def _no_cell_size(zoom_level: float) -> Optional[float]:
    return None


@dataclass
class ClusterPolicy:
    """Host policy hooks; each field is an independent callable with a default."""
    should_cluster: Callable[[Point], bool] = _always_cluster
    cell_size: Callable[[float], Optional[float]] = _no_cell_size
