"""
geo.py

Distance and zoom helpers shared by the neighbour cache and the partitioner.

Distances come from scikit-learn's pairwise kernels so the whole neighbour table is built
from one vectorised matrix:

* ``haversine`` – great-circle distance in meters (default).
* ``euclidean`` – planar distance in raw degrees, handy for tests and small synthetic grids.

The distance threshold must be expressed in the same unit as the chosen metric.
"""

import math

import numpy as np
from sklearn.metrics import pairwise_distances
from sklearn.metrics.pairwise import haversine_distances

EARTH_RADIUS_METERS = 6_371_008.8

# log2(world width in map points / 256-point tile), as used by web-mercator map kits
MAX_MAP_ZOOM_LEVEL = 20

DISTANCE_METRICS = ("haversine", "euclidean")


def zoom_level_for_scale(zoom_scale: float) -> float:
    """Convert a zoom scale (screen points per map point) to a discrete zoom level."""
    if zoom_scale <= 0:
        raise ValueError(f"zoom_scale must be positive, got {zoom_scale}")
    return max(0.0, MAX_MAP_ZOOM_LEVEL + math.floor(math.log2(zoom_scale) + 0.5))


def distance_threshold_for_scale(zoom_scale: float, distance_scale: float) -> float:
    """Merge distance for a view: ``(1 / zoom_scale) * distance_scale``."""
    if zoom_scale <= 0:
        raise ValueError(f"zoom_scale must be positive, got {zoom_scale}")
    return (1.0 / zoom_scale) * distance_scale


def as_coordinate_array(coordinates) -> np.ndarray:
    """Contiguous float64 ``(n, 2)`` array of ``(latitude, longitude)`` rows."""
    data = np.asarray(coordinates, dtype=np.float64).reshape(-1, 2)
    return np.ascontiguousarray(data)


def pairwise_distance_matrix(coordinates, metric: str = "haversine") -> np.ndarray:
    """Full ``(n, n)`` distance matrix between coordinates."""
    data = as_coordinate_array(coordinates)
    if len(data) == 0:
        return np.zeros((0, 0), dtype=np.float64)
    if metric == "haversine":
        return haversine_distances(np.radians(data)) * EARTH_RADIUS_METERS
    if metric == "euclidean":
        return pairwise_distances(data, metric="euclidean")
    raise ValueError(f"Unknown distance metric: {metric}")


def distances_from(coordinates, reference: tuple[float, float], metric: str = "haversine") -> np.ndarray:
    """Distance from every coordinate to a single reference coordinate."""
    data = as_coordinate_array(coordinates)
    if len(data) == 0:
        return np.zeros(0, dtype=np.float64)
    ref = as_coordinate_array([reference])
    if metric == "haversine":
        return haversine_distances(np.radians(data), np.radians(ref))[:, 0] * EARTH_RADIUS_METERS
    if metric == "euclidean":
        return pairwise_distances(data, ref, metric="euclidean")[:, 0]
    raise ValueError(f"Unknown distance metric: {metric}")


def mean_coordinate(coordinates) -> tuple[float, float]:
    """Arithmetic mean of latitudes and longitudes (no antimeridian handling)."""
    data = as_coordinate_array(coordinates)
    if len(data) == 0:
        raise ValueError("Cannot average an empty set of coordinates")
    latitude, longitude = data.mean(axis=0)
    return float(latitude), float(longitude)
