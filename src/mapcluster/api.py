"""
API facade for mapcluster - one-shot clustering of a point table for a single view.
"""

from pathlib import Path

import pandas as pd

from mapcluster.config import load_mapcluster_params
from mapcluster.config.params import MapclusterParams
from mapcluster.core_types import ClusterPolicy, PartitionResult, Point, Viewport
from mapcluster.manager import ClusterManager
from mapcluster.utils.data_processing import (
    load_points,
    normalize_point_columns,
    policy_from_dataframe,
)
from mapcluster.utils.logging import MapclusterLogger

logger = MapclusterLogger.get_logger("mapcluster.api")


def _resolve_params(config: str | Path | MapclusterParams | None) -> MapclusterParams:
    if config is None:
        return load_mapcluster_params()
    if isinstance(config, MapclusterParams):
        return config

    config_path = Path(config)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n"
            f"Please check the file path and ensure it exists."
        )
    return load_mapcluster_params(config_path)


def _resolve_points(
    points: str | Path | pd.DataFrame | list[Point],
    policy: ClusterPolicy | None,
) -> tuple[list[Point], ClusterPolicy]:
    if isinstance(points, (str, Path)):
        df = load_points(points)
    elif isinstance(points, pd.DataFrame):
        df = normalize_point_columns(points.copy())
    else:
        return list(points), policy or ClusterPolicy()

    logger.info(f"Loaded {len(df)} points")
    return Point.from_dataframe(df), policy or policy_from_dataframe(df)


def cluster_points(
    points: str | Path | pd.DataFrame | list[Point],
    viewport: Viewport,
    config: str | Path | MapclusterParams | None = None,
    policy: ClusterPolicy | None = None,
) -> PartitionResult:
    """
    Partition a set of points for one view.

    Args:
        points: Points to cluster - can be:
            - Path to a CSV file (``Point_ID``/``Latitude``/``Longitude`` or common aliases)
            - Pandas DataFrame with the same columns
            - A list of ``Point`` objects
        viewport: The view to compute (zoom scale, bounds, optional centre).
        config: Path to a YAML configuration file, a ``MapclusterParams`` object, or None
            for the packaged defaults.
        policy: Host policy; defaults to honouring a ``Clusterable`` column when present.

    Returns:
        PartitionResult: protected points, singleton points and cluster groups.

    Raises:
        FileNotFoundError: If the points file or config file doesn't exist
        ValueError: If the points table or configuration is invalid

    Example:
        >>> from mapcluster import Viewport, cluster_points
        >>> result = cluster_points("points.csv", Viewport(zoom_scale=0.01))
        >>> print(f"{len(result.clusters)} clusters")
    """
    params = _resolve_params(config)
    point_list, policy = _resolve_points(points, policy)

    with ClusterManager(params=params, policy=policy) as manager:
        manager.add_many(point_list)
        result = manager.partition(viewport)

    logger.info(
        f"Partitioned {result.point_count} points into {len(result.clusters)} clusters"
    )
    return result
