"""Configuration module for mapcluster parameters."""

# Structured parameter system
from .params import (
    ClusteringParams,
    DisplayParams,
    MapclusterParams,
)
from .loader import load_yaml as load_mapcluster_params

__all__ = [
    "ClusteringParams",
    "DisplayParams",
    "MapclusterParams",
    "load_mapcluster_params",
]
