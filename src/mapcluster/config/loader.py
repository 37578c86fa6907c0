from __future__ import annotations

"""Utilities for loading mapcluster configuration YAML files into the
parameter dataclass hierarchy.

Expected layout::

    clustering:
      min_count_for_clustering: 2
      distance_scale: 10.0
      detail_distance_scale: null
      detail_zoom_level: 16
      max_zoom_level: 20
      cluster_position: average
      distance_metric: haversine
      identity: identifier
    display:
      retain_offscreen: true
      reload_on_change: true

Both sections are optional; omitted keys take the dataclass defaults.
"""

from dataclasses import fields
from pathlib import Path
from typing import Any, Dict

import yaml

from mapcluster.utils.logging import MapclusterLogger

from .params import ClusteringParams, DisplayParams, MapclusterParams

logger = MapclusterLogger.get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default_config.yaml"

# ---------------------------------------------------------------------------
# Helper parsing routines
# ---------------------------------------------------------------------------


def _parse_section(raw: Any, cls, section: str):
    """Build dataclass ``cls`` from mapping ``raw``, rejecting unknown keys."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"YAML section '{section}' must be a mapping.")

    known = {f.name for f in fields(cls)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(
            f"Unknown keys in YAML section '{section}': {', '.join(sorted(unknown))}"
        )
    return cls(**raw)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_yaml(path: str | Path | None = None) -> MapclusterParams:
    """Load YAML configuration file into `MapclusterParams`.

    With no path the packaged ``default_config.yaml`` is used.
    """

    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        raise FileNotFoundError(cfg_path)

    try:
        with cfg_path.open() as f:
            data: Dict[str, Any] = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(
            f"Error parsing YAML configuration {cfg_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"YAML configuration {cfg_path} must be a mapping.")

    clustering = _parse_section(data.pop("clustering", {}), ClusteringParams, "clustering")
    display = _parse_section(data.pop("display", {}), DisplayParams, "display")

    # Any remaining unknown keys will raise an error to avoid silent mistakes.
    if data:
        unknown_keys = ", ".join(sorted(data.keys()))
        raise ValueError(
            f"Unknown top-level configuration keys in YAML: {unknown_keys}"
        )

    logger.debug(
        "Loaded configuration – clustering: %s display: %s",
        clustering,
        display,
    )

    return MapclusterParams(clustering=clustering, display=display)
