"""
save_results.py – writes partition reports to disk.

One row per displayed item: protected points, singleton points and cluster representatives,
with the bucket they landed in, their position and (for clusters) the member ids.  JSON reports
also carry a summary block and any recorded time measurements.
"""

import json
from datetime import datetime
from pathlib import Path

import numpy as np
import pandas as pd

from mapcluster.core_types import Coordinate, PartitionResult
from mapcluster.utils.logging import MapclusterLogger
from mapcluster.utils.time_measurement import TimeMeasurement

logger = MapclusterLogger.get_logger(__name__)

REPORT_FORMATS = ("json", "csv")


def partition_to_dataframe(result: PartitionResult, position=None) -> pd.DataFrame:
    """Flatten ``result`` into a report table."""
    rows = []
    for bucket, points in (("protected", result.protected), ("singleton", result.singletons)):
        for point in points:
            rows.append(
                {
                    "Item_Type": bucket,
                    "Item_ID": point.point_id,
                    "Latitude": point.latitude,
                    "Longitude": point.longitude,
                    "Size": 1,
                    "Members": point.point_id,
                }
            )

    for group in result.clusters:
        if position is not None:
            coordinate: Coordinate = position(group.members)
        else:
            coordinate = group.centroid()
        rows.append(
            {
                "Item_Type": "cluster",
                "Item_ID": f"cluster-{group.group_id}",
                "Latitude": coordinate.latitude,
                "Longitude": coordinate.longitude,
                "Size": len(group),
                "Members": ";".join(p.point_id for p in group.members),
            }
        )

    columns = ["Item_Type", "Item_ID", "Latitude", "Longitude", "Size", "Members"]
    return pd.DataFrame(rows, columns=columns)


def summarize_partition(result: PartitionResult) -> dict:
    return {
        "Total Points": result.point_count,
        "Protected Points": len(result.protected),
        "Singleton Points": len(result.singletons),
        "Clusters": len(result.clusters),
        "Clustered Points": result.clustered_point_count,
        "Largest Cluster": max((len(g) for g in result.clusters), default=0),
    }


def save_partition_results(
    result: PartitionResult,
    filename: str | Path | None = None,
    format: str = "json",
    results_dir: str | Path = "results",
    position=None,
    time_measurements: list[TimeMeasurement] | None = None,
) -> Path:
    """Save a partition report (JSON or CSV) and return the written path."""
    if format not in REPORT_FORMATS:
        raise ValueError(f"Unsupported report format '{format}'. Choose one of {REPORT_FORMATS}")

    if filename is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_filename = Path(results_dir) / f"partition_results_{timestamp}.{format}"
    else:
        output_filename = Path(filename)

    output_filename.parent.mkdir(parents=True, exist_ok=True)

    items_df = partition_to_dataframe(result, position)
    if format == "csv":
        items_df.to_csv(output_filename, index=False)
    else:
        data = {
            "Summary": summarize_partition(result),
            "Items": items_df.to_dict(orient="records"),
        }
        if time_measurements:
            data["Time Measurements"] = [
                {"span_name": m.span_name, "wall_time": m.wall_time}
                for m in time_measurements
            ]
        _write_to_json(output_filename, data)

    logger.debug(f"Partition report written to {output_filename}")
    return output_filename


def _write_to_json(filename: Path, data: dict) -> None:
    """Write a report dict to JSON, converting numpy scalars."""

    class NumpyEncoder(json.JSONEncoder):
        def default(self, obj):
            if isinstance(obj, np.integer):
                return int(obj)
            if isinstance(obj, np.floating):
                return float(obj)
            if isinstance(obj, np.ndarray):
                return obj.tolist()
            return super().default(obj)

    with open(filename, "w") as f:
        json.dump(data, f, cls=NumpyEncoder, indent=2)

