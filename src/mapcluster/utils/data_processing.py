"""Loading point tables from disk into the column layout ``Point.from_dataframe`` expects."""

from pathlib import Path

import pandas as pd

from mapcluster.core_types import ClusterPolicy, Point
from mapcluster.utils.logging import MapclusterLogger

logger = MapclusterLogger.get_logger(__name__)

REQUIRED_COLUMNS = ["Point_ID", "Latitude", "Longitude"]

# Lower-cased source column name -> canonical column name
COLUMN_ALIASES = {
    "point_id": "Point_ID",
    "id": "Point_ID",
    "clientid": "Point_ID",
    "name": "Point_ID",
    "latitude": "Latitude",
    "lat": "Latitude",
    "longitude": "Longitude",
    "lon": "Longitude",
    "lng": "Longitude",
    "long": "Longitude",
    "clusterable": "Clusterable",
}


def normalize_point_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename known column aliases and drop rows without a usable coordinate."""
    rename = {}
    for col in df.columns:
        canonical = COLUMN_ALIASES.get(str(col).strip().lower())
        if canonical is not None and canonical not in rename.values():
            rename[col] = canonical
    df = df.rename(columns=rename)

    if "Point_ID" not in df.columns:
        # Fall back to the row position as a stable identifier
        df = df.reset_index(drop=True)
        df.insert(0, "Point_ID", [str(i) for i in range(len(df))])

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(
            f"Missing required columns: {missing}\n"
            f"Available columns are: {list(df.columns)}"
        )

    df["Latitude"] = pd.to_numeric(df["Latitude"], errors="coerce")
    df["Longitude"] = pd.to_numeric(df["Longitude"], errors="coerce")

    before = len(df)
    df = df.dropna(subset=["Latitude", "Longitude"]).reset_index(drop=True)
    dropped = before - len(df)
    if dropped:
        logger.warning(f"Dropped {dropped} rows with missing coordinates")

    df["Point_ID"] = df["Point_ID"].astype(str)
    return df


def load_points(path: str | Path) -> pd.DataFrame:
    """Read a CSV of points and normalise it to ``Point_ID``/``Latitude``/``Longitude``."""
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Points file not found: {csv_path}")

    df = pd.read_csv(csv_path)
    df = normalize_point_columns(df)
    logger.debug(f"Loaded {len(df)} points from {csv_path}")
    return df


def _is_truthy(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ("false", "0", "no", "n", "")
    if pd.isna(value):
        return True
    return bool(value)


def clusterable_from_payload(point: Point) -> bool:
    """``should_cluster`` hook reading the optional ``Clusterable`` column."""
    if "clusterable" not in point.payload:
        return True
    return _is_truthy(point.payload["clusterable"])


def policy_from_dataframe(df: pd.DataFrame) -> ClusterPolicy:
    """Host policy honouring a ``Clusterable`` column when the table has one."""
    if "Clusterable" in df.columns:
        return ClusterPolicy(should_cluster=clusterable_from_payload)
    return ClusterPolicy()
