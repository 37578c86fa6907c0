"""
Command-line interface for mapcluster using Typer.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from mapcluster import __version__
from mapcluster.config import MapclusterParams, load_mapcluster_params
from mapcluster.core_types import Coordinate, MapRect, Point, Viewport
from mapcluster.manager import ClusterManager
from mapcluster.registry import get_position_strategy
from mapcluster.utils.data_processing import load_points, policy_from_dataframe
from mapcluster.utils.logging import (
    LogLevel,
    ProgressTracker,
    log_error,
    log_progress,
    log_success,
    setup_logging,
)
from mapcluster.utils.save_results import REPORT_FORMATS, save_partition_results
from mapcluster.utils.time_measurement import TimeRecorder

app = typer.Typer(
    help="mapcluster: incremental point clustering for map views",
    add_completion=False,
)
console = Console()


def _parse_floats(raw: str, count: int, name: str) -> list[float]:
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != count:
        raise ValueError(f"{name} expects {count} comma-separated numbers, got '{raw}'")
    try:
        return [float(p) for p in parts]
    except ValueError:
        raise ValueError(f"{name} expects numbers, got '{raw}'")


def _parse_center(raw: str | None) -> Coordinate | None:
    """Parse ``LAT,LON``."""
    if raw is None:
        return None
    latitude, longitude = _parse_floats(raw, 2, "--center")
    return Coordinate(latitude, longitude)


def _parse_bounds(raw: str | None) -> MapRect:
    """Parse ``SOUTH,WEST,NORTH,EAST``; the whole world when omitted."""
    if raw is None:
        return MapRect.world()
    south, west, north, east = _parse_floats(raw, 4, "--bounds")
    if south > north:
        raise ValueError("--bounds south edge must not exceed the north edge")
    return MapRect(south=south, west=west, north=north, east=east)


@app.command()
def cluster(
    points: Path = typer.Option(
        ..., "--points", "-p", help="Path to points CSV file"
    ),
    zoom_scale: float = typer.Option(
        ..., "--zoom-scale", "-z", help="Zoom scale of the view (larger = more zoomed in)"
    ),
    center: str | None = typer.Option(
        None, "--center", help="View centre as LAT,LON (orders the clustering walk)"
    ),
    bounds: str | None = typer.Option(
        None, "--bounds", help="Visible region as SOUTH,WEST,NORTH,EAST"
    ),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to configuration YAML file"
    ),
    output: Path = typer.Option("results", "--output", "-o", help="Output directory"),
    format: str = typer.Option(
        "json", "--format", "-f", help="Report format (json, csv)"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose output"
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Minimal output (errors only)"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug output"),
) -> None:
    """
    Cluster a point table for one map view.

    Loads the points, runs a single clustering pass for the requested zoom scale and
    writes a report of the protected points, singletons and clusters.
    """
    _setup_logging_from_flags(verbose, quiet, debug)

    # -----------------------------
    # Validate CLI inputs first
    # -----------------------------
    if not points.exists():
        log_error(f"Points file not found: {points}")
        raise typer.Exit(1)

    if config and not config.exists():
        log_error(f"Config file not found: {config}")
        raise typer.Exit(1)

    if format not in REPORT_FORMATS:
        log_error("Invalid format. Choose 'json' or 'csv'")
        raise typer.Exit(1)

    try:
        viewport = Viewport(
            zoom_scale=zoom_scale,
            bounds=_parse_bounds(bounds),
            center=_parse_center(center),
        )
        params = load_mapcluster_params(config) if config else load_mapcluster_params()
    except ValueError as e:
        log_error(str(e))
        raise typer.Exit(1)

    log_progress(f"Clustering {points.name} at zoom level {viewport.zoom_level:g}...")
    progress = ProgressTracker(["Load Points", "Cluster Points", "Save Report"])
    try:
        result, time_recorder = _run_cluster(points, viewport, params, progress)
    except FileNotFoundError as e:
        log_error(str(e))
        raise typer.Exit(1)
    except ValueError as e:
        log_error(str(e))
        raise typer.Exit(1)
    except Exception as e:
        log_error(f"Unexpected error: {e}")
        if debug:
            console.print_exception()
        raise typer.Exit(1)

    position = get_position_strategy(params.clustering.cluster_position)
    try:
        report = save_partition_results(
            result,
            format=format,
            results_dir=output,
            position=position.position,
            time_measurements=time_recorder.measurements,
        )
    except OSError as e:
        log_error(f"Could not write report to {output}: {e}")
        raise typer.Exit(1)
    progress.advance(f"Report saved to {report.name}")
    progress.close()

    if not quiet:
        table = Table(title="Clustering Results", show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Points", str(result.point_count))
        table.add_row("Zoom Level", f"{viewport.zoom_level:g}")
        table.add_row("Protected", str(len(result.protected)))
        table.add_row("Singletons", str(len(result.singletons)))
        table.add_row("Clusters", str(len(result.clusters)))
        table.add_row("Clustered Points", str(result.clustered_point_count))

        console.print(table)
    log_success(f"Results saved to {report}")


def _run_cluster(
    points_path: Path,
    viewport: Viewport,
    params: MapclusterParams,
    progress: ProgressTracker,
):
    time_recorder = TimeRecorder()

    with time_recorder.measure("load_points"):
        df = load_points(points_path)
        point_list = Point.from_dataframe(df)
    progress.advance(f"Loaded {len(point_list)} points")

    with ClusterManager(params=params, policy=policy_from_dataframe(df)) as manager:
        manager.add_many(point_list)
        with time_recorder.measure("partition"):
            result = manager.partition(viewport)
    progress.advance(
        f"Found {len(result.clusters)} clusters at zoom level {viewport.zoom_level:g}"
    )

    return result, time_recorder


@app.command()
def version() -> None:
    """
    Show the mapcluster version.
    """
    console.print(f"mapcluster version {__version__}")


def _setup_logging_from_flags(
    verbose: bool = False, quiet: bool = False, debug: bool = False
):
    """Setup logging based on CLI flags or environment variable."""
    level_from_flags: LogLevel | None = None
    if debug:
        level_from_flags = LogLevel.DEBUG
    elif verbose:
        level_from_flags = LogLevel.VERBOSE
    elif quiet:
        level_from_flags = LogLevel.QUIET

    if level_from_flags is not None:
        setup_logging(level_from_flags)
    else:
        # No flags set, let setup_logging handle it (will check env var)
        setup_logging()


if __name__ == "__main__":
    app()
