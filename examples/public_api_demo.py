"""
Demo of the mapcluster public API.

This example shows how to:
1. Cluster a point table once for a single view
2. Keep a live ClusterManager in sync with a renderer while points change
3. Work with the core types
"""

import pandas as pd

from mapcluster import (
    ClusterAnnotation,
    ClusterManager,
    MapclusterParams,
    Point,
    Viewport,
    cluster_points,
)


class PrintingRenderer:
    """Stands in for a map view: prints every delta it is asked to apply."""

    def display(self, to_add, to_remove):
        print(f"  +{len(to_add)} / -{len(to_remove)} markers")
        for item in to_add:
            if isinstance(item, ClusterAnnotation):
                print(f"    cluster of {item.size} at {item.coordinate.as_tuple()}")
            else:
                print(f"    point {item.point_id}")


def main():
    # Example 1: one-shot clustering of a DataFrame
    print("=== Example 1: One-shot clustering ===")

    shops = pd.DataFrame({
        'id': ['S1', 'S2', 'S3', 'S4', 'S5'],
        'lat': [40.7128, 40.7130, 40.7127, 40.7580, 34.0522],
        'lon': [-74.0060, -74.0058, -74.0062, -73.9855, -118.2437],
    })

    # zoom_scale 0.01 merges points within roughly a kilometre
    result = cluster_points(shops, Viewport(zoom_scale=0.01))
    print(f"Clusters: {len(result.clusters)}")
    print(f"Singletons: {[p.point_id for p in result.singletons]}")

    # Example 2: incremental clustering with a renderer
    print("\n=== Example 2: Live manager ===")

    points = Point.from_dataframe(shops.rename(
        columns={'id': 'Point_ID', 'lat': 'Latitude', 'lon': 'Longitude'}
    ))

    with ClusterManager(MapclusterParams(), renderer=PrintingRenderer()) as manager:
        manager.add_many(points)

        print("Wide view:")
        manager.reload(Viewport(zoom_scale=0.01), lambda done: print(f"  finished={done}"))
        manager.wait_idle()

        print("Zoomed in past the clustering limit:")
        manager.reload(Viewport(zoom_scale=4.0))
        manager.wait_idle()

        # Edits re-run the last requested view
        print("After removing S1:")
        manager.remove(points[0])
        manager.wait_idle()


if __name__ == "__main__":
    main()
