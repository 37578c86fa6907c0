"""Custom cluster position example for mapcluster.

Demonstrates how to register a user-defined marker position through the
`mapcluster.registry` decorator, then cluster a few points with it.

Run with:
    python examples/custom_position.py
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence

import mapcluster as mc
from mapcluster.config import load_mapcluster_params
from mapcluster.core_types import Coordinate, Point
from mapcluster.registry import register_position_strategy


@register_position_strategy("first_member")
class FirstMemberPosition:
    """Place the cluster marker on its first (seed) member instead of the average."""

    def position(self, members: Sequence[Point]) -> Coordinate:
        return members[0].coordinate


def main():
    params = load_mapcluster_params()
    params = dataclasses.replace(
        params,
        clustering=dataclasses.replace(params.clustering, cluster_position="first_member"),
    )

    points = [
        Point("depot", 51.5074, -0.1278),
        Point("north", 51.5080, -0.1278),
        Point("east", 51.5074, -0.1270),
    ]

    with mc.ClusterManager(params) as manager:
        manager.add_many(points)
        to_add, _ = manager.clustered_items(mc.Viewport(zoom_scale=0.01))

    for item in to_add:
        if isinstance(item, mc.ClusterAnnotation):
            print(f"Cluster of {item.size} drawn at {item.coordinate.as_tuple()}")


if __name__ == "__main__":
    main()
