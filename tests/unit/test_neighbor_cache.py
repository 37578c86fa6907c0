import pytest

from mapcluster.clustering.neighbors import NeighborCache
from mapcluster.core_types import Point, PointIdentity
from mapcluster.exceptions import PassCancelled


def _pt(point_id, lat, lon):
    return Point(point_id, lat, lon)


@pytest.fixture
def line_points():
    return [_pt("a", 0.0, 0.0), _pt("b", 0.0, 1.0), _pt("c", 0.0, 3.0)]


def test_neighbors_sorted_ascending_and_exclude_self(line_points):
    cache = NeighborCache("euclidean")
    assert cache.rebuild_if_dirty(line_points, version=1) is True

    neighbors = cache.neighbors_of(line_points[0])
    assert [e.point.point_id for e in neighbors] == ["b", "c"]
    assert [e.distance for e in neighbors] == pytest.approx([1.0, 3.0])

    middle = cache.neighbors_of(line_points[1])
    assert [e.point.point_id for e in middle] == ["a", "c"]
    assert [e.distance for e in middle] == pytest.approx([1.0, 2.0])


def test_equal_distances_keep_insertion_order():
    center = _pt("center", 0.0, 0.0)
    points = [center, _pt("n", 1.0, 0.0), _pt("e", 0.0, 1.0), _pt("s", -1.0, 0.0)]
    cache = NeighborCache("euclidean")
    cache.rebuild_if_dirty(points, version=1)
    assert [e.point.point_id for e in cache.neighbors_of(center)] == ["n", "e", "s"]


def test_unknown_point_has_no_neighbors(line_points):
    cache = NeighborCache("euclidean")
    cache.rebuild_if_dirty(line_points, version=1)
    assert cache.neighbors_of(_pt("ghost", 9.0, 9.0)) == []


def test_neighborhoods_cover_requested_points(line_points):
    cache = NeighborCache("euclidean")
    cache.rebuild_if_dirty(line_points, version=1)
    ghost = _pt("ghost", 9.0, 9.0)
    hoods = cache.neighborhoods([*line_points, ghost])
    assert [h.point.point_id for h in hoods] == ["a", "b", "c", "ghost"]
    assert hoods[-1].neighbors == []
    assert len(cache) == 3


def test_rebuild_skipped_when_version_unchanged(line_points):
    cache = NeighborCache("euclidean")
    assert cache.is_stale(1)
    assert cache.rebuild_if_dirty(line_points, version=1) is True
    assert not cache.is_stale(1)
    assert cache.rebuild_if_dirty(line_points, version=1) is False
    assert cache.rebuild_if_dirty(line_points[:2], version=2) is True
    assert cache.built_version == 2
    assert cache.neighbors_of(line_points[2]) == []


def test_invalidate_forces_rebuild(line_points):
    cache = NeighborCache("euclidean")
    cache.rebuild_if_dirty(line_points, version=1)
    cache.invalidate()
    assert cache.is_stale(1)
    assert cache.rebuild_if_dirty(line_points, version=1) is True


def test_cancelled_rebuild_keeps_previous_table(line_points):
    cache = NeighborCache("euclidean")
    cache.rebuild_if_dirty(line_points[:2], version=1)

    with pytest.raises(PassCancelled):
        cache.rebuild_if_dirty(line_points, version=2, cancel_check=lambda: True)

    assert cache.built_version == 1
    assert cache.is_stale(2)
    assert [e.point.point_id for e in cache.neighbors_of(line_points[0])] == ["b"]


def test_cancellation_just_before_commit_keeps_previous_table(line_points):
    cache = NeighborCache("euclidean")
    cache.rebuild_if_dirty(line_points[:2], version=1)

    # First poll happens inside the build, the second right before the swap
    answers = iter([False, True])
    with pytest.raises(PassCancelled):
        cache.rebuild_if_dirty(line_points, version=2, cancel_check=lambda: next(answers))

    assert cache.built_version == 1
    assert len(cache) == 2


def test_haversine_distances_are_meters():
    a, b = _pt("a", 0.0, 0.0), _pt("b", 0.0, 1.0)
    cache = NeighborCache("haversine")
    cache.rebuild_if_dirty([a, b], version=1)
    (entry,) = cache.neighbors_of(a)
    # One degree of longitude on the equator
    assert entry.distance == pytest.approx(111_195.08, rel=1e-6)


def test_coordinate_identity_lookup():
    cache = NeighborCache("euclidean", PointIdentity.COORDINATE)
    cache.rebuild_if_dirty([_pt("a", 0.0, 0.0), _pt("b", 0.0, 2.0)], version=1)
    # Any point at the same coordinate resolves to the same neighbourhood
    neighbors = cache.neighbors_of(_pt("other-id", 0.0, 0.0))
    assert [e.point.point_id for e in neighbors] == ["b"]


def test_empty_and_single_point_sets():
    cache = NeighborCache("haversine")
    assert cache.rebuild_if_dirty([], version=1) is True
    assert len(cache) == 0

    lone = _pt("lone", 10.0, 10.0)
    cache.rebuild_if_dirty([lone], version=2)
    assert cache.neighbors_of(lone) == []


def test_prepare_leaves_cache_untouched(line_points):
    cache = NeighborCache("euclidean")
    cache.rebuild_if_dirty(line_points[:2], version=1)

    table = cache.prepare(line_points, version=2)
    assert table.fresh and table.version == 2
    assert [h.point.point_id for h in table.neighborhoods(line_points)] == ["a", "b", "c"]
    assert [e.point.point_id for e in table.neighborhoods([line_points[2]])[0].neighbors] == ["b", "a"]

    # Nothing is published until the table is committed
    assert cache.built_version == 1
    assert cache.neighbors_of(line_points[2]) == []

    assert cache.commit(table) is True
    assert not cache.is_stale(2)
    assert len(cache) == 3


def test_prepare_reuses_current_table(line_points):
    cache = NeighborCache("euclidean")
    cache.rebuild_if_dirty(line_points, version=4)
    table = cache.prepare(line_points, version=4, cancel_check=lambda: True)
    assert not table.fresh
    assert len(table) == 3
    assert cache.commit(table) is False


def test_older_table_never_replaces_newer(line_points):
    cache = NeighborCache("euclidean")
    older = cache.prepare(line_points[:2], version=5)
    newer = cache.prepare(line_points, version=6)

    assert cache.commit(newer) is True
    assert cache.commit(older) is False
    assert cache.rebuild_if_dirty(line_points[:2], version=5) is False

    assert cache.built_version == 6
    assert [e.point.point_id for e in cache.neighbors_of(line_points[2])] == ["b", "a"]


def test_invalidate_does_not_allow_older_versions_back(line_points):
    cache = NeighborCache("euclidean")
    cache.rebuild_if_dirty(line_points, version=3)
    cache.invalidate()

    assert cache.commit(cache.prepare(line_points[:2], version=2)) is False
    assert cache.commit(cache.prepare(line_points, version=3)) is True
    assert cache.built_version == 3
