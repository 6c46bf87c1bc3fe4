import math

import numpy as np
import pytest
from scipy.spatial import cKDTree

from pycloud.errors import InvalidParameterError
from pycloud.kdtree import KdTree
from pycloud.point import PointXYZ
from pycloud.pointcloud import PointCloud


def _points(coords):
    return [PointXYZ(*map(float, c)) for c in coords]


def test_nearest_neighbor_small_set():
    tree = KdTree.build(_points([(0, 0, 0), (1, 1, 1), (2, 2, 2)]))
    hit = tree.nearest_neighbor((0.1, 0.1, 0.1))
    assert hit.point == PointXYZ(0.0, 0.0, 0.0)
    assert hit.index == 0
    assert hit.distance_squared == pytest.approx(0.03)
    assert hit.distance == pytest.approx(math.sqrt(0.03))


def test_radius_search_small_set():
    tree = KdTree.build(_points([(0, 0, 0), (0.1, 0.1, 0.1), (10, 10, 10)]))
    hits = tree.radius_search((0, 0, 0), 1.0)
    assert sorted(h.index for h in hits) == [0, 1]


def test_empty_tree_answers_every_query():
    tree = KdTree.build([])
    assert tree.is_empty()
    assert len(tree) == 0
    assert tree.root is None
    assert tree.depth() == 0
    assert tree.nearest_neighbor((1, 2, 3)) is None
    assert tree.radius_search((1, 2, 3), 10.0) == []
    assert tree.k_nearest((1, 2, 3), 5) == []
    assert KdTree().nearest_neighbor((0, 0, 0)) is None


def test_single_point_tree():
    tree = KdTree.build([PointXYZ(1, 2, 3)])
    assert tree.nearest_neighbor((100, 100, 100)).point == PointXYZ(1, 2, 3)
    assert tree.depth() == 1


def test_split_invariant_holds_for_every_node(random_cloud):
    tree = KdTree.build(random_cloud)
    assert len(tree) == len(random_cloud)

    def subtree_positions(node):
        if node is None:
            return []
        return [node.position] + subtree_positions(node.left) + subtree_positions(node.right)

    for node in tree.nodes():
        axis = node.axis
        value = node.position[axis]
        assert all(p[axis] <= value for p in subtree_positions(node.left))
        assert all(p[axis] >= value for p in subtree_positions(node.right))


def test_axis_cycles_with_depth(random_cloud):
    tree = KdTree.build(random_cloud)
    stack = [(tree.root, 0)]
    while stack:
        node, depth = stack.pop()
        assert node.axis == depth % 3
        for child in (node.left, node.right):
            if child is not None:
                stack.append((child, depth + 1))


def test_tree_is_balanced(random_cloud):
    tree = KdTree.build(random_cloud)
    assert tree.depth() == math.floor(math.log2(len(random_cloud))) + 1


def test_every_input_index_stored_once(random_cloud):
    tree = KdTree.build(random_cloud)
    assert sorted(node.index for node in tree.nodes()) == list(range(len(random_cloud)))


def test_nearest_matches_brute_force(random_cloud, random_positions, query_positions, brute_distances):
    tree = KdTree.build(random_cloud)
    for query in query_positions:
        hit = tree.nearest_neighbor(query)
        assert hit.distance_squared == pytest.approx(brute_distances(random_positions, query).min())


def test_nearest_matches_scipy(random_cloud, random_positions, query_positions):
    tree = KdTree.build(random_cloud)
    reference = cKDTree(random_positions)
    distances, indices = reference.query(query_positions, k=1)
    for query, distance, index in zip(query_positions, distances, indices):
        hit = tree.nearest_neighbor(query)
        assert hit.distance == pytest.approx(distance)
        assert hit.index == index


def test_radius_search_matches_brute_force(random_cloud, random_positions, query_positions, brute_distances):
    tree = KdTree.build(random_cloud)
    for radius in (0.0, 0.05, 0.2, 0.5):
        for query in query_positions:
            expected = np.flatnonzero(brute_distances(random_positions, query) <= radius * radius)
            hits = tree.radius_search(query, radius)
            assert sorted(h.index for h in hits) == expected.tolist()
            assert all(h.distance_squared <= radius * radius for h in hits)


def test_radius_search_matches_scipy(random_cloud, random_positions, query_positions):
    tree = KdTree.build(random_cloud)
    reference = cKDTree(random_positions)
    for query in query_positions:
        expected = sorted(reference.query_ball_point(query, 0.15))
        assert sorted(h.index for h in tree.radius_search(query, 0.15)) == expected


def test_radius_zero_finds_exact_matches():
    tree = KdTree.build(_points([(1, 1, 1), (1, 1, 1), (2, 2, 2)]))
    assert sorted(h.index for h in tree.radius_search((1, 1, 1), 0.0)) == [0, 1]


def test_negative_radius_is_rejected(random_cloud):
    with pytest.raises(InvalidParameterError):
        KdTree.build(random_cloud).radius_search((0, 0, 0), -1.0)


def test_k_nearest_matches_brute_force(random_cloud, random_positions, query_positions, brute_distances):
    tree = KdTree.build(random_cloud)
    for k in (1, 5, 17):
        for query in query_positions:
            hits = tree.k_nearest(query, k)
            expected = np.sort(brute_distances(random_positions, query))[:k]
            assert len(hits) == k
            np.testing.assert_allclose([h.distance_squared for h in hits], expected)


def test_k_nearest_matches_scipy(random_cloud, random_positions, query_positions):
    tree = KdTree.build(random_cloud)
    reference = cKDTree(random_positions)
    distances, _ = reference.query(query_positions, k=8)
    for query, expected in zip(query_positions, distances):
        np.testing.assert_allclose([h.distance for h in tree.k_nearest(query, 8)], expected)


def test_k_nearest_is_sorted_and_capped(line_cloud):
    tree = KdTree.build(line_cloud)
    hits = tree.k_nearest((4.2, 0, 0), 3)
    assert [h.index for h in hits] == [4, 5, 3]
    assert len(tree.k_nearest((0, 0, 0), 50)) == 10
    assert tree.k_nearest((0, 0, 0), 0) == []
    with pytest.raises(InvalidParameterError):
        tree.k_nearest((0, 0, 0), -1)


def test_point_queries_accept_points(line_cloud):
    tree = line_cloud.build_kdtree()
    assert tree.nearest_neighbor(PointXYZ(7.1, 0, 0)).index == 7


def test_tree_survives_cloud_mutation(line_cloud):
    tree = KdTree.build(line_cloud)
    line_cloud.clear()
    assert len(tree) == 10
    assert tree.nearest_neighbor((9, 0, 0)).point == PointXYZ(9.0, 0.0, 0.0)


def test_duplicate_points():
    cloud = PointCloud.from_points([PointXYZ(0.5, 0.5, 0.5)] * 20)
    tree = KdTree.build(cloud)
    assert len(tree.radius_search((0.5, 0.5, 0.5), 0.0)) == 20
    assert tree.nearest_neighbor((0, 0, 0)).distance_squared == pytest.approx(0.75)
