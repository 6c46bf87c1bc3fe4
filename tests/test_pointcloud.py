from collections import Counter

import numpy as np
import pytest

from pycloud.errors import OutOfBoundsError
from pycloud.metadata import Metadata
from pycloud.point import PointXYZ, PointXYZRGB, PointXYZRGBNormal
from pycloud.pointcloud import PointCloud


def test_new_cloud_is_empty():
    cloud = PointCloud()
    assert len(cloud) == 0
    assert cloud.is_empty()
    assert cloud.metadata.width == 0
    assert cloud.bounding_box() is None
    assert cloud.centroid() is None


def test_push_extend_remove_track_width():
    cloud = PointCloud()
    cloud.push(PointXYZ(1, 0, 0))
    cloud.extend([PointXYZ(2, 0, 0), PointXYZ(3, 0, 0)])
    assert len(cloud) == 3
    assert cloud.metadata.width == 3

    removed = cloud.remove(1)
    assert removed == PointXYZ(2, 0, 0)
    assert [p.x for p in cloud] == [1, 3]
    assert cloud.metadata.width == 2

    cloud.clear()
    assert cloud.is_empty()
    assert cloud.metadata.width == 0


def test_remove_out_of_bounds_leaves_cloud_unchanged(line_cloud):
    before = list(line_cloud)
    with pytest.raises(OutOfBoundsError) as excinfo:
        line_cloud.remove(10)
    assert excinfo.value.index == 10
    assert excinfo.value.length == 10
    assert list(line_cloud) == before
    with pytest.raises(IndexError):
        line_cloud.remove(-1)


def test_indexing(line_cloud):
    assert line_cloud[3] == PointXYZ(3.0, 0.0, 0.0)
    assert line_cloud.get(3) == PointXYZ(3.0, 0.0, 0.0)
    assert line_cloud.get(10) is None
    with pytest.raises(OutOfBoundsError):
        line_cloud[10]


def test_from_points_and_metadata_keeps_metadata():
    meta = Metadata.new_organized(2, 1).with_sensor_origin((0, 0, 5))
    cloud = PointCloud.from_points_and_metadata([PointXYZ(), PointXYZ(1, 1, 1)], meta)
    assert cloud.metadata.is_organized
    assert cloud.metadata.sensor_origin == (0.0, 0.0, 5.0)


def test_filter_returns_new_cloud(line_cloud):
    evens = line_cloud.filter(lambda p: int(p.x) % 2 == 0)
    assert len(evens) == 5
    assert evens.metadata.width == 5
    assert len(line_cloud) == 10


def test_filter_keeping_everything_preserves_length_and_multiset(rng):
    # Duplicates make the multiset check meaningful
    positions = np.vstack([rng.uniform(size=(3000, 3)), np.zeros((5, 3))])
    cloud = PointCloud.from_numpy(positions)
    kept = cloud.filter(lambda _: True)
    assert len(kept) == len(cloud)
    assert kept.metadata.width == len(cloud)
    assert Counter(kept.points) == Counter(cloud.points)


def test_filter_is_idempotent_as_multiset(random_cloud):
    predicate = lambda p: p.x + p.y < 1.0  # noqa: E731
    once = random_cloud.filter(predicate)
    twice = once.filter(predicate)
    assert Counter(once.points) == Counter(twice.points)
    assert Counter(once.points) == Counter(p for p in random_cloud if predicate(p))


def test_map_keeps_length(random_cloud):
    shifted = random_cloud.map(lambda p: p.with_position((p.x + 1, p.y, p.z)))
    assert len(shifted) == len(random_cloud)
    np.testing.assert_allclose(shifted.to_numpy()[:, 0], random_cloud.to_numpy()[:, 0] + 1)


def test_bounding_box_and_centroid(random_cloud, random_positions):
    lo, hi = random_cloud.bounding_box()
    np.testing.assert_allclose(lo, random_positions.min(axis=0))
    np.testing.assert_allclose(hi, random_positions.max(axis=0))
    np.testing.assert_allclose(random_cloud.centroid(), random_positions.mean(axis=0))


def test_crop_is_inclusive(line_cloud):
    cropped = line_cloud.crop((2, -1, -1), (5, 1, 1))
    assert sorted(p.x for p in cropped) == [2.0, 3.0, 4.0, 5.0]


def test_numpy_round_trip_with_colors_and_normals():
    positions = np.array([[0.0, 0.0, 0.0], [1.0, 2.0, 3.0]])
    colors = np.array([[1.0, 0.0, 0.5], [0.0, 1.0, 0.0]])
    normals = np.array([[0.0, 0.0, 1.0], [1.0, 0.0, 0.0]])

    plain = PointCloud.from_numpy(positions)
    assert isinstance(plain[0], PointXYZ)
    assert plain.colors_numpy() is None
    assert plain.normals_numpy() is None

    colored = PointCloud.from_numpy(positions, colors=colors)
    assert isinstance(colored[0], PointXYZRGB)
    assert (colored[0].r, colored[0].g, colored[0].b) == (255, 0, 128)

    full = PointCloud.from_numpy(positions, colors=colors, normals=normals)
    assert isinstance(full[0], PointXYZRGBNormal)
    np.testing.assert_allclose(full.to_numpy(), positions)
    np.testing.assert_allclose(full.normals_numpy(), normals)
    np.testing.assert_allclose(full.colors_numpy(), colors, atol=1 / 255)


def test_copy_is_independent(line_cloud):
    clone = line_cloud.copy()
    clone.push(PointXYZ(100, 0, 0))
    assert len(line_cloud) == 10
    assert line_cloud.metadata.width == 10


def test_view_operations(line_cloud):
    view = line_cloud.view(2, 7)
    assert len(view) == 5
    assert view.get(0) == PointXYZ(2.0, 0.0, 0.0)
    assert view.get(5) is None
    assert view.bounding_box() == ((2.0, 0.0, 0.0), (6.0, 0.0, 0.0))
    assert view.centroid() == (4.0, 0.0, 0.0)
    assert view.count_where(lambda p: p.x > 4) == 2
    assert [p.x for p in view.filter_collect(lambda p: p.x < 4)] == [2.0, 3.0]
    assert view.map_collect(lambda p: p.x) == [2.0, 3.0, 4.0, 5.0, 6.0]

    index, point, distance = view.find_closest((4.4, 0.0, 0.0))
    assert index == 2
    assert point == PointXYZ(4.0, 0.0, 0.0)
    assert distance == pytest.approx(0.4)

    sub = view.slice(1, 3)
    assert [p.x for p in sub] == [3.0, 4.0]
    assert view.slice(3, 9) is None


def test_view_bounds_are_checked(line_cloud):
    with pytest.raises(OutOfBoundsError):
        line_cloud.view(0, 11)
    assert line_cloud.view(4, 4).find_closest((0, 0, 0)) is None


def test_large_cloud_goes_through_thread_pool(rng):
    positions = rng.uniform(size=(5000, 3))
    cloud = PointCloud.from_numpy(positions)
    np.testing.assert_allclose(cloud.centroid(), positions.mean(axis=0))
    assert len(cloud.filter(lambda p: p.z < 0.5)) == int((positions[:, 2] < 0.5).sum())
