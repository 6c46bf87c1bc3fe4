import numpy as np
import pytest

from pycloud.errors import InvalidParameterError
from pycloud.geometry import Plane, distance_to_plane, fit_plane_to_points, normalize


def test_plane_normalizes_coefficients():
    plane = Plane([0, 0, 2], -4)
    assert plane.coefficients == pytest.approx((0.0, 0.0, 1.0, -2.0))
    assert plane.distance((5, 5, 3)) == pytest.approx(1.0)
    assert distance_to_plane((0, 0, 0), plane) == pytest.approx(2.0)


def test_plane_distances_vectorized():
    plane = Plane([1, 0, 0], 0)
    np.testing.assert_allclose(plane.distances(np.array([[1, 0, 0], [-3, 2, 2]])), [1.0, 3.0])


def test_zero_normal_is_rejected():
    with pytest.raises(InvalidParameterError):
        Plane([0, 0, 0], 1.0)


def test_normalize():
    np.testing.assert_allclose(normalize([3, 0, 4]), [0.6, 0.0, 0.8])
    assert normalize([0, 0, 0]) is None
    assert normalize([1e-9, 0, 0]) is None
    assert normalize([1e-9, 0, 0], epsilon=1e-12) is not None


def test_fit_plane_to_points():
    plane = fit_plane_to_points((0, 0, 1), (1, 0, 1), (0, 1, 1))
    assert plane.distance((0.3, 0.7, 1.0)) == pytest.approx(0.0)
    assert abs(plane.normal[2]) == pytest.approx(1.0)
    assert fit_plane_to_points((0, 0, 0), (1, 1, 1), (2, 2, 2)) is None
