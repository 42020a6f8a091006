import numpy as np
import pytest

from fishsim import vector


def test_projection_on_plane_removes_normal_component():
    v = np.array([1.0, 2.0, 3.0])
    n = np.array([0.0, 0.0, 1.0])
    np.testing.assert_allclose(vector.projection_on_plane(v, n), [1.0, 2.0, 0.0])


def test_projection_on_vector_is_scalar_length():
    assert vector.projection_on_vector([3.0, 4.0, 0.0], [2.0, 0.0, 0.0]) == pytest.approx(3.0)


def test_angle_between_axes():
    assert vector.angle([1.0, 0.0, 0.0], [0.0, 1.0, 0.0]) == pytest.approx(90.0)
    assert vector.angle([1.0, 0.0, 0.0], [-2.0, 0.0, 0.0]) == pytest.approx(180.0)


def test_cos_angle_of_zero_vector_is_zero():
    assert vector.cos_angle([0.0, 0.0, 0.0], [1.0, 0.0, 0.0]) == 0.0


def test_normal_is_unit_and_right_handed():
    n = vector.normal([2.0, 0.0, 0.0], [0.0, 3.0, 0.0])
    np.testing.assert_allclose(n, [0.0, 0.0, 1.0])


def test_normal_of_parallel_vectors_is_zero():
    np.testing.assert_allclose(vector.normal([1.0, 0.0, 0.0], [2.0, 0.0, 0.0]), np.zeros(3))
