import numpy as np
import pytest

from point_alignment.base_computation import (
    EmptyPointCloudError,
    centroid,
    principal_components,
    reorient_components,
    running_sum,
    third_moments,
)


def test_running_sum_is_compensated():
    values = np.array([[1e16, 0.0, 0.0], [1.0, 0.0, 0.0], [-1e16, 0.0, 0.0]])
    np.testing.assert_array_equal(running_sum(values), [1.0, 0.0, 0.0])


def test_centroid():
    points = np.array([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0], [0.0, 2.0, 0.0]])
    np.testing.assert_allclose(centroid(points), [2 / 3, 2 / 3, 0.0])


def test_centroid_of_empty_cloud():
    with pytest.raises(EmptyPointCloudError):
        centroid(np.empty((0, 3)))


def test_centroid_rejects_wrong_shape():
    with pytest.raises(ValueError):
        centroid(np.zeros((4, 2)))


def test_principal_components_are_orthonormal_and_ascending(skewed_cloud):
    eigenvalues, axes = principal_components(skewed_cloud, centroid(skewed_cloud))
    assert np.all(np.diff(eigenvalues) >= 0)
    np.testing.assert_allclose(axes.T @ axes, np.eye(3), atol=1e-12)


def test_reoriented_components_have_positive_skew(skewed_cloud):
    center = centroid(skewed_cloud)
    _, axes = principal_components(skewed_cloud, center)
    reoriented = reorient_components(skewed_cloud, center, -axes)
    assert np.all(third_moments(skewed_cloud, center, reoriented) > 0)
    np.testing.assert_allclose(np.abs(reoriented), np.abs(axes))
