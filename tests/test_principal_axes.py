import numpy as np

from point_alignment import align_via_pca

from .conftest import rotation_matrix


def test_translation_scenario():
    moving = np.array([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0], [0.0, 2.0, 0.0]])
    stationary = moving + 5.0
    transform = align_via_pca(moving, stationary)
    np.testing.assert_allclose(transform.linear, np.eye(3), atol=1e-9)
    np.testing.assert_allclose(transform.translation, [5.0, 5.0, 5.0], atol=1e-9)


def test_identical_clouds_give_identity(skewed_cloud):
    transform = align_via_pca(skewed_cloud, skewed_cloud.copy())
    np.testing.assert_allclose(transform.matrix, np.eye(4), atol=1e-10)


def test_rotation_about_z_of_l_shaped_cloud(l_shaped_cloud):
    rotation = rotation_matrix(90)
    stationary = l_shaped_cloud @ rotation.T + np.array([1.0, 0.0, 0.0])
    transform = align_via_pca(l_shaped_cloud, stationary)
    np.testing.assert_allclose(transform.linear, rotation, atol=1e-8)
    np.testing.assert_allclose(transform.translation, [1.0, 0.0, 0.0], atol=1e-8)
    np.testing.assert_allclose(transform[l_shaped_cloud], stationary, atol=1e-8)


def test_arbitrary_rigid_motion(skewed_cloud):
    rotation = rotation_matrix(130, axis=(1.0, -2.0, 0.5))
    translation = np.array([-3.0, 7.0, 2.0])
    stationary = skewed_cloud @ rotation.T + translation
    transform = align_via_pca(skewed_cloud, stationary)
    np.testing.assert_allclose(transform.linear, rotation, atol=1e-8)
    np.testing.assert_allclose(transform.translation, translation, atol=1e-8)


def test_reflection_is_returned_by_default(skewed_cloud):
    mirror = np.diag([-1.0, 1.0, 1.0])
    stationary = skewed_cloud @ mirror
    transform = align_via_pca(skewed_cloud, stationary)
    assert np.linalg.det(transform.linear) < 0
    np.testing.assert_allclose(transform.linear, mirror, atol=1e-8)
    np.testing.assert_allclose(transform[skewed_cloud], stationary, atol=1e-8)


def test_reflection_is_prevented_on_demand(skewed_cloud):
    stationary = skewed_cloud @ np.diag([-1.0, 1.0, 1.0])
    transform = align_via_pca(skewed_cloud, stationary, force_proper_rotation=True)
    np.testing.assert_allclose(np.linalg.det(transform.linear), 1.0, atol=1e-10)
    np.testing.assert_allclose(transform.linear.T @ transform.linear, np.eye(3), atol=1e-10)


def test_proper_rotation_is_unchanged_by_the_constraint(l_shaped_cloud):
    stationary = l_shaped_cloud @ rotation_matrix(90).T
    free = align_via_pca(l_shaped_cloud, stationary)
    constrained = align_via_pca(l_shaped_cloud, stationary, force_proper_rotation=True)
    np.testing.assert_allclose(free.matrix, constrained.matrix)


def test_empty_cloud_gives_no_transform(skewed_cloud):
    assert align_via_pca(np.empty((0, 3)), skewed_cloud) is None
