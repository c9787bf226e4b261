"""
Alignment of the principal axes of two point clouds.
"""

import logging

import numpy as np
import numpy.typing as npt

from point_alignment.base_computation import (
    AffineTransform,
    centroid,
    principal_components,
    reorient_components,
)


def oriented_principal_axes(
    points: npt.NDArray[np.float64], center: npt.NDArray[np.float64]
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Computes the principal axes of a point cloud (columns, ascending variance) with a sign fixed by the skewness of
    the distribution along each of them.

    Returns:
        The eigenvalues and the reoriented axes.
    """
    eigenvalues, axes = principal_components(points, center)
    reoriented_axes = reorient_components(points, center, axes)
    with np.printoptions(suppress=True, precision=6):
        logging.debug(f"    centroid             : {center}")
        logging.debug(f"    variances            : {eigenvalues}")
        for index in range(3):
            logging.debug(f"    pcomp_{index + 1}              : {axes[:, index]}")
            logging.debug(
                f"    reoriented_pcomp_{index + 1}   : {reoriented_axes[:, index]}"
            )
    return eigenvalues, reoriented_axes


def align_via_pca(
    moving: npt.NDArray[np.float64],
    stationary: npt.NDArray[np.float64],
    force_proper_rotation: bool = False,
) -> AffineTransform | None:
    """
    Finds the rigid transformation that makes the principal axes of the moving point cloud coincide with those of
    the stationary one, each point cloud being rotated around its own centroid.
    Only identifies the transformation, the point clouds are left untouched.

    The point clouds should not be rotationally symmetric: equal variances along several directions make the
    principal axes ill-defined.

    If the orthonormal matrices S and M hold the reoriented axes of the stationary and moving point clouds as columns,
    the linear part A solves S = AM, hence A = SM^T. Applying A around the centroids gives A(x - c_m) + c_s, which
    is Ax + b with b = c_s - Ac_m.

    Args:
        moving: (N, 3) point cloud to transform.
        stationary: (M, 3) reference point cloud.
        force_proper_rotation: If the axes can only be matched by a reflection, flips the axis of least variance of
            the moving point cloud so that det(A) = 1. Reflections are returned as they are otherwise.

    Returns:
        The transformation, or None if one of the point clouds is empty.
    """
    if moving.shape[0] == 0 or stationary.shape[0] == 0:
        logging.warning("Cannot run PCA on an empty point cloud.")
        return None

    centroid_stationary = centroid(stationary)
    centroid_moving = centroid(moving)

    logging.debug("Stationary point cloud:")
    _, stationary_axes = oriented_principal_axes(stationary, centroid_stationary)
    logging.debug("Moving point cloud:")
    _, moving_axes = oriented_principal_axes(moving, centroid_moving)

    linear = stationary_axes @ moving_axes.T
    if np.linalg.det(linear) < 0:
        if force_proper_rotation:
            logging.info(
                "Principal axes related by a reflection, flipping the axis of least variance."
            )
            moving_axes[:, 0] *= -1
            linear = stationary_axes @ moving_axes.T
        else:
            logging.warning(
                "The transformation found by PCA is a reflection (negative determinant)."
            )

    transform = AffineTransform(linear, centroid_stationary - linear @ centroid_moving)
    logging.info(f"Transformation found by PCA:\n{transform}")

    return transform
