"""
Rotation-less alignment of the centres of mass of two point clouds.
"""

import logging

import numpy as np
import numpy.typing as npt

from point_alignment.base_computation import AffineTransform, centroid


def align_via_centroid(
    moving: npt.NDArray[np.float64], stationary: npt.NDArray[np.float64]
) -> AffineTransform | None:
    """
    Finds the translation that makes the centroid of the moving point cloud coincide with the stationary one.
    Only identifies the transformation, the point clouds are left untouched.

    Args:
        moving: (N, 3) point cloud to transform.
        stationary: (M, 3) reference point cloud.

    Returns:
        A transformation with an identity linear part, or None if one of the point clouds is empty.
    """
    if moving.shape[0] == 0 or stationary.shape[0] == 0:
        logging.warning("Cannot align the centroids of an empty point cloud.")
        return None

    return AffineTransform(translation=centroid(stationary) - centroid(moving))
