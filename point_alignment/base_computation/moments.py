"""
Statistics on point clouds: centroids, covariance, principal components and third-order moments.
"""

import math

import numpy as np
import numpy.typing as npt


class EmptyPointCloudError(ValueError):
    """Raised when an operation needs at least one point."""


def check_point_cloud(points: npt.NDArray[np.float64], name: str = "point cloud") -> None:
    """
    Checks that points is a non-empty (N, 3) array.
    """
    if points.ndim != 2 or points.shape[1] != 3:
        raise ValueError(f"The {name} must be an (N, 3) array, got shape {points.shape}.")
    if points.shape[0] == 0:
        raise EmptyPointCloudError(f"The {name} contains no points.")


def running_sum(values: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """
    Column-wise sum with compensated summation to avoid the loss of precision of naive accumulation on large clouds.
    """
    return np.array([math.fsum(column) for column in np.asarray(values).T])


def centroid(points: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """
    Computes the component-wise mean position of a point cloud.
    """
    check_point_cloud(points)
    return running_sum(points) / points.shape[0]


def covariance_matrix(
    points: npt.NDArray[np.float64], center: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    centered_points = points - center
    return centered_points.T @ centered_points


def principal_components(
    points: npt.NDArray[np.float64], center: npt.NDArray[np.float64]
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Eigen-decomposes the covariance matrix of the centered points.

    Returns:
        The eigenvalues in ascending order and the associated unit eigenvectors stored as columns.
    """
    eigenvalues, eigenvectors = np.linalg.eigh(covariance_matrix(points, center))
    return eigenvalues, eigenvectors / np.linalg.norm(eigenvectors, axis=0)


def third_moments(
    points: npt.NDArray[np.float64],
    center: npt.NDArray[np.float64],
    axes: npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    """
    Sums the cubed signed projections of the centered points on each axis (stored as columns).
    """
    return running_sum(((points - center) @ axes) ** 3)


def reorient_components(
    points: npt.NDArray[np.float64],
    center: npt.NDArray[np.float64],
    axes: npt.NDArray[np.float64],
    relative_tolerance: float = 1e-9,
) -> npt.NDArray[np.float64]:
    """
    Flips the axes along which the distribution is negatively skewed.
    The first moment is eliminated by the centering and the second one cannot tell a direction from its opposite,
    hence the use of the third one.

    Args:
        points: The point cloud.
        center: Its centroid.
        axes: The principal axes stored as columns.
        relative_tolerance: Moments smaller than this fraction of the largest sum of absolute cubed projections are
            considered null, and the corresponding axes are kept as they are.

    Returns:
        The reoriented axes.
    """
    projections = (points - center) @ axes
    moments = third_moments(points, center, axes)
    magnitudes = running_sum(np.abs(projections) ** 3)
    signs = np.where(moments < -relative_tolerance * magnitudes.max(), -1.0, 1.0)
    return axes * signs
