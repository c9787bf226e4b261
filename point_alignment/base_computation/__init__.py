from .affine_transform import AffineTransform, NonAffineTransformError
from .moments import (
    EmptyPointCloudError,
    centroid,
    check_point_cloud,
    covariance_matrix,
    principal_components,
    reorient_components,
    running_sum,
    third_moments,
)

__all__ = [
    "AffineTransform",
    "NonAffineTransformError",
    "EmptyPointCloudError",
    "check_point_cloud",
    "running_sum",
    "centroid",
    "covariance_matrix",
    "principal_components",
    "third_moments",
    "reorient_components",
]
