from .alignment import (
    CpdResult,
    CpdState,
    align_via_centroid,
    align_via_pca,
    align_via_rigid_cpd,
)
from .base_computation import (
    AffineTransform,
    EmptyPointCloudError,
    NonAffineTransformError,
    centroid,
)
from .configuration import AlignmentConfig, CpdParameters, load_config_from_yaml
from .helpers import checkpoint, read_point_cloud, write_point_cloud
from .pipeline import (
    AlignmentPipeline,
    PointCloud,
    align_points,
    parse_method,
    select_point_clouds,
)

__all__ = [
    "AffineTransform",
    "NonAffineTransformError",
    "EmptyPointCloudError",
    "centroid",
    "align_via_centroid",
    "align_via_pca",
    "align_via_rigid_cpd",
    "CpdState",
    "CpdResult",
    "AlignmentConfig",
    "CpdParameters",
    "load_config_from_yaml",
    "AlignmentPipeline",
    "PointCloud",
    "align_points",
    "parse_method",
    "select_point_clouds",
    "read_point_cloud",
    "write_point_cloud",
    "checkpoint",
]
