from .centroid import align_via_centroid
from .cpd import (
    CpdResult,
    CpdState,
    align_via_rigid_cpd,
    aligned_point_set,
    e_step,
    init_sigma_squared,
    m_step,
    outlier_constant,
    weighted_means,
)
from .principal_axes import align_via_pca, oriented_principal_axes

__all__ = [
    "align_via_centroid",
    "align_via_pca",
    "oriented_principal_axes",
    "align_via_rigid_cpd",
    "CpdState",
    "CpdResult",
    "init_sigma_squared",
    "aligned_point_set",
    "outlier_constant",
    "e_step",
    "weighted_means",
    "m_step",
]
