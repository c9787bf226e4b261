"""
Registration driver: selects the point clouds to align, dispatches them to the chosen aligner and applies the
resulting transformations to the moving point clouds.
"""

import logging
import re
from dataclasses import asdict, dataclass, field
from multiprocessing.pool import ThreadPool
from typing import Callable, Literal

import numpy as np
import numpy.typing as npt

from .alignment import (
    CpdResult,
    CpdState,
    align_via_centroid,
    align_via_pca,
    align_via_rigid_cpd,
)
from .base_computation import AffineTransform
from .configuration import CpdParameters, RegistrationConfig

Method = Literal["com", "pca", "cpd"]

METHOD_PATTERNS: list[tuple[re.Pattern, Method]] = [
    (re.compile(r"^co?m?$", re.IGNORECASE), "com"),
    (re.compile(r"^pc?a?$", re.IGNORECASE), "pca"),
    (re.compile(r"^(cpd|rigid)$", re.IGNORECASE), "cpd"),
]


@dataclass
class PointCloud:
    """A named (N, 3) array of points. The array is modified in place when the point cloud is aligned."""

    name: str
    points: npt.NDArray[np.float64]

    def __post_init__(self):
        self.points = np.asarray(self.points, dtype=np.float64)


def parse_method(method: str) -> Method:
    """
    Matches a method name in a case-insensitive way, prefixes being accepted ('c', 'co', 'p', 'pc', ...).

    Raises:
        ValueError: If the name matches none of the methods.
    """
    for pattern, name in METHOD_PATTERNS:
        if pattern.match(method.strip()):
            return name
    raise ValueError(
        f"Method '{method}' not understood. Options are 'com', 'pca' and 'cpd' (or 'rigid')."
    )


def select_point_clouds(
    point_clouds: list[PointCloud], selection: str
) -> list[PointCloud]:
    """
    Selects a subset of point clouds.

    Args:
        point_clouds: Every point cloud available.
        selection: 'none', 'first', 'last', 'all' or a regular expression that has to match the whole name of the
            point clouds (case-insensitive).

    Returns:
        The selected point clouds, in their original order.
    """
    keyword = selection.strip().lower()
    if keyword == "none":
        return []
    if keyword == "all":
        return list(point_clouds)
    if keyword == "first":
        return point_clouds[:1]
    if keyword == "last":
        return point_clouds[-1:]
    pattern = re.compile(selection, re.IGNORECASE)
    return [
        point_cloud
        for point_cloud in point_clouds
        if pattern.fullmatch(point_cloud.name) is not None
    ]


@dataclass
class AlignmentPipeline:
    """
    Aligns every selected moving point cloud to a single reference point cloud, which is never modified.
    Moving point clouds are independent from one another and can be aligned concurrently.
    """

    point_clouds: list[PointCloud]
    method: str = "com"
    moving_selection: str = "last"
    reference_selection: str = "last"
    force_proper_rotation: bool = False
    n_workers: int = 1
    cpd_parameters: CpdParameters = field(default_factory=CpdParameters)
    cpd_callback: Callable[[str, CpdState, npt.NDArray[np.float64]], None] | None = None

    transforms: dict[str, AffineTransform] = field(default_factory=dict)
    cpd_results: dict[str, CpdResult] = field(default_factory=dict)

    @classmethod
    def from_config(
        cls, point_clouds: list[PointCloud], config: RegistrationConfig, **kwargs
    ) -> "AlignmentPipeline":
        return cls(
            point_clouds=point_clouds,
            **asdict(config["alignment"]),
            cpd_parameters=config["cpd"],
            **kwargs,
        )

    def find_transform(
        self, moving: PointCloud, reference: PointCloud, method: Method
    ) -> AffineTransform | None:
        """
        Runs the aligner on a pair of point clouds without modifying them.
        """
        match method:
            case "com":
                return align_via_centroid(moving.points, reference.points)
            case "pca":
                return align_via_pca(
                    moving.points,
                    reference.points,
                    force_proper_rotation=self.force_proper_rotation,
                )
            case "cpd":
                callback = (
                    (lambda state, aligned: self.cpd_callback(moving.name, state, aligned))
                    if self.cpd_callback is not None
                    else None
                )
                result = align_via_rigid_cpd(
                    moving.points, reference.points, self.cpd_parameters, callback
                )
                self.cpd_results[moving.name] = result
                return result.transform

    def _align_one(
        self, moving: PointCloud, reference: PointCloud, method: Method
    ) -> AffineTransform | None:
        logging.info(
            f"-- Aligning '{moving.name}' ({moving.points.shape[0]} points) on '{reference.name}' "
            f"({reference.points.shape[0]} points) using {method.upper()} --"
        )
        transform = self.find_transform(moving, reference, method)
        if transform is None:
            logging.warning(f"No transformation found for '{moving.name}', leaving it untouched.")
            return None
        if not np.all(np.isfinite(transform.matrix)):
            logging.warning(
                f"The transformation found for '{moving.name}' is not finite, leaving it untouched."
            )
            return None
        transform.apply_to(moving.points)
        return transform

    def run(self) -> dict[str, AffineTransform]:
        """
        Aligns the moving point clouds in place.

        Returns:
            The transformation applied to each moving point cloud, by name.

        Raises:
            ValueError: If the method is not understood or if the reference selection does not match exactly one
                point cloud.
        """
        method = parse_method(self.method)
        references = select_point_clouds(self.point_clouds, self.reference_selection)
        if len(references) != 1:
            raise ValueError(
                f"A single reference point cloud must be selected, '{self.reference_selection}' matched "
                f"{len(references)}. Cannot continue."
            )
        reference = references[0]

        moving_point_clouds = []
        for point_cloud in select_point_clouds(self.point_clouds, self.moving_selection):
            if point_cloud is reference:
                logging.warning(
                    f"'{reference.name}' is the reference point cloud, it will not be moved."
                )
            else:
                moving_point_clouds.append(point_cloud)

        if self.n_workers > 1 and len(moving_point_clouds) > 1:
            with ThreadPool(processes=self.n_workers) as pool:
                transforms = pool.starmap(
                    self._align_one,
                    [(moving, reference, method) for moving in moving_point_clouds],
                )
        else:
            transforms = [
                self._align_one(moving, reference, method)
                for moving in moving_point_clouds
            ]

        for moving, transform in zip(moving_point_clouds, transforms):
            if transform is not None:
                self.transforms[moving.name] = transform
        return self.transforms


def align_points(
    point_clouds: list[PointCloud],
    method: str = "com",
    moving_selection: str = "last",
    reference_selection: str = "last",
    **kwargs,
) -> dict[str, AffineTransform]:
    """
    Aligns the selected moving point clouds on the reference point cloud in place.
    See AlignmentPipeline for the additional parameters.
    """
    return AlignmentPipeline(
        point_clouds=point_clouds,
        method=method,
        moving_selection=moving_selection,
        reference_selection=reference_selection,
        **kwargs,
    ).run()
