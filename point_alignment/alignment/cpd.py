"""
Rigid coherent point drift: the moving point cloud is considered as the centroids of a Gaussian mixture that generated
the stationary point cloud, with a uniform component accounting for noise and outliers. An EM algorithm alternates
between the computation of soft correspondences and the closed-form update of a rotation, an isotropic scale, a
translation and the variance of the mixture.

Notations: X is the stationary point cloud (N points), Y the moving one (M points), D = 3 the dimension and P the
(M, N) matrix of responsibilities.
"""

import logging
from contextlib import nullcontext
from dataclasses import dataclass, field, replace
from multiprocessing.pool import ThreadPool
from time import perf_counter
from typing import Callable

import numpy as np
import numpy.typing as npt
from scipy.spatial.distance import cdist
from tqdm import trange

from point_alignment.base_computation import AffineTransform, check_point_cloud
from point_alignment.configuration import CpdParameters

SIGMA_SQUARED_FLOOR = 1e-12


@dataclass
class CpdState:
    """Parameters estimated by the EM iterations."""

    rotation: npt.NDArray[np.float64] = field(default_factory=lambda: np.eye(3))
    scale: float = 1.0
    translation: npt.NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    sigma_squared: float = 1.0
    iteration: int = 0

    def to_transform(self) -> AffineTransform:
        return AffineTransform(self.scale * self.rotation, self.translation)

    def is_finite(self) -> bool:
        return bool(
            np.isfinite(self.scale)
            and np.isfinite(self.sigma_squared)
            and np.all(np.isfinite(self.rotation))
            and np.all(np.isfinite(self.translation))
        )


@dataclass
class CpdResult:
    state: CpdState
    history: list[CpdState]
    converged: bool

    @property
    def transform(self) -> AffineTransform:
        return self.state.to_transform()

    @property
    def n_iterations(self) -> int:
        return self.state.iteration


IterationCallback = Callable[[CpdState, npt.NDArray[np.float64]], None]


def init_sigma_squared(
    stationary: npt.NDArray[np.float64], moving: npt.NDArray[np.float64]
) -> float:
    """
    Data-driven initial variance: the squared distance between every pair of points averaged over the pairs and
    the dimensions.
    """
    n_points, dimension = stationary.shape
    return float(
        cdist(stationary, moving, "sqeuclidean").sum()
        / (n_points * moving.shape[0] * dimension)
    )


def aligned_point_set(
    moving: npt.NDArray[np.float64],
    rotation: npt.NDArray[np.float64],
    translation: npt.NDArray[np.float64],
    scale: float,
) -> npt.NDArray[np.float64]:
    return scale * moving @ rotation.T + translation


def outlier_constant(
    sigma_squared: float,
    outlier_weight: float,
    n_moving: int,
    n_stationary: int,
    dimension: int = 3,
) -> float:
    """
    Term added to the normalization of each column of the responsibilities to account for the uniform distribution.
    """
    return (
        (2 * np.pi * sigma_squared) ** (dimension / 2)
        * (outlier_weight / (1 - outlier_weight))
        * (n_moving / n_stationary)
    )


def _responsibilities_block(
    aligned_moving: npt.NDArray[np.float64],
    stationary_block: npt.NDArray[np.float64],
    sigma_squared: float,
    constant: float,
) -> npt.NDArray[np.float64]:
    kernel = np.exp(
        -cdist(aligned_moving, stationary_block, "sqeuclidean") / (2 * sigma_squared)
    )
    denominator = kernel.sum(axis=0) + constant
    # columns too far away from every Gaussian get no responsibility instead of 0 / 0
    return np.divide(
        kernel,
        denominator,
        out=np.zeros_like(kernel),
        where=denominator > 0,
    )


def e_step(
    stationary: npt.NDArray[np.float64],
    moving: npt.NDArray[np.float64],
    state: CpdState,
    outlier_weight: float,
    pool: ThreadPool | None = None,
    n_chunks: int = 1,
) -> npt.NDArray[np.float64]:
    """
    Computes the posterior probability that stationary point n was generated by moving point m for every pair.

    Args:
        stationary: (N, 3) stationary point cloud.
        moving: (M, 3) moving point cloud.
        state: The current estimate of the parameters.
        outlier_weight: The weight w of the uniform distribution.
        pool: A pool of threads to split the columns between. Leave empty to compute them in the current thread.
        n_chunks: The number of column ranges handed to the pool.

    Returns:
        The (M, N) responsibility matrix. Each column sums to 1 minus the probability of the point being an outlier.
    """
    aligned_moving = aligned_point_set(
        moving, state.rotation, state.translation, state.scale
    )
    constant = outlier_constant(
        state.sigma_squared,
        outlier_weight,
        moving.shape[0],
        stationary.shape[0],
        stationary.shape[1],
    )
    if pool is None or n_chunks < 2:
        return _responsibilities_block(
            aligned_moving, stationary, state.sigma_squared, constant
        )

    responsibilities = np.empty((moving.shape[0], stationary.shape[0]))

    def compute_columns(columns: npt.NDArray[np.int64]) -> None:
        # each worker only writes its own range of columns
        responsibilities[:, columns[0] : columns[-1] + 1] = _responsibilities_block(
            aligned_moving, stationary[columns], state.sigma_squared, constant
        )

    pool.map(
        compute_columns,
        [
            columns
            for columns in np.array_split(np.arange(stationary.shape[0]), n_chunks)
            if columns.shape[0] > 0
        ],
    )
    return responsibilities


def weighted_means(
    stationary: npt.NDArray[np.float64],
    moving: npt.NDArray[np.float64],
    responsibilities: npt.NDArray[np.float64],
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Returns:
        The means Ux of the stationary points and Uy of the moving points weighted by the responsibilities.
    """
    n_p = responsibilities.sum()
    return (
        stationary.T @ responsibilities.sum(axis=0) / n_p,
        moving.T @ responsibilities.sum(axis=1) / n_p,
    )


def m_step(
    stationary: npt.NDArray[np.float64],
    moving: npt.NDArray[np.float64],
    responsibilities: npt.NDArray[np.float64],
    previous_state: CpdState,
) -> CpdState:
    """
    Closed-form update of the rotation, scale, translation and variance: weighted Procrustes problem solved with an
    SVD of the weighted cross-covariance matrix, the rotation being constrained to a determinant of 1.
    """
    n_p = responsibilities.sum()
    if n_p <= 0:
        logging.warning(
            "Every stationary point is considered an outlier, keeping the previous estimate."
        )
        return replace(previous_state, iteration=previous_state.iteration + 1)

    mean_stationary, mean_moving = weighted_means(stationary, moving, responsibilities)
    centered_stationary = stationary - mean_stationary
    centered_moving = moving - mean_moving
    moving_weights = responsibilities.sum(axis=1)
    stationary_spread = np.sum(
        responsibilities.sum(axis=0) * np.sum(centered_stationary**2, axis=1)
    )
    moving_spread = np.sum(moving_weights * np.sum(centered_moving**2, axis=1))

    # the moving points all coincide: neither the rotation nor the scale can be observed
    if moving_spread <= np.finfo(np.float64).eps * np.sum(
        moving_weights * np.sum(moving**2, axis=1)
    ):
        logging.debug("The moving points coincide, only the translation is updated.")
        return CpdState(
            rotation=previous_state.rotation,
            scale=previous_state.scale,
            translation=mean_stationary
            - previous_state.scale * previous_state.rotation @ mean_moving,
            sigma_squared=float(
                max(stationary_spread / (n_p * stationary.shape[1]), SIGMA_SQUARED_FLOOR)
            ),
            iteration=previous_state.iteration + 1,
        )

    cross_covariance = centered_stationary.T @ responsibilities.T @ centered_moving
    u, _, vh = np.linalg.svd(cross_covariance)
    correction = np.eye(3)
    correction[-1, -1] = np.linalg.det(u @ vh)
    rotation = u @ correction @ vh

    trace_rotated = np.trace(cross_covariance.T @ rotation)
    scale = trace_rotated / moving_spread
    translation = mean_stationary - scale * rotation @ mean_moving
    sigma_squared = (stationary_spread - scale * trace_rotated) / (
        n_p * stationary.shape[1]
    )

    return CpdState(
        rotation=rotation,
        scale=float(scale),
        translation=translation,
        sigma_squared=float(max(sigma_squared, SIGMA_SQUARED_FLOOR)),
        iteration=previous_state.iteration + 1,
    )


def align_via_rigid_cpd(
    moving: npt.NDArray[np.float64],
    stationary: npt.NDArray[np.float64],
    parameters: CpdParameters | None = None,
    callback: IterationCallback | None = None,
) -> CpdResult:
    """
    Runs the EM iterations until the relative variation of the variance falls below the tolerance, the variance
    collapses, the time limit is exceeded or the maximum number of iterations is reached.
    Only identifies the transformation, the point clouds are left untouched.

    Args:
        moving: (M, 3) point cloud to transform.
        stationary: (N, 3) reference point cloud.
        parameters: Configuration of the EM iterations.
        callback: Called every parameters.iter_interval iterations with the current state and the moving point cloud
            aligned with it.

    Returns:
        The last estimate, the trajectory of the estimates and whether the iterations have converged.
    """
    parameters = parameters or CpdParameters()
    check_point_cloud(moving, "moving point cloud")
    check_point_cloud(stationary, "stationary point cloud")

    state = CpdState(
        sigma_squared=max(
            parameters.tune * init_sigma_squared(stationary, moving),
            SIGMA_SQUARED_FLOOR,
        )
    )
    history = [state]
    converged = False
    start_time = perf_counter()

    with (
        ThreadPool(processes=parameters.n_threads)
        if parameters.n_threads > 1
        else nullcontext()
    ) as pool:
        for _ in (
            progress_bar := trange(
                parameters.max_iter,
                desc="CPD",
                delay=1,
                disable=parameters.disable_progress_bar,
            )
        ):
            # this loop can be stopped preemptively by a CTRL+C
            try:
                responsibilities = e_step(
                    stationary,
                    moving,
                    state,
                    parameters.outlier_weight,
                    pool=pool,
                    n_chunks=parameters.n_threads,
                )
                if responsibilities.sum() <= 0:
                    logging.warning(
                        "Every stationary point is considered an outlier, stopping with the previous estimate."
                    )
                    break
                new_state = m_step(stationary, moving, responsibilities, state)
            except KeyboardInterrupt:
                logging.warning("CPD interrupted by user.")
                break

            if not new_state.is_finite():
                logging.warning(
                    f"CPD produced a non-finite estimate at iteration {new_state.iteration}, "
                    f"stopping with the previous estimate."
                )
                break

            variation = (
                abs(state.sigma_squared - new_state.sigma_squared) / state.sigma_squared
            )
            state = new_state
            history.append(state)
            progress_bar.set_description(f"CPD - current sigma²: {state.sigma_squared:.3e}")

            if (
                callback is not None
                and parameters.iter_interval > 0
                and state.iteration % parameters.iter_interval == 0
            ):
                callback(
                    state,
                    aligned_point_set(
                        moving, state.rotation, state.translation, state.scale
                    ),
                )

            if variation < parameters.tolerance or state.sigma_squared <= SIGMA_SQUARED_FLOOR:
                converged = True
                break
            if (
                parameters.time_limit is not None
                and perf_counter() - start_time > parameters.time_limit
            ):
                logging.warning(
                    f"CPD stopped after {parameters.time_limit:.2f} seconds."
                )
                break

    if converged:
        logging.info(
            f"CPD converged after {state.iteration} iterations (sigma² = {state.sigma_squared:.3e})."
        )
    else:
        logging.warning(
            f"CPD did not converge after {state.iteration} iterations (sigma² = {state.sigma_squared:.3e}), "
            f"returning the last estimate."
        )

    return CpdResult(state=state, history=history, converged=converged)
