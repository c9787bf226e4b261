"""
Base class to handle 4x4 affine transformations whose bottom row is fixed to (0, 0, 0, 1).
"""

from pathlib import Path

import numpy as np
import numpy.typing as npt


class NonAffineTransformError(RuntimeError):
    """Raised when a transformation would produce a homogeneous coordinate different from 1."""


class AffineTransform:
    """
    Class to wrap 4x4 affine transformations.

    The augmented matrix is stored row-major:

        L00  L01  L02 | b0
        L10  L11  L12 | b1          linear part | translation
        L20  L21  L22 | b2
        ------------------
         0    0    0  |  1          fixed

    Only the top 3x4 block can be written.
    """

    def __init__(
        self,
        linear: npt.NDArray[np.float64] | None = None,
        translation: npt.NDArray[np.float64] | None = None,
    ):
        self._matrix = np.eye(4, dtype=np.float64)
        if linear is not None:
            self._matrix[:3, :3] = np.asarray(linear, dtype=np.float64).reshape(3, 3)
        if translation is not None:
            self._matrix[:3, 3] = np.asarray(translation, dtype=np.float64).reshape(3)

    def __repr__(self) -> str:
        """
        Returns a string representation of the 4x4 matrix without scientific notation.
        """
        with np.printoptions(suppress=True):
            return str(self._matrix)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AffineTransform):
            return NotImplemented
        return bool(np.array_equal(self._matrix, other._matrix))

    @property
    def matrix(self) -> npt.NDArray[np.float64]:
        return self._matrix.copy()

    @property
    def linear(self) -> npt.NDArray[np.float64]:
        return self._matrix[:3, :3].copy()

    @property
    def translation(self) -> npt.NDArray[np.float64]:
        return self._matrix[:3, 3].copy()

    def coeff(self, i: int, j: int) -> float:
        """
        Reads any coefficient of the augmented matrix, fixed ones included.
        """
        if not (0 <= i <= 3 and 0 <= j <= 3):
            raise IndexError(f"Coefficient ({i}, {j}) is outside of the 4x4 matrix.")
        return float(self._matrix[i, j])

    def set_coeff(self, i: int, j: int, value: float) -> None:
        """
        Writes one of the 12 free coefficients (rows 0 to 2, columns 0 to 3).

        Raises:
            IndexError: If (i, j) designates a coefficient of the fixed bottom row or lies outside the matrix.
        """
        if not (0 <= i <= 2 and 0 <= j <= 3):
            raise IndexError(
                f"Tried to access fixed coefficient ({i}, {j}). Refusing to continue."
            )
        self._matrix[i, j] = value

    def _check_homogeneous(self, homogeneous: npt.NDArray[np.float64]) -> None:
        if np.any(homogeneous != 1.0):
            raise NonAffineTransformError(
                "Transformation is not affine. Refusing to continue."
            )

    def apply_to_point(self, point: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """
        Applies the transformation to a single 3D point.

        Returns:
            The transformed point L.p + b.
        """
        augmented = np.append(np.asarray(point, dtype=np.float64).reshape(3), 1.0)
        transformed = self._matrix @ augmented
        self._check_homogeneous(transformed[3:])
        return transformed[:3]

    def apply_to_points(
        self, points: npt.NDArray[np.float64]
    ) -> npt.NDArray[np.float64]:
        """
        Applies the transformation to an (N, 3) array of N points.

        Returns:
            The transformed points as a new array.
        """
        points = np.asarray(points, dtype=np.float64)
        homogeneous = points @ self._matrix[3, :3] + self._matrix[3, 3]
        self._check_homogeneous(homogeneous)
        return points @ self._matrix[:3, :3].T + self._matrix[:3, 3]

    def apply_to(self, points: npt.NDArray[np.float64]) -> None:
        """
        Applies the transformation to an (N, 3) array in place.
        Every point is transformed before the array is written, so an error leaves the points untouched.
        """
        points[...] = self.apply_to_points(points)

    def __getitem__(self, points: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """
        Applies the transformation to a line-representation of a point or to an (N, 3) array of N points.
        """
        return self.apply_to_points(points)

    def __matmul__(self, other_transformation: "AffineTransform") -> "AffineTransform":
        """
        Matrix composition of two transformations.

        Args:
            other_transformation: The transformation on the right (the first one to apply).

        Returns:
            The matrix product of the two transformations.
        """
        product = self._matrix @ other_transformation._matrix
        return AffineTransform(product[:3, :3], product[:3, 3])

    def __invert__(self) -> "AffineTransform":
        """
        Inverts the transformation.

        Returns:
            The AffineTransform corresponding to the inverse transformation.
        """
        inverse_linear = np.linalg.inv(self._matrix[:3, :3])
        return AffineTransform(inverse_linear, -inverse_linear @ self._matrix[:3, 3])

    def inv(self) -> "AffineTransform":
        return ~self

    def write_to(self, file_path: str | Path) -> None:
        """
        Writes the full augmented matrix, row-major, as four lines of four values.
        """
        np.savetxt(
            file_path,
            self._matrix,
            fmt="%.17g",
            header="affine transform, 4x4 augmented matrix, row-major",
            encoding="utf-8",
        )

    @classmethod
    def read_from(cls, file_path: str | Path) -> "AffineTransform":
        """
        Reads a transformation written by write_to.

        Raises:
            ValueError: If the file does not hold a 4x4 matrix with a (0, 0, 0, 1) bottom row.
        """
        matrix = np.loadtxt(file_path, dtype=np.float64, encoding="utf-8")
        if matrix.shape != (4, 4):
            raise ValueError(
                f"Expected a 4x4 matrix in {file_path}, got shape {matrix.shape}."
            )
        if not np.array_equal(matrix[3], [0.0, 0.0, 0.0, 1.0]):
            raise ValueError(f"The matrix stored in {file_path} is not affine.")
        return cls(matrix[:3, :3], matrix[:3, 3])
