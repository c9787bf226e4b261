"""
Reading and writing point clouds stored as plain text, one point per line.
"""

from pathlib import Path

import numpy as np
import numpy.typing as npt


def read_point_cloud(file_path: str | Path) -> npt.NDArray[np.float64]:
    """
    Reads a point cloud from a text file whose first three columns are x, y and z.
    Columns can be separated by whitespaces or commas, lines starting with '#' are ignored and additional columns
    (normals, colors, ...) are dropped.

    Returns:
        An (N, 3) array, N being possibly 0 for an empty file.
    """
    with open(file_path, encoding="utf-8") as file:
        lines = [
            line.replace(",", " ")
            for line in file
            if line.strip() and not line.lstrip().startswith("#")
        ]
    if not lines:
        return np.empty((0, 3))

    data = np.atleast_2d(np.loadtxt(lines, dtype=np.float64))
    if data.shape[1] < 3:
        raise ValueError(
            f"Expected at least 3 columns in {file_path}, got {data.shape[1]}."
        )
    return data[:, :3]


def write_point_cloud(
    file_path: str | Path, points: npt.NDArray[np.float64]
) -> None:
    """
    Writes an (N, 3) point cloud as whitespace-separated x y z lines.
    """
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)
    np.savetxt(file_path, points, fmt="%.17g", header="x y z", encoding="utf-8")
