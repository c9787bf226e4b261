import numpy as np
import pytest
from scipy.spatial.transform import Rotation


@pytest.fixture
def l_shaped_cloud():
    """Three arms of different lengths along x, y and z, slightly jittered."""
    rng = np.random.default_rng(7)
    arm_x = np.column_stack([np.linspace(0, 6, 30), np.zeros(30), np.zeros(30)])
    arm_y = np.column_stack([np.zeros(15), np.linspace(0.2, 3, 15), np.zeros(15)])
    arm_z = np.column_stack([np.zeros(8), np.zeros(8), np.linspace(0.2, 1.5, 8)])
    points = np.vstack([arm_x, arm_y, arm_z])
    return points + rng.normal(scale=0.02, size=points.shape)


@pytest.fixture
def skewed_cloud():
    rng = np.random.default_rng(11)
    return rng.exponential(size=(200, 3)) * np.array([4.0, 2.0, 1.0])


@pytest.fixture
def anisotropic_cloud():
    rng = np.random.default_rng(3)
    return rng.normal(size=(60, 3)) * np.array([3.0, 2.0, 1.0])


def rotation_matrix(degrees, axis=(0.0, 0.0, 1.0)):
    axis = np.asarray(axis, dtype=np.float64)
    return Rotation.from_rotvec(np.radians(degrees) * axis / np.linalg.norm(axis)).as_matrix()
