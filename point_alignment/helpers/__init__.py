from .io_xyz import read_point_cloud, write_point_cloud
from .perf_monitoring import checkpoint

__all__ = ["read_point_cloud", "write_point_cloud", "checkpoint"]
