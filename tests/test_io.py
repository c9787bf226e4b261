import numpy as np
import pytest

from point_alignment import read_point_cloud, write_point_cloud


def test_write_then_read(tmp_path, skewed_cloud):
    write_point_cloud(tmp_path / "cloud.xyz", skewed_cloud)
    np.testing.assert_array_equal(read_point_cloud(tmp_path / "cloud.xyz"), skewed_cloud)


def test_read_comma_separated_with_extra_columns(tmp_path):
    (tmp_path / "cloud.csv").write_text("# x,y,z,intensity\n1,2,3,9\n4, 5, 6, 9\n")
    np.testing.assert_array_equal(
        read_point_cloud(tmp_path / "cloud.csv"), [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]
    )


def test_read_single_point(tmp_path):
    (tmp_path / "cloud.xyz").write_text("1 2 3\n")
    assert read_point_cloud(tmp_path / "cloud.xyz").shape == (1, 3)


def test_read_empty_file(tmp_path):
    (tmp_path / "cloud.xyz").write_text("# nothing\n\n")
    assert read_point_cloud(tmp_path / "cloud.xyz").shape == (0, 3)


def test_read_too_few_columns(tmp_path):
    (tmp_path / "cloud.xyz").write_text("1 2\n3 4\n")
    with pytest.raises(ValueError):
        read_point_cloud(tmp_path / "cloud.xyz")
