from pathlib import Path

import numpy as np
import pytest

from point_alignment import AffineTransform, read_point_cloud, write_point_cloud
from scripts.parse_args import parse_args
from scripts.register_point_clouds import main

from .conftest import rotation_matrix

DEFAULT_CONFIG = str(Path(__file__).parents[1] / "config" / "config.yaml")


@pytest.fixture
def cloud_files(tmp_path, skewed_cloud):
    write_point_cloud(tmp_path / "moving.xyz", skewed_cloud)
    write_point_cloud(
        tmp_path / "stationary.xyz", skewed_cloud @ rotation_matrix(45).T + 2.0
    )
    return tmp_path / "moving.xyz", tmp_path / "stationary.xyz"


def test_type_and_tune_have_distinct_flags():
    args = parse_args(["-m", "a.xyz", "-s", "b.xyz", "-t", "pca", "-u", "1.23", "-d", "7"])
    assert args.method == "pca"
    assert args.tune == 1.23
    assert args.max_iter == 7


def test_pca_registration(tmp_path, cloud_files):
    moving, stationary = cloud_files
    status = main(
        parse_args(
            [
                "-m", str(moving),
                "-s", str(stationary),
                "-t", "pca",
                "--config", DEFAULT_CONFIG,
                "--transform_output", str(tmp_path / "transform.txt"),
                "--aligned_output", str(tmp_path / "aligned.xyz"),
            ]
        )
    )
    assert status == 0
    transform = AffineTransform.read_from(tmp_path / "transform.txt")
    np.testing.assert_allclose(transform.linear, rotation_matrix(45), atol=1e-8)
    np.testing.assert_allclose(
        read_point_cloud(tmp_path / "aligned.xyz"), read_point_cloud(stationary), atol=1e-8
    )


def test_rigid_registration_without_config(tmp_path, cloud_files):
    moving, stationary = cloud_files
    status = main(
        parse_args(
            [
                "-m", str(moving),
                "-s", str(stationary),
                "-d", "4",
                "--config", str(tmp_path / "missing.yaml"),
                "--disable_progress_bar",
                "--iter_interval", "2",
                "--intermediate_output_dir", str(tmp_path / "iterations"),
            ]
        )
    )
    assert status == 0
    assert sorted(path.name for path in (tmp_path / "iterations").iterdir()) == [
        "moving_0002.xyz",
        "moving_0004.xyz",
    ]


def test_empty_moving_cloud(tmp_path, cloud_files):
    _, stationary = cloud_files
    (tmp_path / "empty.xyz").write_text("")
    status = main(parse_args(["-m", str(tmp_path / "empty.xyz"), "-s", str(stationary), "-t", "com"]))
    assert status == 1


def test_missing_file(tmp_path, cloud_files):
    moving, _ = cloud_files
    status = main(parse_args(["-m", str(moving), "-s", str(tmp_path / "nope.xyz"), "-t", "com"]))
    assert status == 1


def test_unknown_type(cloud_files):
    moving, stationary = cloud_files
    status = main(parse_args(["-m", str(moving), "-s", str(stationary), "-t", "affine"]))
    assert status == 1


def test_config_without_method_runs_rigid_registration(tmp_path, cloud_files):
    moving, stationary = cloud_files
    config_file = tmp_path / "config.yaml"
    config_file.write_text("registration:\n  cpd:\n    max_iter: 2\n    tolerance: 1.0e-15\n")
    status = main(
        parse_args(
            [
                "-m", str(moving),
                "-s", str(stationary),
                "--config", str(config_file),
                "--disable_progress_bar",
                "--iter_interval", "1",
                "--intermediate_output_dir", str(tmp_path / "iterations"),
            ]
        )
    )
    assert status == 0
    assert sorted(path.name for path in (tmp_path / "iterations").iterdir()) == [
        "moving_0001.xyz",
        "moving_0002.xyz",
    ]
