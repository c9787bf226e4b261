import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

import coloredlogs
import numpy as np

from point_alignment import (
    AlignmentPipeline,
    CpdState,
    PointCloud,
    checkpoint,
    load_config_from_yaml,
    parse_method,
    read_point_cloud,
    write_point_cloud,
)
from scripts.parse_args import parse_args


def install_logging() -> None:
    coloredlogs.install(
        level="INFO",
        fmt="%(asctime)s %(levelname)-7s %(message)s",
        field_styles={
            "levelname": {"color": "black", "bright": True, "bold": True},
            "asctime": {"color": "magenta", "bright": True},
        },
        level_styles={
            "info": {"color": "cyan", "faint": True},
            "critical": {"color": "red", "bold": True},
            "error": {"color": "red", "bright": True},
            "warning": {"color": "yellow", "bright": True},
        },
    )


def main(args: argparse.Namespace | None = None) -> int:
    """
    Registers a moving point cloud on a stationary one.
    Logs the transformation found and optionally writes it along with the aligned point cloud.

    Args:
        args: Arguments parsed from command-line using argparse.

    Returns:
        The exit status: 0 on success, 1 if the inputs or the algorithm are invalid.
    """
    install_logging()
    args = args or parse_args()

    config_file_path = args.config
    if config_file_path is not None and not Path(config_file_path).is_file():
        logging.warning(f"Config file not found under {config_file_path}, ignoring it.")
        config_file_path = None

    try:
        configuration = load_config_from_yaml(config_file_path, vars(args))
        method = parse_method(configuration["alignment"].method)
    except ValueError as error:
        logging.error(f"Specified configuration is invalid: {error}")
        return 1

    global_timer = checkpoint()
    timer = checkpoint()
    try:
        moving = PointCloud("moving", read_point_cloud(args.moving))
        stationary = PointCloud("stationary", read_point_cloud(args.stationary))
    except (OSError, ValueError) as error:
        logging.error(f"Unable to parse the point clouds: {error}")
        return 1
    if moving.points.shape[0] == 0:
        logging.error("Moving point cloud contains no points. Unable to continue.")
        return 1
    if stationary.points.shape[0] == 0:
        logging.error("Stationary point cloud contains no points. Unable to continue.")
        return 1
    timer("Time spent retrieving the data")

    logging.info(configuration["alignment"].help_message())
    if method == "cpd":
        logging.info(configuration["cpd"].help_message())

    def write_intermediate(name: str, state: CpdState, aligned: np.ndarray) -> None:
        write_point_cloud(
            Path(args.intermediate_output_dir) / f"{name}_{state.iteration:04d}.xyz",
            aligned,
        )

    pipeline = AlignmentPipeline.from_config(
        [moving, stationary],
        {
            "alignment": replace(
                configuration["alignment"],
                method=method,
                moving_selection="moving",
                reference_selection="stationary",
            ),
            "cpd": configuration["cpd"],
        },
        cpd_callback=write_intermediate if args.intermediate_output_dir else None,
    )
    transforms = pipeline.run()
    timer(f"Time spent on the {method.upper()} alignment")

    if "moving" not in transforms:
        logging.error("No transformation could be found.")
        return 1
    logging.info(f"Transformation found:\n{transforms['moving']}")

    if args.transform_output is not None:
        transforms["moving"].write_to(args.transform_output)
        logging.info(f"Transformation written to {args.transform_output}")
    if args.aligned_output is not None:
        write_point_cloud(args.aligned_output, moving.points)
        logging.info(f"Aligned point cloud written to {args.aligned_output}")

    global_timer("Execution took time")
    return 0


if __name__ == "__main__":
    sys.exit(main())
