import argparse


def add_io_parameters(parser) -> None:
    parser.add_argument(
        "-m",
        "--moving",
        type=str,
        required=True,
        help="Path to the point cloud to transform (x y z text file).",
    )
    parser.add_argument(
        "-s",
        "--stationary",
        type=str,
        required=True,
        help="Path to the reference point cloud (x y z text file).",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="./config/config.yaml",
        help="Path to the YAML config file. Command line values override the ones it contains.",
    )
    parser.add_argument(
        "--transform_output",
        type=str,
        default=None,
        help="Writes the 4x4 transformation found to this file. Leave empty to skip.",
    )
    parser.add_argument(
        "--aligned_output",
        type=str,
        default=None,
        help="Writes the aligned moving point cloud to this file. Leave empty to skip.",
    )
    parser.add_argument(
        "--intermediate_output_dir",
        type=str,
        default=None,
        help="Directory in which the moving point cloud is written every --iter_interval CPD iterations.",
    )
    parser.add_argument(
        "--disable_progress_bar",
        action="store_true",
        default=None,
        help="Disables the progress bar of the CPD iterations.",
    )


def add_alignment_parameters(parser) -> None:
    parser.add_argument(
        "-t",
        "--type",
        dest="method",
        type=str,
        default=None,
        help="Which algorithm to use. Options: rigid (coherent point drift), com, pca. Defaults to rigid.",
    )
    parser.add_argument(
        "--force_proper_rotation",
        action="store_true",
        default=None,
        help="Prevents PCA from returning a reflection.",
    )


def add_cpd_parameters(parser) -> None:
    parser.add_argument(
        "-d",
        "--iterations",
        dest="max_iter",
        type=int,
        default=None,
        help="Maximum number of iterations to perform.",
    )
    parser.add_argument(
        "-u",
        "--tune",
        type=float,
        default=None,
        help="Numerical factor that tunes the algorithm (multiplies the initial variance).",
    )
    parser.add_argument(
        "-w",
        "--outlier_weight",
        type=float,
        default=None,
        help="Weight of the uniform distribution accounting for outliers, in [0, 1).",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=None,
        help="Stops the iterations when the relative variation of the variance falls below this value.",
    )
    parser.add_argument(
        "--threads",
        dest="n_threads",
        type=int,
        default=None,
        help="Number of threads used to compute the correspondences.",
    )
    parser.add_argument(
        "--time_limit",
        type=float,
        default=None,
        help="Stops the iterations after this number of seconds.",
    )
    parser.add_argument(
        "--iter_interval",
        type=int,
        default=None,
        help="Number of iterations between two intermediate outputs (0 to disable).",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parses the command line arguments. Also produces the help message.
    """
    parser = argparse.ArgumentParser(
        description="Registration of a moving point cloud on a stationary one."
    )
    add_io_parameters(parser.add_argument_group("I/O"))
    add_alignment_parameters(parser.add_argument_group("Alignment"))
    add_cpd_parameters(parser.add_argument_group("Coherent point drift"))

    return parser.parse_args(argv)
