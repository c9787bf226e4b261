"""
Classes that can contain the configuration required by every aligner.
"""

import json
import warnings
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, fields
from typing import Any, Literal, TypedDict

import yaml


@dataclass
class Config(ABC):
    """Base class that describes the structure of every config class and implements a type casting behavior."""

    def __post_init__(self):
        for field in fields(self):
            value = getattr(self, field.name)
            try:
                if not isinstance(value, field.type):
                    warnings.warn(
                        f"Expected {field.name} to be {field.type}, got {repr(value)} of type {type(value)}"
                    )
                    setattr(self, field.name, field.type(value))  # recasting the value
            except TypeError:
                ...

    def __repr__(self) -> str:
        return json.dumps(asdict(self), indent=2)

    @abstractmethod
    def help_message(self) -> str:
        """
        Creates a help message describing the behavior of the method with the set of parameters specified.

        Returns:
            The help message.
        """
        ...


@dataclass
class AlignmentConfig(Config):
    """Parameters of the registration driver."""

    method: str = "rigid"
    moving_selection: str = "last"
    reference_selection: str = "last"
    force_proper_rotation: bool = False
    n_workers: int = 1

    def __post_init__(self):
        super().__post_init__()
        if self.n_workers < 1:
            raise ValueError(f"n_workers must be at least 1, got {self.n_workers}.")

    def help_message(self) -> str:
        return (
            f"Alignment parameters:\n"
            f" -- method: {self.method}\n"
            f" -- moving point clouds: {self.moving_selection}\n"
            f" -- reference point cloud: {self.reference_selection}\n"
            f" -- reflections will{' not' if self.force_proper_rotation else ''} be allowed (PCA)\n"
            f" -- number of workers: {self.n_workers}"
        )


@dataclass
class CpdParameters(Config):
    """
    Parameters of the coherent point drift (rigid) aligner.

    outlier_weight is the prior probability of a stationary point being noise, tune multiplies the initial variance
    estimate and time_limit (in seconds) is checked between two iterations.
    """

    outlier_weight: float = 0.2
    max_iter: int = 100
    tolerance: float = 1e-8
    tune: float = 1.0
    n_threads: int = 1
    time_limit: float | None = None
    iter_interval: int = 0
    disable_progress_bar: bool = False

    def __post_init__(self):
        super().__post_init__()
        if not 0 <= self.outlier_weight < 1:
            raise ValueError(
                f"outlier_weight must lie in [0, 1), got {self.outlier_weight}."
            )
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be at least 1, got {self.max_iter}.")
        if self.tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}.")
        if self.tune <= 0:
            raise ValueError(f"tune must be positive, got {self.tune}.")
        if self.n_threads < 1:
            raise ValueError(f"n_threads must be at least 1, got {self.n_threads}.")

    def help_message(self) -> str:
        message = (
            f"CPD parameters:\n"
            f" -- outlier weight: {self.outlier_weight}\n"
            f" -- maximum number of iterations: {self.max_iter}\n"
            f" -- tolerance on the relative variation of sigma²: {self.tolerance}\n"
            f" -- tuning factor of the initial variance: {self.tune}\n"
            f" -- number of threads in the E-step: {self.n_threads}"
        )
        if self.time_limit is not None:
            message += f"\n -- time limit: {self.time_limit:.1f} seconds"
        return message


class RegistrationConfig(TypedDict):
    alignment: AlignmentConfig
    cpd: CpdParameters


CONFIG_ARGUMENT_NAMES: dict[str, Literal["alignment", "cpd"]] = {
    field.name: section
    for section, config_class in (("alignment", AlignmentConfig), ("cpd", CpdParameters))
    for field in fields(config_class)
}


def load_config_from_yaml(
    config_file_path: str | None, command_line_args: dict[str, Any]
) -> RegistrationConfig:
    """
    Loads a YAML config file and overrides its values with the non-null values found in command_line_args.
    Missing sections or keys fall back on the dataclass defaults, as does everything if config_file_path is None.
    """

    def get_values(
        default_values: dict[str, Any], section: str
    ) -> dict[str, Any]:
        """
        Overrides entries from a dictionary when values are non-null.
        """
        return {
            **default_values,
            **{
                k: v
                for k, v in command_line_args.items()
                if CONFIG_ARGUMENT_NAMES.get(k) == section and v is not None
            },
        }

    config = {}
    if config_file_path is not None:
        with open(config_file_path) as f:
            config = (yaml.safe_load(f.read()) or {}).get("registration") or {}

    return {
        "alignment": AlignmentConfig(
            **get_values(config.get("alignment") or {}, "alignment"),
        ),
        "cpd": CpdParameters(
            **get_values(config.get("cpd") or {}, "cpd"),
        ),
    }
