"""
Hindcast configuration.

A hindcast is described by a JSON file whose keys map onto the
:class:`HindcastConfig` dataclass. Relative paths in the file are resolved
against the directory containing the file.

Example::

    {
        "setup_dir": "../setup",
        "init_dir": "../runs_init",
        "meteo_dir": "../meteo_hindcasts",
        "output_dir": "../runs_hindcasts",
        "temp_dir": "../tmp_run_dir",
        "date_start": "1981-01-01",
        "date_end": "2014-06-30",
        "subcatchments": ["Banabuiu", "Oros", "Salgado", "Castanhao", "Jaguaribe"],
        "dependencies": {
            "Castanhao": {"Oros": 30, "Salgado": 25},
            "Jaguaribe": {"Castanhao": 17, "Banabuiu": 10}
        }
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any

from pywasa.core.catchments import CatchmentNetwork
from pywasa.core.exceptions import ConfigurationError
from pywasa.core.period import RunPeriod


class FailurePolicy(Enum):
    """What the scheduler does after a realization fails."""

    ABORT = "abort"  # Cancel pending work and stop the batch
    CONTINUE = "continue"  # Keep going; skip dependents of failed realizations


class ErrorDetection(Enum):
    """How a WASA-SED run is classified as failed."""

    OUTPUT = "output"  # "error" anywhere in the captured output
    EXIT_CODE = "exit_code"  # Non-zero return code
    BOTH = "both"  # Either of the above


# Default pool size: number of realizations simulated at the same time.
DEFAULT_MAX_WORKERS = 5

_PATH_KEYS = ("setup_dir", "init_dir", "meteo_dir", "output_dir", "temp_dir", "log_dir")


@dataclass
class HindcastConfig:
    """
    Configuration of a hindcast batch.

    Attributes:
        setup_dir: Directory with one WASA-SED setup per sub-catchment
        init_dir: Initial runs with observed meteorology,
            ``<init_dir>/<subcatchment>/<year>/``
        meteo_dir: Weather realizations, ``<meteo_dir>/<realization>/``
        output_dir: Root of the produced output tree
        temp_dir: Parent of the per-realization working directories
        date_start: Start of the hindcast period
        date_end: End of the hindcast period
        subcatchments: Sub-catchment names in processing order
        dependencies: Sub-catchment -> {upstream sub-catchment: subbasin id}
        executable: WASA-SED executable name or path
        realizations: Realization ids; None lists the sub-directories of meteo_dir
        max_workers: Number of realizations run in parallel
        on_failure: Failure policy of the scheduler
        error_detection: Classification of failed runs
        timeout: Timeout of a single run in seconds (None = no timeout)
        dependency_wait: Total seconds to wait for upstream completion markers
        keep_working_dirs: Keep working directories after successful realizations
        log_dir: Directory for failure logs (None = current directory)
    """

    setup_dir: Path
    init_dir: Path
    meteo_dir: Path
    output_dir: Path
    temp_dir: Path
    date_start: str
    date_end: str
    subcatchments: list[str] = field(default_factory=list)
    dependencies: dict[str, dict[str, int]] = field(default_factory=dict)
    executable: str = "wasa"
    realizations: list[str] | None = None
    max_workers: int = DEFAULT_MAX_WORKERS
    on_failure: FailurePolicy = FailurePolicy.ABORT
    error_detection: ErrorDetection = ErrorDetection.BOTH
    timeout: float | None = None
    dependency_wait: float = 0.0
    keep_working_dirs: bool = False
    log_dir: Path | None = None

    def __post_init__(self) -> None:
        for key in _PATH_KEYS:
            value = getattr(self, key)
            if value is not None:
                setattr(self, key, Path(value))
        try:
            self.on_failure = FailurePolicy(self.on_failure)
            self.error_detection = ErrorDetection(self.error_detection)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        if not self.subcatchments:
            raise ConfigurationError("At least one sub-catchment must be configured")
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.dependency_wait < 0:
            raise ConfigurationError("dependency_wait must not be negative")
        try:
            RunPeriod.from_strings(self.date_start, self.date_end)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid hindcast period: {exc}") from exc

    @property
    def period(self) -> RunPeriod:
        """Hindcast period."""
        return RunPeriod.from_strings(self.date_start, self.date_end)

    @property
    def network(self) -> CatchmentNetwork:
        """Sub-catchments and their declared dependencies."""
        return CatchmentNetwork.from_mapping(self.subcatchments, self.dependencies)

    def resolve_paths(self, base_dir: Path) -> None:
        """Make relative paths absolute with respect to ``base_dir``."""
        for key in _PATH_KEYS:
            value = getattr(self, key)
            if value is not None and not value.is_absolute():
                setattr(self, key, (base_dir / value).resolve())

    def list_realizations(self) -> list[str]:
        """Realization ids, either configured or found in ``meteo_dir``."""
        if self.realizations is not None:
            return [str(r) for r in self.realizations]
        if not self.meteo_dir.is_dir():
            raise ConfigurationError(f"Meteorology directory not found: {self.meteo_dir}")
        return sorted(p.name for p in self.meteo_dir.iterdir() if p.is_dir())

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Path):
                value = str(value)
            elif isinstance(value, Enum):
                value = value.value
            result[f.name] = value
        return result


def load_config(path: Path | str) -> HindcastConfig:
    """
    Load a hindcast configuration from a JSON file.

    Args:
        path: Path to the JSON configuration file

    Returns:
        HindcastConfig with paths resolved against the file's directory

    Raises:
        ConfigurationError: If the file is missing, malformed, or has
            unknown or missing keys
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration in {path} must be a JSON object")

    known = {f.name for f in fields(HindcastConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

    try:
        config = HindcastConfig(**data)
    except TypeError as exc:
        raise ConfigurationError(f"Incomplete configuration in {path}: {exc}") from exc

    config.resolve_paths(path.parent.resolve())
    return config
