"""Result dataclasses for WASA-SED subprocess runs and hindcast batches."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from pathlib import Path


@dataclass
class RunResult:
    """Base result class for WASA-SED executable runs.

    Attributes
    ----------
    success : bool
        Whether the run was classified as successful.
    return_code : int
        Process return code (0 = success).
    output : str
        Combined standard output and standard error of the process.
    working_dir : Path
        Working directory where the run executed.
    elapsed_time : timedelta
        Wall-clock time for the run.
    errors : list[str]
        Output lines flagged as errors.
    warnings : list[str]
        Output lines flagged as warnings.
    """

    success: bool
    return_code: int
    output: str = ""
    working_dir: Path = field(default_factory=Path.cwd)
    elapsed_time: timedelta = field(default_factory=lambda: timedelta(0))
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Convert paths to Path objects."""
        if isinstance(self.working_dir, str):
            self.working_dir = Path(self.working_dir)

    @property
    def failed(self) -> bool:
        """Check if the run failed."""
        return not self.success

    def save_log(self, filepath: Path | str) -> Path:
        """Write the captured output to ``filepath``."""
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        text = self.output if self.output.endswith("\n") or not self.output else self.output + "\n"
        filepath.write_text(text)
        return filepath


@dataclass
class SimulationResult(RunResult):
    """Result from running a WASA-SED simulation.

    Attributes
    ----------
    config_file : Path | None
        Path to the ``do.dat`` the run was started with.
    log_file : Path | None
        Failure log written for this run, if any.
    """

    config_file: Path | None = None
    log_file: Path | None = None

    def __post_init__(self) -> None:
        """Convert paths to Path objects."""
        super().__post_init__()
        if isinstance(self.config_file, str):
            self.config_file = Path(self.config_file)
        if isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)


@dataclass
class YearResult:
    """Outcome of one simulated year within a realization."""

    year: int
    output_dir: Path
    result: SimulationResult

    @property
    def success(self) -> bool:
        return self.result.success


class RealizationStatus(Enum):
    """Final state of a realization task."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"  # Not run because an upstream realization failed
    CANCELLED = "cancelled"  # Not run because the batch was aborted


@dataclass
class RealizationResult:
    """Result of all years of one (sub-catchment, realization) task.

    Attributes
    ----------
    subcatchment : str
        Sub-catchment name.
    realization : str
        Realization id.
    status : RealizationStatus
        Final state of the task.
    years : list[YearResult]
        Completed years, in order.
    error : Exception | None
        Error that ended the task, if any.
    working_dir : Path | None
        Working directory, if it was kept.
    """

    subcatchment: str
    realization: str
    status: RealizationStatus = RealizationStatus.SUCCESS
    years: list[YearResult] = field(default_factory=list)
    error: Exception | None = None
    working_dir: Path | None = None

    @property
    def success(self) -> bool:
        """Check if every year of the realization ran successfully."""
        return self.status is RealizationStatus.SUCCESS

    @property
    def message(self) -> str:
        """Diagnostic message of a failed, skipped or cancelled task."""
        return str(self.error) if self.error is not None else ""

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"RealizationResult(subcatchment='{self.subcatchment}', "
            f"realization='{self.realization}', status={self.status.value})"
        )


@dataclass
class HindcastResult:
    """Results of a complete hindcast batch.

    Attributes
    ----------
    order : list[str]
        Sub-catchments in the order they were processed.
    realizations : dict[tuple[str, str], RealizationResult]
        Results keyed by (sub-catchment, realization).
    aborted : bool
        Whether the batch stopped early under the abort policy.
    """

    order: list[str] = field(default_factory=list)
    realizations: dict[tuple[str, str], RealizationResult] = field(default_factory=dict)
    aborted: bool = False

    def add(self, result: RealizationResult) -> None:
        self.realizations[(result.subcatchment, result.realization)] = result

    def get(self, subcatchment: str, realization: str) -> RealizationResult | None:
        return self.realizations.get((subcatchment, realization))

    @property
    def success(self) -> bool:
        """Check if every realization of every sub-catchment succeeded."""
        return not self.aborted and all(r.success for r in self.realizations.values())

    @property
    def failures(self) -> list[RealizationResult]:
        """Realizations that failed while running."""
        return [
            r for r in self.realizations.values() if r.status is RealizationStatus.FAILED
        ]

    def summary(self) -> dict[str, int]:
        """Number of realizations per status."""
        counts = {status.value: 0 for status in RealizationStatus}
        for r in self.realizations.values():
            counts[r.status.value] += 1
        return counts

    def raise_on_error(self) -> None:
        """Re-raise the first error recorded by a failed realization."""
        for r in self.failures:
            if r.error is not None:
                raise r.error
        if not self.success:
            raise RuntimeError("Hindcast did not complete")
