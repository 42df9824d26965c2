"""Per-realization working directories and the paths a run owns."""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from pywasa.core.catchments import SubCatchment
from pywasa.core.exceptions import ConfigurationError
from pywasa.io.run_config import RUN_CONFIG_FILE

logger = logging.getLogger(__name__)

TIME_SERIES_DIR = "Time_series"
RESERVOIR_DIR = "Reservoir"

# Realization-specific weather input, replacing the observed meteorology.
WEATHER_FILES = ("rain_daily.dat", "humidity.dat", "temperature.dat", "radiation.dat")

# Observed input removed from every working directory.
OBSERVED_FILES = WEATHER_FILES + ("intake.dat",)


@dataclass
class RunContext:
    """Paths owned by one (sub-catchment, realization) task.

    Attributes
    ----------
    subcatchment : SubCatchment
        Sub-catchment being simulated.
    realization : str
        Realization id.
    working_dir : Path
        Private copy of the model setup.
    output_root : Path
        Root of the hindcast output tree.
    init_root : Path
        Root of the initial runs with observed meteorology.
    log_dir : Path
        Directory for failure logs.
    """

    subcatchment: SubCatchment
    realization: str
    working_dir: Path
    output_root: Path
    init_root: Path
    log_dir: Path = field(default_factory=Path.cwd)

    @property
    def config_file(self) -> Path:
        """The ``do.dat`` of the working directory."""
        return self.working_dir / RUN_CONFIG_FILE

    @property
    def time_series_dir(self) -> Path:
        return self.working_dir / TIME_SERIES_DIR

    @property
    def reservoir_dir(self) -> Path:
        return self.working_dir / RESERVOIR_DIR

    def output_dir(self, year: int) -> Path:
        """Output directory of a simulated year."""
        return self.output_root / self.subcatchment.name / str(year) / self.realization

    def init_dir(self, year: int) -> Path:
        """Initial-run output directory of a year."""
        return self.init_root / self.subcatchment.name / str(year)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"RunContext(subcatchment='{self.subcatchment.name}', "
            f"realization='{self.realization}', working_dir='{self.working_dir}')"
        )


class WorkingDirectoryStager:
    """Create isolated working directories from the shared model setup.

    Parameters
    ----------
    setup_dir : Path | str
        Directory with one WASA-SED setup per sub-catchment.
    meteo_dir : Path | str
        Directory with one sub-directory of weather input per realization.
    temp_dir : Path | str
        Parent directory of the working directories.

    Examples
    --------
    >>> stager = WorkingDirectoryStager("../setup", "../meteo", "../tmp_run_dir")
    >>> work_dir = stager.stage("Oros", "r01")
    """

    def __init__(
        self,
        setup_dir: Path | str,
        meteo_dir: Path | str,
        temp_dir: Path | str,
    ) -> None:
        self.setup_dir = Path(setup_dir)
        self.meteo_dir = Path(meteo_dir)
        self.temp_dir = Path(temp_dir)

    def setup_path(self, subcatchment: str) -> Path:
        return self.setup_dir / subcatchment

    def weather_paths(self, realization: str) -> list[Path]:
        return [self.meteo_dir / realization / name for name in WEATHER_FILES]

    def check_setup(self, subcatchment: str) -> None:
        """Raise ConfigurationError if the base setup of a sub-catchment is incomplete."""
        base = self.setup_path(subcatchment)
        if not base.is_dir():
            raise ConfigurationError(f"Model setup not found: {base}")
        if not (base / RUN_CONFIG_FILE).exists():
            raise ConfigurationError(f"Run configuration not found: {base / RUN_CONFIG_FILE}")

    def check_weather(self, realization: str) -> None:
        """Raise ConfigurationError if a weather file of a realization is missing."""
        missing = [p for p in self.weather_paths(realization) if not p.exists()]
        if missing:
            raise ConfigurationError(
                f"Weather input missing for realization {realization}: "
                f"{', '.join(str(p) for p in missing)}"
            )

    def stage(self, subcatchment: str, realization: str) -> Path:
        """Create the working directory of one realization.

        Copies the sub-catchment setup into a new directory, removes the
        observed meteorology and intakes, and installs the realization's
        weather files.

        Returns
        -------
        Path
            Path to the created working directory.

        Raises
        ------
        ConfigurationError
            If the setup or a weather file is missing.
        """
        self.check_setup(subcatchment)
        self.check_weather(realization)

        self.temp_dir.mkdir(parents=True, exist_ok=True)
        work_dir = Path(
            tempfile.mkdtemp(prefix=f"{subcatchment}_{realization}_", dir=self.temp_dir)
        )
        shutil.copytree(self.setup_path(subcatchment), work_dir, dirs_exist_ok=True)

        time_series = work_dir / TIME_SERIES_DIR
        time_series.mkdir(exist_ok=True)
        for name in OBSERVED_FILES:
            (time_series / name).unlink(missing_ok=True)
        for src in self.weather_paths(realization):
            shutil.copy2(src, time_series / src.name)

        logger.debug("Staged %s/%s in %s", subcatchment, realization, work_dir)
        return work_dir

    def discard(self, work_dir: Path) -> None:
        """Remove a working directory."""
        shutil.rmtree(work_dir, ignore_errors=True)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"WorkingDirectoryStager(setup_dir='{self.setup_dir}', "
            f"meteo_dir='{self.meteo_dir}')"
        )
