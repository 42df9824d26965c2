"""WASA-SED subprocess runner for executing the model executable."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from datetime import datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from pywasa.core.exceptions import ConfigurationError, SimulationError
from pywasa.io.config import ErrorDetection
from pywasa.runner.results import SimulationResult

if TYPE_CHECKING:
    from pywasa.runner.staging import RunContext

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "wasa"


def find_wasa_executable(
    name: str = DEFAULT_EXECUTABLE,
    search_paths: list[Path] | None = None,
    env_var: str = "WASA_BIN",
) -> Path:
    """Find the WASA-SED executable.

    Searches in the following order:
    1. ``name`` itself if it is an existing path
    2. Paths provided in search_paths
    3. Directory from environment variable (default: WASA_BIN)
    4. Current working directory
    5. System PATH

    Parameters
    ----------
    name : str
        Executable name or path.
    search_paths : list[Path] | None
        Additional directories to search.
    env_var : str
        Environment variable containing the WASA-SED bin directory.

    Returns
    -------
    Path
        Path to the executable.

    Raises
    ------
    ConfigurationError
        If the executable cannot be found.
    """
    candidate = Path(name)
    if candidate.is_file():
        return candidate.resolve()

    paths_to_search: list[Path] = []
    if search_paths:
        paths_to_search.extend(Path(p) for p in search_paths)
    env_path = os.environ.get(env_var)
    if env_path:
        paths_to_search.append(Path(env_path))
    paths_to_search.append(Path.cwd())

    names = [name, f"{name}.exe"]
    for search_path in paths_to_search:
        for exe_name in names:
            exe_path = search_path / exe_name
            if exe_path.is_file():
                return exe_path.resolve()

    for exe_name in names:
        found = shutil.which(exe_name)
        if found:
            return Path(found)

    raise ConfigurationError(f"WASA-SED executable '{name}' not found")


class WASARunner:
    """Run the WASA-SED executable via subprocess.

    Parameters
    ----------
    executable : Path | str
        Path to the WASA-SED executable (or a command on PATH).
    timeout : float | None
        Timeout in seconds per run. None blocks until the process exits.
    error_detection : ErrorDetection
        How failed runs are recognized.

    Examples
    --------
    >>> runner = WASARunner("wasa")
    >>> result = runner.run_simulation("tmp_run_dir/Oros_r1_x8f/do.dat")
    >>> result.success
    True
    """

    def __init__(
        self,
        executable: Path | str = DEFAULT_EXECUTABLE,
        timeout: float | None = None,
        error_detection: ErrorDetection = ErrorDetection.BOTH,
    ) -> None:
        self.executable = Path(executable)
        self.timeout = timeout
        self.error_detection = ErrorDetection(error_detection)

    def _parse_log_messages(self, output: str) -> tuple[list[str], list[str]]:
        """Extract error and warning lines from captured output.

        Returns
        -------
        tuple[list[str], list[str]]
            (errors, warnings) lists
        """
        errors: list[str] = []
        warnings: list[str] = []

        for line in output.splitlines():
            line_lower = line.lower()
            if "error" in line_lower:
                errors.append(line.strip())
            elif "warning" in line_lower:
                warnings.append(line.strip())

        return errors, warnings

    def _classify(self, return_code: int, errors: list[str]) -> bool:
        """Return True if the run counts as successful."""
        output_ok = not errors
        exit_ok = return_code == 0
        if self.error_detection is ErrorDetection.OUTPUT:
            return output_ok
        if self.error_detection is ErrorDetection.EXIT_CODE:
            return exit_ok
        return output_ok and exit_ok

    def _run_executable(
        self,
        config_file: Path,
        working_dir: Path,
    ) -> tuple[int, str, timedelta]:
        """Run the executable on a configuration file.

        Returns
        -------
        tuple[int, str, timedelta]
            (return_code, combined_output, elapsed_time)
        """
        start_time = datetime.now()

        try:
            result = subprocess.run(
                [str(self.executable), str(config_file)],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                cwd=str(working_dir),
                timeout=self.timeout,
            )
            elapsed = datetime.now() - start_time
            return result.returncode, result.stdout or "", elapsed

        except subprocess.TimeoutExpired as e:
            elapsed = datetime.now() - start_time
            output = e.stdout.decode(errors="replace") if isinstance(e.stdout, bytes) else (e.stdout or "")
            return -1, output + f"\nError: process timed out after {self.timeout} s\n", elapsed

        except OSError as e:
            elapsed = datetime.now() - start_time
            return -1, f"Error: could not start {self.executable}: {e}\n", elapsed

    def run_simulation(
        self,
        config_file: Path | str,
        working_dir: Path | str | None = None,
    ) -> SimulationResult:
        """Run a WASA-SED simulation.

        Parameters
        ----------
        config_file : Path | str
            Path to the ``do.dat`` run configuration.
        working_dir : Path | str | None
            Working directory of the process. Defaults to the process's
            current directory, as paths in ``do.dat`` are relative to the
            configuration file's directory.

        Returns
        -------
        SimulationResult
            Result object containing success status and captured output.

        Raises
        ------
        FileNotFoundError
            If the configuration file is not found.
        """
        config_file = Path(config_file).resolve()
        if not config_file.exists():
            raise FileNotFoundError(f"Run configuration not found: {config_file}")

        work_dir = Path(working_dir) if working_dir else Path.cwd()

        logger.debug("Running %s %s", self.executable, config_file)
        return_code, output, elapsed = self._run_executable(config_file, work_dir)
        errors, warnings = self._parse_log_messages(output)

        return SimulationResult(
            success=self._classify(return_code, errors),
            return_code=return_code,
            output=output,
            working_dir=work_dir,
            elapsed_time=elapsed,
            errors=errors,
            warnings=warnings,
            config_file=config_file,
        )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"WASARunner(executable={self.executable}, "
            f"error_detection={self.error_detection.value})"
        )


def failure_log_name(subcatchment: str, year: int) -> str:
    """File name of the log written for a failed run."""
    return f"run_{subcatchment}_{year}.log"


def invoke_model(runner: WASARunner, context: RunContext, year: int) -> SimulationResult:
    """Run the model for one year of a realization.

    On failure the captured output is written to
    ``<log_dir>/run_<subcatchment>_<year>.log``.

    Raises
    ------
    SimulationError
        If the run is classified as failed.
    """
    result = runner.run_simulation(context.config_file)
    if result.success:
        logger.info(
            "%s/%s/%d finished in %s",
            context.subcatchment.name,
            context.realization,
            year,
            result.elapsed_time,
        )
        return result

    log_file = result.save_log(context.log_dir / failure_log_name(context.subcatchment.name, year))
    result.log_file = log_file
    logger.error(
        "%s/%s/%d failed (return code %d), log written to %s",
        context.subcatchment.name,
        context.realization,
        year,
        result.return_code,
        log_file,
    )
    raise SimulationError(
        f"WASA returned a runtime error for sub-catchment {context.subcatchment.name}, "
        f"year {year}, see log file: {log_file}",
        subcatchment=context.subcatchment.name,
        year=year,
        log_file=log_file,
    )
