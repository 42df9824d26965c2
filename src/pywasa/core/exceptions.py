"""Custom exceptions for pywasa package."""

from __future__ import annotations

from pathlib import Path


class PyWASAError(Exception):
    """Base exception for all pywasa errors."""

    pass


class ConfigurationError(PyWASAError):
    """Error raised when the hindcast setup or its input files are invalid."""

    pass


class DependencyGraphError(PyWASAError):
    """Error raised when sub-catchment dependencies cannot be ordered."""

    pass


class DependencyCompletenessError(PyWASAError):
    """Error raised when upstream flow output does not cover the run period."""

    def __init__(
        self,
        message: str,
        subcatchment: str,
        realization: str,
        missing_years: list[int] | None = None,
    ) -> None:
        super().__init__(message)
        self.subcatchment = subcatchment
        self.realization = realization
        self.missing_years = sorted(missing_years or [])


class StateResolutionError(PyWASAError):
    """Error raised when a prior-year reservoir state cannot be found."""

    pass


class SimulationError(PyWASAError):
    """Error raised when a WASA-SED run is classified as failed."""

    def __init__(
        self,
        message: str,
        subcatchment: str | None = None,
        year: int | None = None,
        log_file: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.subcatchment = subcatchment
        self.year = year
        self.log_file = log_file
