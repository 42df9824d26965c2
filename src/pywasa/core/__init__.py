"""Core data model for pywasa: exceptions, sub-catchments and run periods."""

from __future__ import annotations

from pywasa.core.catchments import CatchmentNetwork, SubCatchment
from pywasa.core.exceptions import (
    ConfigurationError,
    DependencyCompletenessError,
    DependencyGraphError,
    PyWASAError,
    SimulationError,
    StateResolutionError,
)
from pywasa.core.period import STOP_MONTH, RunPeriod

__all__ = [
    "CatchmentNetwork",
    "SubCatchment",
    "RunPeriod",
    "STOP_MONTH",
    "PyWASAError",
    "ConfigurationError",
    "DependencyGraphError",
    "DependencyCompletenessError",
    "StateResolutionError",
    "SimulationError",
]
