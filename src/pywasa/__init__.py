"""
pywasa - Python package for running WASA-SED hindcasts.

This package provides tools for:
- Staging WASA-SED model setups with alternative weather realizations
- Passing simulated river flow from upstream to downstream sub-catchments
- Resolving reservoir initial volumes from previous years
- Running the model over sub-catchments, realizations and years in parallel
"""

from __future__ import annotations

__version__ = "0.1.0"

from pywasa.core.catchments import CatchmentNetwork, SubCatchment
from pywasa.core.exceptions import (
    ConfigurationError,
    DependencyCompletenessError,
    DependencyGraphError,
    PyWASAError,
    SimulationError,
    StateResolutionError,
)
from pywasa.core.period import RunPeriod
from pywasa.io.config import ErrorDetection, FailurePolicy, HindcastConfig, load_config

# Runner module for executing WASA-SED via subprocess
from pywasa.runner import (
    HindcastResult,
    HindcastScheduler,
    RealizationResult,
    RealizationStatus,
    RunContext,
    RunResult,
    SimulationResult,
    WASARunner,
    WorkingDirectoryStager,
    find_wasa_executable,
)

__all__ = [
    "__version__",
    # Core
    "SubCatchment",
    "CatchmentNetwork",
    "RunPeriod",
    # Exceptions
    "PyWASAError",
    "ConfigurationError",
    "DependencyGraphError",
    "DependencyCompletenessError",
    "StateResolutionError",
    "SimulationError",
    # Configuration
    "HindcastConfig",
    "FailurePolicy",
    "ErrorDetection",
    "load_config",
    # Runner module
    "WASARunner",
    "find_wasa_executable",
    "RunResult",
    "SimulationResult",
    "RunContext",
    "WorkingDirectoryStager",
    "HindcastScheduler",
    "HindcastResult",
    "RealizationResult",
    "RealizationStatus",
]
