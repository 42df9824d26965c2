"""WASA-SED subprocess runner module.

This module provides utilities for running the WASA-SED executable via
subprocess, staging per-realization working directories, and scheduling
hindcasts over sub-catchments, realizations and years.
"""

from __future__ import annotations

from pywasa.runner.hindcast import (
    HindcastScheduler,
    propagate_prior_state,
)
from pywasa.runner.results import (
    HindcastResult,
    RealizationResult,
    RealizationStatus,
    RunResult,
    SimulationResult,
    YearResult,
)
from pywasa.runner.runner import (
    WASARunner,
    find_wasa_executable,
    invoke_model,
)
from pywasa.runner.staging import (
    RunContext,
    WorkingDirectoryStager,
)

__all__ = [
    # Runner
    "WASARunner",
    "find_wasa_executable",
    "invoke_model",
    # Results
    "RunResult",
    "SimulationResult",
    "YearResult",
    "RealizationResult",
    "RealizationStatus",
    "HindcastResult",
    # Staging
    "RunContext",
    "WorkingDirectoryStager",
    # Scheduling
    "HindcastScheduler",
    "propagate_prior_state",
]
