"""
I/O for WASA-SED hindcast input and output files.

This package handles:
- Hindcast configuration files (JSON)
- Reservoir parameter files and the initial-volume fallback
- River flow output and upstream boundary conditions
- The run configuration (do.dat) and output selection
- Completion markers of finished runs
"""

from __future__ import annotations

from pywasa.io.config import (
    ErrorDetection,
    FailurePolicy,
    HindcastConfig,
    load_config,
)
from pywasa.io.markers import is_complete, mark_complete, wait_for_marker
from pywasa.io.reservoir import (
    UNKNOWN_VOLUME,
    prepare_reservoir_input,
    read_reservoir_file,
    resolve_initial_volumes,
    write_reservoir_file,
)
from pywasa.io.river_flow import (
    collect_dependency_flow,
    inject_dependency_flow,
    pivot_dependency_flow,
    read_river_flow,
    write_dependency_flow,
)
from pywasa.io.run_config import (
    disable_intake,
    relative_output_path,
    rewrite_run_config,
    write_output_selection,
)

__all__ = [
    # Configuration
    "HindcastConfig",
    "FailurePolicy",
    "ErrorDetection",
    "load_config",
    # Markers
    "mark_complete",
    "is_complete",
    "wait_for_marker",
    # Reservoirs
    "UNKNOWN_VOLUME",
    "read_reservoir_file",
    "write_reservoir_file",
    "resolve_initial_volumes",
    "prepare_reservoir_input",
    # River flow
    "read_river_flow",
    "collect_dependency_flow",
    "pivot_dependency_flow",
    "write_dependency_flow",
    "inject_dependency_flow",
    # Run configuration
    "relative_output_path",
    "rewrite_run_config",
    "write_output_selection",
    "disable_intake",
]
