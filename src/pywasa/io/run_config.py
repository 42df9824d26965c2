"""
WASA-SED run configuration (``do.dat``) and output selection.

``do.dat`` is a fixed-layout text file; only the lines listed in
``DODAT_LINES`` are rewritten for a hindcast year, all other lines are kept
as they are.
"""

from __future__ import annotations

import os
from pathlib import Path

from pywasa.core.exceptions import ConfigurationError
from pywasa.core.period import STOP_MONTH

RUN_CONFIG_FILE = "do.dat"
OUTPUT_SELECTION_FILE = "outfiles.dat"
INTAKE_FILE = "intake.dat"
INTAKE_DISABLED_FILE = "intake_t.dat"

# 0-based indices of the rewritten do.dat lines
DODAT_LINES = {
    "input_dir": 1,
    "output_dir": 2,
    "tstart": 3,
    "tstop": 4,
    "mstart": 5,
    "mstop": 6,
    "load_state": 35,
    "save_state": 36,
}

LOAD_STATE_LINE = ".t. .f. //load state of storages from files (if present) at start (optional)"
SAVE_STATE_LINE = ".t. .f. //save state of storages to files after simulation period (optional)"

OUTPUT_SELECTION = [
    "This files describe which output files are generated",
    "res_watbal",
    "River_Flow",
]


def relative_output_path(working_dir: Path | str, target: Path | str) -> str:
    """Express ``target`` relative to ``working_dir`` for use in ``do.dat``.

    Both paths are resolved to physical absolute paths (symbolic links
    followed), their longest common prefix is removed and one ``..`` is
    emitted for every remaining component of ``working_dir``.
    The result uses ``/`` separators and ends with ``/``.

    Examples
    --------
    >>> relative_output_path("/data/tmp/run_1", "/data/out/A/2001/r1")
    '../../out/A/2001/r1/'
    """
    work_parts = Path(os.path.realpath(working_dir)).parts
    target_parts = Path(os.path.realpath(target)).parts

    common = 0
    for a, b in zip(work_parts, target_parts):
        if a != b:
            break
        common += 1

    parts = [".."] * (len(work_parts) - common) + list(target_parts[common:])
    if not parts:
        return "./"
    return "/".join(parts) + "/"


def rewrite_run_config(
    config_file: Path | str,
    output_path: str,
    year: int,
    start_month: int,
) -> None:
    """Rewrite ``do.dat`` for one hindcast year.

    Sets the input directory, output path, start/stop year, start month,
    stop month (June) and enables loading and saving of storage states.
    Rewriting with the same arguments yields an identical file.

    Parameters
    ----------
    config_file : Path | str
        Path to ``do.dat`` in the working directory.
    output_path : str
        Output directory relative to the working directory.
    year : int
        Simulated year (start and stop year).
    start_month : int
        Start month of the simulation.

    Raises
    ------
    ConfigurationError
        If the file is missing or too short.
    """
    config_file = Path(config_file)
    if not config_file.exists():
        raise ConfigurationError(f"Run configuration not found: {config_file}")

    lines = config_file.read_text().splitlines()
    required = max(DODAT_LINES.values()) + 1
    if len(lines) < required:
        raise ConfigurationError(
            f"{config_file} has {len(lines)} lines, expected at least {required}"
        )

    lines[DODAT_LINES["input_dir"]] = "./"
    lines[DODAT_LINES["output_dir"]] = output_path
    lines[DODAT_LINES["tstart"]] = f"{year}\t//tstart (start year of simulation)"
    lines[DODAT_LINES["tstop"]] = f"{year}\t//tstop (end year of simulation)"
    lines[DODAT_LINES["mstart"]] = f"{start_month}\t//mstart (start month of simulation)"
    lines[DODAT_LINES["mstop"]] = f"{STOP_MONTH:02d}\t//mstop (end month of simulation)"
    lines[DODAT_LINES["load_state"]] = LOAD_STATE_LINE
    lines[DODAT_LINES["save_state"]] = SAVE_STATE_LINE

    config_file.write_text("\n".join(lines) + "\n")


def read_run_config(config_file: Path | str) -> dict[str, str]:
    """Return the rewritable ``do.dat`` fields (value part, comments stripped)."""
    lines = Path(config_file).read_text().splitlines()
    return {
        key: lines[idx].split("//")[0].strip() if idx < len(lines) else ""
        for key, idx in DODAT_LINES.items()
    }


def write_output_selection(working_dir: Path | str) -> Path:
    """Request reservoir water balance and river flow output."""
    path = Path(working_dir) / OUTPUT_SELECTION_FILE
    path.write_text("\n".join(OUTPUT_SELECTION) + "\n")
    return path


def disable_intake(time_series_dir: Path | str) -> Path | None:
    """Move observed intakes out of the way so reservoir.dat drives releases.

    Returns
    -------
    Path | None
        New location of the intake file, or None if there was none.
    """
    intake = Path(time_series_dir) / INTAKE_FILE
    if not intake.exists():
        return None
    target = intake.with_name(INTAKE_DISABLED_FILE)
    intake.replace(target)
    return target
