"""Completion markers for finished (sub-catchment, year, realization) runs."""

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path

MARKER_FILE = ".complete"


def marker_path(run_dir: Path) -> Path:
    """Path of the completion marker inside a run output directory."""
    return Path(run_dir) / MARKER_FILE


def mark_complete(run_dir: Path) -> Path:
    """Write the completion marker of a successful run."""
    path = marker_path(run_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(datetime.now().isoformat(timespec="seconds") + "\n")
    return path


def clear_marker(run_dir: Path) -> None:
    """Remove a stale marker before a run directory is (re)used."""
    marker_path(run_dir).unlink(missing_ok=True)


def is_complete(run_dir: Path) -> bool:
    """Check if a run output directory carries a completion marker."""
    return marker_path(run_dir).exists()


def wait_for_marker(run_dir: Path, timeout: float, poll_interval: float = 1.0) -> bool:
    """Wait until a run output directory is marked complete.

    Returns
    -------
    bool
        True if the marker appeared within ``timeout`` seconds.
    """
    deadline = time.monotonic() + timeout
    while not is_complete(run_dir):
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        time.sleep(min(poll_interval, remaining))
    return True
