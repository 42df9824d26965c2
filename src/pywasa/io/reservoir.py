"""
Reservoir parameter files and the initial-volume fallback chain.

WASA-SED reads reservoir parameters from ``Reservoir/reservoir.dat``: two
header lines followed by one tab-separated row per strategic reservoir. For
hindcasts a template ``Reservoir/reservoir_<year>.dat`` exists per year; its
initial volume (``vol0``) is either a measured value or ``-999`` when no
measurement was available. Unknown volumes are taken from the simulated
end-of-year storage of the previous year's initial run.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

import numpy as np
import pandas as pd

from pywasa.core.exceptions import ConfigurationError, StateResolutionError

logger = logging.getLogger(__name__)

RESERVOIR_FILE = "reservoir.dat"

# Sentinel for an unmeasured initial volume.
UNKNOWN_VOLUME = -999

# Water balance output: 1-based column 16 holds the storage volume in m**3,
# reservoir.dat expects 1000 m**3.
WATBAL_VOLUME_COLUMN = 15
VOLUME_SCALE = 1000.0

RESERVOIR_COLUMNS = [
    "subbasin",
    "minlevel",
    "maxlevel",
    "vol0",
    "storcap",
    "damflow",
    "damq_frac",
    "withdrawal",
    "damyear",
    "maxdamarea",
    "damdead",
    "damalert",
    "dama",
    "damb",
    "qoutlet",
    "fvol_bottom",
    "fvol_over",
    "damc",
    "damd",
    "elevbottom",
]

RESERVOIR_HEADER = (
    "Specification of reservoir parameters\n"
    "Subasin-ID, minlevel[m], maxlevel[m], vol0([1000m**3]; unknown=-999), "
    "storcap[1000m**3], damflow[m**3/s], damq_frac[-], withdrawal[m**3/s], "
    "damyear[YYYY], maxdamarea[ha], damdead[1000m**3], damalert[1000m**3], "
    "dama[-], damb[-], qoutlet[m**3/s], fvol_bottom[-], fvol_over[-], "
    "damc[-], damd[-], elevbottom[m]\n"
)


def template_path(reservoir_dir: Path, year: int) -> Path:
    """Path of the reservoir template for a year."""
    return reservoir_dir / f"reservoir_{year}.dat"


def watbal_path(init_year_dir: Path, subbasin: int) -> Path:
    """Path of a reservoir's water balance output in an initial-run directory."""
    return init_year_dir / f"res_{subbasin}_watbal.out"


def read_reservoir_file(filepath: Path | str) -> pd.DataFrame:
    """Read a reservoir parameter file into a DataFrame.

    Parameters
    ----------
    filepath : Path | str
        Path to ``reservoir.dat`` or a yearly template.

    Returns
    -------
    pd.DataFrame
        One row per reservoir, columns named after ``RESERVOIR_COLUMNS``.

    Raises
    ------
    ConfigurationError
        If the file does not exist or has too few columns.
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise ConfigurationError(f"Could not find {filepath}!")

    try:
        df = pd.read_csv(filepath, sep=r"\s+", skiprows=2, header=None)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        raise ConfigurationError(f"Could not parse reservoir file {filepath}: {exc}") from exc
    if df.shape[1] < 9:
        raise ConfigurationError(
            f"Reservoir file {filepath} has {df.shape[1]} columns, expected at least 9"
        )
    if df.shape[1] > len(RESERVOIR_COLUMNS):
        raise ConfigurationError(
            f"Reservoir file {filepath} has {df.shape[1]} columns, "
            f"expected at most {len(RESERVOIR_COLUMNS)}"
        )
    df.columns = RESERVOIR_COLUMNS[: df.shape[1]]
    return df


def write_reservoir_file(df: pd.DataFrame, filepath: Path | str) -> None:
    """Write a reservoir table with the fixed two-line header."""
    filepath = Path(filepath)
    with open(filepath, "w", newline="") as f:
        f.write(RESERVOIR_HEADER)
        df.to_csv(f, sep="\t", header=False, index=False, lineterminator="\n")


def read_last_storage(watbal_file: Path | str) -> float:
    """Return the last simulated storage of a water balance file in 1000 m**3.

    Raises
    ------
    StateResolutionError
        If the file is missing, empty, or lacks the storage column.
    """
    watbal_file = Path(watbal_file)
    if not watbal_file.exists():
        raise StateResolutionError(
            f"Prior-year reservoir water balance not found: {watbal_file}"
        )
    try:
        data = pd.read_csv(watbal_file, sep=r"\s+", skiprows=1, header=None)
    except pd.errors.EmptyDataError:
        raise StateResolutionError(f"Water balance file {watbal_file} is empty") from None
    except pd.errors.ParserError as exc:
        raise StateResolutionError(
            f"Could not parse water balance file {watbal_file}: {exc}"
        ) from exc
    if data.empty or data.shape[1] <= WATBAL_VOLUME_COLUMN:
        raise StateResolutionError(
            f"Water balance file {watbal_file} has no storage column "
            f"{WATBAL_VOLUME_COLUMN + 1}"
        )
    return float(data.iloc[-1, WATBAL_VOLUME_COLUMN]) / VOLUME_SCALE


def resolve_initial_volumes(
    df: pd.DataFrame,
    year: int,
    first_year: bool,
    prior_year_dir: Path | None,
) -> pd.DataFrame:
    """Fill unknown initial volumes from the previous year's simulation.

    A row is resolved only if its ``vol0`` is ``UNKNOWN_VOLUME``, its
    ``damyear`` lies before ``year`` and ``year`` is not the first year
    simulated in the realization. All other rows keep their template value.

    Parameters
    ----------
    df : pd.DataFrame
        Reservoir table as returned by :func:`read_reservoir_file`.
    year : int
        Year being prepared.
    first_year : bool
        Whether ``year`` is the first year of the realization.
    prior_year_dir : Path | None
        Initial-run output directory of ``year - 1``.

    Returns
    -------
    pd.DataFrame
        A copy of ``df`` with resolved ``vol0`` values.
    """
    resolved = df.copy()
    if first_year:
        return resolved

    mask = (resolved["vol0"] == UNKNOWN_VOLUME) & (resolved["damyear"] < year)
    if not mask.any():
        return resolved
    if prior_year_dir is None:
        raise StateResolutionError(
            f"No prior-year output available to resolve reservoir volumes for {year}"
        )

    vol0 = resolved["vol0"].to_numpy(dtype=float)
    for idx in np.flatnonzero(mask.to_numpy()):
        subbasin = int(resolved["subbasin"].iloc[idx])
        vol0[idx] = read_last_storage(watbal_path(prior_year_dir, subbasin))
        logger.debug(
            "Reservoir %d: vol0 for %d taken from %s (%.3f)",
            subbasin,
            year,
            prior_year_dir,
            vol0[idx],
        )
    resolved["vol0"] = vol0
    return resolved


def prepare_reservoir_input(
    reservoir_dir: Path,
    year: int,
    first_year: bool,
    prior_year_dir: Path | None,
) -> Path:
    """Install the reservoir parameters of ``year`` as ``reservoir.dat``.

    Copies the yearly template, resolves unknown initial volumes and rewrites
    the file consumed by WASA-SED.

    Returns
    -------
    Path
        Path of the written ``reservoir.dat``.

    Raises
    ------
    ConfigurationError
        If the yearly template is missing.
    StateResolutionError
        If a required prior-year water balance file is missing.
    """
    template = template_path(reservoir_dir, year)
    if not template.exists():
        raise ConfigurationError(f"Could not find {template}!")

    target = reservoir_dir / RESERVOIR_FILE
    shutil.copyfile(template, target)

    df = read_reservoir_file(target)
    df = resolve_initial_volumes(df, year, first_year, prior_year_dir)
    write_reservoir_file(df, target)
    return target
