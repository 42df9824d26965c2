"""
River flow output of upstream sub-catchments as boundary conditions.

A downstream sub-catchment receives the simulated outflow of selected
upstream subbasins through ``Time_series/subbasin_out.dat``. The series are
read from the ``River_Flow.out`` files the upstream sub-catchments produced
for the same realization, checked for completeness over the hindcast period,
and written in the layout WASA-SED expects.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from pywasa.core.catchments import SubCatchment
from pywasa.core.exceptions import ConfigurationError, DependencyCompletenessError
from pywasa.io.markers import is_complete, wait_for_marker

logger = logging.getLogger(__name__)

RIVER_FLOW_FILE = "River_Flow.out"
DEPENDENCY_FLOW_FILE = "subbasin_out.dat"

DEPENDENCY_FLOW_HEADER = (
    "pre-specified\tmean\tdaily\triver\tflow\t[m3/s]\tfor\tselected\tsub-basins\t(MAP-IDs)\n"
    "Date\tNo.\tof\tdays\tSubbasin-ID.\n"
)

# Value written for dates an upstream series does not cover.
MISSING_FLOW = -999


def run_output_dir(output_root: Path, subcatchment: str, year: int, realization: str) -> Path:
    """Output directory of one (sub-catchment, year, realization) run."""
    return Path(output_root) / subcatchment / str(year) / realization


def read_river_flow(filepath: Path | str) -> pd.DataFrame:
    """
    Read a WASA-SED ``River_Flow.out`` file.

    The file has one title line followed by a whitespace-separated table
    with ``year``, ``day`` (day of year) and one column per subbasin id.

    Args:
        filepath: Path to the River_Flow.out file

    Returns:
        DataFrame indexed by date with one column per subbasin id (as str)

    Raises:
        ConfigurationError: If the file is empty, truncated or not laid out
            as expected
    """
    try:
        df = pd.read_csv(filepath, sep=r"\s+", skiprows=1, header=0)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        raise ConfigurationError(f"Could not parse {filepath}: {exc}") from exc
    df.columns = [str(c) for c in df.columns]
    if len(df.columns) < 3:
        raise ConfigurationError(
            f"Unexpected River_Flow.out layout in {filepath}: "
            f"{len(df.columns)} columns"
        )
    year_col, day_col = df.columns[0], df.columns[1]
    if year_col.lower() != "year" or day_col.lower() != "day":
        raise ConfigurationError(
            f"Unexpected River_Flow.out layout in {filepath}: "
            f"columns start with '{year_col}', '{day_col}'"
        )

    try:
        dates = pd.to_datetime(
            df[year_col].astype(int).astype(str)
            + df[day_col].astype(int).astype(str).str.zfill(3),
            format="%Y%j",
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid dates in {filepath}: {exc}") from exc
    flow = df.drop(columns=[year_col, day_col])
    flow.index = pd.DatetimeIndex(dates, name="date")
    return flow


def collect_dependency_flow(
    output_root: Path,
    subcatchment: SubCatchment,
    realization: str,
    years: Sequence[int],
    wait: float = 0.0,
) -> pd.DataFrame:
    """
    Gather the upstream inflow series of a sub-catchment for one realization.

    Only runs whose output directory carries a completion marker are read.
    Every year in ``years`` must be covered by every upstream sub-catchment.

    Args:
        output_root: Root of the hindcast output tree
        subcatchment: Downstream sub-catchment with declared dependencies
        realization: Realization id
        years: Years of the hindcast period
        wait: Seconds to wait, in total, for missing completion markers

    Returns:
        Long DataFrame with columns ``date``, ``subbasin`` and ``value``

    Raises:
        DependencyCompletenessError: If any year is missing upstream
    """
    frames: list[pd.DataFrame] = []
    missing: dict[int, list[str]] = {}
    deadline = time.monotonic() + wait

    for upstream, subbasin in subcatchment.dependencies.items():
        column = str(subbasin)
        covered: set[int] = set()

        for year in years:
            run_dir = run_output_dir(output_root, upstream, year, realization)
            if not is_complete(run_dir):
                remaining = deadline - time.monotonic()
                if remaining <= 0 or not wait_for_marker(run_dir, remaining):
                    continue
            flow_file = run_dir / RIVER_FLOW_FILE
            if not flow_file.exists():
                continue

            flow = read_river_flow(flow_file)
            if column not in flow.columns:
                raise ConfigurationError(
                    f"Subbasin {subbasin} not found in {flow_file} "
                    f"(available: {', '.join(flow.columns)})"
                )
            series = flow[column]
            covered.update(int(y) for y in series.index.year.unique())
            frames.append(
                pd.DataFrame(
                    {"date": series.index, "subbasin": subbasin, "value": series.to_numpy()}
                )
            )

        for year in years:
            if year not in covered:
                missing.setdefault(year, []).append(upstream)

    if missing:
        missing_years = sorted(missing)
        detail = "; ".join(
            f"{year} ({', '.join(missing[year])})" for year in missing_years
        )
        raise DependencyCompletenessError(
            f"For sub-catchment {subcatchment.name} realisation {realization} the "
            f"following years are missing in the dependencies: "
            f"{', '.join(str(y) for y in missing_years)} [{detail}]",
            subcatchment=subcatchment.name,
            realization=realization,
            missing_years=missing_years,
        )

    return pd.concat(frames, ignore_index=True)


def pivot_dependency_flow(series: pd.DataFrame) -> pd.DataFrame:
    """Arrange a long inflow series as one row per date, one column per subbasin.

    The result has a zero-padded ``DDMMYYYY`` ``date`` column, a ``doy``
    column and one column per subbasin id in ascending order.
    """
    wide = series.pivot_table(
        index="date", columns="subbasin", values="value", aggfunc="last"
    ).sort_index()
    wide = wide.reindex(columns=sorted(wide.columns))
    wide.columns = [str(c) for c in wide.columns]
    wide.columns.name = None

    dates = pd.DatetimeIndex(wide.index)
    wide.insert(0, "doy", dates.dayofyear.astype(int))
    wide.insert(0, "date", dates.strftime("%d%m%Y"))
    return wide.reset_index(drop=True)


def write_dependency_flow(table: pd.DataFrame, filepath: Path | str) -> None:
    """Write a pivoted inflow table in the ``subbasin_out.dat`` layout."""
    subbasins = [c for c in table.columns if c not in ("date", "doy")]
    with open(filepath, "w", newline="") as f:
        f.write(DEPENDENCY_FLOW_HEADER)
        table.to_csv(
            f,
            sep="\t",
            index=False,
            header=["0", "0", *subbasins],
            na_rep=str(MISSING_FLOW),
            lineterminator="\n",
        )


def inject_dependency_flow(
    output_root: Path,
    subcatchment: SubCatchment,
    realization: str,
    years: Sequence[int],
    time_series_dir: Path,
    wait: float = 0.0,
) -> Path | None:
    """
    Write the upstream inflows of a sub-catchment into its working directory.

    Args:
        output_root: Root of the hindcast output tree
        subcatchment: Sub-catchment being prepared
        realization: Realization id
        years: Years of the hindcast period
        time_series_dir: ``Time_series`` directory of the working directory
        wait: Seconds to wait, in total, for missing completion markers

    Returns:
        Path of the written file, or None if the sub-catchment has no
        dependencies
    """
    if not subcatchment.has_dependencies:
        return None

    series = collect_dependency_flow(output_root, subcatchment, realization, years, wait)
    target = Path(time_series_dir) / DEPENDENCY_FLOW_FILE
    write_dependency_flow(pivot_dependency_flow(series), target)
    logger.info(
        "%s/%s: wrote inflows from %s to %s",
        subcatchment.name,
        realization,
        ", ".join(subcatchment.upstream),
        target,
    )
    return target
