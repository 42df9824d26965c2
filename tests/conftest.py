"""Pytest configuration and fixtures for pywasa tests."""

from __future__ import annotations

import threading
from datetime import date, timedelta
from pathlib import Path
from typing import Callable

import pytest

from pywasa.io.config import HindcastConfig
from pywasa.io.run_config import read_run_config
from pywasa.runner.results import SimulationResult

WEATHER_FILES = ("rain_daily.dat", "humidity.dat", "temperature.dat", "radiation.dat")

RESERVOIR_HEADER = "Specification of reservoir parameters\nSubasin-ID, minlevel[m], ...\n"


def reservoir_row(subbasin: int, vol0: float, damyear: int) -> str:
    """One 20-column reservoir.dat row."""
    values = [
        subbasin, 150.0, 180.0, vol0, 5000, 1.2, 0.5, 0, damyear, 300,
        100, 200, 1.5, 0.3, 2, 0.1, 0.9, 0.5, 0.2, 140,
    ]
    return "\t".join(str(v) for v in values)


def make_do_dat(n_lines: int = 40) -> str:
    """A do.dat with the layout of a WASA-SED run configuration."""
    lines = [
        "Parameter specification for the WASA Model (SESAM-Project)",
        "../Input/",
        "../Output/",
        "1980\t//tstart (start year of simulation)",
        "1980\t//tstop (end year of simulation)",
        "1\t//mstart (start month of simulation)",
        "12\t//mstop (end month of simulation)",
    ]
    while len(lines) < n_lines:
        lines.append(f".f.\t//option {len(lines) + 1}")
    return "\n".join(lines) + "\n"


def write_river_flow(path: Path, year: int, subbasins: list[int], value: float = 1.0) -> None:
    """Write a River_Flow.out covering 1 January to 30 June of ``year``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    day = date(year, 1, 1)
    rows = []
    while day <= date(year, 6, 30):
        doy = day.timetuple().tm_yday
        rows.append("  ".join([str(year), str(doy)] + [f"{value + s / 100:.3f}" for s in subbasins]))
        day += timedelta(days=1)
    header = "  ".join(["Year", "Day"] + [str(s) for s in subbasins])
    path.write_text("Output for river flow [m3/s]\n" + header + "\n" + "\n".join(rows) + "\n")


def write_watbal(path: Path, volumes: list[float]) -> None:
    """Write a res_<id>_watbal.out with storage volumes in column 16."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = ["Subasin-ID year day hour qlateral inflow ... volume ..."]
    for i, volume in enumerate(volumes, start=1):
        cols = ["10", "2000", str(i), "0"] + ["0.0"] * 11 + [f"{volume}", "0.0", "0.0"]
        lines.append("\t".join(cols))
    path.write_text("\n".join(lines) + "\n")


class FakeWASA:
    """Stands in for the WASA-SED executable.

    Reads the rewritten do.dat and writes River_Flow.out and a state file to
    the configured output directory.
    """

    def __init__(
        self,
        subbasins: list[int] | None = None,
        missing_output: set[tuple[str, int]] | None = None,
        fail: set[tuple[str, str, int]] | None = None,
    ) -> None:
        self.subbasins = subbasins or [10, 17, 25, 30]
        self.missing_output = missing_output or set()
        self.fail = fail or set()
        self.calls: list[tuple[str, str, int]] = []
        self._lock = threading.Lock()

    def run_simulation(self, config_file: Path | str, working_dir=None) -> SimulationResult:
        config_file = Path(config_file)
        fields = read_run_config(config_file)
        out_dir = (config_file.parent / fields["output_dir"]).resolve()
        year = int(fields["tstart"])
        realization = out_dir.name
        subcatchment = out_dir.parent.parent.name
        with self._lock:
            self.calls.append((subcatchment, realization, year))

        if (subcatchment, realization, year) in self.fail:
            return SimulationResult(
                success=False,
                return_code=0,
                output="ERROR: mass balance violation\n",
                errors=["ERROR: mass balance violation"],
                config_file=config_file,
            )

        if (subcatchment, year) not in self.missing_output:
            write_river_flow(out_dir / "River_Flow.out", year, self.subbasins)
        (out_dir / "storage.stat").write_text(f"state {year}\n")
        return SimulationResult(success=True, return_code=0, output="done\n", config_file=config_file)


@pytest.fixture
def hindcast_tree(tmp_path: Path) -> Callable[..., HindcastConfig]:
    """Factory building a hindcast directory tree and its configuration."""

    def build(
        subcatchments: list[str] | None = None,
        dependencies: dict[str, dict[str, int]] | None = None,
        realizations: list[str] | None = None,
        years: tuple[int, int] = (2001, 2002),
        reservoirs: dict[str, list[str]] | None = None,
        **options,
    ) -> HindcastConfig:
        subcatchments = subcatchments or ["A", "B"]
        realizations = realizations or ["r1"]
        setup = tmp_path / "setup"
        meteo = tmp_path / "meteo"
        init = tmp_path / "runs_init"

        for sub in subcatchments:
            base = setup / sub
            (base / "Time_series").mkdir(parents=True)
            (base / "Reservoir").mkdir()
            (base / "do.dat").write_text(make_do_dat())
            for name in WEATHER_FILES + ("intake.dat",):
                (base / "Time_series" / name).write_text(f"observed {name}\n")
            rows = (reservoirs or {}).get(sub, [reservoir_row(10, 1234.5, 1990)])
            for year in range(years[0], years[1] + 1):
                (base / "Reservoir" / f"reservoir_{year}.dat").write_text(
                    RESERVOIR_HEADER + "\n".join(rows) + "\n"
                )
            for year in range(years[0] - 1, years[1] + 1):
                year_dir = init / sub / str(year)
                year_dir.mkdir(parents=True)
                (year_dir / "storage.stat").write_text(f"init state {year}\n")
                write_watbal(year_dir / "res_10_watbal.out", [1000.0, 2500.0])

        for realization in realizations:
            (meteo / realization).mkdir(parents=True)
            for name in WEATHER_FILES:
                (meteo / realization / name).write_text(f"{realization} {name}\n")

        options.setdefault("max_workers", 1)
        options.setdefault("log_dir", tmp_path / "logs")
        return HindcastConfig(
            setup_dir=setup,
            init_dir=init,
            meteo_dir=meteo,
            output_dir=tmp_path / "out",
            temp_dir=tmp_path / "tmp_run_dir",
            date_start=f"{years[0]}-01-01",
            date_end=f"{years[1]}-06-30",
            subcatchments=subcatchments,
            dependencies=dependencies if dependencies is not None else {"B": {"A": 10}},
            **options,
        )

    return build
