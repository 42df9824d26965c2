"""End-to-end hindcast of a small catchment network with a fake model."""

from __future__ import annotations

import json

import pandas as pd
import pytest

from pywasa.core.exceptions import DependencyCompletenessError
from pywasa.io.config import FailurePolicy, load_config
from pywasa.io.markers import is_complete
from pywasa.io.river_flow import read_river_flow
from pywasa.runner.hindcast import HindcastScheduler
from pywasa.runner.results import RealizationStatus
from tests.conftest import FakeWASA


@pytest.fixture
def network_config(hindcast_tree, tmp_path):
    """Three sub-catchments: C receives inflow from both A and B."""
    config = hindcast_tree(
        subcatchments=["A", "B", "C"],
        dependencies={"C": {"A": 10, "B": 25}},
        realizations=["r1", "r2"],
        keep_working_dirs=True,
    )
    path = tmp_path / "hindcast.json"
    path.write_text(json.dumps(config.to_dict()))
    return load_config(path)


class TestHindcastEndToEnd:
    """Hindcast through the public scheduler API."""

    def test_downstream_receives_upstream_flow(self, network_config):
        fake = FakeWASA()
        result = HindcastScheduler(network_config, runner=fake).run()

        assert result.success
        c_calls = [i for i, call in enumerate(fake.calls) if call[0] == "C"]
        upstream_calls = [i for i, call in enumerate(fake.calls) if call[0] in ("A", "B")]
        assert max(upstream_calls) < min(c_calls)

        work_dir = result.get("C", "r2").working_dir
        lines = (work_dir / "Time_series" / "subbasin_out.dat").read_text().splitlines()
        assert lines[0].startswith("pre-specified")
        assert lines[2] == "0\t0\t10\t25"
        assert lines[3] == "01012001\t1\t1.1\t1.25"
        assert lines[-1] == "30062002\t181\t1.1\t1.25"
        # 1 Jan to 30 Jun of two years, below three header lines
        assert len(lines) == 3 + 181 + 181

    def test_outputs_complete(self, network_config):
        HindcastScheduler(network_config, runner=FakeWASA()).run()

        for sub in ("A", "B", "C"):
            for year in (2001, 2002):
                for realization in ("r1", "r2"):
                    run_dir = network_config.output_dir / sub / str(year) / realization
                    assert is_complete(run_dir)
                    flow = read_river_flow(run_dir / "River_Flow.out")
                    assert flow.index[0] == pd.Timestamp(year, 1, 1)
                    assert flow.index[-1] == pd.Timestamp(year, 6, 30)

    def test_incomplete_upstream_output(self, network_config):
        network_config.on_failure = FailurePolicy.CONTINUE
        fake = FakeWASA(missing_output={("A", 2002)})

        result = HindcastScheduler(network_config, runner=fake).run()

        assert result.get("A", "r1").success
        assert result.get("B", "r1").success
        for realization in ("r1", "r2"):
            failed = result.get("C", realization)
            assert failed.status is RealizationStatus.FAILED
            assert isinstance(failed.error, DependencyCompletenessError)
            assert failed.error.missing_years == [2002]
            assert "2002" in failed.message
            assert "(A)" in failed.message
        assert not any(call[0] == "C" for call in fake.calls)

    def test_incomplete_upstream_aborts(self, network_config):
        fake = FakeWASA(missing_output={("B", 2001), ("B", 2002)})

        result = HindcastScheduler(network_config, runner=fake).run()

        assert result.aborted
        assert result.summary()["failed"] >= 1
        error = result.failures[0].error
        assert isinstance(error, DependencyCompletenessError)
        assert error.missing_years == [2001, 2002]
        assert not any(call[0] == "C" for call in fake.calls)

    def test_realizations_isolated(self, network_config):
        network_config.on_failure = FailurePolicy.CONTINUE
        fake = FakeWASA(fail={("A", "r2", 2002)})

        result = HindcastScheduler(network_config, runner=fake).run()

        assert result.get("C", "r1").success
        assert result.get("C", "r2").status is RealizationStatus.SKIPPED
        r1_dir = result.get("A", "r1").working_dir
        r2_dir = result.get("A", "r2").working_dir
        assert r1_dir != r2_dir
        assert (network_config.meteo_dir / "r1" / "rain_daily.dat").read_text() == (
            r1_dir / "Time_series" / "rain_daily.dat"
        ).read_text()


class TestTwoSubcatchments:
    """A feeds B through subbasin 10."""

    def test_upstream_complete_before_downstream(self, hindcast_tree):
        config = hindcast_tree()
        fake = FakeWASA()

        result = HindcastScheduler(config, runner=fake).run()

        assert result.success
        assert fake.calls == [("A", "r1", 2001), ("A", "r1", 2002), ("B", "r1", 2001), ("B", "r1", 2002)]

    def test_missing_upstream_year(self, hindcast_tree):
        config = hindcast_tree()
        fake = FakeWASA(missing_output={("A", 2002)})

        result = HindcastScheduler(config, runner=fake).run()

        failed = result.get("B", "r1")
        assert failed.status is RealizationStatus.FAILED
        assert failed.error.missing_years == [2002]
        assert "following years are missing in the dependencies: 2002" in failed.message
        with pytest.raises(DependencyCompletenessError):
            result.raise_on_error()
