"""Unit tests for pywasa custom exceptions (core/exceptions.py)."""

from __future__ import annotations

from pathlib import Path

import pytest

from pywasa.core.exceptions import (
    ConfigurationError,
    DependencyCompletenessError,
    DependencyGraphError,
    PyWASAError,
    SimulationError,
    StateResolutionError,
)


class TestExceptionHierarchy:
    """Tests for the exception class hierarchy."""

    def test_pywasa_error_is_exception(self) -> None:
        assert issubclass(PyWASAError, Exception)

    @pytest.mark.parametrize(
        "exc_type",
        [
            ConfigurationError,
            DependencyGraphError,
            DependencyCompletenessError,
            StateResolutionError,
            SimulationError,
        ],
    )
    def test_inherits_from_base(self, exc_type: type) -> None:
        assert issubclass(exc_type, PyWASAError)


class TestDependencyCompletenessError:
    """Tests for DependencyCompletenessError attributes."""

    def test_missing_years_sorted(self) -> None:
        err = DependencyCompletenessError("missing", "B", "r1", [2003, 2001])
        assert err.missing_years == [2001, 2003]
        assert err.subcatchment == "B"
        assert err.realization == "r1"
        assert str(err) == "missing"

    def test_defaults(self) -> None:
        err = DependencyCompletenessError("missing", "B", "r1")
        assert err.missing_years == []


class TestSimulationError:
    """Tests for SimulationError attributes."""

    def test_attributes(self) -> None:
        err = SimulationError("failed", subcatchment="A", year=2002, log_file=Path("run_A_2002.log"))
        assert err.subcatchment == "A"
        assert err.year == 2002
        assert err.log_file == Path("run_A_2002.log")

    def test_can_be_caught_as_base(self) -> None:
        with pytest.raises(PyWASAError, match="failed"):
            raise SimulationError("failed")
