"""Tests for sub-catchments, dependency ordering and run periods."""

from __future__ import annotations

from datetime import date

import pytest

from pywasa.core.catchments import CatchmentNetwork, SubCatchment
from pywasa.core.exceptions import DependencyGraphError
from pywasa.core.period import STOP_MONTH, RunPeriod


JAGUARIBE_ORDER = ["Banabuiu", "Oros", "Salgado", "Castanhao", "Jaguaribe"]
JAGUARIBE_DEPENDENCIES = {
    "Castanhao": {"Oros": 30, "Salgado": 25},
    "Jaguaribe": {"Castanhao": 17, "Banabuiu": 10},
}


class TestSubCatchment:
    """Tests for SubCatchment dataclass."""

    def test_basic_creation(self):
        sub = SubCatchment("Oros")
        assert sub.name == "Oros"
        assert sub.rank == 0
        assert sub.dependencies == {}
        assert sub.has_dependencies is False

    def test_dependencies_normalized(self):
        sub = SubCatchment("Castanhao", rank=3, dependencies={"Oros": "30"})
        assert sub.dependencies == {"Oros": 30}
        assert sub.upstream == ["Oros"]
        assert sub.has_dependencies is True

    def test_invalid_name_characters(self):
        with pytest.raises(ValueError, match="invalid character"):
            SubCatchment("a/b")

    def test_repr(self):
        assert "Oros" in repr(SubCatchment("Oros"))


class TestCatchmentNetwork:
    """Tests for CatchmentNetwork ordering and validation."""

    def test_from_mapping(self):
        net = CatchmentNetwork.from_mapping(JAGUARIBE_ORDER, JAGUARIBE_DEPENDENCIES)
        assert len(net) == 5
        assert net.names == JAGUARIBE_ORDER
        assert net["Castanhao"].rank == 3
        assert net["Jaguaribe"].dependencies == {"Castanhao": 17, "Banabuiu": 10}

    def test_valid_order_unchanged(self):
        net = CatchmentNetwork.from_mapping(JAGUARIBE_ORDER, JAGUARIBE_DEPENDENCIES)
        net.validate_order()
        assert [s.name for s in net.topological_order()] == JAGUARIBE_ORDER

    def test_topological_order_fixes_declared_order(self):
        net = CatchmentNetwork.from_mapping(["B", "A"], {"B": {"A": 10}})
        assert [s.name for s in net.topological_order()] == ["A", "B"]

    def test_invalid_declared_order(self):
        net = CatchmentNetwork.from_mapping(["B", "A"], {"B": {"A": 10}})
        with pytest.raises(DependencyGraphError, match="declared before"):
            net.validate_order()

    def test_cycle(self):
        net = CatchmentNetwork.from_mapping(["A", "B"], {"A": {"B": 1}, "B": {"A": 2}})
        with pytest.raises(DependencyGraphError, match="cycle"):
            net.topological_order()

    def test_self_dependency(self):
        net = CatchmentNetwork.from_mapping(["A"], {"A": {"A": 1}})
        with pytest.raises(DependencyGraphError, match="itself"):
            net.topological_order()

    def test_unknown_upstream(self):
        net = CatchmentNetwork.from_mapping(["A", "B"], {"B": {"X": 1}})
        with pytest.raises(DependencyGraphError, match="unknown sub-catchment 'X'"):
            net.validate_order()

    def test_dependencies_for_unknown_subcatchment(self):
        with pytest.raises(DependencyGraphError, match="unknown sub-catchments"):
            CatchmentNetwork.from_mapping(["A"], {"Z": {"A": 1}})

    def test_duplicate_name(self):
        with pytest.raises(DependencyGraphError, match="Duplicate"):
            CatchmentNetwork([SubCatchment("A"), SubCatchment("A", rank=1)])

    def test_downstream_of(self):
        net = CatchmentNetwork.from_mapping(JAGUARIBE_ORDER, JAGUARIBE_DEPENDENCIES)
        assert net.downstream_of("Oros") == ["Castanhao"]
        assert net.downstream_of("Jaguaribe") == []

    def test_unknown_lookup(self):
        net = CatchmentNetwork.from_mapping(["A"])
        with pytest.raises(KeyError, match="Unknown sub-catchment"):
            net["B"]


class TestRunPeriod:
    """Tests for RunPeriod."""

    def test_years(self):
        period = RunPeriod.from_strings("1981-01-01", "2014-06-30")
        assert period.years[0] == 1981
        assert period.years[-1] == 2014
        assert len(period) == 34

    def test_single_year(self):
        period = RunPeriod(date(2001, 1, 1), date(2001, 6, 30))
        assert period.years == [2001]

    def test_start_month_and_dates(self):
        period = RunPeriod.from_strings("2001-01-01", "2003-06-30")
        assert period.start_month == 1
        assert period.year_start(2002) == date(2002, 1, 1)
        assert period.year_end(2002) == date(2002, STOP_MONTH, 30)

    def test_end_before_start(self):
        with pytest.raises(ValueError, match="before start"):
            RunPeriod.from_strings("2005-01-01", "2001-06-30")
