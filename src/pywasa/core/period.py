"""Simulation period of a hindcast: one run per year, January to June."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

# Every hindcast year is simulated until the end of June.
STOP_MONTH = 6


@dataclass(frozen=True)
class RunPeriod:
    """Overall hindcast period.

    Attributes
    ----------
    start : date
        Nominal start date of the first year. Its month and day are used
        as the start of every simulated year.
    end : date
        End date of the period; its year is the last simulated year.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Period end {self.end} is before start {self.start}")

    @classmethod
    def from_strings(cls, start: str, end: str) -> RunPeriod:
        """Create a period from ISO date strings (YYYY-MM-DD)."""
        return cls(date.fromisoformat(start), date.fromisoformat(end))

    @property
    def years(self) -> list[int]:
        """Simulated years in increasing order."""
        return list(range(self.start.year, self.end.year + 1))

    @property
    def start_month(self) -> int:
        """Start month of each yearly run."""
        return self.start.month

    def year_start(self, year: int) -> date:
        """Nominal start date of a simulated year."""
        return self.start.replace(year=year)

    def year_end(self, year: int) -> date:
        """Last simulated day of a year (30 June)."""
        return date(year, STOP_MONTH, 30)

    def __len__(self) -> int:
        return len(self.years)
