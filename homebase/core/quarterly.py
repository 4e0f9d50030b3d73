"""Quarterly estimated-tax periods and their due dates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class QuarterRange:
    start: date
    end: date
    due: date


def quarter_ranges(year: int) -> dict[int, QuarterRange]:
    """Quarters 1-4 of a tax year. Q4 is due January 15 of the following year."""
    return {
        1: QuarterRange(date(year, 1, 1), date(year, 3, 31), date(year, 4, 15)),
        2: QuarterRange(date(year, 4, 1), date(year, 6, 30), date(year, 6, 15)),
        3: QuarterRange(date(year, 7, 1), date(year, 9, 30), date(year, 9, 15)),
        4: QuarterRange(date(year, 10, 1), date(year, 12, 31), date(year + 1, 1, 15)),
    }


def quarter_due_date(tax_year: int, quarter: int) -> date:
    return quarter_ranges(tax_year)[quarter].due


def days_until(due: date, today: date) -> int:
    return (due - today).days
