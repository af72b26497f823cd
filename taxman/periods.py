"""Fiscal period generation for BAS reporting.

A fiscal year starts on the first day of ``fy_start_month`` in
``fiscal_year_start`` and runs for twelve months.  The functions here are pure:
they take plain values and return :class:`~taxman.models.FiscalPeriod`
instances without touching storage.
"""
from __future__ import annotations

import math
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from .models import FiscalPeriod

MONTHS_IN_YEAR = 12
DEFAULT_FY_START_MONTH = 7

_INCREMENT_MONTHS = {
    "monthly": 1,
    "quarterly": 3,
    "annual": 12,
}

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def align_date_to_financial_year(value: date, fy_start_month: int = DEFAULT_FY_START_MONTH) -> int:
    """Return the start year of the fiscal year that contains ``value``."""

    if value.month >= fy_start_month:
        return value.year
    return value.year - 1


def format_financial_year_label(fiscal_year_start: int) -> str:
    """Return labels such as ``"FY 2024-25"``."""

    shorthand = str(fiscal_year_start + 1)[-2:]
    return f"FY {fiscal_year_start}-{shorthand}"


def generate_periods(
    fiscal_year_start: int,
    frequency: str,
    fy_start_month: int = DEFAULT_FY_START_MONTH,
) -> list[FiscalPeriod]:
    """Split one fiscal year into contiguous, inclusive reporting periods.

    Args:
        fiscal_year_start: Calendar year in which the fiscal year begins, e.g.
            ``2024`` for FY 2024-25.
        frequency: ``"monthly"``, ``"quarterly"`` or ``"annual"``.
        fy_start_month: First month of the fiscal year, 1 (January) to 12.

    Returns:
        Periods ordered by start date, each ending the day before the next one
        starts, together spanning exactly twelve months.
    """

    increment = _INCREMENT_MONTHS.get(frequency, MONTHS_IN_YEAR)
    period_count = math.ceil(MONTHS_IN_YEAR / increment)
    year_label = format_financial_year_label(fiscal_year_start)
    absolute_start = date(fiscal_year_start, fy_start_month, 1)

    periods = []
    for offset in range(period_count):
        start = absolute_start + relativedelta(months=offset * increment)
        end = absolute_start + relativedelta(months=(offset + 1) * increment) - timedelta(days=1)
        periods.append(
            FiscalPeriod(
                label=_format_period_label(frequency, offset + 1, start, year_label),
                index=offset + 1,
                start=start,
                end=end,
            )
        )
    return periods


def _format_period_label(frequency: str, index: int, start: date, year_label: str) -> str:
    if frequency == "monthly":
        return f"{MONTH_NAMES[start.month - 1]} {year_label}"
    if frequency == "quarterly":
        return f"Q{index} {year_label}"
    return year_label
