"""BAS (Business Activity Statement) summary calculation.

Sales come from invoice totals and purchases from expenses.  The recognition
basis only changes which invoice date decides period membership:

* ``accrual`` counts an invoice in the period containing its issue date.
* ``cash`` counts it in the period containing its cash received date, and not
  at all while that date is missing.

Expenses are always bucketed by ``incurred_date``; there is no separate
"cash paid" date for purchases, so the basis does not affect them.
"""
from __future__ import annotations

import logging

from .database import SQLiteRepository
from .models import BasException, BasSummary, FiscalPeriod, ReportParameters
from .periods import format_financial_year_label, generate_periods

logger = logging.getLogger(__name__)

_SALES_DATE_COLUMN = {
    "accrual": "issue_date",
    "cash": "cash_received_date",
}


def compute_summary(repository: SQLiteRepository, period: FiscalPeriod, basis: str) -> BasSummary:
    """Aggregate GST totals for one period, both ends inclusive."""

    try:
        date_column = _SALES_DATE_COLUMN[basis]
    except KeyError:
        raise ValueError(f"Unknown GST basis: {basis}") from None

    sales_ex, sales_gst = repository.sum_sales(date_column, period.start, period.end)
    purchases_ex, purchases_gst = repository.sum_purchases(period.start, period.end)

    return BasSummary(
        basis=basis,
        period_start=period.start,
        period_end=period.end,
        sales_ex_cents=sales_ex,
        sales_gst_cents=sales_gst,
        purchases_ex_cents=purchases_ex,
        purchases_gst_cents=purchases_gst,
    )


def collect_exceptions(
    repository: SQLiteRepository,
    parameters: ReportParameters,
    periods: list[FiscalPeriod],
) -> list[BasException]:
    """Return items needing review before the report can be relied on.

    Stored, unresolved exceptions are always included.  On a cash basis every
    invoice issued during the fiscal year without a cash received date is
    listed as well, since it contributes to none of the periods.
    """

    exceptions = repository.list_open_exceptions()
    if parameters.basis == "cash" and periods:
        for invoice in repository.list_uncollected_invoices(periods[0].start, periods[-1].end):
            exceptions.append(
                BasException(
                    source_type="invoice",
                    source_id=invoice.id,
                    kind="uncollected_invoice",
                    message=(
                        f"Invoice {invoice.invoice_number} issued {invoice.issue_date.isoformat()} "
                        "has no cash received date and is excluded from cash-basis totals"
                    ),
                )
            )
    return exceptions


def build_report(repository: SQLiteRepository, parameters: ReportParameters) -> dict[str, object]:
    """Generate the periods of a fiscal year and summarise each of them."""

    periods = generate_periods(
        parameters.fiscal_year_start,
        parameters.frequency,
        parameters.fy_start_month,
    )
    entries = [
        {
            "period": period.as_payload(),
            "summary": compute_summary(repository, period, parameters.basis).as_payload(),
        }
        for period in periods
    ]
    exceptions = collect_exceptions(repository, parameters, periods)
    logger.info(
        "Computed %s BAS report for %s (%d periods, %d exceptions)",
        parameters.basis,
        format_financial_year_label(parameters.fiscal_year_start),
        len(periods),
        len(exceptions),
    )
    return {
        "request": parameters.as_payload(),
        "fiscalYearLabel": format_financial_year_label(parameters.fiscal_year_start),
        "periods": entries,
        "exceptions": [exception.as_payload() for exception in exceptions],
    }
