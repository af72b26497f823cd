"""Invoice line pricing.

Each line's unit rate is either a manual override or resolved through
:func:`taxman.rates.resolve_rate`; GST is applied per line from the line's GST
code and totals are summed from the already-rounded line figures, so the
invoice totals always equal the sum of its lines.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence
from uuid import uuid4

from .database import SQLiteRepository
from .errors import UnknownReferenceError, UnresolvableRateError
from .models import InvoiceLine
from .rates import resolve_rate


@dataclass(slots=True)
class LineDraft:
    """An invoice line as submitted, before pricing.

    ``rate`` is in dollars and is only used when ``override_rate`` is set and
    the rate is positive.
    """

    employee_id: str
    description: str
    quantity: float
    unit: str
    gst_code_id: str
    rate: float = 0.0
    override_rate: bool = False


@dataclass(slots=True)
class PricedInvoice:
    lines: list[InvoiceLine]
    total_ex_cents: int
    total_gst_cents: int

    @property
    def total_inc_cents(self) -> int:
        return self.total_ex_cents + self.total_gst_cents


def round_cents(value: Decimal | float | int) -> int:
    """Round half away from zero to a whole number of cents."""

    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def default_due_date(issue_date: date, payment_terms_days: int) -> date:
    return issue_date + timedelta(days=payment_terms_days)


def price_invoice(
    repository: SQLiteRepository,
    client_id: str,
    issue_date: date,
    drafts: Sequence[LineDraft],
) -> PricedInvoice:
    """Price every line of an invoice or fail without pricing any.

    GST codes are checked for all lines before any rate is looked up.  Call
    this inside :meth:`SQLiteRepository.transaction` together with the write so
    the rates used are the rates persisted.

    Raises:
        UnknownReferenceError: a GST code or an override line's employee does
            not exist.
        UnresolvableRateError: no rate could be found for a line.
    """

    gst_codes = repository.get_gst_codes(draft.gst_code_id for draft in drafts)
    for index, draft in enumerate(drafts):
        if draft.gst_code_id not in gst_codes:
            raise UnknownReferenceError(f"GST code {draft.gst_code_id} not found", line_index=index)

    lines: list[InvoiceLine] = []
    for index, draft in enumerate(drafts):
        if draft.override_rate and draft.rate > 0:
            if repository.get_employee(draft.employee_id) is None:
                raise UnknownReferenceError(f"Employee {draft.employee_id} not found", line_index=index)
            rate_cents = round_cents(Decimal(str(draft.rate)) * 100)
        else:
            resolved = resolve_rate(repository, client_id, draft.employee_id, issue_date)
            if resolved is None:
                raise UnresolvableRateError(
                    f"Unable to resolve a rate for line {index + 1} (employee {draft.employee_id})",
                    line_index=index,
                )
            rate_cents = resolved

        amount_ex_cents = round_cents(Decimal(str(draft.quantity)) * rate_cents)
        rate_percent = Decimal(str(gst_codes[draft.gst_code_id].rate_percent))
        gst_cents = round_cents(amount_ex_cents * rate_percent / 100)
        lines.append(
            InvoiceLine(
                id=str(uuid4()),
                employee_id=draft.employee_id,
                description=draft.description,
                quantity=draft.quantity,
                unit=draft.unit,
                rate_cents=rate_cents,
                amount_ex_cents=amount_ex_cents,
                gst_cents=gst_cents,
                gst_code_id=draft.gst_code_id,
                override_rate=draft.override_rate,
            )
        )

    return PricedInvoice(
        lines=lines,
        total_ex_cents=sum(line.amount_ex_cents for line in lines),
        total_gst_cents=sum(line.gst_cents for line in lines),
    )
