"""Domain models used by the taxman backend.

The classes defined here are lightweight data containers that do not know
anything about SQL or HTTP.  Dates are :class:`datetime.date` instances and
money is always integer cents; conversion to ISO strings happens in
``as_payload`` at the transport boundary.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(slots=True, frozen=True)
class FiscalPeriod:
    """One reporting sub-period of a fiscal year.

    Both :attr:`start` and :attr:`end` are inclusive calendar dates.
    """

    label: str
    index: int
    start: date
    end: date

    def as_payload(self) -> dict[str, object]:
        return {
            "label": self.label,
            "index": self.index,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
        }


@dataclass(slots=True, frozen=True)
class ReportParameters:
    """Fully-resolved inputs for a BAS report request.

    Callers merge query overrides, stored company settings and configuration
    defaults before building this object; the report engine never looks any of
    them up itself.
    """

    frequency: str
    basis: str
    fiscal_year_start: int
    fy_start_month: int

    def as_payload(self) -> dict[str, object]:
        return {
            "frequency": self.frequency,
            "basis": self.basis,
            "fiscalYearStart": self.fiscal_year_start,
            "fyStartMonth": self.fy_start_month,
        }


@dataclass(slots=True)
class CompanySettings:
    legal_name: str
    abn: str
    gst_basis: str
    bas_frequency: str
    fy_start_month: int = 7

    def as_payload(self) -> dict[str, object]:
        return {
            "legalName": self.legal_name,
            "abn": self.abn,
            "gstBasis": self.gst_basis,
            "basFrequency": self.bas_frequency,
            "fyStartMonth": self.fy_start_month,
        }


@dataclass(slots=True)
class GstCode:
    id: str
    code: str
    rate_percent: float = 10.0
    description: Optional[str] = None
    is_active: bool = True

    def as_payload(self) -> dict[str, object]:
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "ratePercent": self.rate_percent,
            "isActive": self.is_active,
        }


@dataclass(slots=True)
class Client:
    id: str
    display_name: str
    contact_email: Optional[str] = None
    default_rate_cents: Optional[int] = None
    payment_terms_days: int = 0
    is_active: bool = True

    def as_payload(self) -> dict[str, object]:
        return {
            "id": self.id,
            "displayName": self.display_name,
            "contactEmail": self.contact_email,
            "defaultRateCents": self.default_rate_cents,
            "paymentTermsDays": self.payment_terms_days,
            "isActive": self.is_active,
        }


@dataclass(slots=True)
class Employee:
    """A person whose time is billed.

    :attr:`base_rate_cents` is the fallback rate when no client-specific
    :class:`RateRecord` covers the invoice date.
    """

    id: str
    full_name: str
    base_rate_cents: int = 0
    default_unit: str = "hour"
    email: Optional[str] = None
    is_active: bool = True

    def as_payload(self) -> dict[str, object]:
        return {
            "id": self.id,
            "fullName": self.full_name,
            "email": self.email,
            "baseRateCents": self.base_rate_cents,
            "defaultUnit": self.default_unit,
            "isActive": self.is_active,
        }


@dataclass(slots=True)
class RateRecord:
    """Effective-dated billing rate for a (client, employee) pair.

    ``effective_to`` of ``None`` means the rate is open-ended.
    """

    id: str
    client_id: str
    employee_id: str
    rate_cents: int
    unit: str
    effective_from: date
    effective_to: Optional[date] = None
    employee_name: Optional[str] = None

    def as_payload(self) -> dict[str, object]:
        return {
            "id": self.id,
            "clientId": self.client_id,
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "rateCents": self.rate_cents,
            "unit": self.unit,
            "effectiveFrom": self.effective_from.isoformat(),
            "effectiveTo": _iso(self.effective_to),
        }


@dataclass(slots=True)
class InvoiceLine:
    employee_id: str
    description: str
    quantity: float
    unit: str
    rate_cents: int
    amount_ex_cents: int
    gst_code_id: str
    gst_cents: int = 0
    override_rate: bool = False
    id: Optional[str] = None

    def as_payload(self) -> dict[str, object]:
        return {
            "id": self.id,
            "employeeId": self.employee_id,
            "description": self.description,
            "quantity": self.quantity,
            "unit": self.unit,
            "rate": self.rate_cents / 100,
            "rateCents": self.rate_cents,
            "amountExCents": self.amount_ex_cents,
            "gstCents": self.gst_cents,
            "gstCodeId": self.gst_code_id,
            "overrideRate": self.override_rate,
        }


@dataclass(slots=True)
class Invoice:
    id: str
    invoice_number: int
    client_id: str
    issue_date: date
    due_date: date
    total_ex_cents: int
    total_gst_cents: int
    total_inc_cents: int
    status: str = "draft"
    cash_received_date: Optional[date] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    lines: list[InvoiceLine] = field(default_factory=list)

    def as_payload(self, include_lines: bool = True) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": self.id,
            "invoiceNumber": self.invoice_number,
            "clientId": self.client_id,
            "issueDate": self.issue_date.isoformat(),
            "dueDate": self.due_date.isoformat(),
            "cashReceivedDate": _iso(self.cash_received_date),
            "status": self.status,
            "reference": self.reference,
            "notes": self.notes,
            "totalExCents": self.total_ex_cents,
            "totalGstCents": self.total_gst_cents,
            "totalIncCents": self.total_inc_cents,
        }
        if include_lines:
            payload["lines"] = [line.as_payload() for line in self.lines]
        return payload


@dataclass(slots=True)
class Expense:
    id: str
    supplier_name: str
    amount_ex_cents: int
    gst_cents: int
    incurred_date: date
    category: Optional[str] = None
    gst_code_id: Optional[str] = None
    notes: Optional[str] = None

    def as_payload(self) -> dict[str, object]:
        return {
            "id": self.id,
            "supplierName": self.supplier_name,
            "category": self.category,
            "amountExCents": self.amount_ex_cents,
            "gstCents": self.gst_cents,
            "gstCodeId": self.gst_code_id,
            "incurredDate": self.incurred_date.isoformat(),
            "notes": self.notes,
        }


@dataclass(slots=True)
class Receipt:
    id: str
    invoice_id: str
    received_date: date
    amount_cents: int
    notes: Optional[str] = None

    def as_payload(self) -> dict[str, object]:
        return {
            "id": self.id,
            "invoiceId": self.invoice_id,
            "receivedDate": self.received_date.isoformat(),
            "amountCents": self.amount_cents,
            "notes": self.notes,
        }


@dataclass(slots=True)
class BasSummary:
    """Aggregated GST figures for one period under one recognition basis."""

    basis: str
    period_start: date
    period_end: date
    sales_ex_cents: int
    sales_gst_cents: int
    purchases_ex_cents: int
    purchases_gst_cents: int

    @property
    def net_gst_cents(self) -> int:
        """GST payable; negative when a refund is due."""

        return self.sales_gst_cents - self.purchases_gst_cents

    def as_payload(self) -> dict[str, object]:
        return {
            "basis": self.basis,
            "periodStart": self.period_start.isoformat(),
            "periodEnd": self.period_end.isoformat(),
            "salesExCents": self.sales_ex_cents,
            "salesGstCents": self.sales_gst_cents,
            "purchasesExCents": self.purchases_ex_cents,
            "purchasesGstCents": self.purchases_gst_cents,
            "netGstCents": self.net_gst_cents,
        }


@dataclass(slots=True)
class BasException:
    """An item flagged for review before a BAS can be lodged."""

    source_type: str
    source_id: str
    kind: str
    message: str
    id: Optional[str] = None
    resolved_at: Optional[str] = None

    def as_payload(self) -> dict[str, object]:
        return {
            "id": self.id,
            "sourceType": self.source_type,
            "sourceId": self.source_id,
            "kind": self.kind,
            "message": self.message,
            "resolvedAt": self.resolved_at,
        }


__all__ = [
    "BasException",
    "BasSummary",
    "Client",
    "CompanySettings",
    "Employee",
    "Expense",
    "FiscalPeriod",
    "GstCode",
    "Invoice",
    "InvoiceLine",
    "RateRecord",
    "Receipt",
    "ReportParameters",
]
