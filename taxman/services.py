"""High-level application services orchestrating the taxman backend.

Services own transaction boundaries and raise the typed errors from
:mod:`taxman.errors`; they know nothing about HTTP.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional
from uuid import uuid4

from .bas import build_report
from .config import AppConfig
from .database import SQLiteRepository
from .errors import ConflictError, IntegrityGuardError, InvalidInputError, NotFoundError, UnknownReferenceError
from .models import CompanySettings, Expense, Invoice, RateRecord, Receipt, ReportParameters
from .periods import align_date_to_financial_year
from .pricing import LineDraft, default_due_date, price_invoice
from .rates import describe_range, find_overlap

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class InvoiceDraft:
    """Invoice header fields plus unpriced lines, as submitted by a caller."""

    client_id: str
    issue_date: date
    lines: list[LineDraft] = field(default_factory=list)
    due_date: Optional[date] = None
    cash_received_date: Optional[date] = None
    status: str = "draft"
    reference: Optional[str] = None
    notes: Optional[str] = None


class SettingsService:
    """Company settings and the defaults they feed into reports."""

    def __init__(self, config: AppConfig, repository: SQLiteRepository) -> None:
        self._config = config
        self._repository = repository

    def get_settings(self) -> Optional[CompanySettings]:
        return self._repository.get_company_settings()

    def save_settings(self, settings: CompanySettings) -> CompanySettings:
        self._repository.save_company_settings(settings)
        logger.info("Company settings saved for %s", settings.legal_name)
        return settings

    def resolve_report_parameters(
        self,
        frequency: Optional[str] = None,
        basis: Optional[str] = None,
        fiscal_year_start: Optional[int] = None,
        fy_start_month: Optional[int] = None,
        today: Optional[date] = None,
    ) -> ReportParameters:
        """Merge explicit values, stored settings and configured defaults.

        Precedence is explicit argument, then the company settings row, then
        :class:`AppConfig`.  A missing ``fiscal_year_start`` becomes the fiscal
        year containing ``today`` (UTC).
        """

        settings = self._repository.get_company_settings()
        if frequency is None:
            frequency = settings.bas_frequency if settings else self._config.default_bas_frequency
        if basis is None:
            basis = settings.gst_basis if settings else self._config.default_gst_basis
        if fy_start_month is None:
            fy_start_month = settings.fy_start_month if settings else self._config.default_fy_start_month
        if fiscal_year_start is None:
            today = today or datetime.now(timezone.utc).date()
            fiscal_year_start = align_date_to_financial_year(today, fy_start_month)
        return ReportParameters(
            frequency=frequency,
            basis=basis,
            fiscal_year_start=fiscal_year_start,
            fy_start_month=fy_start_month,
        )


class ReportService:
    def __init__(self, repository: SQLiteRepository) -> None:
        self._repository = repository

    def bas_report(self, parameters: ReportParameters) -> dict[str, object]:
        return build_report(self._repository, parameters)


class RateService:
    """Creates effective-dated client rates without letting ranges overlap."""

    def __init__(self, repository: SQLiteRepository) -> None:
        self._repository = repository

    def list_rates(self, client_id: Optional[str] = None) -> list[RateRecord]:
        return self._repository.list_rates(client_id)

    def create_rate(
        self,
        client_id: str,
        employee_id: str,
        rate_cents: int,
        unit: str,
        effective_from: date,
        effective_to: Optional[date] = None,
    ) -> RateRecord:
        """Insert a rate unless it overlaps an existing one for the same pair.

        The overlap scan and the insert share one write transaction.

        Raises:
            UnknownReferenceError: the client or employee does not exist.
            ConflictError: the range touches or overlaps an existing range.
        """

        if effective_to is not None and effective_to < effective_from:
            raise InvalidInputError("effectiveTo must not be before effectiveFrom")

        record = RateRecord(
            id=str(uuid4()),
            client_id=client_id,
            employee_id=employee_id,
            rate_cents=rate_cents,
            unit=unit,
            effective_from=effective_from,
            effective_to=effective_to,
        )
        with self._repository.transaction() as repository:
            if repository.get_client(client_id) is None:
                raise UnknownReferenceError(f"Client {client_id} not found")
            employee = repository.get_employee(employee_id)
            if employee is None:
                raise UnknownReferenceError(f"Employee {employee_id} not found")

            conflict = find_overlap(repository, client_id, employee_id, effective_from, effective_to)
            if conflict is not None:
                logger.warning(
                    "Rejected rate %s for client %s / employee %s: overlaps %s",
                    describe_range(record),
                    client_id,
                    employee_id,
                    describe_range(conflict),
                )
                raise ConflictError(
                    f"Overlapping rate for this employee: existing rate {describe_range(conflict)}"
                )
            repository.insert_rate(record)

        record.employee_name = employee.full_name
        logger.info("Created rate %s for client %s / employee %s", record.id, client_id, employee_id)
        return record


class ExpenseService:
    """Records purchases that feed the BAS purchases totals."""

    def __init__(self, repository: SQLiteRepository) -> None:
        self._repository = repository

    def list_expenses(self) -> list[Expense]:
        return self._repository.list_expenses()

    def record_expense(self, expense: Expense) -> Expense:
        """Store an expense after checking its optional GST code exists.

        Raises:
            UnknownReferenceError: ``gst_code_id`` names no stored GST code.
        """

        with self._repository.transaction() as repository:
            if expense.gst_code_id is not None and not repository.get_gst_codes([expense.gst_code_id]):
                raise UnknownReferenceError(f"GST code {expense.gst_code_id} not found")
            repository.insert_expense(expense)

        logger.info("Recorded expense %s from %s: %d cents ex GST", expense.id, expense.supplier_name, expense.amount_ex_cents)
        return expense


class InvoiceService:
    """Prices, numbers, stores and removes invoices."""

    def __init__(self, repository: SQLiteRepository) -> None:
        self._repository = repository

    def list_invoices(self) -> list[Invoice]:
        return self._repository.list_invoices()

    def get_invoice(self, invoice_id: str) -> Invoice:
        invoice = self._repository.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    def create_invoice(self, draft: InvoiceDraft) -> Invoice:
        """Price and store a new invoice under the next invoice number.

        Number assignment, every pricing read and the inserts run in one write
        transaction, so concurrent creations cannot share a number and a
        rejected line leaves nothing behind.
        """

        with self._repository.transaction() as repository:
            invoice = self._price(repository, draft, invoice_id=str(uuid4()), invoice_number=0)
            invoice.invoice_number = repository.next_invoice_number()
            repository.insert_invoice(invoice)

        logger.info(
            "Created invoice %s (#%d) for client %s: %d cents inc GST",
            invoice.id,
            invoice.invoice_number,
            invoice.client_id,
            invoice.total_inc_cents,
        )
        return invoice

    def update_invoice(self, invoice_id: str, draft: InvoiceDraft) -> Invoice:
        """Re-price an invoice and replace all of its lines, keeping its number."""

        with self._repository.transaction() as repository:
            existing = repository.get_invoice(invoice_id)
            if existing is None:
                raise NotFoundError("Invoice", invoice_id)
            invoice = self._price(repository, draft, invoice_id=invoice_id, invoice_number=existing.invoice_number)
            repository.replace_invoice(invoice)

        logger.info("Updated invoice %s (#%d)", invoice.id, invoice.invoice_number)
        return invoice

    def delete_invoice(self, invoice_id: str) -> None:
        """Delete an invoice and its lines unless receipts reference it.

        Raises:
            NotFoundError: no invoice has this id.
            IntegrityGuardError: receipts or receipt allocations point at it.
        """

        with self._repository.transaction() as repository:
            invoice = repository.get_invoice(invoice_id)
            if invoice is None:
                raise NotFoundError("Invoice", invoice_id)
            receipts, allocations = repository.count_invoice_dependents(invoice_id)
            if receipts or allocations:
                logger.warning(
                    "Refused to delete invoice %s: %d receipts, %d allocations",
                    invoice_id,
                    receipts,
                    allocations,
                )
                raise IntegrityGuardError(
                    f"Invoice {invoice.invoice_number} cannot be deleted while "
                    f"{receipts} receipt(s) and {allocations} receipt allocation(s) reference it"
                )
            repository.delete_invoice(invoice_id)

        logger.info("Deleted invoice %s (#%d)", invoice_id, invoice.invoice_number)

    def record_receipt(
        self,
        invoice_id: str,
        received_date: date,
        amount_cents: int,
        notes: Optional[str] = None,
    ) -> Receipt:
        receipt = Receipt(
            id=str(uuid4()),
            invoice_id=invoice_id,
            received_date=received_date,
            amount_cents=amount_cents,
            notes=notes,
        )
        with self._repository.transaction() as repository:
            if repository.get_invoice(invoice_id) is None:
                raise NotFoundError("Invoice", invoice_id)
            repository.insert_receipt(receipt)
        return receipt

    @staticmethod
    def _price(repository: SQLiteRepository, draft: InvoiceDraft, invoice_id: str, invoice_number: int) -> Invoice:
        if not draft.lines:
            raise InvalidInputError("An invoice needs at least one line")

        client = repository.get_client(draft.client_id)
        if client is None:
            raise UnknownReferenceError(f"Client {draft.client_id} not found")

        priced = price_invoice(repository, draft.client_id, draft.issue_date, draft.lines)
        due_date = draft.due_date or default_due_date(draft.issue_date, client.payment_terms_days)
        return Invoice(
            id=invoice_id,
            invoice_number=invoice_number,
            client_id=draft.client_id,
            issue_date=draft.issue_date,
            due_date=due_date,
            cash_received_date=draft.cash_received_date,
            status=draft.status,
            reference=draft.reference,
            notes=draft.notes,
            total_ex_cents=priced.total_ex_cents,
            total_gst_cents=priced.total_gst_cents,
            total_inc_cents=priced.total_inc_cents,
            lines=priced.lines,
        )
