"""SQLite persistence layer for the taxman backend.

The repository offers a small, typed API that hides SQL from the rest of the
code.  It relies on the standard library :mod:`sqlite3` module.  One
connection is shared by the process; a re-entrant lock serialises access to it
and :meth:`SQLiteRepository.transaction` opens ``BEGIN IMMEDIATE`` units of
work so read-then-write sequences cannot interleave.
"""
from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .models import (
    BasException,
    Client,
    CompanySettings,
    Employee,
    Expense,
    GstCode,
    Invoice,
    InvoiceLine,
    RateRecord,
    Receipt,
)

SETTINGS_ID = "company-settings"
INVOICE_COUNTER = "invoice_number"

# Invoice columns a BAS sales aggregate may filter on.
_SALES_DATE_COLUMNS = {"issue_date", "cash_received_date"}


class SQLiteRepository:
    """Encapsulates all SQLite access for the application."""

    def __init__(self, database_path: Path | str) -> None:
        self._database_path = database_path
        self._connection = sqlite3.connect(
            database_path,
            check_same_thread=False,
            isolation_level=None,
        )
        self._connection.execute("PRAGMA foreign_keys = ON;")
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.RLock()

    def close(self) -> None:
        """Close the underlying SQLite connection."""

        with self._lock:
            self._connection.close()

    @contextmanager
    def transaction(self) -> Iterator[SQLiteRepository]:
        """Run the enclosed block as one write-locked unit of work.

        ``BEGIN IMMEDIATE`` takes SQLite's reserved lock up front, so no other
        writer can slip in between the reads and writes performed inside the
        block.  Any exception rolls the whole block back and is re-raised.
        """

        with self._lock:
            self._connection.execute("BEGIN IMMEDIATE")
            try:
                yield self
            except BaseException:
                self._connection.execute("ROLLBACK")
                raise
            else:
                self._connection.execute("COMMIT")

    # ------------------------------------------------------------------
    # Schema management
    # ------------------------------------------------------------------
    def initialise_schema(self) -> None:
        """Create all tables required by the application if they do not exist."""

        with self._lock:
            self._connection.executescript(
                """
                CREATE TABLE IF NOT EXISTS company_settings (
                    id TEXT PRIMARY KEY,
                    legal_name TEXT NOT NULL,
                    abn TEXT NOT NULL,
                    gst_basis TEXT NOT NULL,
                    bas_frequency TEXT NOT NULL,
                    fy_start_month INTEGER NOT NULL DEFAULT 7
                );

                CREATE TABLE IF NOT EXISTS gst_codes (
                    id TEXT PRIMARY KEY,
                    code TEXT NOT NULL,
                    description TEXT,
                    rate_percent REAL NOT NULL DEFAULT 10,
                    is_active INTEGER NOT NULL DEFAULT 1
                );

                CREATE TABLE IF NOT EXISTS clients (
                    id TEXT PRIMARY KEY,
                    display_name TEXT NOT NULL,
                    contact_email TEXT,
                    default_rate_cents INTEGER,
                    payment_terms_days INTEGER NOT NULL DEFAULT 0,
                    is_active INTEGER NOT NULL DEFAULT 1
                );

                CREATE TABLE IF NOT EXISTS employees (
                    id TEXT PRIMARY KEY,
                    full_name TEXT NOT NULL,
                    email TEXT,
                    base_rate_cents INTEGER NOT NULL DEFAULT 0,
                    default_unit TEXT NOT NULL DEFAULT 'hour',
                    is_active INTEGER NOT NULL DEFAULT 1
                );

                CREATE TABLE IF NOT EXISTS client_rates (
                    id TEXT PRIMARY KEY,
                    client_id TEXT NOT NULL REFERENCES clients(id),
                    employee_id TEXT NOT NULL REFERENCES employees(id),
                    rate_cents INTEGER NOT NULL,
                    unit TEXT NOT NULL DEFAULT 'hour',
                    effective_from TEXT NOT NULL,
                    effective_to TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_client_rates_pair
                    ON client_rates (client_id, employee_id, effective_from);

                CREATE TABLE IF NOT EXISTS invoices (
                    id TEXT PRIMARY KEY,
                    invoice_number INTEGER NOT NULL UNIQUE,
                    client_id TEXT NOT NULL REFERENCES clients(id),
                    issue_date TEXT NOT NULL,
                    due_date TEXT NOT NULL,
                    cash_received_date TEXT,
                    status TEXT NOT NULL DEFAULT 'draft',
                    reference TEXT,
                    total_ex_cents INTEGER NOT NULL DEFAULT 0,
                    total_gst_cents INTEGER NOT NULL DEFAULT 0,
                    total_inc_cents INTEGER NOT NULL DEFAULT 0,
                    notes TEXT
                );

                CREATE TABLE IF NOT EXISTS invoice_items (
                    id TEXT PRIMARY KEY,
                    invoice_id TEXT NOT NULL REFERENCES invoices(id),
                    employee_id TEXT NOT NULL REFERENCES employees(id),
                    description TEXT NOT NULL,
                    quantity REAL NOT NULL DEFAULT 0,
                    unit TEXT NOT NULL DEFAULT 'hour',
                    rate_cents INTEGER NOT NULL DEFAULT 0,
                    amount_ex_cents INTEGER NOT NULL DEFAULT 0,
                    gst_cents INTEGER NOT NULL DEFAULT 0,
                    override_rate INTEGER NOT NULL DEFAULT 0,
                    gst_code_id TEXT NOT NULL REFERENCES gst_codes(id),
                    position INTEGER NOT NULL DEFAULT 0
                );

                CREATE TABLE IF NOT EXISTS receipts (
                    id TEXT PRIMARY KEY,
                    invoice_id TEXT NOT NULL REFERENCES invoices(id),
                    received_date TEXT NOT NULL,
                    amount_cents INTEGER NOT NULL,
                    notes TEXT
                );

                CREATE TABLE IF NOT EXISTS receipt_allocations (
                    id TEXT PRIMARY KEY,
                    receipt_id TEXT NOT NULL REFERENCES receipts(id),
                    invoice_id TEXT NOT NULL REFERENCES invoices(id),
                    amount_cents INTEGER NOT NULL
                );

                CREATE TABLE IF NOT EXISTS expenses (
                    id TEXT PRIMARY KEY,
                    supplier_name TEXT NOT NULL,
                    category TEXT,
                    amount_ex_cents INTEGER NOT NULL DEFAULT 0,
                    gst_cents INTEGER NOT NULL DEFAULT 0,
                    gst_code_id TEXT REFERENCES gst_codes(id),
                    incurred_date TEXT NOT NULL,
                    notes TEXT
                );

                CREATE TABLE IF NOT EXISTS exceptions (
                    id TEXT PRIMARY KEY,
                    source_type TEXT NOT NULL,
                    source_id TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    message TEXT NOT NULL,
                    resolved_at TEXT
                );

                CREATE TABLE IF NOT EXISTS counters (
                    name TEXT PRIMARY KEY,
                    value INTEGER NOT NULL
                );
                """
            )

    # ------------------------------------------------------------------
    # Company settings
    # ------------------------------------------------------------------
    def get_company_settings(self) -> Optional[CompanySettings]:
        with self._lock:
            row = self._connection.execute(
                "SELECT * FROM company_settings WHERE id = ?",
                (SETTINGS_ID,),
            ).fetchone()
        if row is None:
            return None
        return CompanySettings(
            legal_name=row["legal_name"],
            abn=row["abn"],
            gst_basis=row["gst_basis"],
            bas_frequency=row["bas_frequency"],
            fy_start_month=row["fy_start_month"],
        )

    def save_company_settings(self, settings: CompanySettings) -> None:
        with self._lock:
            self._connection.execute(
                """
                INSERT INTO company_settings (id, legal_name, abn, gst_basis, bas_frequency, fy_start_month)
                VALUES (:id, :legal_name, :abn, :gst_basis, :bas_frequency, :fy_start_month)
                ON CONFLICT(id) DO UPDATE SET
                    legal_name=excluded.legal_name,
                    abn=excluded.abn,
                    gst_basis=excluded.gst_basis,
                    bas_frequency=excluded.bas_frequency,
                    fy_start_month=excluded.fy_start_month
                """,
                {
                    "id": SETTINGS_ID,
                    "legal_name": settings.legal_name,
                    "abn": settings.abn,
                    "gst_basis": settings.gst_basis,
                    "bas_frequency": settings.bas_frequency,
                    "fy_start_month": settings.fy_start_month,
                },
            )

    # ------------------------------------------------------------------
    # Reference data: GST codes, clients, employees
    # ------------------------------------------------------------------
    def insert_gst_code(self, gst_code: GstCode) -> None:
        with self._lock:
            self._connection.execute(
                """
                INSERT INTO gst_codes (id, code, description, rate_percent, is_active)
                VALUES (?, ?, ?, ?, ?)
                """,
                (gst_code.id, gst_code.code, gst_code.description, gst_code.rate_percent, int(gst_code.is_active)),
            )

    def list_gst_codes(self) -> list[GstCode]:
        with self._lock:
            rows = self._connection.execute("SELECT * FROM gst_codes ORDER BY code").fetchall()
        return [_row_to_gst_code(row) for row in rows]

    def get_gst_codes(self, gst_code_ids: Iterable[str]) -> dict[str, GstCode]:
        """Return the GST codes among ``gst_code_ids`` that exist, keyed by id."""

        ids = sorted(set(gst_code_ids))
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        with self._lock:
            rows = self._connection.execute(
                f"SELECT * FROM gst_codes WHERE id IN ({placeholders})",
                ids,
            ).fetchall()
        return {row["id"]: _row_to_gst_code(row) for row in rows}

    def insert_client(self, client: Client) -> None:
        with self._lock:
            self._connection.execute(
                """
                INSERT INTO clients (id, display_name, contact_email, default_rate_cents, payment_terms_days, is_active)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    client.id,
                    client.display_name,
                    client.contact_email,
                    client.default_rate_cents,
                    client.payment_terms_days,
                    int(client.is_active),
                ),
            )

    def get_client(self, client_id: str) -> Optional[Client]:
        with self._lock:
            row = self._connection.execute("SELECT * FROM clients WHERE id = ?", (client_id,)).fetchone()
        return _row_to_client(row) if row is not None else None

    def list_clients(self) -> list[Client]:
        with self._lock:
            rows = self._connection.execute("SELECT * FROM clients ORDER BY display_name").fetchall()
        return [_row_to_client(row) for row in rows]

    def insert_employee(self, employee: Employee) -> None:
        with self._lock:
            self._connection.execute(
                """
                INSERT INTO employees (id, full_name, email, base_rate_cents, default_unit, is_active)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    employee.id,
                    employee.full_name,
                    employee.email,
                    employee.base_rate_cents,
                    employee.default_unit,
                    int(employee.is_active),
                ),
            )

    def get_employee(self, employee_id: str) -> Optional[Employee]:
        with self._lock:
            row = self._connection.execute("SELECT * FROM employees WHERE id = ?", (employee_id,)).fetchone()
        return _row_to_employee(row) if row is not None else None

    def list_employees(self) -> list[Employee]:
        with self._lock:
            rows = self._connection.execute("SELECT * FROM employees ORDER BY full_name").fetchall()
        return [_row_to_employee(row) for row in rows]

    # ------------------------------------------------------------------
    # Client rates
    # ------------------------------------------------------------------
    def find_effective_rate(self, client_id: str, employee_id: str, on: date) -> Optional[RateRecord]:
        """Return the rate record covering ``on``, latest ``effective_from`` first."""

        iso_date = on.isoformat()
        with self._lock:
            row = self._connection.execute(
                """
                SELECT * FROM client_rates
                WHERE client_id = ?
                  AND employee_id = ?
                  AND effective_from <= ?
                  AND (effective_to IS NULL OR effective_to >= ?)
                ORDER BY effective_from DESC
                LIMIT 1
                """,
                (client_id, employee_id, iso_date, iso_date),
            ).fetchone()
        return _row_to_rate(row) if row is not None else None

    def list_rates_for_pair(self, client_id: str, employee_id: str) -> list[RateRecord]:
        with self._lock:
            rows = self._connection.execute(
                """
                SELECT * FROM client_rates
                WHERE client_id = ? AND employee_id = ?
                ORDER BY effective_from
                """,
                (client_id, employee_id),
            ).fetchall()
        return [_row_to_rate(row) for row in rows]

    def list_rates(self, client_id: Optional[str] = None) -> list[RateRecord]:
        query = """
            SELECT client_rates.*, employees.full_name AS employee_name
            FROM client_rates
            LEFT JOIN employees ON employees.id = client_rates.employee_id
        """
        params: tuple[object, ...] = ()
        if client_id is not None:
            query += " WHERE client_rates.client_id = ?"
            params = (client_id,)
        query += " ORDER BY client_rates.effective_from"
        with self._lock:
            rows = self._connection.execute(query, params).fetchall()
        return [_row_to_rate(row) for row in rows]

    def insert_rate(self, rate: RateRecord) -> None:
        with self._lock:
            self._connection.execute(
                """
                INSERT INTO client_rates (id, client_id, employee_id, rate_cents, unit, effective_from, effective_to)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    rate.id,
                    rate.client_id,
                    rate.employee_id,
                    rate.rate_cents,
                    rate.unit,
                    rate.effective_from.isoformat(),
                    _date_to_iso(rate.effective_to),
                ),
            )

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------
    def next_invoice_number(self) -> int:
        """Advance and return the invoice counter.

        Must run inside :meth:`transaction`.  The counter never goes below the
        highest stored number, so rows inserted by other tools cannot collide.
        """

        with self._lock:
            counter = self._connection.execute(
                "SELECT value FROM counters WHERE name = ?",
                (INVOICE_COUNTER,),
            ).fetchone()
            highest = self._connection.execute(
                "SELECT COALESCE(MAX(invoice_number), 0) AS highest FROM invoices"
            ).fetchone()
            current = counter["value"] if counter is not None else 0
            number = max(current, highest["highest"]) + 1
            self._connection.execute(
                """
                INSERT INTO counters (name, value) VALUES (?, ?)
                ON CONFLICT(name) DO UPDATE SET value = excluded.value
                """,
                (INVOICE_COUNTER, number),
            )
        return number

    def insert_invoice(self, invoice: Invoice) -> None:
        """Insert an invoice header and its lines.  Must run inside :meth:`transaction`."""

        with self._lock:
            self._connection.execute(
                """
                INSERT INTO invoices (
                    id, invoice_number, client_id, issue_date, due_date,
                    cash_received_date, status, reference, total_ex_cents,
                    total_gst_cents, total_inc_cents, notes
                ) VALUES (
                    :id, :invoice_number, :client_id, :issue_date, :due_date,
                    :cash_received_date, :status, :reference, :total_ex_cents,
                    :total_gst_cents, :total_inc_cents, :notes
                )
                """,
                _invoice_params(invoice),
            )
            self._insert_lines(invoice.id, invoice.lines)

    def replace_invoice(self, invoice: Invoice) -> None:
        """Overwrite an invoice header and swap its whole line collection.

        The invoice number is left untouched.  Must run inside
        :meth:`transaction` so a failure restores the previous lines.
        """

        with self._lock:
            self._connection.execute(
                """
                UPDATE invoices SET
                    client_id=:client_id,
                    issue_date=:issue_date,
                    due_date=:due_date,
                    cash_received_date=:cash_received_date,
                    status=:status,
                    reference=:reference,
                    total_ex_cents=:total_ex_cents,
                    total_gst_cents=:total_gst_cents,
                    total_inc_cents=:total_inc_cents,
                    notes=:notes
                WHERE id=:id
                """,
                _invoice_params(invoice),
            )
            self._connection.execute("DELETE FROM invoice_items WHERE invoice_id = ?", (invoice.id,))
            self._insert_lines(invoice.id, invoice.lines)

    def _insert_lines(self, invoice_id: str, lines: Iterable[InvoiceLine]) -> None:
        for position, line in enumerate(lines):
            self._connection.execute(
                """
                INSERT INTO invoice_items (
                    id, invoice_id, employee_id, description, quantity, unit,
                    rate_cents, amount_ex_cents, gst_cents, override_rate,
                    gst_code_id, position
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    line.id,
                    invoice_id,
                    line.employee_id,
                    line.description,
                    line.quantity,
                    line.unit,
                    line.rate_cents,
                    line.amount_ex_cents,
                    line.gst_cents,
                    int(line.override_rate),
                    line.gst_code_id,
                    position,
                ),
            )

    def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        with self._lock:
            row = self._connection.execute("SELECT * FROM invoices WHERE id = ?", (invoice_id,)).fetchone()
            if row is None:
                return None
            line_rows = self._connection.execute(
                "SELECT * FROM invoice_items WHERE invoice_id = ? ORDER BY position",
                (invoice_id,),
            ).fetchall()
        invoice = _row_to_invoice(row)
        invoice.lines = [_row_to_line(line_row) for line_row in line_rows]
        return invoice

    def list_invoices(self) -> list[Invoice]:
        with self._lock:
            rows = self._connection.execute("SELECT * FROM invoices ORDER BY invoice_number").fetchall()
        return [_row_to_invoice(row) for row in rows]

    def list_uncollected_invoices(self, start: date, end: date) -> list[Invoice]:
        """Invoices issued between ``start`` and ``end`` with no cash received date."""

        with self._lock:
            rows = self._connection.execute(
                """
                SELECT * FROM invoices
                WHERE cash_received_date IS NULL
                  AND issue_date >= ? AND issue_date <= ?
                ORDER BY invoice_number
                """,
                (start.isoformat(), end.isoformat()),
            ).fetchall()
        return [_row_to_invoice(row) for row in rows]

    def count_invoice_dependents(self, invoice_id: str) -> tuple[int, int]:
        """Return ``(receipts, receipt_allocations)`` referencing the invoice."""

        with self._lock:
            receipts = self._connection.execute(
                "SELECT COUNT(*) AS total FROM receipts WHERE invoice_id = ?",
                (invoice_id,),
            ).fetchone()
            allocations = self._connection.execute(
                "SELECT COUNT(*) AS total FROM receipt_allocations WHERE invoice_id = ?",
                (invoice_id,),
            ).fetchone()
        return receipts["total"], allocations["total"]

    def delete_invoice(self, invoice_id: str) -> None:
        with self._lock:
            self._connection.execute("DELETE FROM invoice_items WHERE invoice_id = ?", (invoice_id,))
            self._connection.execute("DELETE FROM invoices WHERE id = ?", (invoice_id,))

    # ------------------------------------------------------------------
    # Receipts and expenses
    # ------------------------------------------------------------------
    def insert_receipt(self, receipt: Receipt) -> None:
        with self._lock:
            self._connection.execute(
                """
                INSERT INTO receipts (id, invoice_id, received_date, amount_cents, notes)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    receipt.id,
                    receipt.invoice_id,
                    receipt.received_date.isoformat(),
                    receipt.amount_cents,
                    receipt.notes,
                ),
            )

    def insert_receipt_allocation(self, allocation_id: str, receipt_id: str, invoice_id: str, amount_cents: int) -> None:
        with self._lock:
            self._connection.execute(
                """
                INSERT INTO receipt_allocations (id, receipt_id, invoice_id, amount_cents)
                VALUES (?, ?, ?, ?)
                """,
                (allocation_id, receipt_id, invoice_id, amount_cents),
            )

    def insert_expense(self, expense: Expense) -> None:
        with self._lock:
            self._connection.execute(
                """
                INSERT INTO expenses (id, supplier_name, category, amount_ex_cents, gst_cents, gst_code_id, incurred_date, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    expense.id,
                    expense.supplier_name,
                    expense.category,
                    expense.amount_ex_cents,
                    expense.gst_cents,
                    expense.gst_code_id,
                    expense.incurred_date.isoformat(),
                    expense.notes,
                ),
            )

    def list_expenses(self) -> list[Expense]:
        with self._lock:
            rows = self._connection.execute("SELECT * FROM expenses ORDER BY incurred_date DESC").fetchall()
        return [
            Expense(
                id=row["id"],
                supplier_name=row["supplier_name"],
                category=row["category"],
                amount_ex_cents=row["amount_ex_cents"],
                gst_cents=row["gst_cents"],
                gst_code_id=row["gst_code_id"],
                incurred_date=date.fromisoformat(row["incurred_date"]),
                notes=row["notes"],
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # BAS aggregates
    # ------------------------------------------------------------------
    def sum_sales(self, date_column: str, start: date, end: date) -> tuple[int, int]:
        """Return ``(ex_cents, gst_cents)`` for invoices with ``date_column`` in range.

        Rows whose date column is NULL never satisfy the comparison and are
        therefore left out.
        """

        if date_column not in _SALES_DATE_COLUMNS:
            raise ValueError(f"Unsupported invoice date column: {date_column}")
        with self._lock:
            row = self._connection.execute(
                f"""
                SELECT
                    COALESCE(SUM(total_ex_cents), 0) AS total_ex,
                    COALESCE(SUM(total_gst_cents), 0) AS total_gst
                FROM invoices
                WHERE {date_column} >= ? AND {date_column} <= ?
                """,
                (start.isoformat(), end.isoformat()),
            ).fetchone()
        return int(row["total_ex"]), int(row["total_gst"])

    def sum_purchases(self, start: date, end: date) -> tuple[int, int]:
        """Return ``(ex_cents, gst_cents)`` for expenses incurred in range."""

        with self._lock:
            row = self._connection.execute(
                """
                SELECT
                    COALESCE(SUM(amount_ex_cents), 0) AS total_ex,
                    COALESCE(SUM(gst_cents), 0) AS total_gst
                FROM expenses
                WHERE incurred_date >= ? AND incurred_date <= ?
                """,
                (start.isoformat(), end.isoformat()),
            ).fetchone()
        return int(row["total_ex"]), int(row["total_gst"])

    # ------------------------------------------------------------------
    # Review exceptions
    # ------------------------------------------------------------------
    def record_exception(self, exception: BasException) -> None:
        with self._lock:
            self._connection.execute(
                """
                INSERT INTO exceptions (id, source_type, source_id, kind, message, resolved_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    exception.id,
                    exception.source_type,
                    exception.source_id,
                    exception.kind,
                    exception.message,
                    exception.resolved_at,
                ),
            )

    def list_open_exceptions(self) -> list[BasException]:
        with self._lock:
            rows = self._connection.execute(
                "SELECT * FROM exceptions WHERE resolved_at IS NULL ORDER BY source_type, source_id"
            ).fetchall()
        return [
            BasException(
                id=row["id"],
                source_type=row["source_type"],
                source_id=row["source_id"],
                kind=row["kind"],
                message=row["message"],
                resolved_at=row["resolved_at"],
            )
            for row in rows
        ]


def _date_to_iso(value: Optional[date]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def _iso_to_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value)


def _invoice_params(invoice: Invoice) -> dict[str, object]:
    return {
        "id": invoice.id,
        "invoice_number": invoice.invoice_number,
        "client_id": invoice.client_id,
        "issue_date": invoice.issue_date.isoformat(),
        "due_date": invoice.due_date.isoformat(),
        "cash_received_date": _date_to_iso(invoice.cash_received_date),
        "status": invoice.status,
        "reference": invoice.reference,
        "total_ex_cents": invoice.total_ex_cents,
        "total_gst_cents": invoice.total_gst_cents,
        "total_inc_cents": invoice.total_inc_cents,
        "notes": invoice.notes,
    }


def _row_to_gst_code(row: sqlite3.Row) -> GstCode:
    return GstCode(
        id=row["id"],
        code=row["code"],
        description=row["description"],
        rate_percent=float(row["rate_percent"]),
        is_active=bool(row["is_active"]),
    )


def _row_to_client(row: sqlite3.Row) -> Client:
    return Client(
        id=row["id"],
        display_name=row["display_name"],
        contact_email=row["contact_email"],
        default_rate_cents=row["default_rate_cents"],
        payment_terms_days=row["payment_terms_days"],
        is_active=bool(row["is_active"]),
    )


def _row_to_employee(row: sqlite3.Row) -> Employee:
    return Employee(
        id=row["id"],
        full_name=row["full_name"],
        email=row["email"],
        base_rate_cents=row["base_rate_cents"],
        default_unit=row["default_unit"],
        is_active=bool(row["is_active"]),
    )


def _row_to_rate(row: sqlite3.Row) -> RateRecord:
    return RateRecord(
        id=row["id"],
        client_id=row["client_id"],
        employee_id=row["employee_id"],
        rate_cents=row["rate_cents"],
        unit=row["unit"],
        effective_from=date.fromisoformat(row["effective_from"]),
        effective_to=_iso_to_date(row["effective_to"]),
        employee_name=row["employee_name"] if "employee_name" in row.keys() else None,
    )


def _row_to_invoice(row: sqlite3.Row) -> Invoice:
    return Invoice(
        id=row["id"],
        invoice_number=row["invoice_number"],
        client_id=row["client_id"],
        issue_date=date.fromisoformat(row["issue_date"]),
        due_date=date.fromisoformat(row["due_date"]),
        cash_received_date=_iso_to_date(row["cash_received_date"]),
        status=row["status"],
        reference=row["reference"],
        total_ex_cents=row["total_ex_cents"],
        total_gst_cents=row["total_gst_cents"],
        total_inc_cents=row["total_inc_cents"],
        notes=row["notes"],
    )


def _row_to_line(row: sqlite3.Row) -> InvoiceLine:
    return InvoiceLine(
        id=row["id"],
        employee_id=row["employee_id"],
        description=row["description"],
        quantity=row["quantity"],
        unit=row["unit"],
        rate_cents=row["rate_cents"],
        amount_ex_cents=row["amount_ex_cents"],
        gst_cents=row["gst_cents"],
        override_rate=bool(row["override_rate"]),
        gst_code_id=row["gst_code_id"],
    )
