"""Shared fixtures: a fresh SQLite database per test, seeded with reference data."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from taxman.database import SQLiteRepository
from taxman.models import Client, Employee, Expense, GstCode, Invoice

CLIENT_ID = "11111111-1111-4111-8111-111111111119"
EMPLOYEE_ID = "22222222-2222-4222-8222-222222222229"
GST_CODE_ID = "00000000-0000-4000-8000-000000000001"
FREE_CODE_ID = "00000000-0000-4000-8000-000000000002"


@pytest.fixture
def repository(tmp_path):
    """Repository on a temporary database with one client, employee and GST codes."""
    repo = SQLiteRepository(tmp_path / "taxman.db")
    repo.initialise_schema()
    repo.insert_client(Client(id=CLIENT_ID, display_name="Client A", payment_terms_days=14))
    repo.insert_employee(Employee(id=EMPLOYEE_ID, full_name="Employee A", base_rate_cents=10_000))
    repo.insert_gst_code(GstCode(id=GST_CODE_ID, code="GST", rate_percent=10))
    repo.insert_gst_code(GstCode(id=FREE_CODE_ID, code="FRE", rate_percent=0))
    yield repo
    repo.close()


@pytest.fixture
def client(tmp_path, monkeypatch):
    """TestClient whose app lifespan opens a database under tmp_path, pre-seeded."""
    db_file = tmp_path / "api.db"
    seed = SQLiteRepository(db_file)
    seed.initialise_schema()
    seed.insert_client(Client(id=CLIENT_ID, display_name="Client A", payment_terms_days=14))
    seed.insert_employee(Employee(id=EMPLOYEE_ID, full_name="Employee A", base_rate_cents=10_000))
    seed.insert_gst_code(GstCode(id=GST_CODE_ID, code="GST", rate_percent=10))
    seed.close()

    monkeypatch.setenv("TAXMAN_DB_FILE", str(db_file))
    monkeypatch.setenv("TAXMAN_DEFAULT_GST_BASIS", "cash")
    monkeypatch.setenv("TAXMAN_DEFAULT_BAS_FREQUENCY", "quarterly")
    monkeypatch.setenv("TAXMAN_DEFAULT_FY_START_MONTH", "7")

    from taxman.api import app

    with TestClient(app) as test_client:
        yield test_client


def seed_invoice(repo, invoice_id, number, issue_date, total_ex, total_gst, cash_received_date=None):
    """Insert an invoice header directly, bypassing pricing."""
    repo.insert_invoice(
        Invoice(
            id=invoice_id,
            invoice_number=number,
            client_id=CLIENT_ID,
            issue_date=date.fromisoformat(issue_date),
            due_date=date.fromisoformat(issue_date),
            cash_received_date=date.fromisoformat(cash_received_date) if cash_received_date else None,
            status="submitted",
            total_ex_cents=total_ex,
            total_gst_cents=total_gst,
            total_inc_cents=total_ex + total_gst,
        )
    )


def seed_expense(repo, expense_id, incurred_date, amount_ex, gst):
    repo.insert_expense(
        Expense(
            id=expense_id,
            supplier_name="Office Supplies",
            category="General",
            amount_ex_cents=amount_ex,
            gst_cents=gst,
            incurred_date=date.fromisoformat(incurred_date),
        )
    )
