"""FastAPI application exposing the taxman backend."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import asynccontextmanager
from typing import Annotated, Optional
from uuid import uuid4

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import load_config
from .database import SQLiteRepository
from .errors import TaxmanError
from .models import Client, CompanySettings, Employee, Expense, GstCode
from .pricing import LineDraft
from .schemas import (
    BasFrequency,
    ClientIn,
    ClientRateIn,
    EmployeeIn,
    ExpenseIn,
    GstBasis,
    GstCodeIn,
    InvoiceIn,
    ReceiptIn,
    SettingsIn,
)
from .services import ExpenseService, InvoiceDraft, InvoiceService, RateService, ReportService, SettingsService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Initialise shared services once and reuse them across requests."""

    config = load_config()
    repository = SQLiteRepository(config.database_file)
    repository.initialise_schema()

    app.state.config = config
    app.state.repository = repository
    app.state.settings = SettingsService(config, repository)
    app.state.reports = ReportService(repository)
    app.state.rates = RateService(repository)
    app.state.expenses = ExpenseService(repository)
    app.state.invoices = InvoiceService(repository)
    logger.info("Using database %s", config.database_file)

    yield

    repository.close()


app = FastAPI(lifespan=lifespan, title="taxman backend", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error mapping -------------------------------------------------------------


@app.exception_handler(TaxmanError)
async def handle_taxman_error(request: Request, exc: TaxmanError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.as_payload())


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Rejected inputs are not echoed back; NaN or infinity cannot be rendered as JSON.
    detail = [{key: value for key, value in error.items() if key not in ("input", "ctx")} for error in exc.errors()]
    return JSONResponse(status_code=422, content={"message": "Request validation failed", "detail": jsonable_encoder(detail)})


@app.exception_handler(sqlite3.IntegrityError)
async def handle_integrity_error(request: Request, exc: sqlite3.IntegrityError) -> JSONResponse:
    logger.warning("Constraint violation on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=409, content={"message": f"Constraint violation: {exc}"})


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal Server Error"})


# Dependency injection ------------------------------------------------------

def get_repository() -> SQLiteRepository:
    repository: SQLiteRepository = app.state.repository
    return repository


def get_settings_service() -> SettingsService:
    service: SettingsService = app.state.settings
    return service


def get_report_service() -> ReportService:
    service: ReportService = app.state.reports
    return service


def get_rate_service() -> RateService:
    service: RateService = app.state.rates
    return service


def get_expense_service() -> ExpenseService:
    service: ExpenseService = app.state.expenses
    return service


def get_invoice_service() -> InvoiceService:
    service: InvoiceService = app.state.invoices
    return service


def _invoice_draft(payload: InvoiceIn) -> InvoiceDraft:
    return InvoiceDraft(
        client_id=payload.client_id,
        issue_date=payload.issue_date,
        due_date=payload.due_date,
        cash_received_date=payload.cash_received_date,
        status=payload.status,
        reference=payload.reference,
        notes=payload.notes,
        lines=[
            LineDraft(
                employee_id=line.employee_id,
                description=line.description,
                quantity=line.quantity,
                unit=line.unit,
                rate=line.rate,
                gst_code_id=line.gst_code_id,
                override_rate=line.override_rate,
            )
            for line in payload.lines
        ],
    )


# Routes --------------------------------------------------------------------


@app.get("/health")
def health_check() -> dict[str, str]:
    """Return a basic heartbeat payload for monitoring purposes."""

    return {"status": "ok"}


@app.get("/api/settings")
def get_settings(settings_service: Annotated[SettingsService, Depends(get_settings_service)]) -> dict[str, object]:
    settings = settings_service.get_settings()
    return {"data": settings.as_payload() if settings else None}


@app.put("/api/settings")
def put_settings(
    payload: SettingsIn,
    settings_service: Annotated[SettingsService, Depends(get_settings_service)],
) -> dict[str, object]:
    settings = settings_service.save_settings(CompanySettings(**payload.model_dump()))
    return {"data": settings.as_payload()}


@app.get("/api/gst-codes")
def list_gst_codes(repository: Annotated[SQLiteRepository, Depends(get_repository)]) -> dict[str, object]:
    return {"data": [code.as_payload() for code in repository.list_gst_codes()]}


@app.post("/api/gst-codes", status_code=201)
def create_gst_code(
    payload: GstCodeIn,
    repository: Annotated[SQLiteRepository, Depends(get_repository)],
) -> dict[str, object]:
    gst_code = GstCode(id=str(uuid4()), **payload.model_dump())
    repository.insert_gst_code(gst_code)
    return {"data": gst_code.as_payload()}


@app.get("/api/clients")
def list_clients(repository: Annotated[SQLiteRepository, Depends(get_repository)]) -> dict[str, object]:
    return {"data": [client.as_payload() for client in repository.list_clients()]}


@app.post("/api/clients", status_code=201)
def create_client(
    payload: ClientIn,
    repository: Annotated[SQLiteRepository, Depends(get_repository)],
) -> dict[str, object]:
    client = Client(id=str(uuid4()), **payload.model_dump())
    repository.insert_client(client)
    return {"data": client.as_payload()}


@app.get("/api/employees")
def list_employees(repository: Annotated[SQLiteRepository, Depends(get_repository)]) -> dict[str, object]:
    return {"data": [employee.as_payload() for employee in repository.list_employees()]}


@app.post("/api/employees", status_code=201)
def create_employee(
    payload: EmployeeIn,
    repository: Annotated[SQLiteRepository, Depends(get_repository)],
) -> dict[str, object]:
    employee = Employee(id=str(uuid4()), **payload.model_dump())
    repository.insert_employee(employee)
    return {"data": employee.as_payload()}


@app.get("/api/expenses")
def list_expenses(expense_service: Annotated[ExpenseService, Depends(get_expense_service)]) -> dict[str, object]:
    return {"data": [expense.as_payload() for expense in expense_service.list_expenses()]}


@app.post("/api/expenses", status_code=201)
def create_expense(
    payload: ExpenseIn,
    expense_service: Annotated[ExpenseService, Depends(get_expense_service)],
) -> dict[str, object]:
    expense = expense_service.record_expense(Expense(id=str(uuid4()), **payload.model_dump()))
    return {"data": expense.as_payload()}


@app.get("/api/client-rates")
def list_client_rates(
    client_id: Annotated[Optional[str], Query(alias="clientId")] = None,
    rate_service: Annotated[RateService, Depends(get_rate_service)] = None,
) -> dict[str, object]:
    return {"data": [rate.as_payload() for rate in rate_service.list_rates(client_id)]}


@app.post("/api/client-rates", status_code=201)
def create_client_rate(
    payload: ClientRateIn,
    rate_service: Annotated[RateService, Depends(get_rate_service)],
) -> dict[str, object]:
    record = rate_service.create_rate(
        client_id=payload.client_id,
        employee_id=payload.employee_id,
        rate_cents=payload.rate_cents,
        unit=payload.unit,
        effective_from=payload.effective_from,
        effective_to=payload.effective_to,
    )
    return {"data": record.as_payload()}


@app.get("/api/invoices")
def list_invoices(invoice_service: Annotated[InvoiceService, Depends(get_invoice_service)]) -> dict[str, object]:
    return {"data": [invoice.as_payload(include_lines=False) for invoice in invoice_service.list_invoices()]}


@app.post("/api/invoices", status_code=201)
def create_invoice(
    payload: InvoiceIn,
    invoice_service: Annotated[InvoiceService, Depends(get_invoice_service)],
) -> dict[str, object]:
    invoice = invoice_service.create_invoice(_invoice_draft(payload))
    return {"data": invoice.as_payload()}


@app.get("/api/invoices/{invoice_id}")
def get_invoice(
    invoice_id: str,
    invoice_service: Annotated[InvoiceService, Depends(get_invoice_service)],
) -> dict[str, object]:
    return {"data": invoice_service.get_invoice(invoice_id).as_payload()}


@app.put("/api/invoices/{invoice_id}")
def update_invoice(
    invoice_id: str,
    payload: InvoiceIn,
    invoice_service: Annotated[InvoiceService, Depends(get_invoice_service)],
) -> dict[str, object]:
    invoice = invoice_service.update_invoice(invoice_id, _invoice_draft(payload))
    return {"data": invoice.as_payload()}


@app.delete("/api/invoices/{invoice_id}", status_code=204)
def delete_invoice(
    invoice_id: str,
    invoice_service: Annotated[InvoiceService, Depends(get_invoice_service)],
) -> Response:
    invoice_service.delete_invoice(invoice_id)
    return Response(status_code=204)


@app.post("/api/receipts", status_code=201)
def create_receipt(
    payload: ReceiptIn,
    invoice_service: Annotated[InvoiceService, Depends(get_invoice_service)],
) -> dict[str, object]:
    receipt = invoice_service.record_receipt(
        invoice_id=payload.invoice_id,
        received_date=payload.received_date,
        amount_cents=payload.amount_cents,
        notes=payload.notes,
    )
    return {"data": receipt.as_payload()}


@app.get("/api/reports/bas")
def bas_report(
    frequency: Optional[BasFrequency] = None,
    basis: Optional[GstBasis] = None,
    fiscal_year_start: Annotated[Optional[int], Query(alias="fiscalYearStart", ge=1900, le=9998)] = None,
    fy_start_month: Annotated[Optional[int], Query(alias="fyStartMonth", ge=1, le=12)] = None,
    settings_service: Annotated[SettingsService, Depends(get_settings_service)] = None,
    report_service: Annotated[ReportService, Depends(get_report_service)] = None,
) -> dict[str, object]:
    """Summarise GST for every period of one fiscal year."""

    parameters = settings_service.resolve_report_parameters(
        frequency=frequency,
        basis=basis,
        fiscal_year_start=fiscal_year_start,
        fy_start_month=fy_start_month,
    )
    return {"data": report_service.bas_report(parameters)}
