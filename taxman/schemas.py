"""Request bodies accepted by the HTTP API.

Field names are snake_case in Python and camelCase on the wire.
"""
from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

GstBasis = Literal["cash", "accrual"]
BasFrequency = Literal["monthly", "quarterly", "annual"]
Unit = Literal["hour", "day", "item"]

# Upper bounds keep cent arithmetic and date offsets inside storable ranges.
MAX_RATE_CENTS = 100_000_000
MAX_AMOUNT_CENTS = 10**12
MAX_QUANTITY = 1_000_000
MAX_PAYMENT_TERMS_DAYS = 3650


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SettingsIn(ApiModel):
    legal_name: str = Field(..., min_length=1)
    abn: str = Field(..., pattern=r"^\d{11}$", description="11-digit Australian Business Number")
    gst_basis: GstBasis
    bas_frequency: BasFrequency
    fy_start_month: int = Field(7, ge=1, le=12)


class GstCodeIn(ApiModel):
    code: str = Field(..., min_length=1)
    description: Optional[str] = None
    rate_percent: float = Field(10, ge=0, le=100, allow_inf_nan=False)
    is_active: bool = True


class ClientIn(ApiModel):
    display_name: str = Field(..., min_length=1)
    contact_email: Optional[str] = None
    default_rate_cents: Optional[int] = Field(None, ge=0, le=MAX_RATE_CENTS)
    payment_terms_days: int = Field(0, ge=0, le=MAX_PAYMENT_TERMS_DAYS)
    is_active: bool = True


class EmployeeIn(ApiModel):
    full_name: str = Field(..., min_length=1)
    email: Optional[str] = None
    base_rate_cents: int = Field(..., ge=0, le=MAX_RATE_CENTS)
    default_unit: Unit = "hour"
    is_active: bool = True


class ClientRateIn(ApiModel):
    client_id: str
    employee_id: str
    rate_cents: int = Field(..., ge=0, le=MAX_RATE_CENTS)
    unit: Unit = "hour"
    effective_from: date
    effective_to: Optional[date] = None

    @model_validator(mode="after")
    def check_range(self) -> "ClientRateIn":
        if self.effective_to is not None and self.effective_to < self.effective_from:
            raise ValueError("effectiveTo must not be before effectiveFrom")
        return self


class InvoiceLineIn(ApiModel):
    employee_id: str
    description: str = Field(..., min_length=1)
    quantity: float = Field(1, ge=0, le=MAX_QUANTITY, allow_inf_nan=False)
    unit: Unit = "hour"
    rate: float = Field(
        0, ge=0, le=MAX_RATE_CENTS // 100, allow_inf_nan=False, description="Dollars; only used with overrideRate"
    )
    gst_code_id: str
    override_rate: bool = False


class InvoiceIn(ApiModel):
    client_id: str
    issue_date: date
    due_date: Optional[date] = None
    cash_received_date: Optional[date] = None
    status: str = "draft"
    reference: Optional[str] = None
    notes: Optional[str] = None
    lines: list[InvoiceLineIn] = Field(..., min_length=1)


class ExpenseIn(ApiModel):
    supplier_name: str = Field(..., min_length=1)
    category: Optional[str] = None
    amount_ex_cents: int = Field(..., ge=0, le=MAX_AMOUNT_CENTS)
    gst_cents: int = Field(0, ge=0, le=MAX_AMOUNT_CENTS)
    gst_code_id: Optional[str] = None
    incurred_date: date
    notes: Optional[str] = None


class ReceiptIn(ApiModel):
    invoice_id: str
    received_date: date
    amount_cents: int = Field(..., ge=0, le=MAX_AMOUNT_CENTS)
    notes: Optional[str] = None
