"""Tests for the FastAPI application endpoints."""

import json
from datetime import datetime, timezone

from conftest import CLIENT_ID, EMPLOYEE_ID, GST_CODE_ID

from taxman.periods import align_date_to_financial_year

SETTINGS = {
    "legalName": "Main Co",
    "abn": "12345678901",
    "gstBasis": "cash",
    "basFrequency": "quarterly",
    "fyStartMonth": 7,
}


def _invoice_payload(**overrides):
    payload = {
        "clientId": CLIENT_ID,
        "issueDate": "2024-07-01",
        "dueDate": "2024-07-08",
        "lines": [
            {
                "employeeId": EMPLOYEE_ID,
                "description": "Consulting",
                "quantity": 1,
                "unit": "hour",
                "rate": 0,
                "gstCodeId": GST_CODE_ID,
                "overrideRate": False,
            }
        ],
    }
    payload.update(overrides)
    return payload


def _line(**overrides):
    line = {
        "employeeId": EMPLOYEE_ID,
        "description": "Consulting block",
        "quantity": 2,
        "unit": "day",
        "rate": 150,
        "gstCodeId": GST_CODE_ID,
        "overrideRate": True,
    }
    line.update(overrides)
    return line


class TestHealthEndpoint:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestSettings:

    def test_settings_empty_then_saved(self, client):
        assert client.get("/api/settings").json() == {"data": None}

        resp = client.put("/api/settings", json=SETTINGS)
        assert resp.status_code == 200
        assert client.get("/api/settings").json()["data"] == SETTINGS

    def test_invalid_abn_rejected(self, client):
        resp = client.put("/api/settings", json={**SETTINGS, "abn": "123"})
        assert resp.status_code == 422


class TestBasReport:

    def test_uses_company_defaults(self, client):
        client.put("/api/settings", json=SETTINGS)
        client.post(
            "/api/invoices",
            json=_invoice_payload(issueDate="2024-07-10", cashReceivedDate="2024-07-20", lines=[_line(quantity=8)]),
        )
        client.post(
            "/api/expenses",
            json={
                "supplierName": "Office Supplies",
                "amountExCents": 40_000,
                "gstCents": 4_000,
                "incurredDate": "2024-07-12",
            },
        )

        resp = client.get("/api/reports/bas", params={"fiscalYearStart": 2024})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["request"] == {"frequency": "quarterly", "basis": "cash", "fiscalYearStart": 2024, "fyStartMonth": 7}
        assert data["fiscalYearLabel"] == "FY 2024-25"
        assert len(data["periods"]) == 4

        first = data["periods"][0]
        assert first["period"]["label"] == "Q1 FY 2024-25"
        assert first["summary"]["salesExCents"] == 120_000
        assert first["summary"]["salesGstCents"] == 12_000
        assert first["summary"]["purchasesExCents"] == 40_000
        assert first["summary"]["netGstCents"] == 8_000

    def test_query_overrides(self, client):
        client.put("/api/settings", json={**SETTINGS, "basFrequency": "annual"})
        client.post("/api/invoices", json=_invoice_payload(issueDate="2025-07-04", lines=[_line(quantity=5)]))

        resp = client.get(
            "/api/reports/bas",
            params={"frequency": "monthly", "basis": "accrual", "fiscalYearStart": 2025, "fyStartMonth": 7},
        )
        data = resp.json()["data"]
        assert data["request"]["frequency"] == "monthly"
        assert data["request"]["basis"] == "accrual"
        assert data["fiscalYearLabel"] == "FY 2025-26"
        assert len(data["periods"]) == 12
        assert data["periods"][0]["period"]["label"] == "Jul FY 2025-26"
        assert data["periods"][0]["summary"]["salesExCents"] == 75_000

    def test_defaults_without_settings_use_configuration(self, client):
        data = client.get("/api/reports/bas").json()["data"]
        expected_year = align_date_to_financial_year(datetime.now(timezone.utc).date(), 7)
        assert data["request"] == {
            "frequency": "quarterly",
            "basis": "cash",
            "fiscalYearStart": expected_year,
            "fyStartMonth": 7,
        }

    def test_cash_report_lists_uncollected_invoice(self, client):
        created = client.post("/api/invoices", json=_invoice_payload(issueDate="2024-07-10")).json()["data"]
        data = client.get("/api/reports/bas", params={"basis": "cash", "fiscalYearStart": 2024}).json()["data"]

        assert all(entry["summary"]["salesExCents"] == 0 for entry in data["periods"])
        assert [e["sourceId"] for e in data["exceptions"]] == [created["id"]]

    def test_invalid_frequency(self, client):
        resp = client.get("/api/reports/bas", params={"frequency": "weekly"})
        assert resp.status_code == 422


class TestInvoices:

    def test_sequential_numbers_and_cash_dates(self, client):
        first = client.post("/api/invoices", json=_invoice_payload(cashReceivedDate="2024-07-09"))
        assert first.status_code == 201
        assert first.json()["data"]["invoiceNumber"] == 1
        assert first.json()["data"]["cashReceivedDate"] == "2024-07-09"

        second = client.post("/api/invoices", json=_invoice_payload(issueDate="2024-07-15", cashReceivedDate="2024-07-25"))
        assert second.json()["data"]["invoiceNumber"] == 2

        listed = client.get("/api/invoices").json()["data"]
        assert [(row["invoiceNumber"], row["cashReceivedDate"]) for row in listed] == [
            (1, "2024-07-09"),
            (2, "2024-07-25"),
        ]

    def test_due_date_defaults_from_payment_terms(self, client):
        payload = _invoice_payload(issueDate="2024-08-01")
        del payload["dueDate"]
        resp = client.post("/api/invoices", json=payload)
        assert resp.json()["data"]["dueDate"] == "2024-08-15"

    def test_detail_includes_lines(self, client):
        created = client.post(
            "/api/invoices",
            json=_invoice_payload(reference="INV-0001", notes="Thanks!", lines=[_line()]),
        ).json()["data"]

        detail = client.get(f"/api/invoices/{created['id']}").json()["data"]
        assert detail["reference"] == "INV-0001"
        assert detail["totalIncCents"] == 33_000
        (line,) = detail["lines"]
        assert line["employeeId"] == EMPLOYEE_ID
        assert line["unit"] == "day"
        assert line["rate"] == 150
        assert line["overrideRate"] is True
        assert line["amountExCents"] == 30_000

    def test_update_replaces_lines(self, client):
        created = client.post("/api/invoices", json=_invoice_payload(lines=[_line(quantity=1, rate=120)])).json()["data"]

        resp = client.put(
            f"/api/invoices/{created['id']}",
            json=_invoice_payload(
                issueDate="2024-08-01",
                dueDate="2024-08-10",
                cashReceivedDate="2024-08-12",
                reference="INV-EDIT",
                lines=[_line(description="Updated description", rate=300)],
            ),
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["invoiceNumber"] == created["invoiceNumber"]
        assert data["issueDate"] == "2024-08-01"
        assert data["reference"] == "INV-EDIT"
        assert data["totalIncCents"] == 66_000
        assert len(client.get(f"/api/invoices/{created['id']}").json()["data"]["lines"]) == 1

    def test_delete_and_not_found(self, client):
        created = client.post("/api/invoices", json=_invoice_payload()).json()["data"]

        assert client.delete(f"/api/invoices/{created['id']}").status_code == 204
        resp = client.get(f"/api/invoices/{created['id']}")
        assert resp.status_code == 404
        assert "not found" in resp.json()["message"]

    def test_delete_with_receipt_is_refused(self, client):
        created = client.post("/api/invoices", json=_invoice_payload()).json()["data"]
        receipt = client.post(
            "/api/receipts",
            json={"invoiceId": created["id"], "receivedDate": "2024-07-20", "amountCents": 11_000},
        )
        assert receipt.status_code == 201

        resp = client.delete(f"/api/invoices/{created['id']}")
        assert resp.status_code == 409
        assert "cannot be deleted" in resp.json()["message"]

    def test_unknown_gst_code(self, client):
        resp = client.post("/api/invoices", json=_invoice_payload(lines=[_line(gstCodeId="missing")]))
        assert resp.status_code == 422
        assert resp.json()["lineIndex"] == 0

    def test_empty_lines_rejected(self, client):
        resp = client.post("/api/invoices", json=_invoice_payload(lines=[]))
        assert resp.status_code == 422


class TestClientRates:

    def test_overlap_conflict(self, client):
        base = {"clientId": CLIENT_ID, "employeeId": EMPLOYEE_ID, "rateCents": 15_000, "unit": "hour"}

        created = client.post("/api/client-rates", json={**base, "effectiveFrom": "2024-07-01", "effectiveTo": "2024-09-30"})
        assert created.status_code == 201
        assert created.json()["data"]["effectiveTo"] == "2024-09-30"

        conflict = client.post("/api/client-rates", json={**base, "effectiveFrom": "2024-09-30", "effectiveTo": "2024-12-31"})
        assert conflict.status_code == 409
        assert "Overlapping rate" in conflict.json()["message"]

        ok = client.post("/api/client-rates", json={**base, "effectiveFrom": "2024-10-01"})
        assert ok.status_code == 201
        assert ok.json()["data"]["effectiveTo"] is None

        rates = client.get("/api/client-rates", params={"clientId": CLIENT_ID}).json()["data"]
        assert [rate["effectiveFrom"] for rate in rates] == ["2024-07-01", "2024-10-01"]
        assert rates[0]["employeeName"] == "Employee A"
        assert client.get("/api/client-rates", params={"clientId": "other"}).json()["data"] == []

    def test_inverted_range_rejected(self, client):
        resp = client.post(
            "/api/client-rates",
            json={
                "clientId": CLIENT_ID,
                "employeeId": EMPLOYEE_ID,
                "rateCents": 15_000,
                "effectiveFrom": "2024-07-01",
                "effectiveTo": "2024-06-01",
            },
        )
        assert resp.status_code == 422

    def test_client_rate_drives_invoice_pricing(self, client):
        client.post(
            "/api/client-rates",
            json={"clientId": CLIENT_ID, "employeeId": EMPLOYEE_ID, "rateCents": 18_000, "effectiveFrom": "2024-07-01"},
        )
        data = client.post("/api/invoices", json=_invoice_payload()).json()["data"]
        assert data["lines"][0]["rateCents"] == 18_000
        assert data["totalExCents"] == 18_000


class TestReferenceData:

    def test_create_and_list(self, client):
        assert client.post("/api/gst-codes", json={"code": "FRE", "ratePercent": 0}).status_code == 201
        assert [code["code"] for code in client.get("/api/gst-codes").json()["data"]] == ["FRE", "GST"]

        created = client.post("/api/clients", json={"displayName": "Beta Pty", "paymentTermsDays": 30}).json()["data"]
        assert created["paymentTermsDays"] == 30
        assert len(client.get("/api/clients").json()["data"]) == 2

        employee = client.post("/api/employees", json={"fullName": "Bea", "baseRateCents": 9_000}).json()["data"]
        assert employee["defaultUnit"] == "hour"
        assert len(client.get("/api/employees").json()["data"]) == 2

    def test_expense_with_unknown_gst_code_is_rejected(self, client):
        resp = client.post(
            "/api/expenses",
            json={"supplierName": "X", "amountExCents": 100, "incurredDate": "2024-07-01", "gstCodeId": "missing"},
        )
        assert resp.status_code == 422
        assert resp.json()["message"] == "GST code missing not found"
        assert client.get("/api/expenses").json()["data"] == []

    def test_expense_with_known_gst_code(self, client):
        resp = client.post(
            "/api/expenses",
            json={"supplierName": "X", "amountExCents": 100, "gstCents": 10, "incurredDate": "2024-07-01", "gstCodeId": GST_CODE_ID},
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["gstCodeId"] == GST_CODE_ID


class TestNumericBounds:

    def test_huge_quantity_rejected(self, client):
        resp = client.post("/api/invoices", json=_invoice_payload(lines=[_line(quantity=1e20)]))
        assert resp.status_code == 422
        assert client.get("/api/invoices").json()["data"] == []

    def test_huge_override_rate_rejected(self, client):
        resp = client.post("/api/invoices", json=_invoice_payload(lines=[_line(rate=1e18)]))
        assert resp.status_code == 422

    def test_infinite_quantity_rejected(self, client):
        body = json.dumps(_invoice_payload(lines=[_line(quantity=float("inf"))]))
        resp = client.post("/api/invoices", content=body, headers={"Content-Type": "application/json"})
        assert resp.status_code == 422
        assert resp.json()["message"] == "Request validation failed"

    def test_huge_rate_cents_rejected(self, client):
        resp = client.post(
            "/api/client-rates",
            json={"clientId": CLIENT_ID, "employeeId": EMPLOYEE_ID, "rateCents": 10**20, "effectiveFrom": "2024-07-01"},
        )
        assert resp.status_code == 422
        assert client.get("/api/client-rates", params={"clientId": CLIENT_ID}).json()["data"] == []

    def test_huge_payment_terms_rejected(self, client):
        resp = client.post("/api/clients", json={"displayName": "Far Future", "paymentTermsDays": 10**9})
        assert resp.status_code == 422

    def test_gst_rate_above_one_hundred_percent_rejected(self, client):
        resp = client.post("/api/gst-codes", json={"code": "BAD", "ratePercent": 1000})
        assert resp.status_code == 422
