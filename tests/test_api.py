import inspect
import pytest
from decimal import Decimal
from fastapi import status

from invoice_workflow.api.rest.invoices import upload_invoice
from invoice_workflow.models.invoice import InvoiceStatus


def _as(user):
    return {"X-User-Id": str(user.id)}


def test_create_company(client):
    """Test creating a company"""
    response = client.post("/api/companies", json={"name": "Sialkot Sports", "ntn": "4455667-1"})
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["name"] == "Sialkot Sports"
    assert data["accounting_provider"] == "none"
    assert "id" in data


def test_duplicate_company_ntn(client, company):
    response = client.post("/api/companies", json={"name": "Copy Cat", "ntn": company.ntn})
    assert response.status_code == status.HTTP_409_CONFLICT


def test_create_company_blank_name(client):
    response = client.post("/api/companies", json={"name": "   ", "ntn": "1"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_add_member_and_approval_rules(client, company):
    user = client.post("/api/users", json={"email": "ayesha@example.com", "full_name": "Ayesha Khan"}).json()

    response = client.post(f"/api/companies/{company.id}/members", json={"user_id": user["id"], "role": "manager"})
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["role"] == "manager"

    rules = client.get(f"/api/companies/{company.id}/approval-rules").json()
    assert Decimal(rules["manager_only_threshold"]) == Decimal("50000")
    assert rules["require_admin_for_new_vendor"] is True


def test_vendor_endpoints(client, company):
    response = client.post(
        f"/api/companies/{company.id}/vendors",
        json={"name": "Hyderabad Paper Mills", "ntn": "7788990-2", "default_expense_account_id": "5101"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    vendor_id = response.json()["id"]

    duplicate = client.post(f"/api/companies/{company.id}/vendors", json={"name": "Again", "ntn": "7788990-2"})
    assert duplicate.status_code == status.HTTP_409_CONFLICT

    assert client.get(f"/api/companies/{company.id}/vendors/{vendor_id}").status_code == status.HTTP_200_OK
    assert client.get(f"/api/companies/{company.id}/vendors/99999").status_code == status.HTTP_404_NOT_FOUND


def test_unknown_company_is_404(client):
    response = client.get("/api/companies/99999/vendors")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_invoice_lifecycle(client, company, accountant, manager, admin, repeat_vendor):
    """Upload, edit, submit, approve, schedule and execute through the API"""
    response = client.post(
        f"/api/companies/{company.id}/invoices",
        files={"file": ("scan.pdf", b"%PDF-1.4 invoice", "application/pdf")},
        data={"vendor_id": str(repeat_vendor.id)},
        headers=_as(accountant),
    )
    assert response.status_code == status.HTTP_201_CREATED
    invoice = response.json()
    assert invoice["status"] == "draft"
    assert invoice["invoice_number"] == "PENDING"
    invoice_id = invoice["id"]

    response = client.put(
        f"/api/invoices/{invoice_id}/items",
        json=[{"description": "A4 paper, 40 reams", "amount": "40000.00", "expense_account_id": "5101"}],
    )
    assert response.status_code == status.HTTP_200_OK
    assert Decimal(response.json()["total_amount"]) == Decimal("40000.00")

    response = client.patch(f"/api/invoices/{invoice_id}", json={"invoice_number": "HPM-0091"})
    assert response.json()["invoice_number"] == "HPM-0091"

    response = client.post(f"/api/invoices/{invoice_id}/submit", headers=_as(accountant))
    assert response.json()["status"] == "pending_manager_review"

    response = client.get(f"/api/invoices/{invoice_id}/required-level")
    assert response.json()["required_level"] == 1

    assert client.get(f"/api/invoices/{invoice_id}/can-approve", headers=_as(manager)).json()["can_approve"] is True
    response = client.post(f"/api/invoices/{invoice_id}/approve", json={"comments": "OK"}, headers=_as(manager))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "approved"

    preview = client.get(f"/api/invoices/{invoice_id}/journal-preview", params={"payment_account_id": "1002"}).json()
    assert [line["account_id"] for line in preview["lines"]] == ["5101", "1002"]

    response = client.post(f"/api/invoices/{invoice_id}/payments", json={"payment_account_id": "1002"})
    assert response.status_code == status.HTTP_201_CREATED
    payment_id = response.json()["id"]

    response = client.post(f"/api/payments/{payment_id}/execute", headers=_as(admin))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "completed"

    detail = client.get(f"/api/invoices/{invoice_id}").json()
    assert detail["status"] == "completed"
    assert [a["status"] for a in detail["approvals"]] == ["approved"]
    assert [p["status"] for p in detail["payments"]] == ["completed"]


def test_conflict_reports_current_status(client, make_invoice, manager):
    invoice = make_invoice(status=InvoiceStatus.APPROVED)

    response = client.post(f"/api/invoices/{invoice.id}/approve", json={}, headers=_as(manager))

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["current_status"] == "approved"


def test_reject_with_empty_comments(client, make_invoice, manager):
    invoice = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)

    response = client.post(f"/api/invoices/{invoice.id}/reject", json={"comments": ""}, headers=_as(manager))

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["field"] == "comments"
    assert client.get(f"/api/invoices/{invoice.id}").json()["status"] == "pending_manager_review"


def test_approve_without_role_is_forbidden(client, make_invoice, accountant):
    invoice = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)

    response = client.post(f"/api/invoices/{invoice.id}/approve", json={}, headers=_as(accountant))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_unknown_user_header(client, make_invoice):
    invoice = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)

    response = client.post(f"/api/invoices/{invoice.id}/approve", json={}, headers={"X-User-Id": "424242"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_failed_execution_returns_502(client, approved_invoice, admin, ledger):
    ledger.fail_posting_with = "Ledger locked"
    payment_id = client.post(
        f"/api/invoices/{approved_invoice.id}/payments", json={"payment_account_id": "1002"}
    ).json()["id"]

    response = client.post(f"/api/payments/{payment_id}/execute", headers=_as(admin))

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert "Ledger locked" in response.json()["detail"]
    assert client.get(f"/api/payments/{payment_id}").json()["status"] == "failed"
    assert client.get(f"/api/invoices/{approved_invoice.id}").json()["status"] == "approved"


def test_ledger_connection_error_returns_502(client, approved_invoice, admin, ledger):
    ledger.raise_on_posting = ConnectionError("connection reset by peer")
    payment_id = client.post(
        f"/api/invoices/{approved_invoice.id}/payments", json={"payment_account_id": "1002"}
    ).json()["id"]

    response = client.post(f"/api/payments/{payment_id}/execute", headers=_as(admin))

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert "connection reset by peer" in response.json()["detail"]
    assert client.get(f"/api/payments/{payment_id}").json()["status"] == "failed"
    assert client.get(f"/api/invoices/{approved_invoice.id}").json()["status"] == "approved"


def test_upload_route_runs_in_threadpool():
    assert not inspect.iscoroutinefunction(upload_invoice)


def test_pending_approvals_for_user(client, company, make_invoice, manager):
    invoice = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)

    pending = client.get(f"/api/companies/{company.id}/approvals/pending", headers=_as(manager)).json()
    assert [i["id"] for i in pending] == [invoice.id]
    count = client.get(f"/api/companies/{company.id}/approvals/pending-count", headers=_as(manager)).json()
    assert count["pending_count"] == 1


def test_list_invoices_page(client, company, make_invoice):
    make_invoice(total="100.00")
    make_invoice(total="200.00", status=InvoiceStatus.APPROVED)

    response = client.get(f"/api/companies/{company.id}/invoices", params={"status": "approved"})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total_count"] == 1
    assert data["items"][0]["status"] == "approved"


def test_delete_submitted_invoice_is_a_conflict(client, make_invoice):
    invoice = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)

    response = client.delete(f"/api/invoices/{invoice.id}")
    assert response.status_code == status.HTTP_409_CONFLICT


def test_missing_invoice_is_404(client):
    response = client.get("/api/invoices/123456")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert "not found" in response.json()["detail"]


def test_account_endpoints(client, company, ledger):
    expense = client.get(f"/api/companies/{company.id}/accounts/expense").json()
    assert all(a["type"] == "expense" for a in expense)

    payment = client.get(f"/api/companies/{company.id}/accounts/payment").json()
    assert {a["external_id"] for a in payment} == {"1001", "1002", "1003", "1004"}

    account = client.get(f"/api/companies/{company.id}/accounts/1002").json()
    assert account["display_name"] == "1002 - HBL Current Account"

    fetches = ledger.account_fetches
    client.get(f"/api/companies/{company.id}/accounts")
    client.get(f"/api/companies/{company.id}/accounts")
    assert ledger.account_fetches == fetches
    assert client.post(f"/api/companies/{company.id}/accounts/refresh").status_code == status.HTTP_204_NO_CONTENT
    client.get(f"/api/companies/{company.id}/accounts")
    assert ledger.account_fetches == fetches + 1

    connection = client.get(f"/api/companies/{company.id}/accounts/connection").json()
    assert connection["connected"] is True
