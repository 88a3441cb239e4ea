from decimal import Decimal

from invoice_workflow.models.invoice import InvoiceStatus


def _gql(client, query, variables=None):
    response = client.post("/graphql", json={"query": query, "variables": variables or {}})
    assert response.status_code == 200
    return response.json()


def test_query_invoice(client, make_invoice):
    invoice = make_invoice(total="1500.00", invoice_number="GQL-1")

    result = _gql(client, """
        query ($id: Int!) {
            invoice(invoiceId: $id) { invoiceNumber status totalAmount items { expenseAccountId } }
        }
    """, {"id": invoice.id})

    data = result["data"]["invoice"]
    assert data["invoiceNumber"] == "GQL-1"
    assert data["status"] == "draft"
    assert Decimal(data["totalAmount"]) == Decimal("1500.00")
    assert data["items"] == [{"expenseAccountId": "5101"}]


def test_approve_and_history(client, make_invoice, repeat_vendor, manager):
    invoice = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)

    result = _gql(client, """
        mutation ($id: Int!, $user: Int!) {
            approveInvoice(invoiceId: $id, userId: $user, comments: "fine") { status }
        }
    """, {"id": invoice.id, "user": manager.id})
    assert result["data"]["approveInvoice"]["status"] == "approved"

    result = _gql(client, """
        query ($id: Int!) { approvalHistory(invoiceId: $id) { approvalLevel status comments } }
    """, {"id": invoice.id})
    assert result["data"]["approvalHistory"] == [{"approvalLevel": "MANAGER", "status": "approved", "comments": "fine"}]


def test_reject_without_reason_returns_error(client, make_invoice, manager):
    invoice = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)

    result = _gql(client, """
        mutation ($id: Int!, $user: Int!) {
            rejectInvoice(invoiceId: $id, userId: $user, comments: " ") { status }
        }
    """, {"id": invoice.id, "user": manager.id})

    assert result["data"] is None
    assert "reason is required" in result["errors"][0]["message"]


def test_journal_preview_and_payment(client, approved_invoice, admin):
    result = _gql(client, """
        query ($id: Int!) {
            journalPreview(invoiceId: $id, paymentAccountId: "1002") { totalDebit totalCredit lines { accountId } }
        }
    """, {"id": approved_invoice.id})
    preview = result["data"]["journalPreview"]
    assert Decimal(preview["totalDebit"]) == Decimal(preview["totalCredit"]) == Decimal("40000.00")
    assert [line["accountId"] for line in preview["lines"]] == ["5101", "1002"]

    result = _gql(client, """
        mutation ($id: Int!) {
            schedulePayment(invoiceId: $id, input: {paymentAccountId: "1002"}) { id status }
        }
    """, {"id": approved_invoice.id})
    payment = result["data"]["schedulePayment"]
    assert payment["status"] == "scheduled"

    result = _gql(client, """
        mutation ($id: Int!, $user: Int!) { executePayment(paymentId: $id, userId: $user) { status journalEntryRef } }
    """, {"id": payment["id"], "user": admin.id})
    assert result["data"]["executePayment"]["status"] == "completed"
    assert result["data"]["executePayment"]["journalEntryRef"] == f"PAY-{approved_invoice.invoice_number}"
