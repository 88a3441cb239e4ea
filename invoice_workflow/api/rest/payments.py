from fastapi import APIRouter, Depends, Query
from typing import List

from invoice_workflow.api.dependencies import get_current_user_id, get_payment_service, verify_company
from invoice_workflow.schemas.journal import JournalEntry
from invoice_workflow.schemas.payment import PaymentResponse, PaymentSchedule, PaymentStatistics
from invoice_workflow.services.payment_service import PaymentService

router = APIRouter(tags=["payments"])


@router.post("/invoices/{invoice_id}/payments", response_model=PaymentResponse, status_code=201)
def schedule_payment(
    invoice_id: int,
    data: PaymentSchedule,
    service: PaymentService = Depends(get_payment_service),
):
    """Schedule payment of an approved invoice"""
    return service.schedule_payment(invoice_id, data)


@router.get("/invoices/{invoice_id}/payments", response_model=List[PaymentResponse])
def list_invoice_payments(invoice_id: int, service: PaymentService = Depends(get_payment_service)):
    return service.list_for_invoice(invoice_id)


@router.get("/invoices/{invoice_id}/journal-preview", response_model=JournalEntry)
def preview_journal_entry(
    invoice_id: int,
    payment_account_id: str = Query(..., min_length=1),
    service: PaymentService = Depends(get_payment_service),
):
    """The journal entry that paying from this account would post"""
    return service.preview_journal_entry(invoice_id, payment_account_id)


@router.get("/payments/{payment_id}", response_model=PaymentResponse)
def get_payment(payment_id: int, service: PaymentService = Depends(get_payment_service)):
    return service.get_payment(payment_id)


@router.post("/payments/{payment_id}/execute", response_model=PaymentResponse)
def execute_payment(
    payment_id: int,
    user_id: int = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    """Post the journal entry and complete the payment"""
    return service.execute_payment(payment_id, user_id)


@router.delete("/payments/{payment_id}", status_code=204)
def cancel_payment(payment_id: int, service: PaymentService = Depends(get_payment_service)):
    """Cancel a scheduled payment"""
    service.cancel_payment(payment_id)
    return None


@router.get(
    "/companies/{company_id}/payments/pending",
    response_model=List[PaymentResponse],
    dependencies=[Depends(verify_company)],
)
def get_pending_payments(company_id: int, service: PaymentService = Depends(get_payment_service)):
    return service.get_pending_payments(company_id)


@router.get(
    "/companies/{company_id}/payments/statistics",
    response_model=PaymentStatistics,
    dependencies=[Depends(verify_company)],
)
def get_payment_statistics(company_id: int, service: PaymentService = Depends(get_payment_service)):
    return service.get_statistics(company_id)
