from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from invoice_workflow.api.dependencies import get_current_user_id, verify_company
from invoice_workflow.core.database import get_db
from invoice_workflow.schemas.approval import (
    ApprovalAction,
    ApprovalResponse,
    CanApproveResponse,
    PendingCountResponse,
    RejectionAction,
    RequiredLevelResponse,
)
from invoice_workflow.schemas.invoice import InvoiceResponse
from invoice_workflow.services.approval_service import ApprovalService
from invoice_workflow.services.invoice_service import InvoiceService

router = APIRouter(tags=["approvals"])


@router.post("/invoices/{invoice_id}/approve", response_model=InvoiceResponse)
def approve_invoice(
    invoice_id: int,
    action: ApprovalAction,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Approve the invoice at its current level"""
    return ApprovalService.approve(db, invoice_id, user_id, action.comments)


@router.post("/invoices/{invoice_id}/reject", response_model=InvoiceResponse)
def reject_invoice(
    invoice_id: int,
    action: RejectionAction,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Reject the invoice; a reason is required"""
    return ApprovalService.reject(db, invoice_id, user_id, action.comments)


@router.get("/invoices/{invoice_id}/can-approve", response_model=CanApproveResponse)
def can_approve(
    invoice_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return CanApproveResponse(
        invoice_id=invoice_id,
        user_id=user_id,
        can_approve=ApprovalService.can_approve(db, invoice_id, user_id),
    )


@router.get("/invoices/{invoice_id}/required-level", response_model=RequiredLevelResponse)
def get_required_level(invoice_id: int, db: Session = Depends(get_db)):
    invoice = InvoiceService.get_invoice_or_404(db, invoice_id)
    return RequiredLevelResponse(
        invoice_id=invoice_id,
        required_level=ApprovalService.get_required_approval_level(db, invoice),
    )


@router.get("/invoices/{invoice_id}/approvals", response_model=List[ApprovalResponse])
def get_approval_history(invoice_id: int, db: Session = Depends(get_db)):
    """Approval trail, oldest first"""
    return ApprovalService.get_approval_history(db, invoice_id)


@router.get(
    "/companies/{company_id}/approvals/pending",
    response_model=List[InvoiceResponse],
    dependencies=[Depends(verify_company)],
)
def get_pending_approvals(
    company_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Invoices waiting on a level the current user can act on"""
    return ApprovalService.get_pending_for_user(db, company_id, user_id)


@router.get(
    "/companies/{company_id}/approvals/pending-count",
    response_model=PendingCountResponse,
    dependencies=[Depends(verify_company)],
)
def get_pending_count(
    company_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return PendingCountResponse(
        company_id=company_id,
        user_id=user_id,
        pending_count=ApprovalService.get_pending_count(db, company_id, user_id),
    )
