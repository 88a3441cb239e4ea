from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from decimal import Decimal

from invoice_workflow.api.dependencies import (
    get_chart_of_accounts,
    get_current_user_id,
    get_file_storage,
    get_ocr_engine,
    verify_company,
)
from invoice_workflow.core.database import get_db
from invoice_workflow.integrations.ocr import OcrEngine
from invoice_workflow.integrations.storage import LocalFileStorage
from invoice_workflow.models.invoice import InvoiceStatus
from invoice_workflow.schemas.invoice import (
    InvoiceDetailResponse,
    InvoiceFilter,
    InvoiceItemInput,
    InvoicePage,
    InvoiceResponse,
    InvoiceStatistics,
    InvoiceUpdate,
)
from invoice_workflow.services.chart_of_accounts_service import ChartOfAccountsService
from invoice_workflow.services.invoice_service import InvoiceService

router = APIRouter(tags=["invoices"])


@router.post(
    "/companies/{company_id}/invoices",
    response_model=InvoiceResponse,
    status_code=201,
    dependencies=[Depends(verify_company)],
)
def upload_invoice(
    company_id: int,
    file: UploadFile = File(...),
    vendor_id: Optional[int] = Form(None),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: LocalFileStorage = Depends(get_file_storage),
    ocr: OcrEngine = Depends(get_ocr_engine),
    chart_of_accounts: ChartOfAccountsService = Depends(get_chart_of_accounts),
):
    """Upload an invoice document and create a Draft invoice from it"""
    content = file.file.read()
    return InvoiceService.create_from_upload(
        db,
        company_id,
        user_id,
        filename=file.filename or "invoice",
        content=content,
        storage=storage,
        ocr=ocr,
        content_type=file.content_type,
        vendor_id=vendor_id,
        chart_of_accounts=chart_of_accounts,
    )


@router.get("/companies/{company_id}/invoices", response_model=InvoicePage, dependencies=[Depends(verify_company)])
def list_invoices(
    company_id: int,
    status: Optional[InvoiceStatus] = Query(None),
    vendor_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    amount_min: Optional[Decimal] = Query(None),
    amount_max: Optional[Decimal] = Query(None),
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None),
    sort_descending: bool = Query(True),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """List invoices for a company with optional filters"""
    filters = InvoiceFilter(
        status=status,
        vendor_id=vendor_id,
        date_from=date_from,
        date_to=date_to,
        amount_min=amount_min,
        amount_max=amount_max,
        search=search,
        sort_by=sort_by,
        sort_descending=sort_descending,
    )
    items, total_count = InvoiceService.list_invoices(db, company_id, filters=filters, page=page, page_size=page_size)
    return InvoicePage(
        items=[InvoiceResponse.model_validate(i) for i in items],
        total_count=total_count,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/companies/{company_id}/invoices/statistics",
    response_model=InvoiceStatistics,
    dependencies=[Depends(verify_company)],
)
def get_statistics(company_id: int, db: Session = Depends(get_db)):
    return InvoiceService.get_statistics(db, company_id)


@router.get("/invoices/{invoice_id}", response_model=InvoiceDetailResponse)
def get_invoice(invoice_id: int, db: Session = Depends(get_db)):
    """Get an invoice with its line items, approval trail and payments"""
    return InvoiceService.get_invoice_or_404(db, invoice_id)


@router.patch("/invoices/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(invoice_id: int, update: InvoiceUpdate, db: Session = Depends(get_db)):
    return InvoiceService.update_invoice(db, invoice_id, update)


@router.put("/invoices/{invoice_id}/items", response_model=InvoiceResponse)
def update_line_items(invoice_id: int, items: List[InvoiceItemInput], db: Session = Depends(get_db)):
    """Replace all line items; totals are recomputed"""
    return InvoiceService.update_line_items(db, invoice_id, items)


@router.post("/invoices/{invoice_id}/match-accounts", response_model=InvoiceResponse)
def match_accounts(
    invoice_id: int,
    db: Session = Depends(get_db),
    chart_of_accounts: ChartOfAccountsService = Depends(get_chart_of_accounts),
):
    """Suggest expense accounts for unmapped line items"""
    return InvoiceService.auto_match_accounts(db, invoice_id, chart_of_accounts)


@router.post("/invoices/{invoice_id}/submit", response_model=InvoiceResponse)
def submit_invoice(
    invoice_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return InvoiceService.submit_for_approval(db, invoice_id, user_id)


@router.delete("/invoices/{invoice_id}", status_code=204)
def delete_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    storage: LocalFileStorage = Depends(get_file_storage),
):
    """Delete a Draft invoice"""
    InvoiceService.delete_invoice(db, invoice_id, storage)
    return None
