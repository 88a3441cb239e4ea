from sqlalchemy.orm import Session
from sqlalchemy import and_, or_
from typing import Dict, List, Optional, Tuple
from datetime import date
from decimal import Decimal

from invoice_workflow.core.config import settings
from invoice_workflow.core.database import commit_or_conflict
from invoice_workflow.core.exceptions import AuthorizationError, NotFoundError, StateConflictError, ValidationError
from invoice_workflow.core.logging import log
from invoice_workflow.integrations.ocr import OcrEngine
from invoice_workflow.integrations.storage import LocalFileStorage
from invoice_workflow.models.approval import ApprovalLevel, ApprovalStatus, InvoiceApproval
from invoice_workflow.models.invoice import (
    EDITABLE_STATUSES,
    PENDING_APPROVAL_STATUSES,
    PLACEHOLDER_INVOICE_NUMBER,
    REJECTED_STATUSES,
    SUBMITTABLE_STATUSES,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    MatchType,
)
from invoice_workflow.models.vendor import Vendor
from invoice_workflow.schemas.invoice import InvoiceFilter, InvoiceItemInput, InvoiceStatistics, InvoiceUpdate
from invoice_workflow.schemas.ocr import OcrResult
from invoice_workflow.services.account_match_service import AccountMatchService
from invoice_workflow.services.chart_of_accounts_service import ChartOfAccountsService
from invoice_workflow.services.company_service import CompanyService
from invoice_workflow.services.vendor_service import VendorService

SORT_COLUMNS = {
    "invoice_number": Invoice.invoice_number,
    "invoice_date": Invoice.invoice_date,
    "due_date": Invoice.due_date,
    "total_amount": Invoice.total_amount,
    "status": Invoice.status,
    "created_at": Invoice.created_at,
}

ZERO = Decimal("0")


class InvoiceService:
    @staticmethod
    def create_from_upload(
        db: Session,
        company_id: int,
        user_id: int,
        filename: str,
        content: bytes,
        storage: LocalFileStorage,
        ocr: OcrEngine,
        content_type: Optional[str] = None,
        vendor_id: Optional[int] = None,
        chart_of_accounts: Optional[ChartOfAccountsService] = None,
    ) -> Invoice:
        """Store an uploaded invoice document and create a Draft invoice from it.

        OCR is best effort: if it fails the invoice is still created with
        placeholder values for the uploader to fill in.
        """
        company = CompanyService.get_company_or_404(db, company_id)
        if not CompanyService.get_member(db, company_id, user_id):
            raise AuthorizationError(f"User {user_id} is not a member of this company")

        vendor = None
        if vendor_id is not None:
            vendor = VendorService.get_vendor_or_404(db, company_id, vendor_id)

        file_path = storage.save_invoice_file(company_id, filename, content)

        ocr_result: Optional[OcrResult] = None
        try:
            ocr_result = ocr.extract_invoice_data(storage.get_physical_path(file_path))
        except Exception as e:
            log.warning(f"OCR failed for {filename}, creating invoice without extracted data: {e}")

        if vendor is None and ocr_result and ocr_result.vendor_ntn:
            vendor = VendorService.find_by_ntn(db, company_id, ocr_result.vendor_ntn)
            if vendor:
                log.info(f"Matched vendor {vendor.name} by NTN {ocr_result.vendor_ntn}")

        invoice = Invoice(
            company_id=company_id,
            vendor_id=vendor.id if vendor else None,
            uploaded_by_id=user_id,
            invoice_number=(ocr_result.invoice_number if ocr_result else None) or PLACEHOLDER_INVOICE_NUMBER,
            invoice_date=(ocr_result.invoice_date if ocr_result else None) or date.today(),
            due_date=ocr_result.due_date if ocr_result else None,
            currency=(ocr_result.currency if ocr_result else None) or company.default_currency,
            status=InvoiceStatus.DRAFT,
            original_file_path=file_path,
            original_file_name=filename,
            content_type=content_type,
            file_size=len(content),
            ocr_data=ocr_result.model_dump_json() if ocr_result else None,
            ocr_confidence=ocr_result.confidence if ocr_result else None,
        )
        invoice.items = InvoiceService._items_from_ocr(ocr_result)
        InvoiceService._recalculate_totals(invoice)
        InvoiceService._assign_accounts(db, invoice, vendor, chart_of_accounts)

        db.add(invoice)
        try:
            db.commit()
        except Exception:
            db.rollback()
            storage.delete_file(file_path)
            raise
        db.refresh(invoice)
        log.info(f"Invoice {invoice.id} created from upload {filename} ({len(invoice.items)} line items)")
        return invoice

    @staticmethod
    def get_invoice(db: Session, invoice_id: int, company_id: Optional[int] = None) -> Invoice | None:
        """Get invoice by ID, optionally scoped to a company"""
        query = db.query(Invoice).filter(Invoice.id == invoice_id)
        if company_id is not None:
            query = query.filter(Invoice.company_id == company_id)
        return query.first()

    @staticmethod
    def get_invoice_or_404(db: Session, invoice_id: int, company_id: Optional[int] = None) -> Invoice:
        invoice = InvoiceService.get_invoice(db, invoice_id, company_id)
        if not invoice:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    @staticmethod
    def list_invoices(
        db: Session,
        company_id: int,
        filters: Optional[InvoiceFilter] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[Invoice], int]:
        """Page of a company's invoices plus the total count matching the filters"""
        query = db.query(Invoice).filter(Invoice.company_id == company_id)
        filters = filters or InvoiceFilter()

        if filters.status:
            query = query.filter(Invoice.status == filters.status)
        if filters.vendor_id:
            query = query.filter(Invoice.vendor_id == filters.vendor_id)
        if filters.date_from:
            query = query.filter(Invoice.invoice_date >= filters.date_from)
        if filters.date_to:
            query = query.filter(Invoice.invoice_date <= filters.date_to)
        if filters.amount_min is not None:
            query = query.filter(Invoice.total_amount >= filters.amount_min)
        if filters.amount_max is not None:
            query = query.filter(Invoice.total_amount <= filters.amount_max)
        if filters.search and filters.search.strip():
            term = f"%{filters.search.strip()}%"
            vendor_ids = db.query(Vendor.id).filter(
                and_(Vendor.company_id == company_id, Vendor.name.ilike(term))
            )
            query = query.filter(
                or_(
                    Invoice.invoice_number.ilike(term),
                    Invoice.notes.ilike(term),
                    Invoice.vendor_id.in_(vendor_ids),
                )
            )

        total_count = query.count()

        column = SORT_COLUMNS.get((filters.sort_by or "").lower(), Invoice.created_at)
        ordering = column.desc() if filters.sort_descending else column.asc()
        page = max(page, 1)
        items = query.order_by(ordering, Invoice.id).offset((page - 1) * page_size).limit(page_size).all()
        return items, total_count

    @staticmethod
    def update_invoice(db: Session, invoice_id: int, update: InvoiceUpdate) -> Invoice:
        invoice = InvoiceService.get_invoice_or_404(db, invoice_id)
        InvoiceService._check_editable(invoice)

        changes = update.model_dump(exclude_unset=True, exclude={"items"})
        if changes.get("vendor_id") is not None:
            VendorService.get_vendor_or_404(db, invoice.company_id, changes["vendor_id"])
        for field, value in changes.items():
            if value is not None or field in ("due_date", "notes", "vendor_id"):
                setattr(invoice, field, value)

        if update.items is not None:
            InvoiceService._replace_items(invoice, update.items)
            InvoiceService._recalculate_totals(invoice)

        invoice.touch()
        commit_or_conflict(db, f"Invoice {invoice_id}")
        db.refresh(invoice)
        return invoice

    @staticmethod
    def update_line_items(db: Session, invoice_id: int, items: List[InvoiceItemInput]) -> Invoice:
        """Replace the invoice's line items wholesale and recompute its totals"""
        invoice = InvoiceService.get_invoice_or_404(db, invoice_id)
        InvoiceService._check_editable(invoice)

        InvoiceService._replace_items(invoice, items)
        InvoiceService._recalculate_totals(invoice)
        invoice.touch()

        commit_or_conflict(db, f"Invoice {invoice_id}")
        db.refresh(invoice)
        log.info(f"Invoice {invoice_id} line items updated ({len(invoice.items)} lines, total {invoice.total_amount})")
        return invoice

    @staticmethod
    def auto_match_accounts(db: Session, invoice_id: int, chart_of_accounts: ChartOfAccountsService) -> Invoice:
        """Fill in expense accounts for line items that have none"""
        invoice = InvoiceService.get_invoice_or_404(db, invoice_id)
        InvoiceService._check_editable(invoice)

        vendor = None
        if invoice.vendor_id is not None:
            vendor = VendorService.get_vendor(db, invoice.company_id, invoice.vendor_id)
        matched = InvoiceService._assign_accounts(db, invoice, vendor, chart_of_accounts)
        if matched:
            invoice.touch()
            commit_or_conflict(db, f"Invoice {invoice_id}")
            db.refresh(invoice)
        return invoice

    @staticmethod
    def submit_for_approval(db: Session, invoice_id: int, user_id: int) -> Invoice:
        """Move a Draft (or manager-rejected) invoice into the approval chain"""
        invoice = InvoiceService.get_invoice_or_404(db, invoice_id)
        if not CompanyService.get_member(db, invoice.company_id, user_id):
            raise AuthorizationError(f"User {user_id} is not a member of this company")
        if invoice.status not in SUBMITTABLE_STATUSES:
            raise StateConflictError(
                f"Invoice in status {invoice.status.value} cannot be submitted for approval",
                current_status=invoice.status,
            )

        number = (invoice.invoice_number or "").strip()
        if not number or number == PLACEHOLDER_INVOICE_NUMBER:
            raise ValidationError("Invoice number is required", field="invoice_number")
        if Decimal(invoice.total_amount or 0) <= 0:
            raise ValidationError("Total amount must be greater than zero", field="total_amount")
        if not invoice.items:
            raise ValidationError("Invoice must have at least one line item", field="items")
        unmapped = [item.line_number for item in invoice.items if not item.expense_account_id]
        if unmapped:
            raise ValidationError(
                "All line items must be mapped to an expense account",
                field="items",
                details={"unmapped_lines": unmapped},
            )

        pending = next(
            (
                a for a in invoice.approvals
                if a.approval_level == ApprovalLevel.MANAGER and a.status == ApprovalStatus.PENDING
            ),
            None,
        )
        if pending is None:
            invoice.approvals.append(InvoiceApproval(approval_level=ApprovalLevel.MANAGER, status=ApprovalStatus.PENDING))

        invoice.status = InvoiceStatus.PENDING_MANAGER_REVIEW
        invoice.touch()
        commit_or_conflict(db, f"Invoice {invoice_id}")
        db.refresh(invoice)
        log.info(f"Invoice {invoice.invoice_number} submitted for approval by user {user_id}")
        return invoice

    @staticmethod
    def delete_invoice(db: Session, invoice_id: int, storage: LocalFileStorage) -> None:
        """Delete a Draft invoice together with its stored document"""
        invoice = InvoiceService.get_invoice_or_404(db, invoice_id)
        if not InvoiceService.can_delete(invoice):
            raise StateConflictError("Only draft invoices can be deleted", current_status=invoice.status)

        file_path = invoice.original_file_path
        db.delete(invoice)
        db.commit()
        if file_path:
            storage.delete_file(file_path)
        log.info(f"Invoice {invoice_id} deleted")

    @staticmethod
    def can_edit(invoice: Invoice) -> bool:
        return invoice.status in EDITABLE_STATUSES

    @staticmethod
    def can_delete(invoice: Invoice) -> bool:
        return invoice.status == InvoiceStatus.DRAFT

    @staticmethod
    def get_statistics(db: Session, company_id: int, today: Optional[date] = None) -> InvoiceStatistics:
        invoices = db.query(Invoice).filter(Invoice.company_id == company_id).all()
        today = today or date.today()

        def total(rows: List[Invoice]) -> Decimal:
            return sum((Decimal(i.total_amount) for i in rows), ZERO)

        pending = [i for i in invoices if i.status in PENDING_APPROVAL_STATUSES]
        paid = [i for i in invoices if i.status == InvoiceStatus.COMPLETED]

        since = InvoiceService._month_start(today, months_back=5)
        by_month: Dict[str, Decimal] = {}
        for offset in range(5, -1, -1):
            by_month[InvoiceService._month_start(today, offset).strftime("%Y-%m")] = ZERO
        for invoice in invoices:
            if invoice.invoice_date >= since and invoice.invoice_date <= today:
                key = invoice.invoice_date.strftime("%Y-%m")
                by_month[key] = by_month[key] + Decimal(invoice.total_amount)

        return InvoiceStatistics(
            total_count=len(invoices),
            draft_count=sum(1 for i in invoices if i.status == InvoiceStatus.DRAFT),
            pending_approval_count=len(pending),
            approved_count=sum(1 for i in invoices if i.status == InvoiceStatus.APPROVED),
            completed_count=len(paid),
            rejected_count=sum(1 for i in invoices if i.status in REJECTED_STATUSES),
            total_amount=total(invoices),
            pending_amount=total(pending),
            paid_amount=total(paid),
            amount_by_month=by_month,
        )

    @staticmethod
    def _month_start(day: date, months_back: int) -> date:
        month_index = day.year * 12 + (day.month - 1) - months_back
        return date(month_index // 12, month_index % 12 + 1, 1)

    @staticmethod
    def _check_editable(invoice: Invoice) -> None:
        if not InvoiceService.can_edit(invoice):
            raise StateConflictError(
                f"Invoice in status {invoice.status.value} cannot be edited",
                current_status=invoice.status,
            )

    @staticmethod
    def _items_from_ocr(ocr_result: Optional[OcrResult]) -> List[InvoiceItem]:
        if ocr_result and ocr_result.line_items:
            items = []
            for number, line in enumerate(ocr_result.line_items, start=1):
                amount = line.amount or ZERO
                items.append(InvoiceItem(
                    description=line.description or f"Line {number}",
                    quantity=line.quantity or Decimal("1"),
                    unit=line.unit,
                    unit_price=line.unit_price or amount,
                    tax_amount=ZERO,
                    amount=amount,
                    line_number=number,
                    match_type=MatchType.MANUAL,
                ))
            return items

        total = (ocr_result.total_amount if ocr_result else None) or ZERO
        tax = (ocr_result.tax_amount if ocr_result else None) or ZERO
        return [InvoiceItem(
            description="Invoice Total",
            quantity=Decimal("1"),
            unit_price=total - tax if tax <= total else total,
            tax_amount=tax if tax <= total else ZERO,
            amount=total,
            line_number=1,
            match_type=MatchType.MANUAL,
        )]

    @staticmethod
    def _assign_accounts(
        db: Session,
        invoice: Invoice,
        vendor: Optional[Vendor],
        chart_of_accounts: Optional[ChartOfAccountsService],
    ) -> int:
        """Map unmapped items to the vendor default or a suggested account; returns how many were mapped"""
        unmapped = [item for item in invoice.items if not item.expense_account_id]
        if not unmapped:
            return 0

        if vendor and vendor.default_expense_account_id:
            for item in unmapped:
                item.expense_account_id = vendor.default_expense_account_id
                item.match_type = MatchType.VENDOR_DEFAULT
                item.match_confidence = Decimal("100")
            return len(unmapped)

        if chart_of_accounts is None:
            return 0
        accounts = chart_of_accounts.get_expense_accounts(db, invoice.company_id)
        if not accounts:
            return 0

        matched = 0
        for item in unmapped:
            suggestion = AccountMatchService.suggest_expense_account(item.description, accounts)
            if suggestion and suggestion[1] >= settings.account_match_min_confidence:
                item.expense_account_id, item.match_confidence = suggestion
                item.match_type = MatchType.AI_MATCH
                matched += 1
        return matched

    @staticmethod
    def _replace_items(invoice: Invoice, items: List[InvoiceItemInput]) -> None:
        existing = {item.id: item for item in invoice.items}
        replacement: List[InvoiceItem] = []
        for number, data in enumerate(items, start=1):
            if data.id is not None:
                item = existing.get(data.id)
                if item is None:
                    raise NotFoundError("Invoice item", data.id)
            else:
                item = InvoiceItem()
            item.description = data.description
            item.quantity = data.quantity
            item.unit = data.unit
            item.unit_price = data.unit_price
            item.tax_amount = data.tax_amount
            item.amount = data.amount
            item.expense_account_id = data.expense_account_id
            item.match_type = data.match_type if data.expense_account_id else MatchType.MANUAL
            item.match_confidence = data.match_confidence if data.expense_account_id else None
            item.line_number = number
            replacement.append(item)
        invoice.items = replacement

    @staticmethod
    def _recalculate_totals(invoice: Invoice) -> None:
        total = sum((Decimal(item.amount or 0) for item in invoice.items), ZERO)
        tax = sum((Decimal(item.tax_amount or 0) for item in invoice.items), ZERO)
        invoice.total_amount = total
        invoice.tax_amount = tax
        invoice.subtotal = total - tax
