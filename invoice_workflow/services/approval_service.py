"""Tiered invoice approval.

The amount and the vendor's history decide how far up the chain an invoice
must go (Manager, Admin, CFO). Each level approves in turn; the last one
needed moves the invoice to Approved. Any level may reject, which returns
the invoice to the uploader for correction.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from invoice_workflow.core.database import commit_or_conflict
from invoice_workflow.core.exceptions import AuthorizationError, NotFoundError, StateConflictError, ValidationError
from invoice_workflow.core.logging import log
from invoice_workflow.models.approval import ApprovalLevel, ApprovalStatus, InvoiceApproval
from invoice_workflow.models.company import Company, CompanyMember, UserRole
from invoice_workflow.models.invoice import Invoice, InvoiceStatus
from invoice_workflow.schemas.approval import ApprovalRules
from invoice_workflow.services.company_service import CompanyService
from invoice_workflow.services.vendor_service import VendorService

LEVEL_FOR_STATUS = {
    InvoiceStatus.PENDING_MANAGER_REVIEW: ApprovalLevel.MANAGER,
    InvoiceStatus.PENDING_ADMIN_APPROVAL: ApprovalLevel.ADMIN,
    InvoiceStatus.PENDING_CFO_APPROVAL: ApprovalLevel.CFO,
}
STATUS_FOR_LEVEL = {level: status for status, level in LEVEL_FOR_STATUS.items()}

# Minimum company role allowed to act at each level
ROLE_FOR_LEVEL = {
    ApprovalLevel.MANAGER: UserRole.MANAGER,
    ApprovalLevel.ADMIN: UserRole.ADMIN,
    ApprovalLevel.CFO: UserRole.SUPER_ADMIN,
}

REJECTED_STATUS_FOR_LEVEL = {
    ApprovalLevel.MANAGER: InvoiceStatus.REJECTED_BY_MANAGER,
    ApprovalLevel.ADMIN: InvoiceStatus.REJECTED_BY_ADMIN,
    ApprovalLevel.CFO: InvoiceStatus.REJECTED_BY_ADMIN,
}


class ApprovalService:
    @staticmethod
    def get_approval_rules(db: Session, company_id: int) -> ApprovalRules:
        company = db.query(Company).filter(Company.id == company_id).first()
        if not company:
            raise NotFoundError("Company", company_id)
        return CompanyService.get_approval_rules(company)

    @staticmethod
    def get_required_approval_level(
        db: Session,
        invoice: Invoice,
        rules: Optional[ApprovalRules] = None,
    ) -> ApprovalLevel:
        """Highest level that must sign off on this invoice.

        A vendor's first invoice always needs at least Admin, larger
        amounts may push it further to CFO.
        """
        rules = rules or ApprovalService.get_approval_rules(db, invoice.company_id)
        amount = Decimal(invoice.total_amount or 0)

        if amount > rules.cfo_required_threshold:
            level = ApprovalLevel.CFO
        elif amount > rules.admin_required_threshold:
            level = ApprovalLevel.ADMIN
        elif amount > rules.manager_only_threshold:
            # Between the manager-only and admin thresholds still needs Admin
            level = ApprovalLevel.ADMIN
        else:
            level = ApprovalLevel.MANAGER

        if (
            rules.require_admin_for_new_vendor
            and invoice.vendor_id is not None
            and VendorService.count_invoices(db, invoice.vendor_id, exclude_invoice_id=invoice.id) == 0
        ):
            level = max(level, ApprovalLevel.ADMIN)
        return level

    @staticmethod
    def get_current_approval_level(invoice: Invoice) -> ApprovalLevel:
        level = LEVEL_FOR_STATUS.get(invoice.status)
        if level is None:
            raise StateConflictError(
                f"Invoice {invoice.id} is not awaiting approval",
                current_status=invoice.status,
            )
        return level

    @staticmethod
    def approve(db: Session, invoice_id: int, approver_id: int, comments: Optional[str] = None) -> Invoice:
        invoice = ApprovalService._get_invoice(db, invoice_id)
        member = ApprovalService._get_member(db, invoice, approver_id)
        level = ApprovalService.get_current_approval_level(invoice)
        ApprovalService._check_role(member, level)

        now = datetime.now(timezone.utc)
        record = ApprovalService._pending_record(invoice, level)
        record.approver_id = approver_id
        record.status = ApprovalStatus.APPROVED
        record.comments = comments
        record.decided_at = now

        required = ApprovalService.get_required_approval_level(db, invoice)
        if level >= required:
            invoice.status = InvoiceStatus.APPROVED
        else:
            next_level = ApprovalLevel(level + 1)
            invoice.status = STATUS_FOR_LEVEL[next_level]
            ApprovalService._pending_record(invoice, next_level)
        invoice.touch()

        commit_or_conflict(db, f"Invoice {invoice_id}")
        db.refresh(invoice)
        log.info(
            f"Invoice {invoice.invoice_number} approved at {level.name} level by user {approver_id}, "
            f"now {invoice.status.value}"
        )
        return invoice

    @staticmethod
    def reject(db: Session, invoice_id: int, approver_id: int, comments: Optional[str]) -> Invoice:
        if not comments or not comments.strip():
            raise ValidationError("A reason is required to reject an invoice", field="comments")

        invoice = ApprovalService._get_invoice(db, invoice_id)
        member = ApprovalService._get_member(db, invoice, approver_id)
        level = ApprovalService.get_current_approval_level(invoice)
        ApprovalService._check_role(member, level)

        record = ApprovalService._pending_record(invoice, level)
        record.approver_id = approver_id
        record.status = ApprovalStatus.REJECTED
        record.comments = comments.strip()
        record.decided_at = datetime.now(timezone.utc)

        invoice.status = REJECTED_STATUS_FOR_LEVEL[level]
        invoice.touch()

        commit_or_conflict(db, f"Invoice {invoice_id}")
        db.refresh(invoice)
        log.info(f"Invoice {invoice.invoice_number} rejected at {level.name} level by user {approver_id}")
        return invoice

    @staticmethod
    def can_approve(db: Session, invoice_id: int, user_id: int) -> bool:
        """Whether the user may act on the invoice right now; never raises"""
        invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
        if not invoice:
            return False
        level = LEVEL_FOR_STATUS.get(invoice.status)
        if level is None:
            return False
        member = CompanyService.get_member(db, invoice.company_id, user_id)
        return member is not None and member.role.at_least(ROLE_FOR_LEVEL[level])

    @staticmethod
    def get_approval_history(db: Session, invoice_id: int) -> List[InvoiceApproval]:
        ApprovalService._get_invoice(db, invoice_id)
        return db.query(InvoiceApproval).filter(
            InvoiceApproval.invoice_id == invoice_id
        ).order_by(InvoiceApproval.created_at, InvoiceApproval.id).all()

    @staticmethod
    def get_pending_for_user(db: Session, company_id: int, user_id: int) -> List[Invoice]:
        """Invoices waiting at a level the user's role can act on"""
        statuses = ApprovalService._actionable_statuses(db, company_id, user_id)
        if not statuses:
            return []
        return db.query(Invoice).filter(
            Invoice.company_id == company_id,
            Invoice.status.in_(statuses),
        ).order_by(Invoice.created_at, Invoice.id).all()

    @staticmethod
    def get_pending_count(db: Session, company_id: int, user_id: int) -> int:
        statuses = ApprovalService._actionable_statuses(db, company_id, user_id)
        if not statuses:
            return 0
        return db.query(Invoice).filter(
            Invoice.company_id == company_id,
            Invoice.status.in_(statuses),
        ).count()

    @staticmethod
    def _actionable_statuses(db: Session, company_id: int, user_id: int) -> List[InvoiceStatus]:
        member = CompanyService.get_member(db, company_id, user_id)
        if not member:
            return []
        return [status for status, level in LEVEL_FOR_STATUS.items() if member.role.at_least(ROLE_FOR_LEVEL[level])]

    @staticmethod
    def _get_invoice(db: Session, invoice_id: int) -> Invoice:
        invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
        if not invoice:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    @staticmethod
    def _get_member(db: Session, invoice: Invoice, user_id: int) -> CompanyMember:
        member = CompanyService.get_member(db, invoice.company_id, user_id)
        if not member:
            raise AuthorizationError(f"User {user_id} is not a member of this company")
        return member

    @staticmethod
    def _check_role(member: CompanyMember, level: ApprovalLevel) -> None:
        required_role = ROLE_FOR_LEVEL[level]
        if not member.role.at_least(required_role):
            raise AuthorizationError(
                f"{level.name.title()} approval requires the {required_role.value} role or higher"
            )

    @staticmethod
    def _pending_record(invoice: Invoice, level: ApprovalLevel) -> InvoiceApproval:
        """The open approval record for a level, created if missing"""
        for record in invoice.approvals:
            if record.approval_level == level and record.status == ApprovalStatus.PENDING:
                return record
        record = InvoiceApproval(approval_level=level, status=ApprovalStatus.PENDING)
        invoice.approvals.append(record)
        return record
