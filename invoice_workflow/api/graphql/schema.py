import strawberry
from strawberry.types import Info
from typing import List, Optional
from decimal import Decimal
from datetime import date, datetime

from invoice_workflow.models.invoice import InvoiceStatus
from invoice_workflow.schemas.invoice import InvoiceFilter
from invoice_workflow.schemas.payment import PaymentSchedule
from invoice_workflow.services.approval_service import ApprovalService
from invoice_workflow.services.invoice_service import InvoiceService


# GraphQL Types
@strawberry.type
class InvoiceItem:
    id: int
    line_number: int
    description: str
    quantity: Decimal
    amount: Decimal
    tax_amount: Decimal
    expense_account_id: Optional[str]
    match_type: str

    @classmethod
    def from_model(cls, item):
        return cls(
            id=item.id,
            line_number=item.line_number,
            description=item.description,
            quantity=item.quantity,
            amount=item.amount,
            tax_amount=item.tax_amount,
            expense_account_id=item.expense_account_id,
            match_type=item.match_type.value,
        )


@strawberry.type
class Invoice:
    id: int
    company_id: int
    vendor_id: Optional[int]
    invoice_number: str
    invoice_date: date
    due_date: Optional[date]
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str
    status: str
    external_ref: Optional[str]
    created_at: datetime
    items: List[InvoiceItem]

    @classmethod
    def from_model(cls, invoice):
        return cls(
            id=invoice.id,
            company_id=invoice.company_id,
            vendor_id=invoice.vendor_id,
            invoice_number=invoice.invoice_number,
            invoice_date=invoice.invoice_date,
            due_date=invoice.due_date,
            subtotal=invoice.subtotal,
            tax_amount=invoice.tax_amount,
            total_amount=invoice.total_amount,
            currency=invoice.currency,
            status=invoice.status.value,
            external_ref=invoice.external_ref,
            created_at=invoice.created_at,
            items=[InvoiceItem.from_model(i) for i in invoice.items],
        )


@strawberry.type
class Approval:
    id: int
    invoice_id: int
    approval_level: str
    status: str
    approver_id: Optional[int]
    comments: Optional[str]
    decided_at: Optional[datetime]
    created_at: datetime

    @classmethod
    def from_model(cls, approval):
        return cls(
            id=approval.id,
            invoice_id=approval.invoice_id,
            approval_level=approval.approval_level.name,
            status=approval.status.value,
            approver_id=approval.approver_id,
            comments=approval.comments,
            decided_at=approval.decided_at,
            created_at=approval.created_at,
        )


@strawberry.type
class Payment:
    id: int
    invoice_id: int
    payment_account_id: str
    payment_account_name: Optional[str]
    amount: Decimal
    status: str
    scheduled_date: Optional[date]
    executed_at: Optional[datetime]
    journal_entry_ref: Optional[str]
    external_ref: Optional[str]
    failure_reason: Optional[str]

    @classmethod
    def from_model(cls, payment):
        return cls(
            id=payment.id,
            invoice_id=payment.invoice_id,
            payment_account_id=payment.payment_account_id,
            payment_account_name=payment.payment_account_name,
            amount=payment.amount,
            status=payment.status.value,
            scheduled_date=payment.scheduled_date,
            executed_at=payment.executed_at,
            journal_entry_ref=payment.journal_entry_ref,
            external_ref=payment.external_ref,
            failure_reason=payment.failure_reason,
        )


@strawberry.type
class JournalLine:
    account_id: str
    account_name: str
    account_code: str
    account_type: str
    debit_amount: Decimal
    credit_amount: Decimal
    description: Optional[str]


@strawberry.type
class JournalEntry:
    entry_date: date
    memo: Optional[str]
    reference_number: Optional[str]
    total_debit: Decimal
    total_credit: Decimal
    lines: List[JournalLine]

    @classmethod
    def from_schema(cls, entry):
        return cls(
            entry_date=entry.entry_date,
            memo=entry.memo,
            reference_number=entry.reference_number,
            total_debit=entry.total_debit,
            total_credit=entry.total_credit,
            lines=[
                JournalLine(
                    account_id=line.account_id,
                    account_name=line.account_name,
                    account_code=line.account_code,
                    account_type=line.account_type.value,
                    debit_amount=line.debit_amount,
                    credit_amount=line.credit_amount,
                    description=line.description,
                )
                for line in entry.lines
            ],
        )


@strawberry.type
class InvoicePage:
    items: List[Invoice]
    total_count: int
    page: int
    page_size: int


# Input Types
@strawberry.input
class PaymentScheduleInput:
    payment_account_id: str
    payment_account_name: Optional[str] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    scheduled_date: Optional[date] = None


# Queries
@strawberry.type
class Query:
    @strawberry.field
    def invoice(self, info: Info, invoice_id: int) -> Optional[Invoice]:
        invoice = InvoiceService.get_invoice(info.context["db"], invoice_id)
        return Invoice.from_model(invoice) if invoice else None

    @strawberry.field
    def invoices(
        self,
        info: Info,
        company_id: int,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> InvoicePage:
        filters = InvoiceFilter(status=InvoiceStatus(status) if status else None, search=search)
        items, total_count = InvoiceService.list_invoices(
            info.context["db"], company_id, filters=filters, page=page, page_size=page_size
        )
        return InvoicePage(
            items=[Invoice.from_model(i) for i in items],
            total_count=total_count,
            page=page,
            page_size=page_size,
        )

    @strawberry.field
    def approval_history(self, info: Info, invoice_id: int) -> List[Approval]:
        return [Approval.from_model(a) for a in ApprovalService.get_approval_history(info.context["db"], invoice_id)]

    @strawberry.field
    def can_approve(self, info: Info, invoice_id: int, user_id: int) -> bool:
        return ApprovalService.can_approve(info.context["db"], invoice_id, user_id)

    @strawberry.field
    def pending_approvals(self, info: Info, company_id: int, user_id: int) -> List[Invoice]:
        invoices = ApprovalService.get_pending_for_user(info.context["db"], company_id, user_id)
        return [Invoice.from_model(i) for i in invoices]

    @strawberry.field
    def payments(self, info: Info, invoice_id: int) -> List[Payment]:
        return [Payment.from_model(p) for p in info.context["payment_service"].list_for_invoice(invoice_id)]

    @strawberry.field
    def journal_preview(self, info: Info, invoice_id: int, payment_account_id: str) -> JournalEntry:
        entry = info.context["payment_service"].preview_journal_entry(invoice_id, payment_account_id)
        return JournalEntry.from_schema(entry)


# Mutations
@strawberry.type
class Mutation:
    @strawberry.mutation
    def submit_invoice(self, info: Info, invoice_id: int, user_id: int) -> Invoice:
        return Invoice.from_model(InvoiceService.submit_for_approval(info.context["db"], invoice_id, user_id))

    @strawberry.mutation
    def approve_invoice(self, info: Info, invoice_id: int, user_id: int, comments: Optional[str] = None) -> Invoice:
        return Invoice.from_model(ApprovalService.approve(info.context["db"], invoice_id, user_id, comments))

    @strawberry.mutation
    def reject_invoice(self, info: Info, invoice_id: int, user_id: int, comments: str) -> Invoice:
        return Invoice.from_model(ApprovalService.reject(info.context["db"], invoice_id, user_id, comments))

    @strawberry.mutation
    def schedule_payment(self, info: Info, invoice_id: int, input: PaymentScheduleInput) -> Payment:
        data = PaymentSchedule(
            payment_account_id=input.payment_account_id,
            payment_account_name=input.payment_account_name,
            payment_method=input.payment_method,
            reference_number=input.reference_number,
            scheduled_date=input.scheduled_date,
        )
        return Payment.from_model(info.context["payment_service"].schedule_payment(invoice_id, data))

    @strawberry.mutation
    def execute_payment(self, info: Info, payment_id: int, user_id: int) -> Payment:
        return Payment.from_model(info.context["payment_service"].execute_payment(payment_id, user_id))

    @strawberry.mutation
    def cancel_payment(self, info: Info, payment_id: int) -> bool:
        info.context["payment_service"].cancel_payment(payment_id)
        return True


schema = strawberry.Schema(query=Query, mutation=Mutation)
