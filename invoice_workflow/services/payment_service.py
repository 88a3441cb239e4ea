"""Scheduling and executing invoice payments.

Execution posts a journal entry to the company's accounting system. The
local state change and the remote post cannot share a transaction, so the
payment is first claimed (Scheduled -> Processing) and committed, then the
entry is posted, then the outcome is recorded. If posting fails the claim
is compensated: the payment is marked Failed and the invoice goes back to
Approved so it can be paid again.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, List

from sqlalchemy.orm import Session

from invoice_workflow.core.database import commit_or_conflict
from invoice_workflow.core.exceptions import ExternalServiceError, NotFoundError, StateConflictError, ValidationError
from invoice_workflow.core.logging import log
from invoice_workflow.integrations.accounting.factory import AccountingClientFactory
from invoice_workflow.models.company import Company
from invoice_workflow.models.invoice import Invoice, InvoiceStatus
from invoice_workflow.models.payment import Payment, PaymentStatus
from invoice_workflow.models.vendor import Vendor
from invoice_workflow.schemas.journal import JournalEntry, JournalEntryResult
from invoice_workflow.schemas.payment import PaymentSchedule, PaymentStatistics
from invoice_workflow.services.chart_of_accounts_service import ChartOfAccountsService
from invoice_workflow.services.journal_builder import build_journal_entry

ZERO = Decimal("0")


class PaymentService:
    def __init__(
        self,
        db: Session,
        chart_of_accounts: ChartOfAccountsService,
        client_factory: AccountingClientFactory,
    ):
        self.db = db
        self.chart_of_accounts = chart_of_accounts
        self.client_factory = client_factory

    def schedule_payment(self, invoice_id: int, data: PaymentSchedule) -> Payment:
        invoice = self._get_invoice(invoice_id)
        if invoice.status != InvoiceStatus.APPROVED:
            raise StateConflictError(
                "Only approved invoices can have a payment scheduled",
                current_status=invoice.status,
            )
        if any(p.status != PaymentStatus.FAILED for p in invoice.payments):
            raise StateConflictError(
                f"Invoice {invoice.invoice_number} already has an active payment",
                current_status=invoice.status,
            )

        amount = data.amount if data.amount is not None else Decimal(invoice.total_amount)
        if amount != Decimal(invoice.total_amount):
            raise ValidationError(
                f"Payment amount must equal the invoice total of {invoice.total_amount}",
                field="amount",
            )

        account_name = data.payment_account_name
        if not account_name:
            account = self.chart_of_accounts.get_account_by_id(self.db, invoice.company_id, data.payment_account_id)
            account_name = account.display_name if account else None

        payment = Payment(
            payment_account_id=data.payment_account_id,
            payment_account_name=account_name,
            amount=amount,
            payment_method=data.payment_method,
            reference_number=data.reference_number,
            status=PaymentStatus.SCHEDULED,
            scheduled_date=data.scheduled_date or date.today(),
        )
        invoice.payments.append(payment)
        invoice.status = InvoiceStatus.PAYMENT_PENDING
        invoice.touch()

        commit_or_conflict(self.db, f"Invoice {invoice_id}")
        self.db.refresh(payment)
        log.info(f"Payment {payment.id} of {amount} scheduled for invoice {invoice.invoice_number}")
        return payment

    def execute_payment(self, payment_id: int, executed_by_id: int) -> Payment:
        payment = self.get_payment(payment_id)
        if payment.status != PaymentStatus.SCHEDULED:
            raise StateConflictError(
                f"Payment {payment_id} cannot be executed from status {payment.status.value}",
                current_status=payment.status,
            )
        invoice = self._get_invoice(payment.invoice_id)

        # Only one caller can move the row out of Scheduled
        claimed = self.db.query(Payment).filter(
            Payment.id == payment_id,
            Payment.status == PaymentStatus.SCHEDULED,
        ).update(
            {Payment.status: PaymentStatus.PROCESSING, Payment.updated_at: datetime.now(timezone.utc)},
            synchronize_session=False,
        )
        if not claimed:
            self.db.rollback()
            raise StateConflictError(
                f"Payment {payment_id} is already being executed",
                current_status=PaymentStatus.PROCESSING,
            )
        invoice.status = InvoiceStatus.PAYMENT_PROCESSING
        invoice.touch()
        commit_or_conflict(self.db, f"Invoice {invoice.id}")
        log.info(f"Executing payment {payment_id} for invoice {invoice.invoice_number}")

        try:
            result = self._post_journal_entry(invoice, payment)
        except Exception as e:
            self._record_failure(payment, invoice, e)
            raise

        return self._record_success(payment, invoice, result, executed_by_id)

    def cancel_payment(self, payment_id: int) -> None:
        payment = self.get_payment(payment_id)
        if payment.status != PaymentStatus.SCHEDULED:
            raise StateConflictError(
                f"Payment {payment_id} cannot be cancelled from status {payment.status.value}",
                current_status=payment.status,
            )
        invoice = self._get_invoice(payment.invoice_id)
        invoice.payments.remove(payment)
        invoice.status = InvoiceStatus.APPROVED
        invoice.touch()
        commit_or_conflict(self.db, f"Invoice {invoice.id}")
        log.info(f"Payment {payment_id} cancelled, invoice {invoice.invoice_number} back to approved")

    def preview_journal_entry(self, invoice_id: int, payment_account_id: str) -> JournalEntry:
        """The entry that executing a payment from this account would post"""
        invoice = self._get_invoice(invoice_id)
        return self._generate_journal_entry(invoice, payment_account_id)

    def get_payment(self, payment_id: int) -> Payment:
        payment = self.db.query(Payment).filter(Payment.id == payment_id).first()
        if not payment:
            raise NotFoundError("Payment", payment_id)
        return payment

    def list_for_invoice(self, invoice_id: int) -> List[Payment]:
        self._get_invoice(invoice_id)
        return self.db.query(Payment).filter(Payment.invoice_id == invoice_id).order_by(Payment.id.desc()).all()

    def get_pending_payments(self, company_id: int) -> List[Payment]:
        return self.db.query(Payment).join(Invoice, Invoice.id == Payment.invoice_id).filter(
            Invoice.company_id == company_id,
            Payment.status.in_((PaymentStatus.SCHEDULED, PaymentStatus.PROCESSING)),
        ).order_by(Payment.scheduled_date, Payment.id).all()

    def get_statistics(self, company_id: int) -> PaymentStatistics:
        payments = self.db.query(Payment).join(Invoice, Invoice.id == Payment.invoice_id).filter(
            Invoice.company_id == company_id
        ).all()

        completed = [p for p in payments if p.status == PaymentStatus.COMPLETED]
        pending = [p for p in payments if p.status in (PaymentStatus.SCHEDULED, PaymentStatus.PROCESSING)]
        paid_by_month: Dict[str, Decimal] = {}
        for p in completed:
            if p.executed_at:
                key = p.executed_at.strftime("%Y-%m")
                paid_by_month[key] = paid_by_month.get(key, ZERO) + Decimal(p.amount)

        return PaymentStatistics(
            total_payments=len(payments),
            pending_payments=len(pending),
            completed_payments=len(completed),
            failed_payments=sum(1 for p in payments if p.status == PaymentStatus.FAILED),
            total_paid=sum((Decimal(p.amount) for p in completed), ZERO),
            total_pending=sum((Decimal(p.amount) for p in pending), ZERO),
            paid_by_month=paid_by_month,
        )

    def _get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.db.query(Invoice).filter(Invoice.id == invoice_id).first()
        if not invoice:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    def _generate_journal_entry(self, invoice: Invoice, payment_account_id: str) -> JournalEntry:
        company_id = invoice.company_id
        expense_accounts = {}
        for item in invoice.items:
            if item.expense_account_id and item.expense_account_id not in expense_accounts:
                account = self.chart_of_accounts.get_account_by_id(self.db, company_id, item.expense_account_id)
                if account:
                    expense_accounts[item.expense_account_id] = account

        vendor_name = None
        if invoice.vendor_id is not None:
            vendor = self.db.query(Vendor).filter(Vendor.id == invoice.vendor_id).first()
            vendor_name = vendor.name if vendor else None

        return build_journal_entry(
            invoice,
            payment_account_id,
            payment_account=self.chart_of_accounts.get_account_by_id(self.db, company_id, payment_account_id),
            expense_accounts=expense_accounts,
            vendor_name=vendor_name,
        )

    def _post_journal_entry(self, invoice: Invoice, payment: Payment) -> JournalEntryResult:
        entry = self._generate_journal_entry(invoice, payment.payment_account_id)
        company = self.db.query(Company).filter(Company.id == invoice.company_id).first()
        client = self.client_factory.create_client(company)
        try:
            result = client.create_journal_entry(entry)
        except Exception as e:
            raise ExternalServiceError(client.provider_name, str(e) or e.__class__.__name__) from e
        if not result.success:
            raise ExternalServiceError(client.provider_name, result.error_message or "journal entry was not accepted")
        return result

    def _record_success(
        self,
        payment: Payment,
        invoice: Invoice,
        result: JournalEntryResult,
        executed_by_id: int,
    ) -> Payment:
        now = datetime.now(timezone.utc)
        payment.status = PaymentStatus.COMPLETED
        payment.executed_by_id = executed_by_id
        payment.executed_at = now
        payment.journal_entry_ref = result.reference_number
        payment.external_ref = result.external_id
        payment.updated_at = now
        invoice.status = InvoiceStatus.COMPLETED
        invoice.external_ref = result.external_id
        invoice.touch()
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            log.critical(
                f"Journal entry {result.external_id} was posted for payment {payment.id} "
                f"but completing the payment failed; manual reconciliation required"
            )
            raise
        self.db.refresh(payment)
        log.info(f"Payment {payment.id} completed, journal entry {result.external_id}")
        return payment

    def _record_failure(self, payment: Payment, invoice: Invoice, error: Exception) -> None:
        reason = getattr(error, "message", None) or str(error) or error.__class__.__name__
        self.db.rollback()
        payment.status = PaymentStatus.FAILED
        payment.failure_reason = reason
        payment.updated_at = datetime.now(timezone.utc)
        invoice.status = InvoiceStatus.APPROVED
        invoice.touch()
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            log.critical(
                f"Payment {payment.id} failed ({reason}) and could not be rolled back; "
                f"invoice {invoice.id} is stuck in {InvoiceStatus.PAYMENT_PROCESSING.value}"
            )
            raise
        log.warning(f"Payment {payment.id} failed and invoice {invoice.invoice_number} returned to approved: {reason}")
