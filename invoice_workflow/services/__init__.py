from invoice_workflow.services.company_service import CompanyService
from invoice_workflow.services.vendor_service import VendorService
from invoice_workflow.services.invoice_service import InvoiceService
from invoice_workflow.services.approval_service import ApprovalService
from invoice_workflow.services.payment_service import PaymentService
from invoice_workflow.services.chart_of_accounts_service import ChartOfAccountsService
from invoice_workflow.services.account_match_service import AccountMatchService
from invoice_workflow.services.journal_builder import build_journal_entry

__all__ = [
    "CompanyService",
    "VendorService",
    "InvoiceService",
    "ApprovalService",
    "PaymentService",
    "ChartOfAccountsService",
    "AccountMatchService",
    "build_journal_entry",
]
