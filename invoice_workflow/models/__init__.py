from invoice_workflow.models.company import Company, CompanyMember, User, UserRole, AccountingProvider
from invoice_workflow.models.vendor import Vendor
from invoice_workflow.models.invoice import Invoice, InvoiceItem, InvoiceStatus, MatchType
from invoice_workflow.models.approval import InvoiceApproval, ApprovalLevel, ApprovalStatus
from invoice_workflow.models.payment import Payment, PaymentStatus

__all__ = [
    "Company",
    "CompanyMember",
    "User",
    "UserRole",
    "AccountingProvider",
    "Vendor",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "MatchType",
    "InvoiceApproval",
    "ApprovalLevel",
    "ApprovalStatus",
    "Payment",
    "PaymentStatus",
]
