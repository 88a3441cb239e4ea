from invoice_workflow.schemas.account import AccountDto, AccountType, AccountSubType
from invoice_workflow.schemas.journal import JournalEntry, JournalLine, JournalEntryResult
from invoice_workflow.schemas.ocr import OcrResult, OcrLineItem
from invoice_workflow.schemas.company import CompanyCreate, CompanyResponse, UserCreate, UserResponse, MemberCreate, MemberResponse
from invoice_workflow.schemas.vendor import VendorCreate, VendorResponse
from invoice_workflow.schemas.approval import ApprovalAction, RejectionAction, ApprovalResponse, ApprovalRules
from invoice_workflow.schemas.payment import PaymentSchedule, PaymentResponse, PaymentStatistics
from invoice_workflow.schemas.invoice import (
    InvoiceItemInput,
    InvoiceUpdate,
    InvoiceFilter,
    InvoiceResponse,
    InvoiceDetailResponse,
    InvoicePage,
    InvoiceStatistics,
)

__all__ = [
    "AccountDto",
    "AccountType",
    "AccountSubType",
    "JournalEntry",
    "JournalLine",
    "JournalEntryResult",
    "OcrResult",
    "OcrLineItem",
    "CompanyCreate",
    "CompanyResponse",
    "UserCreate",
    "UserResponse",
    "MemberCreate",
    "MemberResponse",
    "VendorCreate",
    "VendorResponse",
    "ApprovalAction",
    "RejectionAction",
    "ApprovalResponse",
    "ApprovalRules",
    "PaymentSchedule",
    "PaymentResponse",
    "PaymentStatistics",
    "InvoiceItemInput",
    "InvoiceUpdate",
    "InvoiceFilter",
    "InvoiceResponse",
    "InvoiceDetailResponse",
    "InvoicePage",
    "InvoiceStatistics",
]
