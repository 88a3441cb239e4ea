from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import date, datetime
from typing import Dict, List, Optional
from decimal import Decimal

from invoice_workflow.models.invoice import InvoiceStatus, MatchType
from invoice_workflow.schemas.approval import ApprovalResponse
from invoice_workflow.schemas.payment import PaymentResponse


class InvoiceItemInput(BaseModel):
    id: Optional[int] = None
    description: str = Field(..., max_length=1000)
    quantity: Decimal = Field(default=Decimal("1"), gt=0)
    unit: Optional[str] = Field(None, max_length=50)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0)
    amount: Decimal = Field(..., ge=0, description="Line total including tax")
    expense_account_id: Optional[str] = None
    match_type: MatchType = MatchType.MANUAL
    match_confidence: Optional[Decimal] = Field(None, ge=0, le=100)

    @field_validator('expense_account_id')
    @classmethod
    def normalize_account(cls, v: Optional[str]) -> Optional[str]:
        """Blank account ids are treated as unmapped"""
        return v.strip() if v and v.strip() else None

    @model_validator(mode='after')
    def validate_tax(self):
        if self.tax_amount > self.amount:
            raise ValueError("Tax amount cannot exceed the line amount")
        return self


class InvoiceUpdate(BaseModel):
    vendor_id: Optional[int] = None
    invoice_number: Optional[str] = Field(None, max_length=255)
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    subtotal: Optional[Decimal] = Field(None, ge=0)
    tax_amount: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[str] = Field(None, max_length=10)
    notes: Optional[str] = Field(None, max_length=4000)
    items: Optional[List[InvoiceItemInput]] = None

    @field_validator('invoice_number')
    @classmethod
    def validate_invoice_number(cls, v: Optional[str]) -> Optional[str]:
        """Validate invoice number is not empty if provided"""
        if v is not None and (not v or not v.strip()):
            raise ValueError("Invoice number cannot be empty if provided")
        return v.strip() if v else None

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Currency cannot be empty if provided")
        return v.strip().upper() if v else None


class InvoiceFilter(BaseModel):
    status: Optional[InvoiceStatus] = None
    vendor_id: Optional[int] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    amount_min: Optional[Decimal] = None
    amount_max: Optional[Decimal] = None
    search: Optional[str] = None
    sort_by: Optional[str] = None
    sort_descending: bool = True


class InvoiceItemResponse(BaseModel):
    id: int
    line_number: int
    description: str
    quantity: Decimal
    unit: Optional[str]
    unit_price: Decimal
    tax_amount: Decimal
    amount: Decimal
    expense_account_id: Optional[str]
    match_type: MatchType
    match_confidence: Optional[Decimal]

    class Config:
        from_attributes = True


class InvoiceResponse(BaseModel):
    id: int
    company_id: int
    vendor_id: Optional[int]
    uploaded_by_id: int
    invoice_number: str
    invoice_date: date
    due_date: Optional[date]
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str
    status: InvoiceStatus
    ocr_confidence: Optional[Decimal]
    original_file_name: Optional[str]
    notes: Optional[str]
    external_ref: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]
    items: List[InvoiceItemResponse] = []

    class Config:
        from_attributes = True


class InvoiceDetailResponse(InvoiceResponse):
    approvals: List[ApprovalResponse] = []
    payments: List[PaymentResponse] = []


class InvoicePage(BaseModel):
    items: List[InvoiceResponse]
    total_count: int
    page: int
    page_size: int


class InvoiceStatistics(BaseModel):
    total_count: int = 0
    draft_count: int = 0
    pending_approval_count: int = 0
    approved_count: int = 0
    completed_count: int = 0
    rejected_count: int = 0
    total_amount: Decimal = Decimal("0")
    pending_amount: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")
    amount_by_month: Dict[str, Decimal] = {}
