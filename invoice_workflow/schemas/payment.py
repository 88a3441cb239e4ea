from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional

from invoice_workflow.models.payment import PaymentStatus


class PaymentSchedule(BaseModel):
    payment_account_id: str = Field(..., max_length=100, description="Bank or cash account id in the external ledger")
    payment_account_name: Optional[str] = Field(None, max_length=255)
    amount: Optional[Decimal] = Field(None, gt=0, description="Defaults to the invoice total")
    payment_method: Optional[str] = Field(None, max_length=100)
    reference_number: Optional[str] = Field(None, max_length=100)
    scheduled_date: Optional[date] = None

    @field_validator('payment_account_id')
    @classmethod
    def validate_account(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Payment account is required")
        return v.strip()


class PaymentResponse(BaseModel):
    id: int
    invoice_id: int
    payment_account_id: str
    payment_account_name: Optional[str]
    executed_by_id: Optional[int]
    amount: Decimal
    payment_method: Optional[str]
    reference_number: Optional[str]
    status: PaymentStatus
    scheduled_date: Optional[date]
    executed_at: Optional[datetime]
    external_ref: Optional[str]
    journal_entry_ref: Optional[str]
    failure_reason: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentStatistics(BaseModel):
    total_payments: int = 0
    pending_payments: int = 0
    completed_payments: int = 0
    failed_payments: int = 0
    total_paid: Decimal = Decimal("0")
    total_pending: Decimal = Decimal("0")
    paid_by_month: Dict[str, Decimal] = {}
