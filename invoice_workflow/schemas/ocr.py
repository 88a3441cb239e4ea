from pydantic import BaseModel, Field
from datetime import date
from typing import List, Optional
from decimal import Decimal


class OcrLineItem(BaseModel):
    description: str = ""
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    unit_price: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    confidence: Decimal = Decimal("0")


class OcrResult(BaseModel):
    """Fields extracted from an invoice document, each optional"""

    raw_text: str = ""
    confidence: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    invoice_number: Optional[str] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    vendor_name: Optional[str] = None
    vendor_ntn: Optional[str] = None
    vendor_address: Optional[str] = None
    subtotal: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    currency: Optional[str] = None
    line_items: List[OcrLineItem] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    processing_time_ms: int = 0
