from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional


class VendorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Vendor name (required)")
    ntn: Optional[str] = Field(None, max_length=50, description="National tax number (unique per company)")
    strn: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    contact_person: Optional[str] = None
    default_expense_account_id: Optional[str] = None
    payment_terms_days: int = Field(default=30, ge=0, le=365)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate that name is not empty or just whitespace"""
        if not v or not v.strip():
            raise ValueError("Vendor name cannot be empty")
        return v.strip()

    @field_validator('ntn', 'default_expense_account_id')
    @classmethod
    def validate_optional_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Value cannot be empty if provided")
        return v.strip() if v else None


class VendorResponse(BaseModel):
    id: int
    company_id: int
    name: str
    ntn: Optional[str]
    strn: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    city: Optional[str]
    default_expense_account_id: Optional[str]
    payment_terms_days: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
