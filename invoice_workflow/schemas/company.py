from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional

from invoice_workflow.models.company import AccountingProvider, UserRole


class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Company name (required, non-empty)")
    ntn: str = Field(..., min_length=1, max_length=50, description="National tax number (unique)")
    default_currency: str = Field(default="PKR", max_length=10)
    accounting_provider: AccountingProvider = AccountingProvider.NONE
    accounting_access_token: Optional[str] = None
    external_company_id: Optional[str] = None
    manager_only_threshold: Optional[Decimal] = Field(None, gt=0)
    admin_required_threshold: Optional[Decimal] = Field(None, gt=0)
    cfo_required_threshold: Optional[Decimal] = Field(None, gt=0)
    require_admin_for_new_vendor: Optional[bool] = None

    @field_validator('name', 'ntn')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Validate that value is not empty or just whitespace"""
        if not v or not v.strip():
            raise ValueError("Value cannot be empty")
        return v.strip()

    @field_validator('default_currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Currency cannot be empty")
        return v.strip().upper()


class CompanyResponse(BaseModel):
    id: int
    name: str
    ntn: str
    default_currency: str
    accounting_provider: AccountingProvider
    external_company_id: Optional[str]
    manager_only_threshold: Optional[Decimal]
    admin_required_threshold: Optional[Decimal]
    cfo_required_threshold: Optional[Decimal]
    require_admin_for_new_vendor: Optional[bool]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    full_name: str = Field(..., min_length=1, max_length=255)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Email address is invalid")
        return v


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: str
    created_at: datetime

    class Config:
        from_attributes = True


class MemberCreate(BaseModel):
    user_id: int
    role: UserRole = UserRole.VIEWER


class MemberResponse(BaseModel):
    id: int
    company_id: int
    user_id: int
    role: UserRole
    is_active: bool

    class Config:
        from_attributes = True
