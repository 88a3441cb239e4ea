from pydantic import BaseModel, computed_field
from typing import Optional
from decimal import Decimal
import enum


class AccountType(str, enum.Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class AccountSubType(str, enum.Enum):
    BANK = "bank"
    CASH = "cash"
    ACCOUNTS_RECEIVABLE = "accounts_receivable"
    ACCOUNTS_PAYABLE = "accounts_payable"
    OTHER_CURRENT_ASSET = "other_current_asset"
    FIXED_ASSET = "fixed_asset"
    OTHER_ASSET = "other_asset"
    OTHER_CURRENT_LIABILITY = "other_current_liability"
    LONG_TERM_LIABILITY = "long_term_liability"
    OTHER_EXPENSE = "other_expense"
    COST_OF_GOODS_SOLD = "cost_of_goods_sold"
    INCOME = "income"
    OTHER_INCOME = "other_income"


PAYMENT_SUB_TYPES = (AccountSubType.BANK, AccountSubType.CASH)


class AccountDto(BaseModel):
    """Account as reported by the external accounting system; never stored locally"""

    external_id: str
    code: str = ""
    name: str = ""
    type: AccountType
    sub_type: Optional[AccountSubType] = None
    parent_account_id: Optional[str] = None
    balance: Optional[Decimal] = None
    currency: str = "PKR"
    is_active: bool = True
    description: Optional[str] = None

    @computed_field
    @property
    def display_name(self) -> str:
        return f"{self.code} - {self.name}"


class ConnectionStatus(BaseModel):
    company_id: int
    provider: str
    connected: bool
