from pydantic import BaseModel, Field
from datetime import date
from typing import List, Optional
from decimal import Decimal

from invoice_workflow.schemas.account import AccountType


class JournalLine(BaseModel):
    account_id: str
    account_name: str = ""
    account_code: str = ""
    account_type: AccountType
    debit_amount: Decimal = Decimal("0")
    credit_amount: Decimal = Decimal("0")
    description: Optional[str] = None


class JournalEntry(BaseModel):
    entry_date: date
    memo: Optional[str] = None
    reference_number: Optional[str] = None
    lines: List[JournalLine] = Field(default_factory=list)

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit_amount for line in self.lines), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit_amount for line in self.lines), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit


class JournalEntryResult(BaseModel):
    success: bool
    external_id: Optional[str] = None
    reference_number: Optional[str] = None
    error_message: Optional[str] = None
