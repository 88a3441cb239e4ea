import itertools
from datetime import date
from typing import List, Optional

from invoice_workflow.integrations.accounting.base import AccountingApiClient
from invoice_workflow.schemas.account import AccountDto, AccountSubType, AccountType
from invoice_workflow.schemas.journal import JournalEntry, JournalEntryResult

_A = AccountType
_S = AccountSubType

SAMPLE_ACCOUNTS = [
    ("1001", "Cash in Hand", _A.ASSET, _S.CASH),
    ("1002", "HBL Current Account", _A.ASSET, _S.BANK),
    ("1003", "MCB Current Account", _A.ASSET, _S.BANK),
    ("1004", "Allied Bank Account", _A.ASSET, _S.BANK),
    ("1101", "Accounts Receivable", _A.ASSET, _S.ACCOUNTS_RECEIVABLE),
    ("1201", "Inventory", _A.ASSET, _S.OTHER_CURRENT_ASSET),
    ("1301", "Furniture & Fixtures", _A.ASSET, _S.FIXED_ASSET),
    ("1302", "Computer Equipment", _A.ASSET, _S.FIXED_ASSET),
    ("2001", "Accounts Payable", _A.LIABILITY, _S.ACCOUNTS_PAYABLE),
    ("2101", "Salaries Payable", _A.LIABILITY, _S.OTHER_CURRENT_LIABILITY),
    ("2201", "GST Payable", _A.LIABILITY, _S.OTHER_CURRENT_LIABILITY),
    ("2301", "Bank Loan", _A.LIABILITY, _S.LONG_TERM_LIABILITY),
    ("4001", "Sales Revenue", _A.REVENUE, _S.INCOME),
    ("4002", "Service Revenue", _A.REVENUE, _S.INCOME),
    ("4101", "Interest Income", _A.REVENUE, _S.OTHER_INCOME),
    ("5001", "Cost of Goods Sold", _A.EXPENSE, _S.COST_OF_GOODS_SOLD),
    ("5101", "Office Supplies", _A.EXPENSE, None),
    ("5102", "Utilities", _A.EXPENSE, None),
    ("5103", "Telephone & Internet", _A.EXPENSE, None),
    ("5104", "Rent Expense", _A.EXPENSE, None),
    ("5105", "Salaries & Wages", _A.EXPENSE, None),
    ("5106", "Insurance", _A.EXPENSE, None),
    ("5107", "Repairs & Maintenance", _A.EXPENSE, None),
    ("5108", "Travel & Transportation", _A.EXPENSE, None),
    ("5109", "Advertising & Marketing", _A.EXPENSE, None),
    ("5110", "Professional Fees", _A.EXPENSE, None),
    ("5111", "Bank Charges", _A.EXPENSE, None),
    ("5112", "Depreciation Expense", _A.EXPENSE, None),
    ("5201", "Interest Expense", _A.EXPENSE, _S.OTHER_EXPENSE),
    ("5202", "Miscellaneous Expense", _A.EXPENSE, _S.OTHER_EXPENSE),
]


class SampleAccountingClient(AccountingApiClient):
    """Stands in for a real ledger when a company has no accounting integration"""

    provider_name = "sample"

    def __init__(self):
        self._accounts = [
            AccountDto(external_id=code, code=code, name=name, type=account_type, sub_type=sub_type)
            for code, name, account_type, sub_type in SAMPLE_ACCOUNTS
        ]
        self._sequence = itertools.count(1)

    def get_accounts(self) -> List[AccountDto]:
        return list(self._accounts)

    def get_accounts_by_type(self, account_type: AccountType) -> List[AccountDto]:
        return [a for a in self._accounts if a.type == account_type]

    def get_account_by_id(self, account_id: str) -> Optional[AccountDto]:
        return next((a for a in self._accounts if a.external_id == account_id), None)

    def create_journal_entry(self, entry: JournalEntry) -> JournalEntryResult:
        number = next(self._sequence)
        stamp = date.today().strftime("%Y%m%d")
        return JournalEntryResult(
            success=True,
            external_id=f"JE-{stamp}-{number:06d}",
            reference_number=entry.reference_number or f"JE-{stamp}-{number:06d}",
        )

    def test_connection(self) -> bool:
        return True
