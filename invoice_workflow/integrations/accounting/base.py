from abc import ABC, abstractmethod
from typing import List, Optional

from invoice_workflow.schemas.account import AccountDto, AccountType
from invoice_workflow.schemas.journal import JournalEntry, JournalEntryResult


class AccountingApiClient(ABC):
    """Contract every external accounting provider satisfies.

    Account fetches raise on transport or API failure; callers decide whether to
    degrade. Posting a journal entry never raises for provider-side failures, it
    reports them through ``JournalEntryResult.success``.
    """

    provider_name = "accounting"

    @abstractmethod
    def get_accounts(self) -> List[AccountDto]:
        ...

    @abstractmethod
    def get_accounts_by_type(self, account_type: AccountType) -> List[AccountDto]:
        ...

    @abstractmethod
    def get_account_by_id(self, account_id: str) -> Optional[AccountDto]:
        ...

    @abstractmethod
    def create_journal_entry(self, entry: JournalEntry) -> JournalEntryResult:
        ...

    @abstractmethod
    def test_connection(self) -> bool:
        ...
