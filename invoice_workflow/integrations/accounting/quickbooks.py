from typing import List, Optional

import httpx

from invoice_workflow.core.logging import log
from invoice_workflow.integrations.accounting.base import AccountingApiClient
from invoice_workflow.schemas.account import AccountDto, AccountSubType, AccountType
from invoice_workflow.schemas.journal import JournalEntry, JournalEntryResult

# QuickBooks reports its own account-type vocabulary
_QB_TYPES = {
    AccountType.ASSET: ("Bank", "Other Current Asset", "Fixed Asset", "Other Asset"),
    AccountType.LIABILITY: ("Accounts Payable", "Credit Card", "Other Current Liability", "Long Term Liability"),
    AccountType.EQUITY: ("Equity",),
    AccountType.REVENUE: ("Income", "Other Income"),
    AccountType.EXPENSE: ("Expense", "Other Expense", "Cost of Goods Sold"),
}

_QB_SUB_TYPES = {
    "Checking": AccountSubType.BANK,
    "Savings": AccountSubType.BANK,
    "MoneyMarket": AccountSubType.BANK,
    "CashOnHand": AccountSubType.CASH,
    "AccountsReceivable": AccountSubType.ACCOUNTS_RECEIVABLE,
    "AccountsPayable": AccountSubType.ACCOUNTS_PAYABLE,
}


class QuickBooksClient(AccountingApiClient):
    provider_name = "quickbooks"

    def __init__(
        self,
        base_url: str,
        access_token: str,
        realm_id: Optional[str],
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._base_url = f"{base_url.rstrip('/')}/{realm_id or ''}"
        self._realm_id = realm_id
        self._headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self._base_url,
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    def _query_accounts(self, query: str) -> List[AccountDto]:
        with self._client() as client:
            response = client.get("/query", params={"query": query})
            response.raise_for_status()
            accounts = (response.json().get("QueryResponse") or {}).get("Account") or []
            return [self._map_account(a) for a in accounts]

    def get_accounts(self) -> List[AccountDto]:
        try:
            return self._query_accounts("SELECT * FROM Account WHERE Active = true MAXRESULTS 1000")
        except httpx.HTTPError as e:
            log.error(f"Failed to fetch accounts from QuickBooks: {e}")
            raise

    def get_accounts_by_type(self, account_type: AccountType) -> List[AccountDto]:
        qb_types = ", ".join(f"'{t}'" for t in _QB_TYPES[account_type])
        try:
            return self._query_accounts(
                f"SELECT * FROM Account WHERE AccountType IN ({qb_types}) AND Active = true MAXRESULTS 1000"
            )
        except httpx.HTTPError as e:
            log.error(f"Failed to fetch {account_type.value} accounts from QuickBooks: {e}")
            raise

    def get_account_by_id(self, account_id: str) -> Optional[AccountDto]:
        try:
            with self._client() as client:
                response = client.get(f"/account/{account_id}")
        except httpx.HTTPError as e:
            log.error(f"Failed to fetch account {account_id} from QuickBooks: {e}")
            return None
        if response.status_code != 200:
            return None
        account = response.json().get("Account")
        return self._map_account(account) if account else None

    def create_journal_entry(self, entry: JournalEntry) -> JournalEntryResult:
        payload = {
            "TxnDate": entry.entry_date.isoformat(),
            "PrivateNote": entry.memo,
            "DocNumber": entry.reference_number,
            "Line": [
                {
                    "DetailType": "JournalEntryLineDetail",
                    "Amount": str(line.debit_amount if line.debit_amount > 0 else line.credit_amount),
                    "Description": line.description,
                    "JournalEntryLineDetail": {
                        "PostingType": "Debit" if line.debit_amount > 0 else "Credit",
                        "AccountRef": {"value": line.account_id},
                    },
                }
                for line in entry.lines
            ],
        }
        try:
            with self._client() as client:
                response = client.post("/journalentry", json=payload)
                response.raise_for_status()
                journal = response.json().get("JournalEntry") or {}
        except (httpx.HTTPError, ValueError) as e:
            log.error(f"Failed to create journal entry in QuickBooks: {e}")
            return JournalEntryResult(success=False, error_message=str(e) or e.__class__.__name__)

        return JournalEntryResult(
            success=True,
            external_id=journal.get("Id"),
            reference_number=journal.get("DocNumber"),
        )

    def test_connection(self) -> bool:
        try:
            with self._client() as client:
                return client.get(f"/companyinfo/{self._realm_id}").is_success
        except httpx.HTTPError:
            return False

    @staticmethod
    def _map_account(raw: dict) -> AccountDto:
        qb_type = raw.get("AccountType")
        account_type = next(
            (t for t, names in _QB_TYPES.items() if qb_type in names),
            AccountType.EXPENSE,
        )
        sub_type = _QB_SUB_TYPES.get(raw.get("AccountSubType"))
        if sub_type is None and qb_type == "Bank":
            sub_type = AccountSubType.BANK
        return AccountDto(
            external_id=str(raw.get("Id") or ""),
            code=raw.get("AcctNum") or "",
            name=raw.get("Name") or "",
            type=account_type,
            sub_type=sub_type,
            balance=raw.get("CurrentBalance"),
            currency=(raw.get("CurrencyRef") or {}).get("value") or "PKR",
            is_active=raw.get("Active", True),
            description=raw.get("Description"),
        )
