from typing import List, Optional

import httpx

from invoice_workflow.core.logging import log
from invoice_workflow.integrations.accounting.base import AccountingApiClient
from invoice_workflow.schemas.account import AccountDto, AccountSubType, AccountType
from invoice_workflow.schemas.journal import JournalEntry, JournalEntryResult

_TYPE_MAP = {
    "asset": AccountType.ASSET,
    "liability": AccountType.LIABILITY,
    "equity": AccountType.EQUITY,
    "revenue": AccountType.REVENUE,
    "income": AccountType.REVENUE,
    "expense": AccountType.EXPENSE,
}

_SUB_TYPE_MAP = {
    "bank": AccountSubType.BANK,
    "cash": AccountSubType.CASH,
    "accounts_receivable": AccountSubType.ACCOUNTS_RECEIVABLE,
    "accounts_payable": AccountSubType.ACCOUNTS_PAYABLE,
    "fixed_asset": AccountSubType.FIXED_ASSET,
    "cost_of_goods_sold": AccountSubType.COST_OF_GOODS_SOLD,
}


class EndraajClient(AccountingApiClient):
    provider_name = "endraaj"

    def __init__(
        self,
        base_url: str,
        access_token: str,
        company_ref: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
        if company_ref:
            headers["X-Company-Id"] = company_ref
        self._base_url = base_url.rstrip("/")
        self._headers = headers
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self._base_url,
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    def get_accounts(self) -> List[AccountDto]:
        try:
            with self._client() as client:
                response = client.get("/accounts")
                response.raise_for_status()
                return [self._map_account(a) for a in response.json().get("data") or []]
        except httpx.HTTPError as e:
            log.error(f"Failed to fetch accounts from Endraaj: {e}")
            raise

    def get_accounts_by_type(self, account_type: AccountType) -> List[AccountDto]:
        try:
            with self._client() as client:
                response = client.get("/accounts", params={"type": account_type.value})
                response.raise_for_status()
                return [self._map_account(a) for a in response.json().get("data") or []]
        except httpx.HTTPError as e:
            log.error(f"Failed to fetch {account_type.value} accounts from Endraaj: {e}")
            raise

    def get_account_by_id(self, account_id: str) -> Optional[AccountDto]:
        try:
            with self._client() as client:
                response = client.get(f"/accounts/{account_id}")
        except httpx.HTTPError as e:
            log.error(f"Failed to fetch account {account_id} from Endraaj: {e}")
            return None
        if response.status_code != 200:
            return None
        data = response.json().get("data")
        return self._map_account(data) if data else None

    def create_journal_entry(self, entry: JournalEntry) -> JournalEntryResult:
        payload = {
            "date": entry.entry_date.isoformat(),
            "memo": entry.memo,
            "reference": entry.reference_number,
            "lines": [
                {
                    "account_id": line.account_id,
                    "debit": str(line.debit_amount),
                    "credit": str(line.credit_amount),
                    "description": line.description,
                }
                for line in entry.lines
            ],
        }
        try:
            with self._client() as client:
                response = client.post("/journal-entries", json=payload)
                response.raise_for_status()
                data = response.json().get("data") or {}
        except (httpx.HTTPError, ValueError) as e:
            log.error(f"Failed to create journal entry in Endraaj: {e}")
            return JournalEntryResult(success=False, error_message=str(e) or e.__class__.__name__)

        return JournalEntryResult(
            success=True,
            external_id=data.get("id"),
            reference_number=data.get("reference"),
        )

    def test_connection(self) -> bool:
        try:
            with self._client() as client:
                return client.get("/ping").is_success
        except httpx.HTTPError:
            return False

    @staticmethod
    def _map_account(raw: dict) -> AccountDto:
        return AccountDto(
            external_id=str(raw.get("id") or ""),
            code=raw.get("code") or "",
            name=raw.get("name") or "",
            type=_TYPE_MAP.get((raw.get("type") or "").lower(), AccountType.EXPENSE),
            sub_type=_SUB_TYPE_MAP.get((raw.get("sub_type") or "").lower()),
            parent_account_id=raw.get("parent_id"),
            balance=raw.get("balance"),
            currency=raw.get("currency") or "PKR",
            is_active=raw.get("is_active", True),
            description=raw.get("description"),
        )
