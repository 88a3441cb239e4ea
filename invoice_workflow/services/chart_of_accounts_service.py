"""Chart of accounts fetched from the company's accounting system.

Accounts are never stored locally; results are cached briefly per
(company, query) so approval and payment screens do not hammer the
external API. Fetch failures degrade to an empty list, which callers must
read as "unavailable" rather than "no accounts".
"""

import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from invoice_workflow.core.config import settings
from invoice_workflow.core.exceptions import NotFoundError
from invoice_workflow.core.logging import log
from invoice_workflow.integrations.accounting.base import AccountingApiClient
from invoice_workflow.integrations.accounting.factory import AccountingClientFactory
from invoice_workflow.models.company import Company
from invoice_workflow.schemas.account import PAYMENT_SUB_TYPES, AccountDto, AccountType

CacheKey = Tuple[int, str]


class ChartOfAccountsService:
    def __init__(
        self,
        client_factory: AccountingClientFactory,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client_factory = client_factory
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.coa_cache_ttl_seconds
        self._clock = clock
        self._cache: Dict[CacheKey, Tuple[float, List[AccountDto]]] = {}
        self._lock = threading.Lock()

    def get_all_accounts(self, db: Session, company_id: int) -> List[AccountDto]:
        return self._cached(db, company_id, "all", lambda client: client.get_accounts())

    def get_expense_accounts(self, db: Session, company_id: int) -> List[AccountDto]:
        return self._cached(
            db, company_id, "expense", lambda client: client.get_accounts_by_type(AccountType.EXPENSE)
        )

    def get_payment_accounts(self, db: Session, company_id: int) -> List[AccountDto]:
        """Bank and cash accounts a payment can be drawn from"""

        def load(client: AccountingApiClient) -> List[AccountDto]:
            assets = client.get_accounts_by_type(AccountType.ASSET)
            return [a for a in assets if a.sub_type in PAYMENT_SUB_TYPES]

        return self._cached(db, company_id, "payment", load)

    def get_accounts_by_type(self, db: Session, company_id: int, account_type: AccountType) -> List[AccountDto]:
        return self._cached(
            db, company_id, f"type:{account_type.value}", lambda client: client.get_accounts_by_type(account_type)
        )

    def get_account_by_id(self, db: Session, company_id: int, external_account_id: str) -> Optional[AccountDto]:
        accounts = self.get_all_accounts(db, company_id)
        return next((a for a in accounts if a.external_id == external_account_id), None)

    def search_accounts(self, db: Session, company_id: int, term: Optional[str]) -> List[AccountDto]:
        accounts = self.get_all_accounts(db, company_id)
        if not term or not term.strip():
            return accounts
        term = term.strip().lower()
        return [a for a in accounts if term in a.name.lower() or term in a.code.lower()]

    def invalidate_cache(self, company_id: int) -> None:
        with self._lock:
            stale = [key for key in self._cache if key[0] == company_id]
            for key in stale:
                del self._cache[key]
        log.info(f"Chart of accounts cache invalidated for company {company_id} ({len(stale)} entries)")

    def test_connection(self, db: Session, company_id: int) -> bool:
        company = self._get_company(db, company_id)
        try:
            return self.client_factory.create_client(company).test_connection()
        except Exception as e:
            log.error(f"Connection test failed for company {company_id}: {e}")
            return False

    def _get_company(self, db: Session, company_id: int) -> Company:
        company = db.query(Company).filter(Company.id == company_id).first()
        if not company:
            raise NotFoundError("Company", company_id)
        return company

    def _cached(
        self,
        db: Session,
        company_id: int,
        shape: str,
        loader: Callable[[AccountingApiClient], List[AccountDto]],
    ) -> List[AccountDto]:
        key = (company_id, shape)
        with self._lock:
            entry = self._cache.get(key)
            if entry is not None:
                stored_at, accounts = entry
                if self._clock() - stored_at < self.ttl_seconds:
                    log.debug(f"Returning cached {shape} accounts for company {company_id}")
                    return list(accounts)
                del self._cache[key]

        company = self._get_company(db, company_id)
        try:
            accounts = loader(self.client_factory.create_client(company))
        except Exception as e:
            log.error(f"Failed to fetch {shape} accounts for company {company_id}: {e}")
            return []

        with self._lock:
            self._cache[key] = (self._clock(), list(accounts))
        log.info(f"Fetched {len(accounts)} {shape} accounts for company {company_id}")
        return list(accounts)
