from typing import Optional

from invoice_workflow.core.config import settings
from invoice_workflow.core.logging import log
from invoice_workflow.integrations.accounting.base import AccountingApiClient
from invoice_workflow.integrations.accounting.endraaj import EndraajClient
from invoice_workflow.integrations.accounting.quickbooks import QuickBooksClient
from invoice_workflow.integrations.accounting.sample import SampleAccountingClient
from invoice_workflow.models.company import AccountingProvider, Company


class AccountingClientFactory:
    """Builds the accounting client a company is connected to"""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout if timeout is not None else settings.accounting_api_timeout_seconds
        self._sample = SampleAccountingClient()

    def create_client(self, company: Company) -> AccountingApiClient:
        provider = company.accounting_provider or AccountingProvider.NONE
        if provider == AccountingProvider.NONE or not company.accounting_access_token:
            log.warning(f"No accounting system connected for company {company.id}, using sample ledger")
            return self._sample

        if provider == AccountingProvider.ENDRAAJ:
            return EndraajClient(
                settings.endraaj_base_url,
                company.accounting_access_token,
                company.external_company_id,
                timeout=self.timeout,
            )
        if provider == AccountingProvider.QUICKBOOKS:
            return QuickBooksClient(
                settings.quickbooks_base_url,
                company.accounting_access_token,
                company.external_company_id,
                timeout=self.timeout,
            )
        raise ValueError(f"Unsupported accounting provider: {provider}")
