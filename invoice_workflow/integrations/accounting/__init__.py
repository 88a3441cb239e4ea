from invoice_workflow.integrations.accounting.base import AccountingApiClient
from invoice_workflow.integrations.accounting.sample import SampleAccountingClient
from invoice_workflow.integrations.accounting.endraaj import EndraajClient
from invoice_workflow.integrations.accounting.quickbooks import QuickBooksClient
from invoice_workflow.integrations.accounting.factory import AccountingClientFactory

__all__ = [
    "AccountingApiClient",
    "SampleAccountingClient",
    "EndraajClient",
    "QuickBooksClient",
    "AccountingClientFactory",
]
