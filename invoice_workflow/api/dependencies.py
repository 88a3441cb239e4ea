from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from invoice_workflow.core.config import settings
from invoice_workflow.core.database import get_db
from invoice_workflow.integrations.accounting.factory import AccountingClientFactory
from invoice_workflow.integrations.ocr import NullOcrEngine, OcrEngine
from invoice_workflow.integrations.storage import LocalFileStorage
from invoice_workflow.services.chart_of_accounts_service import ChartOfAccountsService
from invoice_workflow.services.company_service import CompanyService
from invoice_workflow.services.payment_service import PaymentService

# Shared across requests so the chart of accounts cache survives between them
_client_factory = AccountingClientFactory()
_chart_of_accounts = ChartOfAccountsService(_client_factory)


def get_client_factory() -> AccountingClientFactory:
    return _client_factory


def get_chart_of_accounts() -> ChartOfAccountsService:
    return _chart_of_accounts


def get_file_storage() -> LocalFileStorage:
    return LocalFileStorage(
        base_dir=settings.upload_dir,
        url_prefix=settings.upload_url_prefix,
        allowed_extensions=settings.allowed_upload_extensions,
        max_bytes=settings.max_upload_bytes,
    )


def get_ocr_engine() -> OcrEngine:
    return NullOcrEngine()


def get_payment_service(
    db: Session = Depends(get_db),
    chart_of_accounts: ChartOfAccountsService = Depends(get_chart_of_accounts),
    client_factory: AccountingClientFactory = Depends(get_client_factory),
) -> PaymentService:
    return PaymentService(db, chart_of_accounts, client_factory)


def get_current_user_id(x_user_id: int = Header(...), db: Session = Depends(get_db)) -> int:
    """Acting user, identified by the X-User-Id header"""
    if not CompanyService.get_user(db, x_user_id):
        raise HTTPException(status_code=401, detail="Unknown user")
    return x_user_id


def verify_company(company_id: int, db: Session = Depends(get_db)) -> int:
    """Dependency to verify company exists"""
    if not CompanyService.verify_company_exists(db, company_id):
        raise HTTPException(status_code=404, detail="Company not found")
    return company_id
