from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from invoice_workflow.api.dependencies import get_chart_of_accounts, verify_company
from invoice_workflow.core.database import get_db
from invoice_workflow.schemas.account import AccountDto, AccountType, ConnectionStatus
from invoice_workflow.services.chart_of_accounts_service import ChartOfAccountsService
from invoice_workflow.services.company_service import CompanyService

router = APIRouter(
    prefix="/companies/{company_id}/accounts",
    tags=["accounts"],
    dependencies=[Depends(verify_company)],
)


@router.get("", response_model=List[AccountDto])
def list_accounts(
    company_id: int,
    type: Optional[AccountType] = Query(None),
    db: Session = Depends(get_db),
    chart_of_accounts: ChartOfAccountsService = Depends(get_chart_of_accounts),
):
    """Chart of accounts from the company's accounting system"""
    if type:
        return chart_of_accounts.get_accounts_by_type(db, company_id, type)
    return chart_of_accounts.get_all_accounts(db, company_id)


@router.get("/expense", response_model=List[AccountDto])
def list_expense_accounts(
    company_id: int,
    db: Session = Depends(get_db),
    chart_of_accounts: ChartOfAccountsService = Depends(get_chart_of_accounts),
):
    return chart_of_accounts.get_expense_accounts(db, company_id)


@router.get("/payment", response_model=List[AccountDto])
def list_payment_accounts(
    company_id: int,
    db: Session = Depends(get_db),
    chart_of_accounts: ChartOfAccountsService = Depends(get_chart_of_accounts),
):
    """Bank and cash accounts"""
    return chart_of_accounts.get_payment_accounts(db, company_id)


@router.get("/search", response_model=List[AccountDto])
def search_accounts(
    company_id: int,
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    chart_of_accounts: ChartOfAccountsService = Depends(get_chart_of_accounts),
):
    return chart_of_accounts.search_accounts(db, company_id, q)


@router.get("/connection", response_model=ConnectionStatus)
def test_connection(
    company_id: int,
    db: Session = Depends(get_db),
    chart_of_accounts: ChartOfAccountsService = Depends(get_chart_of_accounts),
):
    company = CompanyService.get_company_or_404(db, company_id)
    return ConnectionStatus(
        company_id=company_id,
        provider=company.accounting_provider.value,
        connected=chart_of_accounts.test_connection(db, company_id),
    )


@router.post("/refresh", status_code=204)
def invalidate_cache(
    company_id: int,
    chart_of_accounts: ChartOfAccountsService = Depends(get_chart_of_accounts),
):
    """Drop cached accounts so the next read goes to the accounting system"""
    chart_of_accounts.invalidate_cache(company_id)
    return None


@router.get("/{account_id}", response_model=AccountDto)
def get_account(
    company_id: int,
    account_id: str,
    db: Session = Depends(get_db),
    chart_of_accounts: ChartOfAccountsService = Depends(get_chart_of_accounts),
):
    account = chart_of_accounts.get_account_by_id(db, company_id, account_id)
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    return account
