from fastapi import APIRouter
from invoice_workflow.api.rest import companies, vendors, invoices, approvals, payments, accounts

api_router = APIRouter()
api_router.include_router(companies.router)
api_router.include_router(vendors.router)
api_router.include_router(invoices.router)
api_router.include_router(approvals.router)
api_router.include_router(payments.router)
api_router.include_router(accounts.router)
