from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from invoice_workflow.api.dependencies import verify_company
from invoice_workflow.core.database import get_db
from invoice_workflow.schemas.vendor import VendorCreate, VendorResponse
from invoice_workflow.services.vendor_service import VendorService

router = APIRouter(prefix="/companies/{company_id}/vendors", tags=["vendors"])


@router.post("", response_model=VendorResponse, status_code=201, dependencies=[Depends(verify_company)])
def create_vendor(company_id: int, vendor_data: VendorCreate, db: Session = Depends(get_db)):
    """Create a new vendor for a company"""
    return VendorService.create_vendor(db, company_id, vendor_data)


@router.get("", response_model=List[VendorResponse], dependencies=[Depends(verify_company)])
def list_vendors(
    company_id: int,
    active_only: bool = Query(True),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    return VendorService.list_vendors(db, company_id, active_only=active_only, skip=skip, limit=limit)


@router.get("/{vendor_id}", response_model=VendorResponse, dependencies=[Depends(verify_company)])
def get_vendor(company_id: int, vendor_id: int, db: Session = Depends(get_db)):
    return VendorService.get_vendor_or_404(db, company_id, vendor_id)


@router.delete("/{vendor_id}", response_model=VendorResponse, dependencies=[Depends(verify_company)])
def deactivate_vendor(company_id: int, vendor_id: int, db: Session = Depends(get_db)):
    """Vendors are deactivated rather than deleted so past invoices keep their link"""
    return VendorService.deactivate_vendor(db, company_id, vendor_id)
