from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from invoice_workflow.core.exceptions import NotFoundError, StateConflictError
from invoice_workflow.core.logging import log
from invoice_workflow.models.invoice import Invoice
from invoice_workflow.models.vendor import Vendor
from invoice_workflow.schemas.vendor import VendorCreate


class VendorService:
    @staticmethod
    def create_vendor(db: Session, company_id: int, vendor_data: VendorCreate) -> Vendor:
        """Create a new vendor for a company"""
        if vendor_data.ntn and VendorService.find_by_ntn(db, company_id, vendor_data.ntn):
            raise StateConflictError(f"A vendor with NTN {vendor_data.ntn} already exists")

        vendor = Vendor(company_id=company_id, **vendor_data.model_dump())
        db.add(vendor)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise StateConflictError(f"A vendor with NTN {vendor_data.ntn} already exists") from e
        db.refresh(vendor)
        log.info(f"Vendor created: {vendor.id} - {vendor.name}")
        return vendor

    @staticmethod
    def get_vendor(db: Session, company_id: int, vendor_id: int) -> Vendor | None:
        """Get vendor by ID, ensuring company isolation"""
        return db.query(Vendor).filter(Vendor.id == vendor_id, Vendor.company_id == company_id).first()

    @staticmethod
    def get_vendor_or_404(db: Session, company_id: int, vendor_id: int) -> Vendor:
        vendor = VendorService.get_vendor(db, company_id, vendor_id)
        if not vendor:
            raise NotFoundError("Vendor", vendor_id)
        return vendor

    @staticmethod
    def list_vendors(
        db: Session,
        company_id: int,
        active_only: bool = True,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Vendor]:
        query = db.query(Vendor).filter(Vendor.company_id == company_id)
        if active_only:
            query = query.filter(Vendor.is_active.is_(True))
        return query.order_by(Vendor.name).offset(skip).limit(limit).all()

    @staticmethod
    def deactivate_vendor(db: Session, company_id: int, vendor_id: int) -> Vendor:
        vendor = VendorService.get_vendor_or_404(db, company_id, vendor_id)
        vendor.is_active = False
        vendor.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(vendor)
        return vendor

    @staticmethod
    def find_by_ntn(db: Session, company_id: int, ntn: str) -> Optional[Vendor]:
        return db.query(Vendor).filter(Vendor.company_id == company_id, Vendor.ntn == ntn.strip()).first()

    @staticmethod
    def count_invoices(db: Session, vendor_id: int, exclude_invoice_id: Optional[int] = None) -> int:
        """Number of invoices recorded for a vendor, optionally ignoring one"""
        query = db.query(Invoice).filter(Invoice.vendor_id == vendor_id)
        if exclude_invoice_id is not None:
            query = query.filter(Invoice.id != exclude_invoice_id)
        return query.count()
