from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from invoice_workflow.core.database import Base


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    ntn = Column(String, nullable=True, index=True)
    strn = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    contact_person = Column(String, nullable=True)
    # Key into the external chart of accounts, not a local foreign key
    default_expense_account_id = Column(String, nullable=True)
    external_vendor_id = Column(String, nullable=True)
    payment_terms_days = Column(Integer, default=30, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    # NTN must be unique per company (when provided)
    __table_args__ = (
        UniqueConstraint("company_id", "ntn", name="uq_company_vendor_ntn"),
    )
