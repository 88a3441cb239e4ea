from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from invoice_workflow.core.database import Base
from invoice_workflow.models.approval import InvoiceApproval
from invoice_workflow.models.payment import Payment

PLACEHOLDER_INVOICE_NUMBER = "PENDING"


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING_MANAGER_REVIEW = "pending_manager_review"
    REJECTED_BY_MANAGER = "rejected_by_manager"
    PENDING_ADMIN_APPROVAL = "pending_admin_approval"
    # Escalation target when an Admin approves an invoice above the CFO threshold
    PENDING_CFO_APPROVAL = "pending_cfo_approval"
    REJECTED_BY_ADMIN = "rejected_by_admin"
    APPROVED = "approved"
    PAYMENT_PENDING = "payment_pending"
    PAYMENT_PROCESSING = "payment_processing"
    COMPLETED = "completed"


PENDING_APPROVAL_STATUSES = (
    InvoiceStatus.PENDING_MANAGER_REVIEW,
    InvoiceStatus.PENDING_ADMIN_APPROVAL,
    InvoiceStatus.PENDING_CFO_APPROVAL,
)
EDITABLE_STATUSES = (
    InvoiceStatus.DRAFT,
    InvoiceStatus.REJECTED_BY_MANAGER,
    InvoiceStatus.REJECTED_BY_ADMIN,
)
SUBMITTABLE_STATUSES = (
    InvoiceStatus.DRAFT,
    InvoiceStatus.REJECTED_BY_MANAGER,
)
REJECTED_STATUSES = (
    InvoiceStatus.REJECTED_BY_MANAGER,
    InvoiceStatus.REJECTED_BY_ADMIN,
)


class MatchType(str, enum.Enum):
    MANUAL = "manual"
    VENDOR_DEFAULT = "vendor_default"
    AI_MATCH = "ai_match"


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True, index=True)
    uploaded_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    invoice_number = Column(String, nullable=False, default=PLACEHOLDER_INVOICE_NUMBER, index=True)
    invoice_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    subtotal = Column(Numeric(18, 2), default=0, nullable=False)
    tax_amount = Column(Numeric(18, 2), default=0, nullable=False)
    total_amount = Column(Numeric(18, 2), default=0, nullable=False)
    currency = Column(String, default="PKR", nullable=False)
    status = Column(Enum(InvoiceStatus), default=InvoiceStatus.DRAFT, nullable=False, index=True)
    original_file_path = Column(String, nullable=True)
    original_file_name = Column(String, nullable=True)
    content_type = Column(String, nullable=True)
    file_size = Column(Integer, nullable=True)
    ocr_data = Column(Text, nullable=True)  # JSON string
    ocr_confidence = Column(Numeric(5, 2), nullable=True)  # 0.00 to 100.00
    notes = Column(Text, nullable=True)
    external_ref = Column(String, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    # Owned collections
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.line_number",
    )
    approvals = relationship(
        InvoiceApproval,
        cascade="all, delete-orphan",
        order_by=[InvoiceApproval.created_at, InvoiceApproval.id],
    )
    payments = relationship(
        Payment,
        cascade="all, delete-orphan",
        order_by=Payment.id,
    )

    # Concurrent writers to the same invoice fail with StaleDataError
    __mapper_args__ = {"version_id_col": version}

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)


class InvoiceItem(Base):
    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    # Key into the external chart of accounts, not a local foreign key
    expense_account_id = Column(String, nullable=True)
    description = Column(String, nullable=False, default="")
    quantity = Column(Numeric(18, 4), default=1, nullable=False)
    unit = Column(String, nullable=True)
    unit_price = Column(Numeric(18, 2), default=0, nullable=False)
    tax_amount = Column(Numeric(18, 2), default=0, nullable=False)
    amount = Column(Numeric(18, 2), default=0, nullable=False)
    line_number = Column(Integer, nullable=False)
    match_type = Column(Enum(MatchType), default=MatchType.MANUAL, nullable=False)
    match_confidence = Column(Numeric(5, 2), nullable=True)

    invoice = relationship("Invoice", back_populates="items")
