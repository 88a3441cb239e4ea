from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.sql import func
import enum

from invoice_workflow.core.database import Base


class PaymentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    # Bank/cash account key in the external chart of accounts
    payment_account_id = Column(String, nullable=False)
    payment_account_name = Column(String, nullable=True)
    executed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    amount = Column(Numeric(18, 2), nullable=False)
    payment_method = Column(String, nullable=True)
    reference_number = Column(String, nullable=True)
    status = Column(Enum(PaymentStatus), default=PaymentStatus.SCHEDULED, nullable=False, index=True)
    scheduled_date = Column(Date, nullable=True)
    executed_at = Column(DateTime(timezone=True), nullable=True)
    external_ref = Column(String, nullable=True)
    journal_entry_ref = Column(String, nullable=True)
    failure_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)
