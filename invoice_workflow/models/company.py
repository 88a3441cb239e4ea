from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.sql import func
import enum

from invoice_workflow.core.database import Base


class UserRole(str, enum.Enum):
    VIEWER = "viewer"
    ACCOUNTANT = "accountant"
    APPROVER = "approver"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def rank(self) -> int:
        return list(UserRole).index(self)

    def at_least(self, other: "UserRole") -> bool:
        return self.rank >= other.rank


class AccountingProvider(str, enum.Enum):
    NONE = "none"
    ENDRAAJ = "endraaj"
    QUICKBOOKS = "quickbooks"


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    ntn = Column(String, nullable=False, unique=True, index=True)
    default_currency = Column(String, default="PKR", nullable=False)
    accounting_provider = Column(Enum(AccountingProvider), default=AccountingProvider.NONE, nullable=False)
    accounting_access_token = Column(String, nullable=True)
    external_company_id = Column(String, nullable=True)

    # Approval rule overrides; NULL falls back to the configured defaults
    manager_only_threshold = Column(Numeric(18, 2), nullable=True)
    admin_required_threshold = Column(Numeric(18, 2), nullable=True)
    cfo_required_threshold = Column(Numeric(18, 2), nullable=True)
    require_admin_for_new_vendor = Column(Boolean, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    full_name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class CompanyMember(Base):
    __tablename__ = "company_members"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(UserRole), default=UserRole.VIEWER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("company_id", "user_id", name="uq_company_member"),
    )
