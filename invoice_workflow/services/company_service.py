from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Optional

from invoice_workflow.core.config import settings
from invoice_workflow.core.exceptions import NotFoundError, StateConflictError
from invoice_workflow.core.logging import log
from invoice_workflow.models.company import Company, CompanyMember, User
from invoice_workflow.schemas.approval import ApprovalRules
from invoice_workflow.schemas.company import CompanyCreate, MemberCreate, UserCreate


class CompanyService:
    @staticmethod
    def create_company(db: Session, company_data: CompanyCreate) -> Company:
        """Create a new company"""
        existing = db.query(Company).filter(Company.ntn == company_data.ntn).first()
        if existing:
            raise StateConflictError(f"Company with NTN '{company_data.ntn}' already exists")

        company = Company(**company_data.model_dump())
        db.add(company)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise StateConflictError(f"Company with NTN '{company_data.ntn}' already exists") from e
        db.refresh(company)
        log.info(f"Company created: {company.id} - {company.name}")
        return company

    @staticmethod
    def get_company(db: Session, company_id: int) -> Company | None:
        """Get company by ID"""
        return db.query(Company).filter(Company.id == company_id).first()

    @staticmethod
    def get_company_or_404(db: Session, company_id: int) -> Company:
        company = CompanyService.get_company(db, company_id)
        if not company:
            raise NotFoundError("Company", company_id)
        return company

    @staticmethod
    def list_companies(db: Session, skip: int = 0, limit: int = 100) -> List[Company]:
        """List all companies"""
        return db.query(Company).order_by(Company.id).offset(skip).limit(limit).all()

    @staticmethod
    def verify_company_exists(db: Session, company_id: int) -> bool:
        """Verify company exists"""
        return db.query(Company).filter(Company.id == company_id).first() is not None

    @staticmethod
    def create_user(db: Session, user_data: UserCreate) -> User:
        if db.query(User).filter(User.email == user_data.email).first():
            raise StateConflictError(f"User with email '{user_data.email}' already exists")
        user = User(email=user_data.email, full_name=user_data.full_name)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def get_user(db: Session, user_id: int) -> User | None:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def add_member(db: Session, company_id: int, member_data: MemberCreate) -> CompanyMember:
        """Add a user to a company, or change the role of an existing member"""
        CompanyService.get_company_or_404(db, company_id)
        if not CompanyService.get_user(db, member_data.user_id):
            raise NotFoundError("User", member_data.user_id)

        member = db.query(CompanyMember).filter(
            CompanyMember.company_id == company_id,
            CompanyMember.user_id == member_data.user_id,
        ).first()
        if member:
            member.role = member_data.role
            member.is_active = True
        else:
            member = CompanyMember(company_id=company_id, user_id=member_data.user_id, role=member_data.role)
            db.add(member)
        db.commit()
        db.refresh(member)
        log.info(f"User {member.user_id} is {member.role.value} of company {company_id}")
        return member

    @staticmethod
    def get_member(db: Session, company_id: int, user_id: int) -> Optional[CompanyMember]:
        """Active membership of a user in a company, if any"""
        return db.query(CompanyMember).filter(
            CompanyMember.company_id == company_id,
            CompanyMember.user_id == user_id,
            CompanyMember.is_active.is_(True),
        ).first()

    @staticmethod
    def get_approval_rules(company: Company) -> ApprovalRules:
        """Company overrides layered over the configured default thresholds"""

        def pick(override, default):
            return default if override is None else override

        return ApprovalRules(
            manager_only_threshold=pick(company.manager_only_threshold, settings.manager_only_threshold),
            admin_required_threshold=pick(company.admin_required_threshold, settings.admin_required_threshold),
            cfo_required_threshold=pick(company.cfo_required_threshold, settings.cfo_required_threshold),
            require_admin_for_new_vendor=pick(company.require_admin_for_new_vendor, settings.require_admin_for_new_vendor),
        )
