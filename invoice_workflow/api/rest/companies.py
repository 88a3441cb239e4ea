from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from invoice_workflow.core.database import get_db
from invoice_workflow.schemas.approval import ApprovalRules
from invoice_workflow.schemas.company import (
    CompanyCreate,
    CompanyResponse,
    MemberCreate,
    MemberResponse,
    UserCreate,
    UserResponse,
)
from invoice_workflow.services.company_service import CompanyService

router = APIRouter(tags=["companies"])


@router.post("/companies", response_model=CompanyResponse, status_code=201)
def create_company(company_data: CompanyCreate, db: Session = Depends(get_db)):
    """Create a new company"""
    return CompanyService.create_company(db, company_data)


@router.get("/companies", response_model=List[CompanyResponse])
def list_companies(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """List all companies"""
    return CompanyService.list_companies(db, skip=skip, limit=limit)


@router.get("/companies/{company_id}", response_model=CompanyResponse)
def get_company(company_id: int, db: Session = Depends(get_db)):
    """Get company by ID"""
    company = CompanyService.get_company(db, company_id)
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


@router.get("/companies/{company_id}/approval-rules", response_model=ApprovalRules)
def get_approval_rules(company_id: int, db: Session = Depends(get_db)):
    """Effective approval thresholds for a company"""
    return CompanyService.get_approval_rules(CompanyService.get_company_or_404(db, company_id))


@router.post("/companies/{company_id}/members", response_model=MemberResponse, status_code=201)
def add_member(company_id: int, member_data: MemberCreate, db: Session = Depends(get_db)):
    """Add a user to a company or change their role"""
    return CompanyService.add_member(db, company_id, member_data)


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(user_data: UserCreate, db: Session = Depends(get_db)):
    return CompanyService.create_user(db, user_data)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    user = CompanyService.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
