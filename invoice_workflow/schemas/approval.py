from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional

from invoice_workflow.models.approval import ApprovalLevel, ApprovalStatus


class ApprovalAction(BaseModel):
    comments: Optional[str] = None


class RejectionAction(BaseModel):
    # Blank comments are rejected by the approval service with a field-level error
    comments: str = ""


class ApprovalResponse(BaseModel):
    id: int
    invoice_id: int
    approval_level: ApprovalLevel
    status: ApprovalStatus
    approver_id: Optional[int]
    comments: Optional[str]
    decided_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class ApprovalRules(BaseModel):
    manager_only_threshold: Decimal
    admin_required_threshold: Decimal
    cfo_required_threshold: Decimal
    require_admin_for_new_vendor: bool = True


class CanApproveResponse(BaseModel):
    invoice_id: int
    user_id: int
    can_approve: bool


class RequiredLevelResponse(BaseModel):
    invoice_id: int
    required_level: ApprovalLevel


class PendingCountResponse(BaseModel):
    company_id: int
    user_id: int
    pending_count: int
