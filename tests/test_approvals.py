import pytest
from decimal import Decimal
from sqlalchemy.orm import sessionmaker

from invoice_workflow.core.exceptions import AuthorizationError, StateConflictError, ValidationError
from invoice_workflow.models.approval import ApprovalLevel, ApprovalStatus
from invoice_workflow.models.invoice import Invoice, InvoiceStatus
from invoice_workflow.services.approval_service import ApprovalService


def _pending(invoice, level):
    return [a for a in invoice.approvals if a.approval_level == level and a.status == ApprovalStatus.PENDING]


def test_small_invoice_from_repeat_vendor_needs_manager(db, make_invoice, repeat_vendor):
    invoice = make_invoice(total="40000.00", status=InvoiceStatus.PENDING_MANAGER_REVIEW)
    assert ApprovalService.get_required_approval_level(db, invoice) == ApprovalLevel.MANAGER


def test_manager_approval_completes_small_invoice(db, make_invoice, repeat_vendor, manager):
    """Happy path: no Admin tier is created when Manager is enough"""
    invoice = make_invoice(total="40000.00", status=InvoiceStatus.PENDING_MANAGER_REVIEW)

    invoice = ApprovalService.approve(db, invoice.id, manager.id, "Looks fine")

    assert invoice.status == InvoiceStatus.APPROVED
    assert len(invoice.approvals) == 1
    record = invoice.approvals[0]
    assert record.status == ApprovalStatus.APPROVED
    assert record.approver_id == manager.id
    assert record.comments == "Looks fine"
    assert record.decided_at is not None
    assert _pending(invoice, ApprovalLevel.ADMIN) == []


def test_large_invoice_escalates_to_admin(db, make_invoice, repeat_vendor, manager, admin):
    invoice = make_invoice(total="600000.00", status=InvoiceStatus.PENDING_MANAGER_REVIEW)
    assert ApprovalService.get_required_approval_level(db, invoice) == ApprovalLevel.ADMIN

    invoice = ApprovalService.approve(db, invoice.id, manager.id)
    assert invoice.status == InvoiceStatus.PENDING_ADMIN_APPROVAL
    assert len(_pending(invoice, ApprovalLevel.ADMIN)) == 1

    invoice = ApprovalService.approve(db, invoice.id, admin.id)
    assert invoice.status == InvoiceStatus.APPROVED
    assert [a.approval_level for a in invoice.approvals] == [ApprovalLevel.MANAGER, ApprovalLevel.ADMIN]
    assert all(a.status == ApprovalStatus.APPROVED for a in invoice.approvals)


def test_cfo_level_is_reachable(db, make_invoice, repeat_vendor, manager, admin, super_admin):
    invoice = make_invoice(total="2500000.00", status=InvoiceStatus.PENDING_MANAGER_REVIEW)
    assert ApprovalService.get_required_approval_level(db, invoice) == ApprovalLevel.CFO

    invoice = ApprovalService.approve(db, invoice.id, manager.id)
    assert invoice.status == InvoiceStatus.PENDING_ADMIN_APPROVAL
    invoice = ApprovalService.approve(db, invoice.id, admin.id)
    assert invoice.status == InvoiceStatus.PENDING_CFO_APPROVAL
    assert len(_pending(invoice, ApprovalLevel.CFO)) == 1

    with pytest.raises(AuthorizationError):
        ApprovalService.approve(db, invoice.id, admin.id)

    invoice = ApprovalService.approve(db, invoice.id, super_admin.id)
    assert invoice.status == InvoiceStatus.APPROVED


def test_first_invoice_from_vendor_needs_admin(db, make_invoice, make_vendor):
    """A vendor's first invoice needs Admin even below the manager-only threshold"""
    newcomer = make_vendor(name="First Time Supplies")
    invoice = make_invoice(total="10000.00", status=InvoiceStatus.PENDING_MANAGER_REVIEW, vendor=newcomer)

    assert ApprovalService.get_required_approval_level(db, invoice) == ApprovalLevel.ADMIN


def test_first_invoice_from_vendor_still_goes_to_cfo_when_large(db, make_invoice, make_vendor):
    newcomer = make_vendor(name="Big Ticket Imports")
    invoice = make_invoice(total="1500000.00", vendor=newcomer)

    assert ApprovalService.get_required_approval_level(db, invoice) == ApprovalLevel.CFO


def test_new_vendor_rule_can_be_switched_off(db, company, make_invoice, make_vendor):
    company.require_admin_for_new_vendor = False
    db.commit()
    invoice = make_invoice(total="10000.00", vendor=make_vendor(name="Trusted Newcomer"))

    assert ApprovalService.get_required_approval_level(db, invoice) == ApprovalLevel.MANAGER


def test_invoice_without_vendor_is_not_treated_as_new_vendor(db, make_invoice):
    invoice = make_invoice(total="10000.00", vendor=None)
    assert ApprovalService.get_required_approval_level(db, invoice) == ApprovalLevel.MANAGER


@pytest.mark.parametrize(
    "total,expected",
    [
        ("50000.00", ApprovalLevel.MANAGER),
        ("50000.01", ApprovalLevel.ADMIN),
        ("500000.00", ApprovalLevel.ADMIN),
        ("500000.01", ApprovalLevel.ADMIN),
        ("1000000.00", ApprovalLevel.ADMIN),
        ("1000000.01", ApprovalLevel.CFO),
    ],
)
def test_threshold_boundaries(db, make_invoice, repeat_vendor, total, expected):
    invoice = make_invoice(total=total)
    assert ApprovalService.get_required_approval_level(db, invoice) == expected


def test_required_level_never_decreases_with_amount(db, make_invoice, repeat_vendor):
    amounts = ["1.00", "49999.99", "50000.00", "75000.00", "499999.99", "750000.00", "1000000.00", "5000000.00"]
    levels = [ApprovalService.get_required_approval_level(db, make_invoice(total=a)) for a in amounts]
    assert levels == sorted(levels)


def test_company_threshold_overrides(db, company, make_invoice, repeat_vendor):
    company.manager_only_threshold = Decimal("1000")
    company.cfo_required_threshold = Decimal("20000")
    db.commit()

    assert ApprovalService.get_required_approval_level(db, make_invoice(total="5000.00")) == ApprovalLevel.ADMIN
    assert ApprovalService.get_required_approval_level(db, make_invoice(total="25000.00")) == ApprovalLevel.CFO


def test_current_level_follows_status(make_invoice):
    assert ApprovalService.get_current_approval_level(
        make_invoice(status=InvoiceStatus.PENDING_ADMIN_APPROVAL)
    ) == ApprovalLevel.ADMIN


def test_current_level_of_non_pending_invoice_is_a_conflict(make_invoice):
    with pytest.raises(StateConflictError) as exc_info:
        ApprovalService.get_current_approval_level(make_invoice(status=InvoiceStatus.DRAFT))
    assert exc_info.value.current_status == "draft"


def test_approve_requires_pending_status(db, make_invoice, manager):
    invoice = make_invoice(status=InvoiceStatus.APPROVED)

    with pytest.raises(StateConflictError):
        ApprovalService.approve(db, invoice.id, manager.id)


def test_accountant_cannot_approve(db, make_invoice, repeat_vendor, accountant):
    invoice = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)

    with pytest.raises(AuthorizationError):
        ApprovalService.approve(db, invoice.id, accountant.id)

    db.refresh(invoice)
    assert invoice.status == InvoiceStatus.PENDING_MANAGER_REVIEW


def test_manager_cannot_act_at_admin_level(db, make_invoice, manager):
    invoice = make_invoice(total="600000.00", status=InvoiceStatus.PENDING_ADMIN_APPROVAL)

    with pytest.raises(AuthorizationError):
        ApprovalService.approve(db, invoice.id, manager.id)
    with pytest.raises(AuthorizationError):
        ApprovalService.reject(db, invoice.id, manager.id, "Too expensive")


def test_higher_role_may_act_at_lower_level(db, make_invoice, repeat_vendor, admin):
    invoice = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)

    invoice = ApprovalService.approve(db, invoice.id, admin.id)
    assert invoice.status == InvoiceStatus.APPROVED


def test_outsider_cannot_approve(db, make_invoice):
    from invoice_workflow.models.company import User

    outsider = User(email="outsider@example.com", full_name="Out Sider")
    db.add(outsider)
    db.commit()
    invoice = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)

    with pytest.raises(AuthorizationError):
        ApprovalService.approve(db, invoice.id, outsider.id)


def test_reject_requires_comments(db, make_invoice, manager):
    invoice = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)

    for comments in ("", "   ", None):
        with pytest.raises(ValidationError) as exc_info:
            ApprovalService.reject(db, invoice.id, manager.id, comments)
        assert exc_info.value.details["field"] == "comments"

    db.refresh(invoice)
    assert invoice.status == InvoiceStatus.PENDING_MANAGER_REVIEW
    assert invoice.approvals[0].status == ApprovalStatus.PENDING


def test_manager_rejection(db, make_invoice, manager):
    invoice = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)

    invoice = ApprovalService.reject(db, invoice.id, manager.id, "Wrong vendor NTN")

    assert invoice.status == InvoiceStatus.REJECTED_BY_MANAGER
    assert invoice.approvals[0].status == ApprovalStatus.REJECTED
    assert invoice.approvals[0].comments == "Wrong vendor NTN"


def test_admin_and_cfo_rejections_map_to_rejected_by_admin(db, make_invoice, admin, super_admin):
    at_admin = make_invoice(total="600000.00", status=InvoiceStatus.PENDING_ADMIN_APPROVAL)
    at_cfo = make_invoice(total="2000000.00", status=InvoiceStatus.PENDING_CFO_APPROVAL)

    assert ApprovalService.reject(db, at_admin.id, admin.id, "No budget").status == InvoiceStatus.REJECTED_BY_ADMIN
    assert ApprovalService.reject(db, at_cfo.id, super_admin.id, "Defer").status == InvoiceStatus.REJECTED_BY_ADMIN


def test_missing_pending_record_is_created_on_approve(db, make_invoice, repeat_vendor, manager):
    invoice = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)
    invoice.approvals.clear()
    db.commit()

    invoice = ApprovalService.approve(db, invoice.id, manager.id)

    assert invoice.status == InvoiceStatus.APPROVED
    assert len(invoice.approvals) == 1
    assert invoice.approvals[0].approval_level == ApprovalLevel.MANAGER


def test_at_most_one_pending_record_per_level(db, make_invoice, repeat_vendor, manager, admin, super_admin):
    invoice = make_invoice(total="3000000.00", status=InvoiceStatus.PENDING_MANAGER_REVIEW)

    for approver in (manager, admin, super_admin):
        invoice = ApprovalService.approve(db, invoice.id, approver.id)
        for level in ApprovalLevel:
            assert len(_pending(invoice, level)) <= 1

    assert invoice.status == InvoiceStatus.APPROVED


def test_can_approve(db, make_invoice, manager, admin, accountant):
    invoice = make_invoice(total="600000.00", status=InvoiceStatus.PENDING_ADMIN_APPROVAL)

    assert ApprovalService.can_approve(db, invoice.id, admin.id) is True
    assert ApprovalService.can_approve(db, invoice.id, manager.id) is False
    assert ApprovalService.can_approve(db, invoice.id, accountant.id) is False
    assert ApprovalService.can_approve(db, 999999, admin.id) is False
    assert ApprovalService.can_approve(db, make_invoice(status=InvoiceStatus.DRAFT).id, admin.id) is False


def test_pending_queue_follows_role(db, company, make_invoice, manager, admin, accountant):
    at_manager = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)
    at_admin = make_invoice(total="600000.00", status=InvoiceStatus.PENDING_ADMIN_APPROVAL)
    make_invoice(status=InvoiceStatus.DRAFT)

    assert [i.id for i in ApprovalService.get_pending_for_user(db, company.id, manager.id)] == [at_manager.id]
    assert {i.id for i in ApprovalService.get_pending_for_user(db, company.id, admin.id)} == {at_manager.id, at_admin.id}
    assert ApprovalService.get_pending_for_user(db, company.id, accountant.id) == []
    assert ApprovalService.get_pending_count(db, company.id, admin.id) == 2


def test_approval_history_is_ordered(db, make_invoice, repeat_vendor, manager, admin):
    invoice = make_invoice(total="600000.00", status=InvoiceStatus.PENDING_MANAGER_REVIEW)
    ApprovalService.approve(db, invoice.id, manager.id)
    ApprovalService.approve(db, invoice.id, admin.id)

    history = ApprovalService.get_approval_history(db, invoice.id)
    assert [a.approval_level for a in history] == [ApprovalLevel.MANAGER, ApprovalLevel.ADMIN]


def test_concurrent_approval_is_reported_as_conflict(db, make_invoice, repeat_vendor, manager, admin):
    """Two approvers acting on the same version of an invoice: the second one loses"""
    invoice = make_invoice(status=InvoiceStatus.PENDING_MANAGER_REVIEW)
    assert invoice.status == InvoiceStatus.PENDING_MANAGER_REVIEW

    other = sessionmaker(bind=db.get_bind())()
    try:
        ApprovalService.approve(other, invoice.id, admin.id)
    finally:
        other.close()

    with pytest.raises(StateConflictError):
        ApprovalService.approve(db, invoice.id, manager.id)

    db.expire_all()
    assert db.get(Invoice, invoice.id).status == InvoiceStatus.APPROVED
