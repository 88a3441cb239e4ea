import pytest
import uuid
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient
from datetime import date
from decimal import Decimal

from invoice_workflow.core.database import Base, get_db
from invoice_workflow.main import app
from invoice_workflow.api.dependencies import (
    get_chart_of_accounts,
    get_client_factory,
    get_file_storage,
    get_ocr_engine,
)
from invoice_workflow.integrations.accounting.factory import AccountingClientFactory
from invoice_workflow.integrations.accounting.sample import SampleAccountingClient
from invoice_workflow.integrations.ocr import NullOcrEngine
from invoice_workflow.integrations.storage import LocalFileStorage
from invoice_workflow.models.approval import ApprovalStatus, InvoiceApproval
from invoice_workflow.models.company import Company, CompanyMember, User, UserRole
from invoice_workflow.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from invoice_workflow.models.vendor import Vendor
from invoice_workflow.schemas.journal import JournalEntryResult
from invoice_workflow.services.approval_service import LEVEL_FOR_STATUS
from invoice_workflow.services.chart_of_accounts_service import ChartOfAccountsService
from invoice_workflow.services.payment_service import PaymentService


# Test database
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingLedger(SampleAccountingClient):
    """Sample ledger that records what it was asked and can be told to fail"""

    def __init__(self):
        super().__init__()
        self.posted = []
        self.account_fetches = 0
        self.fail_posting_with = None
        self.raise_on_posting = None
        self.fail_fetching = False

    def get_accounts(self):
        self.account_fetches += 1
        if self.fail_fetching:
            raise ConnectionError("ledger unreachable")
        return super().get_accounts()

    def get_accounts_by_type(self, account_type):
        self.account_fetches += 1
        if self.fail_fetching:
            raise ConnectionError("ledger unreachable")
        return super().get_accounts_by_type(account_type)

    def create_journal_entry(self, entry):
        self.posted.append(entry)
        if self.raise_on_posting:
            raise self.raise_on_posting
        if self.fail_posting_with:
            return JournalEntryResult(success=False, error_message=self.fail_posting_with)
        return super().create_journal_entry(entry)


class FixedClientFactory(AccountingClientFactory):
    def __init__(self, client):
        super().__init__()
        self.client = client

    def create_client(self, company):
        return self.client


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def ledger():
    return RecordingLedger()


@pytest.fixture
def client_factory(ledger):
    return FixedClientFactory(ledger)


@pytest.fixture
def chart_of_accounts(client_factory):
    return ChartOfAccountsService(client_factory, ttl_seconds=600)


@pytest.fixture
def payment_service(db, chart_of_accounts, client_factory):
    return PaymentService(db, chart_of_accounts, client_factory)


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(
        str(tmp_path / "uploads"),
        allowed_extensions=[".pdf", ".png", ".jpg"],
        max_bytes=1024 * 1024,
    )


@pytest.fixture(scope="function")
def client(db, chart_of_accounts, client_factory, storage):
    """Create a test client with database and collaborator overrides"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_chart_of_accounts] = lambda: chart_of_accounts
    app.dependency_overrides[get_client_factory] = lambda: client_factory
    app.dependency_overrides[get_file_storage] = lambda: storage
    app.dependency_overrides[get_ocr_engine] = lambda: NullOcrEngine()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def company(db):
    """Create a sample company with unique NTN"""
    unique_id = str(uuid.uuid4())[:8]
    company = Company(name=f"Indus Traders {unique_id}", ntn=f"NTN-{unique_id}", default_currency="PKR")
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


@pytest.fixture
def make_member(db, company):
    """Factory creating a user with the given role in the sample company"""
    def _make(role: UserRole) -> User:
        unique_id = str(uuid.uuid4())[:8]
        user = User(email=f"{role.value}-{unique_id}@example.com", full_name=f"{role.value.title()} {unique_id}")
        db.add(user)
        db.commit()
        db.add(CompanyMember(company_id=company.id, user_id=user.id, role=role))
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def accountant(make_member):
    return make_member(UserRole.ACCOUNTANT)


@pytest.fixture
def manager(make_member):
    return make_member(UserRole.MANAGER)


@pytest.fixture
def admin(make_member):
    return make_member(UserRole.ADMIN)


@pytest.fixture
def super_admin(make_member):
    return make_member(UserRole.SUPER_ADMIN)


@pytest.fixture
def make_vendor(db, company):
    def _make(name: str = "Karachi Stationers", ntn: str = None, default_expense_account_id: str = None) -> Vendor:
        vendor = Vendor(
            company_id=company.id,
            name=name,
            ntn=ntn or f"V-{str(uuid.uuid4())[:8]}",
            default_expense_account_id=default_expense_account_id,
        )
        db.add(vendor)
        db.commit()
        db.refresh(vendor)
        return vendor
    return _make


@pytest.fixture
def vendor(make_vendor):
    return make_vendor()


@pytest.fixture
def make_invoice(db, company, accountant, vendor):
    """Factory for invoices with line items; pending statuses get their open approval record"""
    def _make(
        total="40000.00",
        status=InvoiceStatus.DRAFT,
        lines=None,
        vendor=vendor,
        invoice_number=None,
    ) -> Invoice:
        lines = lines or [("5101", total)]
        invoice = Invoice(
            company_id=company.id,
            vendor_id=vendor.id if vendor else None,
            uploaded_by_id=accountant.id,
            invoice_number=invoice_number or f"INV-{str(uuid.uuid4())[:8]}",
            invoice_date=date.today(),
            currency="PKR",
            status=status,
        )
        invoice.items = [
            InvoiceItem(
                description=f"Line {number}",
                quantity=Decimal("1"),
                unit_price=Decimal(amount),
                tax_amount=Decimal("0"),
                amount=Decimal(amount),
                expense_account_id=account_id,
                line_number=number,
            )
            for number, (account_id, amount) in enumerate(lines, start=1)
        ]
        amount = sum((Decimal(a) for _, a in lines), Decimal("0"))
        invoice.subtotal = amount
        invoice.tax_amount = Decimal("0")
        invoice.total_amount = amount
        if status in LEVEL_FOR_STATUS:
            invoice.approvals = [InvoiceApproval(approval_level=LEVEL_FOR_STATUS[status], status=ApprovalStatus.PENDING)]
        db.add(invoice)
        db.commit()
        db.refresh(invoice)
        return invoice
    return _make


@pytest.fixture
def repeat_vendor(make_invoice, vendor):
    """The sample vendor with one earlier, already paid invoice"""
    make_invoice(total="1000.00", status=InvoiceStatus.COMPLETED, invoice_number="INV-PRIOR-001")
    return vendor


@pytest.fixture
def approved_invoice(make_invoice, repeat_vendor):
    return make_invoice(total="40000.00", status=InvoiceStatus.APPROVED, lines=[("5101", "40000.00")])
