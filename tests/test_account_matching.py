import pytest

from invoice_workflow.core.config import settings
from invoice_workflow.integrations.accounting.sample import SampleAccountingClient
from invoice_workflow.schemas.account import AccountType
from invoice_workflow.services.account_match_service import AccountMatchService


@pytest.fixture
def expense_accounts():
    return SampleAccountingClient().get_accounts_by_type(AccountType.EXPENSE)


@pytest.fixture(autouse=True)
def no_ai(monkeypatch):
    monkeypatch.setattr(settings, "ai_enabled", False)


@pytest.mark.parametrize(
    "description,expected",
    [
        ("Office supplies: staplers and files", "5101"),
        ("Monthly rent, Gulberg office", "5104"),
        ("PTCL internet and telephone, April", "5103"),
        ("Insurance premium for vehicles", "5106"),
    ],
)
def test_text_similarity_suggestions(expense_accounts, description, expected):
    account_id, confidence = AccountMatchService.suggest_expense_account(description, expense_accounts)

    assert account_id == expected
    assert confidence >= settings.account_match_min_confidence


def test_no_suggestion_without_input(expense_accounts):
    assert AccountMatchService.suggest_expense_account("", expense_accounts) is None
    assert AccountMatchService.suggest_expense_account("Paper", []) is None


def test_ai_failure_falls_back_to_text_similarity(monkeypatch, expense_accounts):
    monkeypatch.setattr(settings, "ai_enabled", True)
    monkeypatch.setattr(settings, "openai_api_key", "sk-test")

    def broken(description, accounts):
        raise RuntimeError("quota exceeded")

    monkeypatch.setattr(AccountMatchService, "_get_ai_suggestion", staticmethod(broken))

    account_id, _ = AccountMatchService.suggest_expense_account("Utilities: gas bill", expense_accounts)
    assert account_id == "5102"
