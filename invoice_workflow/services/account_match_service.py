import json
import re
from decimal import Decimal
from difflib import SequenceMatcher
from typing import List, Optional, Tuple

from invoice_workflow.core.config import settings
from invoice_workflow.core.logging import log
from invoice_workflow.schemas.account import AccountDto

# Words that say nothing about what an expense account is for
_GENERIC_WORDS = {"expense", "expenses", "and", "the", "for", "other", "misc", "general"}

AccountSuggestion = Tuple[str, Decimal]


class AccountMatchService:
    @staticmethod
    def suggest_expense_account(description: str, accounts: List[AccountDto]) -> Optional[AccountSuggestion]:
        """Suggest an expense account for a line item description.

        Returns (external account id, confidence 0-100) or None. Falls back
        to text similarity if AI is unavailable.
        """
        if not description or not description.strip() or not accounts:
            return None
        if settings.ai_enabled and settings.openai_api_key:
            try:
                return AccountMatchService._get_ai_suggestion(description, accounts)
            except Exception as e:
                log.warning(f"AI account matching failed, using text similarity: {e}")
                return AccountMatchService._get_deterministic_suggestion(description, accounts)
        return AccountMatchService._get_deterministic_suggestion(description, accounts)

    @staticmethod
    def _get_ai_suggestion(description: str, accounts: List[AccountDto]) -> Optional[AccountSuggestion]:
        """Ask OpenAI to pick the best account from the chart"""
        from openai import OpenAI

        client = OpenAI(api_key=settings.openai_api_key)
        chart = "\n".join(f"- {a.external_id}: {a.code} {a.name}" for a in accounts)

        prompt = f"""You are classifying an invoice line item into an expense account.

Line item: {description}

Expense accounts (id: code name):
{chart}

Reply with JSON only, in the form {{"account_id": "<id>", "confidence": <0-100>}}.
Use null for account_id if none of the accounts fit."""

        response = client.chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": "You are a bookkeeping assistant."},
                {"role": "user", "content": prompt},
            ],
            max_tokens=60,
            temperature=0,
        )

        payload = json.loads(response.choices[0].message.content.strip())
        account_id = payload.get("account_id")
        if account_id is None:
            return None
        if account_id not in {a.external_id for a in accounts}:
            raise ValueError(f"AI suggested unknown account '{account_id}'")
        confidence = min(max(Decimal(str(payload.get("confidence", 0))), Decimal("0")), Decimal("100"))
        return account_id, confidence

    @staticmethod
    def _get_deterministic_suggestion(description: str, accounts: List[AccountDto]) -> Optional[AccountSuggestion]:
        """Score accounts by how many of their name words appear in the description"""
        text = description.lower()
        words = set(re.findall(r"[a-z0-9]+", text))

        best: Optional[AccountSuggestion] = None
        for account in accounts:
            name = account.name.lower()
            tokens = {t for t in re.findall(r"[a-z0-9]+", name) if t not in _GENERIC_WORDS and len(t) > 2}
            if not tokens:
                continue
            coverage = len(tokens & words) / len(tokens)
            similarity = SequenceMatcher(None, text, name).ratio()
            score = Decimal(str(round((0.7 * coverage + 0.3 * similarity) * 100, 2)))
            if best is None or score > best[1]:
                best = (account.external_id, score)

        if best is None or best[1] == 0:
            return None
        return best
