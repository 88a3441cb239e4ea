"""Double-entry journal entries for invoice payments.

Paying an invoice debits each expense account its line items are mapped
to and credits the bank or cash account the money leaves from. The same
builder backs both the preview shown before execution and the entry that
is actually posted, so the two cannot drift apart.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from invoice_workflow.core.exceptions import JournalImbalanceError
from invoice_workflow.core.logging import log
from invoice_workflow.models.invoice import Invoice
from invoice_workflow.schemas.account import AccountDto, AccountType
from invoice_workflow.schemas.journal import JournalEntry, JournalLine


def build_journal_entry(
    invoice: Invoice,
    payment_account_id: str,
    payment_account: Optional[AccountDto] = None,
    expense_accounts: Optional[Mapping[str, AccountDto]] = None,
    vendor_name: Optional[str] = None,
    entry_date: Optional[date] = None,
) -> JournalEntry:
    """Build the balanced payment entry for an invoice.

    Line items are grouped by expense account, one debit line per account
    in order of first appearance. Items without an account are left out
    of the entry and logged. A single credit line carries the invoice
    total against the payment account. Missing account metadata only
    affects display names and codes.
    """
    expense_accounts = expense_accounts or {}
    number = invoice.invoice_number

    grouped: Dict[str, Decimal] = {}
    unmapped: List[int] = []
    for item in invoice.items:
        if not item.expense_account_id:
            unmapped.append(item.line_number)
            continue
        grouped[item.expense_account_id] = grouped.get(item.expense_account_id, Decimal("0")) + Decimal(item.amount)

    if unmapped:
        log.warning(f"Invoice {number}: lines {unmapped} have no expense account and are left out of the journal entry")

    total = Decimal(invoice.total_amount)
    if not grouped:
        raise JournalImbalanceError(
            f"Invoice {number} has no line items mapped to an expense account",
            total_debit=Decimal("0"),
            total_credit=total,
        )

    lines: List[JournalLine] = []
    for account_id, amount in grouped.items():
        meta = expense_accounts.get(account_id)
        lines.append(JournalLine(
            account_id=account_id,
            account_name=meta.name if meta else "Expense",
            account_code=meta.code if meta else "",
            account_type=AccountType.EXPENSE,
            debit_amount=amount,
            description=f"Invoice {number}",
        ))

    lines.append(JournalLine(
        account_id=payment_account_id,
        account_name=payment_account.name if payment_account else "Bank Account",
        account_code=payment_account.code if payment_account else "",
        account_type=AccountType.ASSET,
        credit_amount=total,
        description=f"Payment for Invoice {number}",
    ))

    entry = JournalEntry(
        entry_date=entry_date or date.today(),
        memo=f"Payment for Invoice {number} - {vendor_name or 'Vendor'}",
        reference_number=f"PAY-{number}",
        lines=lines,
    )

    if not entry.is_balanced:
        raise JournalImbalanceError(
            f"Journal entry for invoice {number} does not balance: "
            f"debits {entry.total_debit} vs credits {entry.total_credit}",
            total_debit=entry.total_debit,
            total_credit=entry.total_credit,
        )
    return entry
