"""Running per-account totals built from journal postings in processing order."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict

from ledger_engine.accounting_models import JournalEntry, LedgerAccount, LedgerPosting


def post_to_ledger(
    accounts: Dict[str, LedgerAccount],
    account_name: str,
    debit: Decimal,
    credit: Decimal,
    date: datetime,
    ref: str,
) -> LedgerPosting:
    """Apply one posting to ``accounts``, creating the account on first reference."""
    account = accounts.get(account_name)
    if account is None:
        account = LedgerAccount(name=account_name)
        accounts[account_name] = account

    account.totalDebit += debit
    account.totalCredit += credit
    account.balance += debit - credit
    posting = LedgerPosting(date=date, ref=ref, debit=debit, credit=credit, balanceAfter=account.balance)
    account.postings.append(posting)
    return posting


class LedgerAccumulator:
    """
    Ledger state for a single rebuild pass.

    Entries must be posted in the order they are produced; each account's
    ``balanceAfter`` history reflects that order, not calendar order.
    """

    def __init__(self) -> None:
        self._accounts: Dict[str, LedgerAccount] = {}

    def post(self, account_name: str, debit: Decimal, credit: Decimal, date: datetime, ref: str) -> LedgerPosting:
        return post_to_ledger(self._accounts, account_name, debit, credit, date, ref)

    def post_entry(self, entry: JournalEntry) -> None:
        for line in entry.postings:
            self.post(line.account, line.debit, line.credit, entry.date, entry.id)

    @property
    def accounts(self) -> Dict[str, LedgerAccount]:
        return self._accounts

    def __len__(self) -> int:
        return len(self._accounts)


__all__ = ["LedgerAccumulator", "post_to_ledger"]
