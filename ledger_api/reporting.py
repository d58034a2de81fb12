from __future__ import annotations

import csv
import io
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Sequence

from ledger_engine.accounting_models import JournalEntry
from ledger_engine.reports import AccountLedger, TrialBalance

CENT = Decimal("0.01")

JOURNAL_HEADERS = ["Entry ID", "Date", "Type", "Description", "Account", "Debit", "Credit"]
TRIAL_BALANCE_HEADERS = ["Account Code", "Account Name", "Type", "Debit", "Credit", "Balance"]
LEDGER_HEADERS = ["Date", "Reference", "Debit", "Credit", "Balance"]


def _fmt_money(value: Decimal) -> str:
    return str(value.quantize(CENT, rounding=ROUND_HALF_UP))


def _fmt_dt(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.isoformat()


def _write_csv(headers: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def journal_to_csv(entries: Iterable[JournalEntry]) -> str:
    """One row per posting, in the order the journal is given."""
    rows: List[List[str]] = []
    for entry in entries:
        for line in entry.postings:
            rows.append(
                [
                    entry.id,
                    _fmt_dt(entry.date),
                    entry.type,
                    entry.description,
                    line.account,
                    _fmt_money(line.debit),
                    _fmt_money(line.credit),
                ]
            )
    return _write_csv(JOURNAL_HEADERS, rows)


def trial_balance_to_csv(trial_balance: TrialBalance) -> str:
    rows = [
        [
            row.account_code,
            row.account_name,
            row.type,
            _fmt_money(row.debit),
            _fmt_money(row.credit),
            _fmt_money(row.balance),
        ]
        for row in trial_balance.accounts
    ]
    return _write_csv(TRIAL_BALANCE_HEADERS, rows)


def ledger_to_csv(ledger: AccountLedger) -> str:
    rows = [
        [_fmt_dt(p.date), p.ref, _fmt_money(p.debit), _fmt_money(p.credit), _fmt_money(p.balanceAfter)]
        for p in ledger.entries
    ]
    return _write_csv(LEDGER_HEADERS, rows)
