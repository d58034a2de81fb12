from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from ledger_engine.accounting_models import ZERO, LedgerPosting, LedgerSnapshot, parse_timestamp
from ledger_engine.context import get_account_meta


class TrialBalanceRow(BaseModel):
    account_code: str
    account_name: str
    type: str
    debit: Decimal
    credit: Decimal
    balance: Decimal


class TrialBalanceSummary(BaseModel):
    total_debits: Decimal
    total_credits: Decimal
    difference: Decimal
    balanced: bool


class TrialBalance(BaseModel):
    generated_at: datetime
    end_date: Optional[datetime] = None
    accounts: List[TrialBalanceRow] = Field(default_factory=list)
    summary: TrialBalanceSummary


class AccountLedger(BaseModel):
    account_name: str
    account_code: str
    type: str
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    opening_balance: Decimal
    closing_balance: Decimal
    entries: List[LedgerPosting] = Field(default_factory=list)


_DATE_ONLY_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%m/%d/%Y")


def _as_calendar_day(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return None
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    for fmt in _DATE_ONLY_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_period_end(value: Any) -> Optional[datetime]:
    """
    Inclusive upper bound for a report period.

    A bare calendar day ("2024-01-02") covers the whole day, so it resolves to
    the last instant of that day in UTC; anything else parses as a timestamp.
    """
    day = _as_calendar_day(value)
    if day is not None:
        return datetime.combine(day, time.max, tzinfo=timezone.utc)
    return parse_timestamp(value)


def build_trial_balance(snapshot: LedgerSnapshot, end_date: Any = None) -> TrialBalance:
    """Debit/credit totals per account, optionally limited to postings dated on or before ``end_date``."""
    end_date = parse_period_end(end_date)
    rows: List[TrialBalanceRow] = []
    for name, account in snapshot.ledgerAccounts.items():
        if end_date is None:
            debit, credit = account.totalDebit, account.totalCredit
        else:
            in_range = [p for p in account.postings if p.date <= end_date]
            if not in_range:
                continue
            debit = sum((p.debit for p in in_range), ZERO)
            credit = sum((p.credit for p in in_range), ZERO)
        meta = get_account_meta(name)
        rows.append(
            TrialBalanceRow(
                account_code=meta["code"],
                account_name=name,
                type=meta["type"],
                debit=debit,
                credit=credit,
                balance=debit - credit,
            )
        )

    rows.sort(key=lambda r: (r.account_code or "~", r.account_name))
    total_debits = sum((r.debit for r in rows), ZERO)
    total_credits = sum((r.credit for r in rows), ZERO)
    difference = total_debits - total_credits
    return TrialBalance(
        generated_at=snapshot.generatedAt,
        end_date=end_date,
        accounts=rows,
        summary=TrialBalanceSummary(
            total_debits=total_debits,
            total_credits=total_credits,
            difference=difference,
            balanced=difference == 0,
        ),
    )


def build_account_ledger(
    snapshot: LedgerSnapshot,
    account_name: str,
    date_from: Any = None,
    date_to: Any = None,
) -> AccountLedger:
    """
    Postings of one account within a date window.

    Entries keep processing order. The opening balance nets every posting dated
    before ``date_from``; the closing balance adds the in-window movement to it.
    Raises KeyError for an account the ledger has never posted to.
    """
    date_from = parse_timestamp(date_from)
    date_to = parse_period_end(date_to)
    account = snapshot.ledgerAccounts.get(account_name)
    if account is None:
        raise KeyError(account_name)

    opening = ZERO
    entries: List[LedgerPosting] = []
    for posting in account.postings:
        if date_from is not None and posting.date < date_from:
            opening += posting.debit - posting.credit
            continue
        if date_to is not None and posting.date > date_to:
            continue
        entries.append(posting)

    movement = sum((p.debit - p.credit for p in entries), ZERO)
    meta = get_account_meta(account_name)
    return AccountLedger(
        account_name=account_name,
        account_code=meta["code"],
        type=meta["type"],
        date_from=date_from,
        date_to=date_to,
        opening_balance=opening,
        closing_balance=opening + movement,
        entries=entries,
    )


__all__ = [
    "AccountLedger",
    "TrialBalance",
    "TrialBalanceRow",
    "TrialBalanceSummary",
    "build_account_ledger",
    "build_trial_balance",
    "parse_period_end",
]
