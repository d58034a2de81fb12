from datetime import datetime, timezone
from decimal import Decimal

from ledger_engine.accounting_models import JournalEntry, Posting
from ledger_engine.accumulator import LedgerAccumulator, post_to_ledger

D1 = datetime(2024, 1, 1, tzinfo=timezone.utc)
D2 = datetime(2024, 1, 2, tzinfo=timezone.utc)


def test_post_to_ledger_creates_account_and_tracks_running_balance():
    accounts = {}
    post_to_ledger(accounts, "Cash", Decimal("0"), Decimal("50"), D1, "BATCH-1")
    posting = post_to_ledger(accounts, "Cash", Decimal("100"), Decimal("0"), D2, "SALE-7")

    cash = accounts["Cash"]
    assert cash.name == "Cash"
    assert cash.totalDebit == Decimal("100")
    assert cash.totalCredit == Decimal("50")
    assert cash.balance == Decimal("50")
    assert [p.balanceAfter for p in cash.postings] == [Decimal("-50"), Decimal("50")]
    assert posting.ref == "SALE-7"
    assert posting.date == D2


def test_accumulator_posts_entries_in_the_order_given():
    later = JournalEntry(
        id="E-LATER",
        date=D2,
        type="t",
        description="later",
        postings=[Posting(account="Cash", debit=Decimal("10")), Posting(account="Sales Revenue", credit=Decimal("10"))],
        createdAt=D2,
    )
    earlier = JournalEntry(
        id="E-EARLIER",
        date=D1,
        type="t",
        description="earlier",
        postings=[Posting(account="Sales Returns", debit=Decimal("4")), Posting(account="Cash", credit=Decimal("4"))],
        createdAt=D2,
    )
    ledger = LedgerAccumulator()
    ledger.post_entry(later)
    ledger.post_entry(earlier)

    cash = ledger.accounts["Cash"]
    assert [p.ref for p in cash.postings] == ["E-LATER", "E-EARLIER"]
    assert [p.balanceAfter for p in cash.postings] == [Decimal("10"), Decimal("6")]
    assert len(ledger) == 3


def test_account_balance_identity_holds():
    ledger = LedgerAccumulator()
    amounts = [("1.10", "0"), ("0", "0.20"), ("3", "0"), ("0", "2.45")]
    for idx, (debit, credit) in enumerate(amounts):
        ledger.post("Cash", Decimal(debit), Decimal(credit), D1, f"R-{idx}")

    cash = ledger.accounts["Cash"]
    running = Decimal("0")
    for posting in cash.postings:
        running += posting.debit - posting.credit
        assert posting.balanceAfter == running
    assert cash.balance == running == Decimal("1.45")
