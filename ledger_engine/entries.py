"""Double-entry templates for each event category of the operational logs."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, NamedTuple, Optional, Sequence, Union

from ledger_engine.accounting_models import (
    ZERO,
    Batch,
    DefectRecord,
    ExchangeEvent,
    InventoryRecord,
    JournalEntry,
    OrderTransaction,
    Posting,
    ReturnEvent,
    SaleTransaction,
)
from ledger_engine.cogs import compute_cogs
from ledger_engine.context import get_payment_rails

logger = logging.getLogger(__name__)

INVENTORY = "Inventory"
CASH = "Cash"
SALES_REVENUE = "Sales Revenue"
SALES_RETURNS = "Sales Returns"
COST_OF_GOODS_SOLD = "Cost of Goods Sold"

CURRENCY_SYMBOL = "৳"

Transaction = Union[SaleTransaction, OrderTransaction]


class TransactionKind(NamedTuple):
    """Labels that distinguish POS sales from social orders in the journal."""

    prefix: str
    noun: str
    entry_type: str
    return_type: str
    exchange_type: str
    default_customer: str
    counterparty_word: str


POS_SALE = TransactionKind(
    prefix="SALE",
    noun="Sale",
    entry_type="POS Sale",
    return_type="Sales Return",
    exchange_type="Sales Exchange",
    default_customer="Walk-in Customer",
    counterparty_word="to",
)

SOCIAL_ORDER = TransactionKind(
    prefix="ORDER",
    noun="Order",
    entry_type="Social Order",
    return_type="Order Return",
    exchange_type="Order Exchange",
    default_customer="Customer",
    counterparty_word="from",
)


def format_amount(value: Decimal) -> str:
    """Render an amount without exponent or trailing zeros (50, 12.5)."""
    return format(value.normalize(), "f")


def debit(account: str, amount: Decimal) -> Posting:
    return Posting(account=account, debit=amount, credit=ZERO)


def credit(account: str, amount: Decimal) -> Posting:
    return Posting(account=account, debit=ZERO, credit=amount)


def make_entry(
    entry_id: str,
    date: datetime,
    entry_type: str,
    description: str,
    postings: List[Posting],
    created_at: datetime,
) -> JournalEntry:
    return JournalEntry(
        id=entry_id,
        date=date,
        type=entry_type,
        description=description,
        postings=postings,
        createdAt=created_at,
    )


def _source_ref(source_id: Optional[str], position: int) -> str:
    return source_id if source_id is not None else f"unknown-{position}"


def batch_entry(batch: Batch, generated_at: datetime, position: int = 0) -> JournalEntry:
    """Inventory purchase: Dr Inventory / Cr Cash at cost x quantity."""
    total_cost = batch.costPrice * batch.quantity
    return make_entry(
        f"BATCH-{_source_ref(batch.id, position)}",
        batch.createdAt or generated_at,
        "Batch Creation",
        (
            f"Purchased {format_amount(batch.quantity)} units at {CURRENCY_SYMBOL}{format_amount(batch.costPrice)} "
            f"each (Base Code: {batch.baseCode})"
        ),
        [debit(INVENTORY, total_cost), credit(CASH, total_cost)],
        generated_at,
    )


def revenue_entry(
    txn: Transaction,
    kind: TransactionKind,
    generated_at: datetime,
    position: int = 0,
) -> JournalEntry:
    """Revenue recognition: one debit per paid rail, one credit to Sales Revenue."""
    entry_id = f"{kind.prefix}-{_source_ref(txn.id, position)}"
    revenue = txn.amounts.total
    postings: List[Posting] = []
    for rail, account in get_payment_rails():
        amount = getattr(txn.payments, rail, None)
        if amount is not None and amount > 0:
            postings.append(debit(account, amount))
    postings.append(credit(SALES_REVENUE, revenue))

    collected = sum((p.debit for p in postings), ZERO)
    if collected != revenue:
        logger.warning(
            "%s: payment rails total %s but amounts.total is %s; posting as recorded",
            entry_id,
            collected,
            revenue,
        )

    customer = txn.customer_name or kind.default_customer
    return make_entry(
        entry_id,
        txn.createdAt or generated_at,
        kind.entry_type,
        f"{kind.noun} {kind.counterparty_word} {customer} - {len(txn.line_items)} items",
        postings,
        generated_at,
    )


def cogs_entry(
    parent_id: str,
    source_id: str,
    kind: TransactionKind,
    date: datetime,
    amount: Decimal,
    generated_at: datetime,
) -> Optional[JournalEntry]:
    """Dr Cost of Goods Sold / Cr Inventory; nothing when there is no positive cost."""
    if amount <= 0:
        return None
    return make_entry(
        f"{parent_id}-COGS",
        date,
        "Cost of Goods Sold",
        f"COGS for {kind.noun} {source_id}",
        [debit(COST_OF_GOODS_SOLD, amount), credit(INVENTORY, amount)],
        generated_at,
    )


def return_entries(
    parent_id: str,
    source_id: str,
    kind: TransactionKind,
    history: Sequence[ReturnEvent],
    generated_at: datetime,
) -> List[JournalEntry]:
    """Refunded returns: Dr Sales Returns / Cr Cash, dated by the return itself."""
    entries: List[JournalEntry] = []
    for idx, event in enumerate(history):
        refund = event.refundToCustomer
        if refund <= 0:
            continue
        entries.append(
            make_entry(
                f"{parent_id}-RETURN-{idx}",
                event.occurred_at or generated_at,
                kind.return_type,
                f"Return for {kind.noun} {source_id} - Refund {CURRENCY_SYMBOL}{format_amount(refund)}",
                [debit(SALES_RETURNS, refund), credit(CASH, refund)],
                generated_at,
            )
        )
    return entries


def exchange_entries(
    parent_id: str,
    source_id: str,
    kind: TransactionKind,
    history: Sequence[ExchangeEvent],
    generated_at: datetime,
) -> List[JournalEntry]:
    """
    Exchanges post by the sign of the price difference.

    A positive difference is an extra charge (Dr Cash / Cr Sales Revenue); a
    negative one is a refund (Dr Sales Returns / Cr Cash); zero posts nothing.
    """
    entries: List[JournalEntry] = []
    for idx, event in enumerate(history):
        difference = event.difference
        if difference == 0:
            continue
        if difference > 0:
            postings = [debit(CASH, difference), credit(SALES_REVENUE, difference)]
            detail = f"Additional charge {CURRENCY_SYMBOL}{format_amount(difference)}"
        else:
            refund = abs(difference)
            postings = [debit(SALES_RETURNS, refund), credit(CASH, refund)]
            detail = f"Refund {CURRENCY_SYMBOL}{format_amount(refund)}"
        entries.append(
            make_entry(
                f"{parent_id}-EXCHANGE-{idx}",
                event.date or generated_at,
                kind.exchange_type,
                f"Exchange for {kind.noun} {source_id} - {detail}",
                postings,
                generated_at,
            )
        )
    return entries


def transaction_entries(
    txn: Transaction,
    kind: TransactionKind,
    inventory: Sequence[InventoryRecord],
    defects: Sequence[DefectRecord],
    generated_at: datetime,
    position: int = 0,
) -> List[JournalEntry]:
    """All entries of one sale or order in posting order: revenue, COGS, returns, exchanges."""
    source_id = _source_ref(txn.id, position)
    revenue = revenue_entry(txn, kind, generated_at, position)
    entries = [revenue]

    cogs = cogs_entry(
        revenue.id,
        source_id,
        kind,
        revenue.date,
        compute_cogs(txn.line_items, inventory, defects),
        generated_at,
    )
    if cogs is not None:
        entries.append(cogs)

    entries.extend(return_entries(revenue.id, source_id, kind, txn.returnHistory, generated_at))
    entries.extend(exchange_entries(revenue.id, source_id, kind, txn.exchangeHistory, generated_at))
    return entries


__all__ = [
    "CASH",
    "COST_OF_GOODS_SOLD",
    "INVENTORY",
    "POS_SALE",
    "SALES_RETURNS",
    "SALES_REVENUE",
    "SOCIAL_ORDER",
    "TransactionKind",
    "batch_entry",
    "cogs_entry",
    "exchange_entries",
    "format_amount",
    "return_entries",
    "revenue_entry",
    "transaction_entries",
]
