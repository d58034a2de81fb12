"""Deterministic ledger reconstruction from the operational logs."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from ledger_engine.accounting_models import (
    Batch,
    DefectRecord,
    InventoryRecord,
    JournalEntry,
    LedgerSnapshot,
    OrderTransaction,
    SaleTransaction,
    coerce_records,
    parse_timestamp,
)
from ledger_engine.accumulator import LedgerAccumulator
from ledger_engine.entries import POS_SALE, SOCIAL_ORDER, batch_entry, transaction_entries

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base error for the ledger service."""


def sort_for_display(entries: Iterable[JournalEntry]) -> List[JournalEntry]:
    """Newest first; entries sharing a date keep their processing order."""
    return sorted(entries, key=lambda e: e.date, reverse=True)


def rebuild_ledger(
    batches: Optional[Iterable[Any]] = None,
    sales: Optional[Iterable[Any]] = None,
    orders: Optional[Iterable[Any]] = None,
    inventory: Optional[Iterable[Any]] = None,
    defects: Optional[Iterable[Any]] = None,
    *,
    generated_at: Optional[datetime] = None,
) -> LedgerSnapshot:
    """
    Recompute the whole ledger from current source snapshots.

    Entries are produced and posted in source-array order: every batch, then each
    sale (revenue, COGS, returns, exchanges), then each order the same way. The
    journal returned for display is a separate date-descending copy.

    Missing collections are treated as empty and malformed fields as zero, so a
    snapshot is always returned.
    """
    now = parse_timestamp(generated_at) or datetime.now(timezone.utc)

    batch_rows = coerce_records(Batch, batches, source="batches")
    sale_rows = coerce_records(SaleTransaction, sales, source="sales")
    order_rows = coerce_records(OrderTransaction, orders, source="orders")
    inventory_rows = coerce_records(InventoryRecord, inventory, source="inventory")
    defect_rows = coerce_records(DefectRecord, defects, source="defects")

    journal: List[JournalEntry] = []
    ledger = LedgerAccumulator()

    def record(entry: JournalEntry) -> None:
        journal.append(entry)
        ledger.post_entry(entry)

    for idx, batch in enumerate(batch_rows):
        record(batch_entry(batch, now, idx))

    for idx, sale in enumerate(sale_rows):
        for entry in transaction_entries(sale, POS_SALE, inventory_rows, defect_rows, now, idx):
            record(entry)

    for idx, order in enumerate(order_rows):
        for entry in transaction_entries(order, SOCIAL_ORDER, inventory_rows, defect_rows, now, idx):
            record(entry)

    logger.info(
        "Rebuilt ledger: %d journal entries across %d accounts (%d batches, %d sales, %d orders)",
        len(journal),
        len(ledger),
        len(batch_rows),
        len(sale_rows),
        len(order_rows),
    )
    return LedgerSnapshot(
        journalEntries=sort_for_display(journal),
        ledgerAccounts=ledger.accounts,
        generatedAt=now,
    )
