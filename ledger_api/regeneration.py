"""Single code path for deriving and persisting the ledger."""

from __future__ import annotations

import threading
from pathlib import Path

from sqlalchemy.orm import Session

from ledger_api.ledger_persistence import save_ledger_snapshot
from ledger_api.source_ingestion import load_sources
from ledger_engine.accounting_models import LedgerSnapshot
from ledger_engine.core import rebuild_ledger

# Serializes compute + persist so a slower rebuild cannot overwrite a newer snapshot.
_REBUILD_LOCK = threading.Lock()


def rebuild_and_persist(db: Session, data_dir: Path | str) -> LedgerSnapshot:
    """Recompute the ledger from the source logs and replace the stored snapshot."""
    with _REBUILD_LOCK:
        sources = load_sources(data_dir)
        snapshot = rebuild_ledger(
            sources.batches,
            sources.sales,
            sources.orders,
            sources.inventory,
            sources.defects,
        )
        save_ledger_snapshot(db, snapshot)
    return snapshot
