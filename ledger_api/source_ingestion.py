from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, NamedTuple

from ledger_engine.accounting_models import (
    Batch,
    DefectRecord,
    InventoryRecord,
    OrderTransaction,
    SaleTransaction,
    coerce_records,
)

logger = logging.getLogger(__name__)

SOURCE_FILES = {
    "batches": "batch.json",
    "sales": "sales.json",
    "orders": "orders.json",
    "inventory": "inventory.json",
    "defects": "defects.json",
}


class LedgerSources(NamedTuple):
    batches: List[Batch]
    sales: List[SaleTransaction]
    orders: List[OrderTransaction]
    inventory: List[InventoryRecord]
    defects: List[DefectRecord]


def read_collection(path: Path) -> List[Any]:
    """Read a JSON array from disk; a missing, unreadable or non-array file reads as empty."""
    if not path.exists():
        logger.warning("Source file %s not found; treating as empty", path)
        return []
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as exc:
        logger.warning("Error reading %s: %s; treating as empty", path, exc)
        return []
    if not isinstance(data, list):
        logger.warning("Source file %s does not hold a JSON array; treating as empty", path)
        return []
    return data


def load_sources(data_dir: Path | str) -> LedgerSources:
    base = Path(data_dir)
    raw = {name: read_collection(base / filename) for name, filename in SOURCE_FILES.items()}
    return LedgerSources(
        batches=coerce_records(Batch, raw["batches"], source="batches"),
        sales=coerce_records(SaleTransaction, raw["sales"], source="sales"),
        orders=coerce_records(OrderTransaction, raw["orders"], source="orders"),
        inventory=coerce_records(InventoryRecord, raw["inventory"], source="inventory"),
        defects=coerce_records(DefectRecord, raw["defects"], source="defects"),
    )
