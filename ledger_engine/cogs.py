"""Cost-of-goods-sold resolution for sold line items."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Sequence

from ledger_engine.accounting_models import ZERO, DefectRecord, InventoryRecord, LineItem


def resolve_unit_cost(
    line_item: LineItem,
    inventory: Sequence[InventoryRecord],
    defects: Sequence[DefectRecord],
) -> Decimal:
    """
    Return the cost of one sold line item.

    Defective items are costed from the defect register by ``defectId``; all other
    items from the first inventory record with the same ``productId``. A missing
    record costs 0 rather than aborting the rebuild.
    """
    if line_item.isDefective:
        if line_item.defectId is None:
            return ZERO
        defect = next((d for d in defects if d.id == line_item.defectId), None)
        return defect.costPrice if defect else ZERO

    if line_item.productId is None:
        return ZERO
    record = next((inv for inv in inventory if inv.productId == line_item.productId), None)
    return record.costPrice if record else ZERO


def line_cost(
    line_item: LineItem,
    inventory: Sequence[InventoryRecord],
    defects: Sequence[DefectRecord],
) -> Decimal:
    unit_cost = resolve_unit_cost(line_item, inventory, defects)
    # Defect cost is a lump per line, independent of qty.
    if line_item.isDefective:
        return unit_cost
    return unit_cost * line_item.qty


def compute_cogs(
    line_items: Iterable[LineItem],
    inventory: Sequence[InventoryRecord],
    defects: Sequence[DefectRecord],
) -> Decimal:
    """Accumulated COGS for all line items of one sale or order."""
    return sum((line_cost(item, inventory, defects) for item in line_items), ZERO)


__all__ = ["compute_cogs", "line_cost", "resolve_unit_cost"]
