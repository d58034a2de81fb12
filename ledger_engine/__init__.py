"""Ledger reconstruction engine for the retail storefront."""

from .accounting_models import JournalEntry, LedgerAccount, LedgerPosting, LedgerSnapshot, Posting
from .accumulator import LedgerAccumulator, post_to_ledger
from .cogs import compute_cogs, resolve_unit_cost
from .core import LedgerError, rebuild_ledger, sort_for_display

__all__ = [
    "JournalEntry",
    "LedgerAccount",
    "LedgerAccumulator",
    "LedgerError",
    "LedgerPosting",
    "LedgerSnapshot",
    "Posting",
    "compute_cogs",
    "post_to_ledger",
    "rebuild_ledger",
    "resolve_unit_cost",
    "sort_for_display",
]
