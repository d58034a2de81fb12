from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_api.db_models import CURRENT_SNAPSHOT_ID, LedgerSnapshotORM
from ledger_engine.accounting_models import LedgerSnapshot
from ledger_engine.core import LedgerError

logger = logging.getLogger(__name__)


class LedgerPersistenceError(LedgerError):
    """Raised when the derived ledger snapshot cannot be written or read back."""


def save_ledger_snapshot(db: Session, snapshot: LedgerSnapshot) -> None:
    """Replace the stored ledger snapshot with ``snapshot`` in a single commit."""
    try:
        db.query(LedgerSnapshotORM).delete()
        db.add(
            LedgerSnapshotORM(
                id=CURRENT_SNAPSHOT_ID,
                generated_at=snapshot.generatedAt,
                entry_count=len(snapshot.journalEntries),
                account_count=len(snapshot.ledgerAccounts),
                payload=snapshot.model_dump(mode="json"),
            )
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to persist ledger snapshot generated at %s", snapshot.generatedAt)
        raise LedgerPersistenceError("Failed to persist ledger snapshot") from exc


def get_ledger_snapshot(db: Session) -> Optional[LedgerSnapshot]:
    """Return the last persisted snapshot, or None when nothing has been saved yet."""
    try:
        row = db.get(LedgerSnapshotORM, CURRENT_SNAPSHOT_ID)
    except SQLAlchemyError as exc:
        logger.exception("Failed to read persisted ledger snapshot")
        raise LedgerPersistenceError("Failed to read ledger snapshot") from exc
    if row is None:
        return None
    return LedgerSnapshot.model_validate(row.payload)
