from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.types import JSON

from ledger_api.db import Base

CURRENT_SNAPSHOT_ID = "current"


class LedgerSnapshotORM(Base):
    """The persisted ledger; a single row replaced on every rebuild."""

    __tablename__ = "ledger_snapshots"

    id = Column(String, primary_key=True, default=CURRENT_SNAPSHOT_ID)
    generated_at = Column(DateTime, nullable=False)
    entry_count = Column(Integer, nullable=False, default=0)
    account_count = Column(Integer, nullable=False, default=0)
    payload = Column(JSON, nullable=False)
    saved_at = Column(DateTime, nullable=False, default=datetime.utcnow)
