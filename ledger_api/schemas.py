from __future__ import annotations

from pydantic import BaseModel

from ledger_engine.accounting_models import LedgerSnapshot


class RegenerateResponse(BaseModel):
    success: bool
    message: str
    data: LedgerSnapshot


class HealthResponse(BaseModel):
    status: str
