"""FastAPI service exposing the reconstructed accounting ledger.

Every read recomputes the ledger from the operational logs (batches, POS sales,
social orders, inventory and the defect register) and overwrites the persisted
snapshot; the regenerate action does the same and returns a confirmation.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ledger_api.db import get_db, init_db
from ledger_api.ledger_persistence import LedgerPersistenceError, get_ledger_snapshot
from ledger_api.regeneration import rebuild_and_persist
from ledger_api.reporting import journal_to_csv, ledger_to_csv, trial_balance_to_csv
from ledger_api.schemas import HealthResponse, RegenerateResponse
from ledger_api.settings import get_settings
from ledger_engine.accounting_models import LedgerSnapshot, parse_timestamp
from ledger_engine.reports import (
    AccountLedger,
    TrialBalance,
    build_account_ledger,
    build_trial_balance,
    parse_period_end,
)

settings = get_settings()

logger = logging.getLogger("ledger-api")
logging.basicConfig(level=settings["log_level"])

app = FastAPI(
    title="Retail Ledger API",
    description="Double-entry ledger rebuilt from inventory, POS, order and defect logs.",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings["allowed_origins"] or ["*"],
    allow_origin_regex=settings["allow_origin_regex"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event() -> None:
    init_db()


def get_source_dir() -> Path:
    return Path(settings["data_dir"])


def _parse_query_date(
    value: Optional[str],
    name: str,
    parser: Callable[[Any], Optional[datetime]] = parse_timestamp,
) -> Optional[datetime]:
    if value is None or not value.strip():
        return None
    parsed = parser(value)
    if parsed is None:
        raise HTTPException(status_code=422, detail=f"Invalid {name}: {value}")
    return parsed


def _current_snapshot(db: Session, data_dir: Path, *, failure_detail: str) -> LedgerSnapshot:
    try:
        return rebuild_and_persist(db, data_dir)
    except LedgerPersistenceError as exc:
        logger.error("Ledger rebuild could not be persisted: %s", exc)
        raise HTTPException(status_code=500, detail=failure_detail) from exc


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/api/accounting", response_model=LedgerSnapshot)
def read_accounting(
    db: Session = Depends(get_db),
    data_dir: Path = Depends(get_source_dir),
) -> LedgerSnapshot:
    """Recompute the ledger from source logs, persist it and return it."""
    return _current_snapshot(db, data_dir, failure_detail="Failed to load accounting data")


@app.post("/api/accounting", response_model=RegenerateResponse)
def regenerate_accounting(
    db: Session = Depends(get_db),
    data_dir: Path = Depends(get_source_dir),
) -> RegenerateResponse:
    """Manual refresh: same derivation as the read path, with a confirmation envelope."""
    snapshot = _current_snapshot(db, data_dir, failure_detail="Failed to regenerate accounting data")
    return RegenerateResponse(
        success=True,
        message="Accounting data regenerated successfully",
        data=snapshot,
    )


@app.get("/api/accounting/latest", response_model=LedgerSnapshot)
def latest_accounting(db: Session = Depends(get_db)) -> LedgerSnapshot:
    """Return the last persisted snapshot without recomputing."""
    try:
        snapshot = get_ledger_snapshot(db)
    except LedgerPersistenceError as exc:
        raise HTTPException(status_code=500, detail="Failed to load accounting data") from exc
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No ledger snapshot has been generated yet.")
    return snapshot


@app.get("/api/accounting/trial-balance", response_model=TrialBalance)
def trial_balance(
    end_date: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    data_dir: Path = Depends(get_source_dir),
) -> TrialBalance:
    cutoff = _parse_query_date(end_date, "end_date", parse_period_end)
    snapshot = _current_snapshot(db, data_dir, failure_detail="Failed to load accounting data")
    return build_trial_balance(snapshot, end_date=cutoff)


@app.get("/api/accounting/ledger/{account_name}", response_model=AccountLedger)
def account_ledger(
    account_name: str,
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    data_dir: Path = Depends(get_source_dir),
) -> AccountLedger:
    start = _parse_query_date(date_from, "date_from")
    end = _parse_query_date(date_to, "date_to", parse_period_end)
    snapshot = _current_snapshot(db, data_dir, failure_detail="Failed to load accounting data")
    try:
        return build_account_ledger(snapshot, account_name, date_from=start, date_to=end)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Ledger account not found: {account_name}") from exc


@app.get("/api/accounting/export/{kind}")
def export_accounting(
    kind: str,
    account: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    data_dir: Path = Depends(get_source_dir),
) -> Response:
    """CSV export of the journal, the trial balance or one account ledger."""
    if kind not in {"journal", "trial-balance", "ledger"}:
        raise HTTPException(status_code=404, detail=f"Unknown export: {kind}")
    if kind == "ledger" and not account:
        raise HTTPException(status_code=400, detail="The ledger export requires an account.")

    snapshot = _current_snapshot(db, data_dir, failure_detail="Failed to load accounting data")
    if kind == "journal":
        content = journal_to_csv(snapshot.journalEntries)
    elif kind == "trial-balance":
        content = trial_balance_to_csv(build_trial_balance(snapshot))
    else:
        try:
            content = ledger_to_csv(build_account_ledger(snapshot, account))
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Ledger account not found: {account}") from exc

    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{kind}_{stamp}.csv"'},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ledger_api.app:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=True)
