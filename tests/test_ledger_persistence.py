import threading
import time
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ledger_api import regeneration
from ledger_api.db import SessionLocal, init_db
from ledger_api.db_models import LedgerSnapshotORM
from ledger_api.ledger_persistence import LedgerPersistenceError, get_ledger_snapshot, save_ledger_snapshot
from ledger_api.regeneration import rebuild_and_persist
from ledger_engine.core import rebuild_ledger


def _snapshot(sources, generated_at):
    return rebuild_ledger(
        sources["batches"],
        sources["sales"],
        sources["orders"],
        sources["inventory"],
        sources["defects"],
        generated_at=generated_at,
    )


def test_snapshot_is_replaced_wholesale(ledger_sources, generated_at):
    init_db()
    with SessionLocal() as db:
        save_ledger_snapshot(db, _snapshot(ledger_sources, generated_at))
        newer = rebuild_ledger(ledger_sources["batches"], generated_at=generated_at + timedelta(days=1))
        save_ledger_snapshot(db, newer)

        rows = db.query(LedgerSnapshotORM).all()
        assert len(rows) == 1
        assert rows[0].entry_count == 1

        stored = get_ledger_snapshot(db)
        assert stored is not None
        assert stored.model_dump(mode="json") == newer.model_dump(mode="json")


def test_round_trip_keeps_exact_amounts(ledger_sources, generated_at):
    init_db()
    snapshot = _snapshot(ledger_sources, generated_at)
    with SessionLocal() as db:
        save_ledger_snapshot(db, snapshot)
        stored = get_ledger_snapshot(db)
    assert stored.model_dump(mode="json") == snapshot.model_dump(mode="json")
    assert stored.ledgerAccounts["Cash"].balance == snapshot.ledgerAccounts["Cash"].balance


def test_persistence_failure_is_surfaced(ledger_sources, generated_at):
    # Fresh in-memory database without tables: every write fails.
    engine = create_engine("sqlite://", future=True)
    Session = sessionmaker(bind=engine, future=True)
    with Session() as db:
        with pytest.raises(LedgerPersistenceError):
            save_ledger_snapshot(db, _snapshot(ledger_sources, generated_at))
        with pytest.raises(LedgerPersistenceError):
            get_ledger_snapshot(db)


def test_rebuild_and_persist_stores_what_it_returns(source_dir):
    init_db()
    with SessionLocal() as db:
        snapshot = rebuild_and_persist(db, source_dir)
        stored = get_ledger_snapshot(db)
    assert len(snapshot.journalEntries) == 8
    assert stored.model_dump(mode="json") == snapshot.model_dump(mode="json")


def test_concurrent_rebuilds_persist_one_at_a_time(source_dir, monkeypatch):
    init_db()
    events = []
    save = regeneration.save_ledger_snapshot

    def slow_save(db, snapshot):
        events.append(("enter", snapshot.generatedAt))
        time.sleep(0.05)
        save(db, snapshot)
        events.append(("exit", snapshot.generatedAt))

    monkeypatch.setattr(regeneration, "save_ledger_snapshot", slow_save)

    def worker():
        with SessionLocal() as db:
            rebuild_and_persist(db, source_dir)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert [kind for kind, _ in events] == ["enter", "exit", "enter", "exit"]
    assert events[0][1] == events[1][1]
    assert events[2][1] == events[3][1]

    with SessionLocal() as db:
        stored = get_ledger_snapshot(db)
    assert stored.generatedAt == events[2][1]
