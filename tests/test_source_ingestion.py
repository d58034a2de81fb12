import json

from ledger_api.source_ingestion import load_sources, read_collection


def test_load_sources_parses_every_collection(source_dir):
    sources = load_sources(source_dir)
    assert [b.id for b in sources.batches] == ["1"]
    assert [s.id for s in sources.sales] == ["7"]
    assert [o.id for o in sources.orders] == ["o1"]
    assert sources.inventory[0].productId == "p1"
    assert sources.defects[0].id == "d1"
    assert sources.sales[0].items[1].isDefective is True


def test_missing_directory_reads_as_no_history(tmp_path):
    sources = load_sources(tmp_path / "does-not-exist")
    assert all(collection == [] for collection in sources)


def test_unreadable_or_non_array_files_read_as_empty(tmp_path, caplog):
    broken = tmp_path / "sales.json"
    broken.write_text("{not json", encoding="utf-8")
    wrapped = tmp_path / "orders.json"
    wrapped.write_text(json.dumps({"orders": []}), encoding="utf-8")

    assert read_collection(broken) == []
    assert read_collection(wrapped) == []
    assert read_collection(tmp_path / "batch.json") == []
    assert "sales.json" in caplog.text


def test_partial_sources_still_load(tmp_path):
    (tmp_path / "batch.json").write_text(json.dumps([{"id": 5, "quantity": 2, "costPrice": 3}]), encoding="utf-8")
    sources = load_sources(tmp_path)
    assert len(sources.batches) == 1
    assert sources.sales == []
