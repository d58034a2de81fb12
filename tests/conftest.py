import json
from datetime import datetime, timezone

import pytest

GENERATED_AT = datetime(2024, 3, 1, tzinfo=timezone.utc)

BATCHES = [
    {
        "id": 1,
        "baseCode": "TSHIRT",
        "quantity": 10,
        "costPrice": 5,
        "sellingPrice": 12,
        "createdAt": "2024-01-01T09:00:00Z",
        "storeId": 1,
    }
]

INVENTORY = [{"productId": "p1", "costPrice": 5}]

DEFECTS = [{"id": "d1", "costPrice": 40, "originalSellingPrice": 90}]

SALES = [
    {
        "id": 7,
        "createdAt": "2024-01-03T10:00:00Z",
        "customer": {"name": "Anika"},
        "items": [
            {"productId": "p1", "qty": 2},
            {"productId": "p9", "qty": 3, "isDefective": True, "defectId": "d1"},
        ],
        "amounts": {"total": 150},
        "payments": {"cash": 100, "card": 0, "bkash": 0, "nagad": 0, "due": 50},
        "returnHistory": [
            {"refundToCustomer": 30, "timestamp": "2024-01-05T12:00:00Z"},
            {"refundToCustomer": 0, "timestamp": "2024-01-06T12:00:00Z"},
        ],
        "exchangeHistory": [
            {"difference": 20, "date": "2024-01-04T08:00:00Z"},
            {"difference": -15, "date": "2024-01-07T08:00:00Z"},
            {"difference": 0, "date": "2024-01-08T08:00:00Z"},
        ],
    }
]

ORDERS = [
    {
        "id": "o1",
        "createdAt": "2024-01-02T15:00:00Z",
        "customerName": "Rafi",
        "products": [{"productId": "p1", "qty": 1}],
        "amounts": {"total": 60},
        "payments": {"bkash": 60},
    }
]


@pytest.fixture
def generated_at():
    return GENERATED_AT


@pytest.fixture
def ledger_sources():
    return {
        "batches": json.loads(json.dumps(BATCHES)),
        "sales": json.loads(json.dumps(SALES)),
        "orders": json.loads(json.dumps(ORDERS)),
        "inventory": json.loads(json.dumps(INVENTORY)),
        "defects": json.loads(json.dumps(DEFECTS)),
    }


@pytest.fixture
def source_dir(tmp_path, ledger_sources):
    files = {
        "batch.json": ledger_sources["batches"],
        "sales.json": ledger_sources["sales"],
        "orders.json": ledger_sources["orders"],
        "inventory.json": ledger_sources["inventory"],
        "defects.json": ledger_sources["defects"],
    }
    for filename, rows in files.items():
        (tmp_path / filename).write_text(json.dumps(rows), encoding="utf-8")
    return tmp_path
