from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

ROOT_DIR = Path(__file__).resolve().parents[1]


def get_settings() -> Dict[str, Any]:
    allowed_raw = os.getenv("ALLOWED_ORIGINS", "*")
    allowed_list = [o.strip() for o in allowed_raw.split(",") if o.strip()]
    return {
        "data_dir": os.getenv("LEDGER_DATA_DIR", str(ROOT_DIR / "data")),
        "database_url": os.getenv("DATABASE_URL", "sqlite:///./ledger.db"),
        "allowed_origins": allowed_list,
        "allow_origin_regex": os.getenv("ALLOWED_ORIGIN_REGEX", None),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
    }
