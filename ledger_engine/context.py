"""Chart-of-accounts loader for the ledger rebuild."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml


CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "chart_of_accounts.yaml"

REQUIRED_RAILS = ("cash", "card", "bkash", "nagad", "due")


def _validate_chart(raw: Dict[str, Any]) -> None:
    """Validate that rails and accounts are complete and consistent."""
    if not isinstance(raw, dict):
        raise ValueError("Chart of accounts must be a mapping.")
    rails = raw.get("payment_rails")
    accounts = raw.get("accounts")
    if not isinstance(rails, list) or not rails:
        raise ValueError("Chart of accounts missing required key: payment_rails")
    if not isinstance(accounts, dict) or not accounts:
        raise ValueError("Chart of accounts missing required key: accounts")

    missing = []
    for name, meta in accounts.items():
        if not isinstance(meta, dict) or "code" not in meta or "type" not in meta:
            missing.append(f"accounts.{name}.code/type")
    seen_rails = []
    for idx, rail in enumerate(rails):
        if not isinstance(rail, dict) or "rail" not in rail or "account" not in rail:
            missing.append(f"payment_rails[{idx}].rail/account")
            continue
        seen_rails.append(rail["rail"])
        if rail["account"] not in accounts:
            missing.append(f"accounts.{rail['account']}")
    for rail_name in REQUIRED_RAILS:
        if rail_name not in seen_rails:
            missing.append(f"payment_rails.{rail_name}")
    if missing:
        raise ValueError(f"Chart of accounts missing required keys: {', '.join(missing)}")


@lru_cache(maxsize=4)
def load_chart_of_accounts(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the chart of accounts from config/chart_of_accounts.yaml.

    Returns a dict with keys:
      - "payment_rails": ordered list of {"rail", "account"}
      - "accounts": account name -> {"code", "type"}
    """
    config_path = Path(path) if path else CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Chart of accounts not found at {config_path}")
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    _validate_chart(raw)
    accounts = {
        str(name): {"code": str(meta["code"]), "type": str(meta["type"])} for name, meta in raw["accounts"].items()
    }
    rails = [{"rail": str(r["rail"]), "account": str(r["account"])} for r in raw["payment_rails"]]
    return {"payment_rails": rails, "accounts": accounts}


def get_payment_rails() -> List[Tuple[str, str]]:
    """Ordered (rail, account name) pairs for revenue debits."""
    return [(r["rail"], r["account"]) for r in load_chart_of_accounts()["payment_rails"]]


def get_account_meta(account_name: str) -> Dict[str, str]:
    """Code and type for an account; accounts outside the chart are typed "other"."""
    meta = load_chart_of_accounts()["accounts"].get(account_name)
    if meta is None:
        return {"code": "", "type": "other"}
    return meta
