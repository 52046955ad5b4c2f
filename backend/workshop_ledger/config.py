# backend/workshop_ledger/config.py
from __future__ import annotations
import json
import os


DEFAULT_COUNTERPARTY_BUCKETS = {
    "Nitesh": ["nitesh"],
    "Tanmeet": ["tanmeet"],
    "Bank Account": ["bank account", "bank"],
}


def _load_counterparty_buckets() -> dict[str, list[str]]:
    """
    Counterparty buckets for cash-flow views.

    COUNTERPARTY_BUCKETS may hold a JSON object mapping bucket name to a list of
    aliases, e.g. {"Nitesh": ["nitesh"], "Bank Account": ["bank", "bank account"]}.
    """
    raw = os.environ.get("COUNTERPARTY_BUCKETS")
    if not raw:
        return DEFAULT_COUNTERPARTY_BUCKETS
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError("COUNTERPARTY_BUCKETS must be a JSON object")
    return {str(name): [str(a) for a in (aliases or [])] for name, aliases in parsed.items()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/workshop.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///workshop.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Day boundaries for reports are computed in this zone
    BUSINESS_TIMEZONE = os.environ.get("BUSINESS_TIMEZONE", "UTC")

    COUNTERPARTY_BUCKETS = _load_counterparty_buckets()

    RECENT_ACTIVITY_LIMIT = int(os.environ.get("RECENT_ACTIVITY_LIMIT", "20"))
    TOP_VENDORS_LIMIT = int(os.environ.get("TOP_VENDORS_LIMIT", "5"))
