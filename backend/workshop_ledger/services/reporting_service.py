# Overview: Aggregation engine for the dashboard and cash-flow views; read-only folds over current versions.

"""
Workshop Ledger Reporting Invariants (authoritative)

Scope of a report:
- Sales and expenses are read through the CURRENT-VERSION projection only.
  A superseded version is never summed, whatever its date, so an amended
  record is counted once at its current amount.
- The date filter applies to the current version's date.
- Range: inclusive [from 00:00:00.000, to 23:59:59.999] in BUSINESS_TIMEZONE,
  defaulting to the current calendar month.

Current-state sections (NOT range filtered):
- Vendor dues and low-stock items describe "now", regardless of the range.

Output:
- Money leaves in rupees (money.to_major); sums are done in paise.
- Grouped lists are [{key, amount, percentage}] sorted by amount desc
  (key asc on ties); percentage = amount / total, 0 when total is 0.
- The daily series is sorted ascending by date.
- Empty data gives zeros, never an error.

Pure read: no writes, no commits. All queries of one call run in the
session's single transaction.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..enums import JobStatus, VendorBillStatus
from ..models import JobCard, Vendor, VendorBill
from ..money import to_major
from ..time_utils import (
    business_date_key,
    current_month_days,
    day_bounds_utc,
    parse_business_day,
    to_utc_z,
)
from ..validation import ValidationError
from . import audit_service, inventory_service
from .attribution import (
    UNKNOWN_RECEIVER,
    CounterpartyBuckets,
    extract_paid_by,
    receiver_bucket,
)
from .expense_service import expense_ledger
from .sales_service import sale_ledger
from .vendor_service import bill_status


UNCATEGORIZED = "Uncategorized"
NO_VENDOR = "No Vendor"
DEFAULT_TEMPLATE = "GENERAL"


def _business_tz() -> str:
    return current_app.config.get("BUSINESS_TIMEZONE") or "UTC"


def _buckets() -> CounterpartyBuckets:
    return CounterpartyBuckets(current_app.config.get("COUNTERPARTY_BUCKETS") or {})


def _parse_day(value, field: str, tz_name: str) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return date.fromisoformat(business_date_key(value, tz_name))
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return parse_business_day(text, tz_name)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date")


def resolve_range(start=None, end=None, *, tz_name: str | None = None, today: date | None = None) -> tuple[datetime, datetime]:
    """
    Turn optional from/to values into inclusive UTC-naive bounds.

    A missing bound falls back to the first/last day of the current month
    in the business zone.
    """
    tz_name = tz_name or _business_tz()
    month_start, month_end = current_month_days(tz_name, today=today)
    start_day = _parse_day(start, "from", tz_name) or month_start
    end_day = _parse_day(end, "to", tz_name) or month_end
    if start_day > end_day:
        raise ValidationError("from must be on or before to")
    return day_bounds_utc(start_day, end_day, tz_name)


def open_range(start=None, end=None, *, tz_name: str | None = None) -> tuple[datetime | None, datetime | None]:
    """
    Like resolve_range, but a missing bound stays open (None) instead of
    falling back to the current month. No from/to means all time.
    """
    tz_name = tz_name or _business_tz()
    start_day = _parse_day(start, "from", tz_name)
    end_day = _parse_day(end, "to", tz_name)
    if start_day and end_day and start_day > end_day:
        raise ValidationError("from must be on or before to")
    start_dt = day_bounds_utc(start_day, start_day, tz_name)[0] if start_day else None
    end_dt = day_bounds_utc(end_day, end_day, tz_name)[1] if end_day else None
    return start_dt, end_dt


def percentage(amount: int, total: int) -> float:
    return amount / total if total else 0


def _grouped(totals: dict[str, int], total: int) -> list[dict]:
    rows = sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))
    return [
        {"key": key, "amount": to_major(amount), "percentage": percentage(amount, total)}
        for key, amount in rows
    ]


def _range_payload(start_dt: datetime, end_dt: datetime, tz_name: str) -> dict:
    return {"from": to_utc_z(start_dt), "to": to_utc_z(end_dt), "timezone": tz_name}


# ----------------------------------------------------------------------
# Sections
# ----------------------------------------------------------------------

def _sales_section(versions, tz_name: str, buckets: CounterpartyBuckets) -> tuple[dict, dict, dict[str, int], int]:
    total = 0
    by_day: dict[str, int] = defaultdict(int)
    by_category: dict[str, int] = defaultdict(int)
    by_mode: dict[str, int] = defaultdict(int)
    by_receiver: dict[str, int] = defaultdict(int)
    tracking = buckets.empty_totals()

    for v in versions:
        total += v.amount_cents
        by_day[business_date_key(v.date, tz_name)] += v.amount_cents
        by_category[v.category or UNCATEGORIZED] += v.amount_cents
        by_mode[v.payment_mode] += v.amount_cents
        by_receiver[receiver_bucket(v.received_by)] += v.amount_cents
        tracking[buckets.bucket_for(v.received_by)] += v.amount_cents

    section = {
        "total": to_major(total),
        "count": len(versions),
        "by_category": _grouped(by_category, total),
        "by_payment_mode": _grouped(by_mode, total),
        "by_receiver": _grouped(by_receiver, total),
    }
    money_tracking = {name: to_major(amount) for name, amount in tracking.items()}
    return section, money_tracking, dict(by_day), total


def _expenses_section(versions, tz_name: str) -> tuple[dict, dict[str, int], int]:
    total = 0
    advances = 0
    by_day: dict[str, int] = defaultdict(int)
    by_category: dict[str, int] = defaultdict(int)
    by_mode: dict[str, int] = defaultdict(int)
    by_vendor: dict[str, int] = defaultdict(int)
    by_paid_by: dict[str, int] = defaultdict(int)

    for v in versions:
        total += v.amount_cents
        if v.category and "advance" in v.category.lower():
            advances += v.amount_cents
        by_day[business_date_key(v.date, tz_name)] += v.amount_cents
        by_category[v.category or UNCATEGORIZED] += v.amount_cents
        by_mode[v.payment_mode] += v.amount_cents
        by_vendor[v.vendor or NO_VENDOR] += v.amount_cents
        by_paid_by[extract_paid_by(v.note) or UNKNOWN_RECEIVER] += v.amount_cents

    section = {
        "total": to_major(total),
        "count": len(versions),
        "advance_expenses": to_major(advances),
        "other_expenses": to_major(total - advances),
        "by_category": _grouped(by_category, total),
        "by_payment_mode": _grouped(by_mode, total),
        "by_vendor": _grouped(by_vendor, total),
        "by_paid_by": _grouped(by_paid_by, total),
    }
    return section, dict(by_day), total


def _job_cards_section(start_dt: datetime, end_dt: datetime) -> dict:
    jobs = (
        db.session.query(JobCard)
        .filter(JobCard.in_date >= start_dt, JobCard.in_date <= end_dt)
        .all()
    )

    counts = {status.value.lower(): 0 for status in JobStatus}
    by_template: dict[str, int] = defaultdict(int)
    revenue = advances = pending = labour = parts = 0

    for job in jobs:
        key = (job.status or JobStatus.OPEN.value).lower()
        counts[key] = counts.get(key, 0) + 1
        revenue += job.grand_total_cents or 0
        advances += job.advance_paid_cents or 0
        pending += job.pending_amount_cents or 0
        labour += job.labour_total_cents or 0
        parts += job.parts_total_cents or 0
        by_template[job.template_used or DEFAULT_TEMPLATE] += 1

    total = len(jobs)
    return {
        "total": total,
        **counts,
        "total_revenue": to_major(revenue),
        "total_advances": to_major(advances),
        "total_pending": to_major(pending),
        "labour_total": to_major(labour),
        "parts_total": to_major(parts),
        "labour_percentage": percentage(labour, labour + parts),
        "parts_percentage": percentage(parts, labour + parts),
        "avg_job_value": to_major(revenue) / total if total else 0,
        "by_template": dict(sorted(by_template.items())),
    }


def _vendors_section(start_dt: datetime, end_dt: datetime, top_limit: int) -> dict:
    vendors = db.session.query(Vendor).filter(Vendor.is_active.is_(True)).all()
    vendor_ids = [v.id for v in vendors]

    dues: dict[int, int] = {}
    if vendor_ids:
        rows = (
            db.session.query(
                VendorBill.vendor_id,
                func.sum(VendorBill.amount_cents - VendorBill.amount_paid_cents),
            )
            .filter(VendorBill.vendor_id.in_(vendor_ids))
            .group_by(VendorBill.vendor_id)
            .all()
        )
        dues = {vendor_id: int(due or 0) for vendor_id, due in rows}

    bills_in_range = []
    if vendor_ids:
        bills_in_range = (
            db.session.query(VendorBill)
            .filter(
                VendorBill.vendor_id.in_(vendor_ids),
                VendorBill.date >= start_dt,
                VendorBill.date <= end_dt,
            )
            .all()
        )

    by_status = {status.value.lower(): 0 for status in VendorBillStatus}
    bills_per_vendor: dict[int, int] = defaultdict(int)
    billed = paid = 0
    for bill in bills_in_range:
        by_status[bill_status(bill).value.lower()] += 1
        bills_per_vendor[bill.vendor_id] += 1
        billed += bill.amount_cents
        paid += bill.amount_paid_cents or 0

    owing = sorted(
        (v for v in vendors if dues.get(v.id, 0) > 0),
        key=lambda v: (-dues[v.id], v.name.lower(), v.id),
    )
    top = [
        {
            "id": v.id,
            "name": v.name,
            "total_due": to_major(dues[v.id]),
            "bills_count": bills_per_vendor.get(v.id, 0),
        }
        for v in owing[:top_limit]
    ]

    return {
        "total_active": len(vendors),
        "total_due": to_major(sum(dues.values())),
        "bills_amount": to_major(billed),
        "payments_amount": to_major(paid),
        "bills_by_status": by_status,
        "top_vendors_due": top,
    }


def _inventory_section() -> dict:
    levels = inventory_service.stock_levels()
    low = inventory_service.low_stock_items()
    return {
        "total_items": len(levels),
        "low_stock_count": len(low),
        "out_of_stock_count": sum(1 for stock in levels.values() if stock <= 0),
        "low_stock_items": low,
    }


def _daily_series(sales_by_day: dict[str, int], expenses_by_day: dict[str, int]) -> list[dict]:
    days = sorted(set(sales_by_day) | set(expenses_by_day))
    series = []
    for day in days:
        s = sales_by_day.get(day, 0)
        e = expenses_by_day.get(day, 0)
        series.append({"date": day, "sales": to_major(s), "expenses": to_major(e), "profit": to_major(s - e)})
    return series


# ----------------------------------------------------------------------
# Public reports
# ----------------------------------------------------------------------

def dashboard(start=None, end=None) -> dict:
    """One structured snapshot of the business for [start, end]."""
    tz_name = _business_tz()
    buckets = _buckets()
    start_dt, end_dt = resolve_range(start, end, tz_name=tz_name)

    sale_versions = sale_ledger().current_versions(start_dt, end_dt)
    expense_versions = expense_ledger().current_versions(start_dt, end_dt)

    sales, money_tracking, sales_by_day, total_sales = _sales_section(sale_versions, tz_name, buckets)
    expenses, expenses_by_day, total_expenses = _expenses_section(expense_versions, tz_name)

    net = total_sales - total_expenses

    return {
        "range": _range_payload(start_dt, end_dt, tz_name),
        "kpis": {
            "total_sales": to_major(total_sales),
            "total_expenses": to_major(total_expenses),
            "net_profit": to_major(net),
            "profit_margin": percentage(net, total_sales),
            "expense_ratio": percentage(total_expenses, total_sales),
            "cash_in": to_major(total_sales),
            "cash_out": to_major(total_expenses),
            "net_cash_flow": to_major(net),
        },
        "sales": sales,
        "expenses": expenses,
        "money_tracking": money_tracking,
        "job_cards": _job_cards_section(start_dt, end_dt),
        "vendors": _vendors_section(start_dt, end_dt, current_app.config.get("TOP_VENDORS_LIMIT", 5)),
        "inventory": _inventory_section(),
        "recent_activity": [
            entry.to_dict()
            for entry in audit_service.recent(current_app.config.get("RECENT_ACTIVITY_LIMIT", 20))
        ],
        "trends": {"daily": _daily_series(sales_by_day, expenses_by_day)},
    }


def cashflow(start=None, end=None) -> dict:
    """
    Money received (sales, by receiver) and paid (expenses, by PAID_BY tag)
    per configured counterparty bucket, plus "untracked".

    Unlike the dashboard, a missing bound is open-ended: no from/to means
    all time.
    """
    tz_name = _business_tz()
    buckets = _buckets()

    start_dt, end_dt = open_range(start, end, tz_name=tz_name)

    received = buckets.empty_totals()
    paid = buckets.empty_totals()

    for v in sale_ledger().current_versions(start_dt, end_dt):
        received[buckets.bucket_for(v.received_by)] += v.amount_cents
    for v in expense_ledger().current_versions(start_dt, end_dt):
        paid[buckets.bucket_for(extract_paid_by(v.note))] += v.amount_cents

    return {
        "range": {"from": to_utc_z(start_dt), "to": to_utc_z(end_dt), "timezone": tz_name},
        "buckets": {
            name: {
                "received": to_major(received[name]),
                "paid": to_major(paid[name]),
                "net": to_major(received[name] - paid[name]),
            }
            for name in received
        },
    }
