# Overview: Pytest coverage for dashboard and cash-flow aggregation.

from datetime import date, datetime

import pytest

from conftest import make_expense, make_sale
from workshop_ledger.extensions import db
from workshop_ledger.models import JobCard
from workshop_ledger.services import (
    expense_service,
    inventory_service,
    reporting_service,
    sales_service,
    vendor_service,
)
from workshop_ledger.validation import ValidationError


JAN = ("2026-01-01", "2026-01-31")


def _job(number, status, in_date, *, labour=0, parts=0, advance=0, template=None):
    job = JobCard(
        job_number=number,
        customer_name="Customer " + number,
        in_date=in_date,
        status=status,
        labour_total_cents=labour,
        parts_total_cents=parts,
        grand_total_cents=labour + parts,
        advance_paid_cents=advance,
        pending_amount_cents=labour + parts - advance,
        template_used=template,
    )
    db.session.add(job)
    db.session.commit()
    return job


class TestResolveRange:
    def test_default_is_current_month(self):
        start, end = reporting_service.resolve_range(tz_name="UTC", today=date(2026, 2, 14))

        assert start == datetime(2026, 2, 1, 0, 0, 0)
        assert end == datetime(2026, 2, 28, 23, 59, 59, 999000)

    def test_bounds_follow_business_timezone(self):
        start, end = reporting_service.resolve_range("2026-01-10", "2026-01-10", tz_name="Asia/Kolkata")

        assert start == datetime(2026, 1, 9, 18, 30, 0)
        assert end == datetime(2026, 1, 10, 18, 29, 59, 999000)

    def test_malformed_date_rejected(self):
        with pytest.raises(ValidationError):
            reporting_service.resolve_range("10/01/2026", None, tz_name="UTC")

    def test_reversed_range_rejected(self):
        with pytest.raises(ValidationError):
            reporting_service.resolve_range("2026-02-01", "2026-01-01", tz_name="UTC")


class TestOpenRange:
    def test_missing_bounds_stay_open(self):
        assert reporting_service.open_range(tz_name="UTC") == (None, None)

    def test_single_bound(self):
        start, end = reporting_service.open_range("2026-01-10", None, tz_name="Asia/Kolkata")

        assert start == datetime(2026, 1, 9, 18, 30, 0)
        assert end is None

    def test_reversed_and_malformed(self):
        with pytest.raises(ValidationError):
            reporting_service.open_range("2026-02-01", "2026-01-01", tz_name="UTC")
        with pytest.raises(ValidationError):
            reporting_service.open_range(None, "yesterday", tz_name="UTC")


class TestDashboardTotals:
    def test_empty_range_gives_zeros(self, db_session):
        report = reporting_service.dashboard(*JAN)

        assert report["kpis"] == {
            "total_sales": 0,
            "total_expenses": 0,
            "net_profit": 0,
            "profit_margin": 0,
            "expense_ratio": 0,
            "cash_in": 0,
            "cash_out": 0,
            "net_cash_flow": 0,
        }
        assert report["sales"]["by_category"] == []
        assert report["expenses"]["by_paid_by"] == []
        assert report["trends"]["daily"] == []
        assert report["job_cards"]["total"] == 0
        assert report["job_cards"]["labour_percentage"] == 0

    def test_kpis(self, db_session):
        make_sale(amount=1000)
        make_expense(amount=250)

        kpis = reporting_service.dashboard(*JAN)["kpis"]
        assert kpis["total_sales"] == 1000
        assert kpis["total_expenses"] == 250
        assert kpis["net_profit"] == 750
        assert kpis["profit_margin"] == pytest.approx(0.75)
        assert kpis["expense_ratio"] == pytest.approx(0.25)
        assert kpis["net_cash_flow"] == 750

    def test_amended_sale_counted_once_at_current_values(self, db_session):
        sale = make_sale(amount=400, category="Wash")
        sales_service.amend_sale(sale.id, {"amount": 500, "category": "Detailing"})

        sales = reporting_service.dashboard(*JAN)["sales"]
        assert sales["total"] == 500
        assert sales["count"] == 1
        assert sales["by_category"] == [{"key": "Detailing", "amount": 500, "percentage": 1.0}]

    def test_amended_date_moves_record_between_ranges(self, db_session):
        sale = make_sale(amount=300)
        sales_service.amend_sale(sale.id, {"date": "2026-02-05T10:00:00Z"})

        assert reporting_service.dashboard(*JAN)["sales"]["total"] == 0
        assert reporting_service.dashboard("2026-02-01", "2026-02-28")["sales"]["total"] == 300

    def test_deleted_sale_disappears(self, db_session):
        sale = make_sale(amount=300)
        sales_service.delete_sale(sale.id)

        assert reporting_service.dashboard(*JAN)["sales"]["count"] == 0

    def test_day_boundary_uses_business_timezone(self, app, db_session, monkeypatch):
        monkeypatch.setitem(app.config, "BUSINESS_TIMEZONE", "Asia/Kolkata")
        # 01:30 on Feb 1st in India
        make_sale(amount=100, date="2026-01-31T20:00:00Z")

        assert reporting_service.dashboard(*JAN)["sales"]["total"] == 0
        feb = reporting_service.dashboard("2026-02-01", "2026-02-28")
        assert feb["sales"]["total"] == 100
        assert feb["trends"]["daily"][0]["date"] == "2026-02-01"
        assert feb["range"]["timezone"] == "Asia/Kolkata"

    def test_report_is_repeatable(self, db_session):
        make_sale(amount=120, category="Wash")
        make_expense(amount=40, paid_by="Nitesh")

        assert reporting_service.dashboard(*JAN) == reporting_service.dashboard(*JAN)


class TestGrouping:
    def test_grouped_sorted_by_amount_then_key(self, db_session):
        make_sale(amount=300, category="Wash")
        make_sale(amount=700, category="Polish")
        make_sale(amount=200, category="Wash")
        make_sale(amount=500, category="Ceramic")
        make_sale(amount=100)

        rows = reporting_service.dashboard(*JAN)["sales"]["by_category"]
        assert [r["key"] for r in rows] == ["Polish", "Ceramic", "Wash", "Uncategorized"]
        assert rows[0]["percentage"] == pytest.approx(700 / 1800)
        assert sum(r["percentage"] for r in rows) == pytest.approx(1.0)

    def test_payment_mode_grouping(self, db_session):
        make_sale(amount=100, payment_mode="upi")
        make_sale(amount=300, payment_mode="CASH")

        rows = reporting_service.dashboard(*JAN)["sales"]["by_payment_mode"]
        assert [(r["key"], r["amount"]) for r in rows] == [("CASH", 300), ("UPI", 100)]

    def test_advances_split_out_of_expenses(self, db_session):
        make_expense(amount=300, category="Staff Advance")
        make_expense(amount=200, category="Parts", vendor="Sharma Auto Parts")
        make_expense(amount=50, category="Tea")

        expenses = reporting_service.dashboard(*JAN)["expenses"]
        assert expenses["total"] == 550
        assert expenses["advance_expenses"] == 300
        assert expenses["other_expenses"] == 250
        assert [r["key"] for r in expenses["by_vendor"]] == ["No Vendor", "Sharma Auto Parts"]

    def test_expenses_grouped_by_payer(self, db_session):
        make_expense(amount=100, paid_by="Tanmeet", note="Coolant")
        make_expense(amount=50)

        rows = reporting_service.dashboard(*JAN)["expenses"]["by_paid_by"]
        assert [(r["key"], r["amount"]) for r in rows] == [("Tanmeet", 100), ("Unknown", 50)]

    def test_money_tracking_and_receivers(self, db_session):
        make_sale(amount=100, received_by="nitesh")
        make_sale(amount=200, received_by="Bank")
        make_sale(amount=50, received_by="Ravi")
        make_sale(amount=25)

        report = reporting_service.dashboard(*JAN)
        assert report["money_tracking"] == {
            "Nitesh": 100,
            "Tanmeet": 0,
            "Bank Account": 200,
            "untracked": 75,
        }
        receivers = [(r["key"], r["amount"]) for r in report["sales"]["by_receiver"]]
        assert receivers == [("Bank", 200), ("nitesh", 100), ("Ravi", 50), ("Unknown", 25)]

    def test_daily_series_ascending(self, db_session):
        make_sale(amount=100, date="2026-01-10T10:00:00Z")
        make_sale(amount=50, date="2026-01-05T10:00:00Z")
        make_expense(amount=30, date="2026-01-07T10:00:00Z")

        daily = reporting_service.dashboard(*JAN)["trends"]["daily"]
        assert [d["date"] for d in daily] == ["2026-01-05", "2026-01-07", "2026-01-10"]
        assert daily[1] == {"date": "2026-01-07", "sales": 0, "expenses": 30, "profit": -30}


class TestCurrentStateSections:
    def test_low_stock_and_vendor_dues_ignore_range(self, db_session):
        item = inventory_service.create_item({"name": "Brake Pads", "min_stock": 5})
        inventory_service.record_transaction(item.id, "IN", 2, date="2025-03-01T00:00:00Z")
        vendor = vendor_service.create_vendor("Sharma Auto Parts")
        vendor_service.record_bill(vendor.id, 900, 400, "CASH", date="2025-06-01T00:00:00Z")

        report = reporting_service.dashboard(*JAN)

        assert report["inventory"]["low_stock_count"] == 1
        assert report["inventory"]["low_stock_items"][0]["name"] == "Brake Pads"
        assert report["vendors"]["total_due"] == 500
        assert report["vendors"]["top_vendors_due"] == [
            {"id": vendor.id, "name": "Sharma Auto Parts", "total_due": 500, "bills_count": 0}
        ]
        # bill activity itself is range filtered
        assert report["vendors"]["bills_amount"] == 0
        assert report["vendors"]["bills_by_status"] == {"pending": 0, "partial": 0, "paid": 0}

    def test_vendor_bills_in_range(self, db_session):
        vendor = vendor_service.create_vendor("Sharma Auto Parts")
        vendor_service.record_bill(vendor.id, 900, 400, "CASH", date="2026-01-03T00:00:00Z")
        vendor_service.record_bill(vendor.id, 100, date="2026-01-04T00:00:00Z")

        section = reporting_service.dashboard(*JAN)["vendors"]
        assert section["total_active"] == 1
        assert section["bills_amount"] == 1000
        assert section["payments_amount"] == 400
        assert section["bills_by_status"] == {"pending": 1, "partial": 1, "paid": 0}
        assert section["top_vendors_due"][0]["bills_count"] == 2

    def test_job_cards_section(self, db_session):
        _job("JC-1", "OPEN", datetime(2026, 1, 5, 10), labour=60000, parts=40000, advance=20000, template="WASHING")
        _job("JC-2", "DELIVERED", datetime(2026, 1, 20, 10), labour=100000, parts=200000)
        _job("JC-3", "OPEN", datetime(2026, 3, 1, 10), labour=5000)

        jobs = reporting_service.dashboard(*JAN)["job_cards"]
        assert jobs["total"] == 2
        assert (jobs["open"], jobs["delivered"], jobs["in_progress"]) == (1, 1, 0)
        assert jobs["total_revenue"] == 4000
        assert jobs["total_advances"] == 200
        assert jobs["total_pending"] == 3800
        assert jobs["labour_percentage"] == pytest.approx(0.4)
        assert jobs["parts_percentage"] == pytest.approx(0.6)
        assert jobs["avg_job_value"] == 2000
        assert jobs["by_template"] == {"GENERAL": 1, "WASHING": 1}

    def test_recent_activity_newest_first(self, db_session):
        make_sale(amount=10)
        make_expense(amount=5)

        activity = reporting_service.dashboard(*JAN)["recent_activity"]
        assert [a["entity_type"] for a in activity[:2]] == ["EXPENSE", "SALE"]


class TestCashflow:
    def test_buckets_received_and_paid(self, db_session):
        make_sale(amount=1000, received_by="Nitesh", date="2025-12-20T10:00:00Z")
        make_sale(amount=400, received_by="bank account")
        make_sale(amount=60, received_by="Ravi")
        make_expense(amount=300, paid_by="Nitesh")
        make_expense(amount=80)

        buckets = reporting_service.cashflow()["buckets"]
        assert buckets["Nitesh"] == {"received": 1000, "paid": 300, "net": 700}
        assert buckets["Bank Account"] == {"received": 400, "paid": 0, "net": 400}
        assert buckets["Tanmeet"] == {"received": 0, "paid": 0, "net": 0}
        assert buckets["untracked"] == {"received": 60, "paid": 80, "net": -20}

    def test_amended_expense_counted_once(self, db_session):
        expense = make_expense(amount=300, paid_by="Tanmeet")
        expense_service.amend_expense(expense.id, {"amount": 350})

        assert reporting_service.cashflow()["buckets"]["Tanmeet"]["paid"] == 350

    def test_bounds_filter_by_current_date(self, db_session):
        make_sale(amount=1000, received_by="Nitesh", date="2025-12-20T10:00:00Z")
        make_sale(amount=200, received_by="Nitesh")

        report = reporting_service.cashflow("2026-01-01", None)
        assert report["buckets"]["Nitesh"]["received"] == 200
        assert report["range"]["to"] is None

    def test_reversed_bounds_rejected(self, db_session):
        with pytest.raises(ValidationError):
            reporting_service.cashflow("2026-02-01", "2026-01-01")
