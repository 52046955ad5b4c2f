# Overview: HTTP-level tests for the API blueprints: status codes, payload shapes, actor header.

from workshop_ledger.models import AuditLog


def _post_sale(client, **overrides):
    body = {"amount": 450, "payment_mode": "UPI", "date": "2026-01-10T10:00:00Z", "category": "Wash"}
    body.update(overrides)
    return client.post("/api/sales", json=body, headers={"X-User-Id": "7"})


class TestSalesApi:
    def test_create_amend_history(self, client, db_session):
        created = _post_sale(client)
        assert created.status_code == 201
        sale = created.get_json()
        assert sale["amount"] == 450
        assert sale["current_version"]["version_number"] == 1

        amended = client.put(f"/api/sales/{sale['id']}", json={"category": "Detailing"})
        assert amended.status_code == 200
        assert amended.get_json()["category"] == "Detailing"
        assert amended.get_json()["amount"] == 450

        history = client.get(f"/api/sales/{sale['id']}/history").get_json()
        assert [v["version_number"] for v in history] == [2, 1]
        assert [v["category"] for v in history] == ["Detailing", "Wash"]

    def test_list_by_range(self, client, db_session):
        _post_sale(client)
        _post_sale(client, date="2026-02-10T10:00:00Z")

        rows = client.get("/api/sales?from=2026-01-01&to=2026-01-31").get_json()
        assert len(rows) == 1

    def test_list_without_range_returns_everything(self, client, db_session):
        _post_sale(client, date="2025-03-10T10:00:00Z")
        _post_sale(client)

        rows = client.get("/api/sales").get_json()
        assert [r["date"] for r in rows] == ["2026-01-10T10:00:00Z", "2025-03-10T10:00:00Z"]

    def test_list_with_one_bound_is_open_on_the_other_side(self, client, db_session):
        _post_sale(client, date="2025-03-10T10:00:00Z")
        _post_sale(client)

        since = client.get("/api/sales?from=2026-01-01").get_json()
        until = client.get("/api/sales?to=2025-12-31").get_json()
        assert [r["date"] for r in since] == ["2026-01-10T10:00:00Z"]
        assert [r["date"] for r in until] == ["2025-03-10T10:00:00Z"]

    def test_validation_error_is_400(self, client, db_session):
        resp = client.post("/api/sales", json={"amount": 10})
        assert resp.status_code == 400
        assert "payment_mode" in resp.get_json()["error"]

        assert client.get("/api/sales?from=garbage").status_code == 400

    def test_missing_sale_is_404(self, client, db_session):
        assert client.get("/api/sales/999").status_code == 404
        assert client.put("/api/sales/999", json={"amount": 1}).status_code == 404
        assert client.delete("/api/sales/999").status_code == 404

    def test_delete(self, client, db_session):
        sale_id = _post_sale(client).get_json()["id"]

        resp = client.delete(f"/api/sales/{sale_id}")
        assert resp.status_code == 200
        assert client.get(f"/api/sales/{sale_id}").status_code == 404


class TestActorHeader:
    def test_actor_reaches_audit_entry(self, client, db_session):
        sale_id = _post_sale(client).get_json()["id"]

        entry = db_session.query(AuditLog).filter_by(entity_type="SALE", entity_id=sale_id).one()
        assert entry.user_id == 7

    def test_non_integer_actor_rejected(self, client, db_session):
        resp = client.post(
            "/api/sales",
            json={"amount": 10, "payment_mode": "CASH"},
            headers={"X-User-Id": "admin"},
        )
        assert resp.status_code == 400
        assert db_session.query(AuditLog).count() == 0


class TestExpensesApi:
    def test_paid_by_round_trip(self, client, db_session):
        resp = client.post(
            "/api/expenses",
            json={"amount": 200, "payment_mode": "CASH", "note": "Paid for parts", "paid_by": "Tanmeet"},
        )
        assert resp.status_code == 201
        expense = resp.get_json()
        assert expense["paid_by"] == "Tanmeet"
        assert expense["note"] == "Paid for parts"

        amended = client.put(f"/api/expenses/{expense['id']}", json={"note": "Paid for filters"}).get_json()
        assert amended["paid_by"] == "Tanmeet"
        assert amended["note"] == "Paid for filters"

    def test_list_without_range_includes_old_expenses(self, client, db_session):
        client.post("/api/expenses", json={"amount": 75, "payment_mode": "CASH", "date": "2024-11-02T08:00:00Z"})

        rows = client.get("/api/expenses").get_json()
        assert [r["amount"] for r in rows] == [75]


class TestInventoryApi:
    def test_transactions_and_stock(self, client, db_session):
        item = client.post("/api/inventory", json={"name": "Engine Oil", "min_stock": 2}).get_json()

        resp = client.post(f"/api/inventory/{item['id']}/transactions", json={"type": "IN", "quantity": 10})
        assert resp.status_code == 201
        assert resp.get_json()["current_stock"] == 10

        resp = client.post(f"/api/inventory/{item['id']}/transactions", json={"type": "OUT", "quantity": 0})
        assert resp.status_code == 400

        body = client.get(f"/api/inventory/{item['id']}").get_json()
        assert body["current_stock"] == 10

    def test_delete_with_transactions_is_409(self, client, db_session):
        item = client.post("/api/inventory", json={"name": "Coolant"}).get_json()
        client.post(f"/api/inventory/{item['id']}/transactions", json={"type": "IN", "quantity": 1})

        resp = client.delete(f"/api/inventory/{item['id']}")
        assert resp.status_code == 409
        body = resp.get_json()
        assert body["retryable"] is False
        assert body["details"] == {"id": item["id"], "transactions": 1}

    def test_low_stock_endpoint(self, client, db_session):
        client.post("/api/inventory", json={"name": "Wiper Blade", "min_stock": 3})

        rows = client.get("/api/inventory/low-stock").get_json()
        assert [r["name"] for r in rows] == ["Wiper Blade"]


class TestVendorsApi:
    def test_bill_and_dues(self, client, db_session):
        vendor = client.post("/api/vendors", json={"name": "Sharma Auto Parts"})
        assert vendor.status_code == 201
        vendor_id = vendor.get_json()["id"]

        bill = client.post(
            f"/api/vendors/{vendor_id}/bills",
            json={"amount": 1000, "amount_paid": 250, "payment_mode": "UPI", "invoice_number": "INV-9"},
        )
        assert bill.status_code == 201
        assert bill.get_json()["status"] == "PARTIAL"

        body = client.get(f"/api/vendors/{vendor_id}").get_json()
        assert body["total_due"] == 750
        assert len(body["bills"]) == 1

    def test_update_and_delete_bill(self, client, db_session):
        vendor_id = client.post("/api/vendors", json={"name": "Sharma Auto Parts"}).get_json()["id"]
        bill_id = client.post(f"/api/vendors/{vendor_id}/bills", json={"amount": 1000}).get_json()["id"]

        resp = client.put(
            f"/api/vendors/{vendor_id}/bills/{bill_id}",
            json={"amount_paid": 1000, "payment_mode": "CASH", "create_expense": True, "paid_by": "Nitesh"},
        )
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "PAID"
        assert body["related_expense_id"] is not None

        expense = client.get(f"/api/expenses/{body['related_expense_id']}").get_json()
        assert expense["paid_by"] == "Nitesh"

        assert client.delete(f"/api/vendors/{vendor_id}/bills/{bill_id}").status_code == 200
        assert client.get(f"/api/expenses/{body['related_expense_id']}").status_code == 404
        assert client.get(f"/api/vendors/{vendor_id}").get_json()["bills"] == []

    def test_bill_of_other_vendor_is_404(self, client, db_session):
        first = client.post("/api/vendors", json={"name": "Sharma Auto Parts"}).get_json()["id"]
        second = client.post("/api/vendors", json={"name": "Mehta Tyres"}).get_json()["id"]
        bill_id = client.post(f"/api/vendors/{first}/bills", json={"amount": 100}).get_json()["id"]

        assert client.put(f"/api/vendors/{second}/bills/{bill_id}", json={"amount": 50}).status_code == 404
        assert client.delete(f"/api/vendors/{second}/bills/{bill_id}").status_code == 404

    def test_overpaid_bill_is_400(self, client, db_session):
        vendor_id = client.post("/api/vendors", json={"name": "Sharma Auto Parts"}).get_json()["id"]

        resp = client.post(
            f"/api/vendors/{vendor_id}/bills",
            json={"amount": 100, "amount_paid": 200, "payment_mode": "CASH"},
        )
        assert resp.status_code == 400


class TestReportsApi:
    def test_dashboard(self, client, db_session):
        _post_sale(client)

        resp = client.get("/api/reports/dashboard?from=2026-01-01&to=2026-01-31")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["kpis"]["total_sales"] == 450
        assert set(body) >= {"range", "kpis", "sales", "expenses", "money_tracking", "trends"}

    def test_dashboard_bad_range_is_400(self, client, db_session):
        resp = client.get("/api/reports/dashboard?from=2026-02-01&to=2026-01-01")
        assert resp.status_code == 400

    def test_cashflow(self, client, db_session):
        _post_sale(client, received_by="Nitesh")

        body = client.get("/api/reports/cashflow").get_json()
        assert body["buckets"]["Nitesh"]["received"] == 450

    def test_audit_recent(self, client, db_session):
        _post_sale(client)
        _post_sale(client)

        rows = client.get("/api/audit/recent?limit=1").get_json()
        assert len(rows) == 1
        assert rows[0]["action"] == "CREATE"


class TestHealth:
    def test_health(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["details"]["sales"] == 0
