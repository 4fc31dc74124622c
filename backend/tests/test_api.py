# Overview: Pytest coverage for the HTTP API through the Flask test client.

"""
API tests

Verifies:
- Unauthenticated requests return 401
- Register/login issue a working bearer token
- Vendor, purchase, sale and payment routes keep the vendor balance right
- Report routes return string decimals and map errors to 400/503
"""

import pytest

from meatbook.services import reporting_service
from meatbook.services.record_store import RecordStore, StoreUnavailableError

from conftest import get_auth_token


DAY = "2024-05-01"


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/vendors"),
            ("POST", "/api/vendors"),
            ("GET", "/api/vendors/payments"),
            ("GET", "/api/hotels"),
            ("GET", "/api/purchases"),
            ("POST", "/api/sales/retail"),
            ("GET", "/api/sales/hotel"),
            ("GET", "/api/report/daily"),
            ("GET", "/api/report/aggregate"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/vendors", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401


# =============================================================================
# AUTH
# =============================================================================


class TestAuth:

    def test_register_login_and_use_token(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "username": "kumar", "email": "kumar@example.com", "password": "Kadai2024",
        })
        assert resp.status_code == 201
        assert "password_hash" not in resp.json["user"]

        token = get_auth_token(client, "kumar", "Kadai2024")
        assert token

        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json["user"]["username"] == "kumar"

    def test_duplicate_username(self, client, user):
        resp = client.post("/api/auth/register", json={
            "username": "ravi", "email": "other@example.com", "password": "Chicken123",
        })
        assert resp.status_code == 409

    def test_weak_password(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "username": "weak", "email": "weak@example.com", "password": "short",
        })
        assert resp.status_code == 400

    def test_wrong_password(self, client, user):
        resp = client.post("/api/auth/login", json={"username": "ravi", "password": "Wrong1234"})
        assert resp.status_code == 401

    def test_logout_revokes_token(self, client, auth_headers):
        assert client.post("/api/auth/logout", headers=auth_headers).status_code == 200
        assert client.get("/api/vendors", headers=auth_headers).status_code == 401


# =============================================================================
# VENDORS, PURCHASES, PAYMENTS
# =============================================================================


class TestVendorFlow:

    def _vendor(self, client, headers):
        resp = client.post("/api/vendors", headers=headers, json={
            "name": "Sri Poultry Farm", "phone": "9876543210", "specializations": ["chicken"],
        })
        assert resp.status_code == 201
        return resp.json

    def test_balance_through_api(self, client, auth_headers):
        vendor = self._vendor(client, auth_headers)
        assert vendor["balance"] == "0.00"

        resp = client.post("/api/purchases", headers=auth_headers, json={
            "vendor_id": vendor["id"], "quantity_kg": "5", "rate_per_kg": "100", "date": DAY,
        })
        assert resp.status_code == 201
        assert resp.json["total"] == "500.00"

        resp = client.post("/api/vendors/payments", headers=auth_headers, json={
            "vendor_id": vendor["id"], "amount": "200", "date": DAY,
        })
        assert resp.status_code == 201
        payment_id = resp.json["id"]
        assert resp.json["vendor_name"] == "Sri Poultry Farm"

        assert client.get(f"/api/vendors/{vendor['id']}", headers=auth_headers).json["balance"] == "300.00"

        resp = client.delete(f"/api/vendors/payments/{payment_id}", headers=auth_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/vendors/{vendor['id']}", headers=auth_headers).json["balance"] == "500.00"

    def test_payment_validation(self, client, auth_headers):
        vendor = self._vendor(client, auth_headers)
        resp = client.post("/api/vendors/payments", headers=auth_headers, json={
            "vendor_id": vendor["id"], "amount": "-5",
        })
        assert resp.status_code == 400

        resp = client.post("/api/vendors/payments", headers=auth_headers, json={
            "vendor_id": 9999, "amount": "5",
        })
        assert resp.status_code == 404

    def test_payment_list_filters(self, client, auth_headers):
        vendor = self._vendor(client, auth_headers)
        for amount, day in (("10", "2024-05-01"), ("20", "2024-05-02")):
            client.post("/api/vendors/payments", headers=auth_headers, json={
                "vendor_id": vendor["id"], "amount": amount, "date": day,
            })

        resp = client.get(f"/api/vendors/payments?vendor_id={vendor['id']}&date=2024-05-02", headers=auth_headers)
        assert resp.status_code == 200
        assert [p["amount"] for p in resp.json["items"]] == ["20.00"]

        resp = client.get("/api/vendors/payments?date=yesterday", headers=auth_headers)
        assert resp.status_code == 400

    def test_vendor_isolated_between_users(self, client, auth_headers, other_user):
        vendor = self._vendor(client, auth_headers)
        other_token = get_auth_token(client, "meena", "Mutton456")
        resp = client.get(f"/api/vendors/{vendor['id']}", headers={"Authorization": f"Bearer {other_token}"})
        assert resp.status_code == 404

    def test_oversized_rate_is_400(self, client, auth_headers):
        vendor = self._vendor(client, auth_headers)
        resp = client.post("/api/purchases", headers=auth_headers, json={
            "vendor_id": vendor["id"], "quantity_kg": "0", "rate_per_kg": "1e40",
        })
        assert resp.status_code == 400

        resp = client.post("/api/sales/retail", headers=auth_headers, json={
            "quantity_kg": "0", "rate_per_kg": "1e40",
        })
        assert resp.status_code == 400

    def test_delete_vendor_with_history_conflicts(self, client, auth_headers):
        vendor = self._vendor(client, auth_headers)
        client.post("/api/purchases", headers=auth_headers, json={
            "vendor_id": vendor["id"], "quantity_kg": "1", "rate_per_kg": "100",
        })
        assert client.delete(f"/api/vendors/{vendor['id']}", headers=auth_headers).status_code == 409

    def test_update_vendor(self, client, auth_headers):
        vendor = self._vendor(client, auth_headers)
        resp = client.put(f"/api/vendors/{vendor['id']}", headers=auth_headers, json={"notes": "cash only"})
        assert resp.status_code == 200
        assert resp.json["notes"] == "cash only"

        resp = client.put(f"/api/vendors/{vendor['id']}", headers=auth_headers, json={"balance": "0"})
        assert resp.status_code == 400


# =============================================================================
# SALES
# =============================================================================


class TestSalesRoutes:

    @pytest.fixture
    def stocked(self, client, auth_headers, vendor):
        resp = client.post("/api/purchases", headers=auth_headers, json={
            "vendor_id": vendor.id, "quantity_kg": "30", "rate_per_kg": "90", "date": DAY,
        })
        assert resp.status_code == 201

    def test_oversell_is_409_with_details(self, client, auth_headers, stocked):
        resp = client.post("/api/sales/retail", headers=auth_headers, json={
            "quantity_kg": "31", "rate_per_kg": "120", "date": DAY,
        })
        assert resp.status_code == 409
        assert resp.json["details"]["remaining_kg"] == "30.000"

    def test_hotel_bill_and_paid_flag(self, client, auth_headers, stocked):
        resp = client.post("/api/sales/hotel", headers=auth_headers, json={
            "hotel_name": "Hotel Saravana",
            "date": DAY,
            "items": [
                {"quantity_kg": "20", "rate_per_kg": "100"},
                {"quantity_kg": "10", "rate_per_kg": "120"},
            ],
        })
        assert resp.status_code == 201
        bill = resp.json
        assert bill["total_amount"] == "3200.00"
        assert len(bill["items"]) == 2

        resp = client.patch(f"/api/sales/hotel/{bill['id']}/paid", headers=auth_headers, json={"is_paid": True})
        assert resp.status_code == 200
        assert resp.json["is_paid"] is True

        resp = client.patch(f"/api/sales/hotel/{bill['id']}/paid", headers=auth_headers, json={"is_paid": "yes"})
        assert resp.status_code == 400

        resp = client.get("/api/sales/hotel?is_paid=false", headers=auth_headers)
        assert resp.json["count"] == 0

    def test_hotel_master_data(self, client, auth_headers, stocked):
        resp = client.post("/api/hotels", headers=auth_headers, json={"name": "Annapoorna", "phone": "0422-555"})
        assert resp.status_code == 201
        hotel_id = resp.json["id"]

        assert client.post("/api/hotels", headers=auth_headers, json={"phone": "1"}).status_code == 400

        resp = client.put(f"/api/hotels/{hotel_id}", headers=auth_headers, json={"address": "RS Puram"})
        assert resp.json["address"] == "RS Puram"

        resp = client.post("/api/sales/hotel", headers=auth_headers, json={
            "hotel_id": hotel_id, "date": DAY, "quantity_kg": "2", "rate_per_kg": "110",
        })
        assert resp.status_code == 201
        assert resp.json["hotel_name"] == "Annapoorna"

        assert client.delete(f"/api/hotels/{hotel_id}", headers=auth_headers).status_code == 409
        assert client.get("/api/hotels/999", headers=auth_headers).status_code == 404

    def test_missing_sale(self, client, auth_headers):
        assert client.delete("/api/sales/retail/77", headers=auth_headers).status_code == 404
        assert client.patch("/api/sales/hotel/77/paid", headers=auth_headers, json={}).status_code == 404


# =============================================================================
# REPORTS
# =============================================================================


class FailingStore(RecordStore):
    def _fail(self, *args, **kwargs):
        raise StoreUnavailableError("Failed to load purchases")

    get_purchases = get_retail_sales = get_hotel_sales = _fail
    get_vendor_payments = get_vendor = update_vendor = _fail


class TestReports:

    @pytest.fixture
    def trading_day(self, client, auth_headers, vendor):
        client.post("/api/purchases", headers=auth_headers, json={
            "vendor_id": vendor.id, "quantity_kg": "100", "rate_per_kg": "150", "date": DAY,
        })
        client.post("/api/sales/retail", headers=auth_headers, json={
            "quantity_kg": "40", "rate_per_kg": "180", "date": DAY,
        })
        client.post("/api/vendors/payments", headers=auth_headers, json={
            "vendor_id": vendor.id, "amount": "5000", "date": DAY,
        })

    def test_daily(self, client, auth_headers, trading_day):
        resp = client.get(f"/api/report/daily?date={DAY}", headers=auth_headers)
        assert resp.status_code == 200

        report = resp.json
        assert report["date"] == DAY
        assert report["total_purchased_kg"] == "100.000"
        assert report["total_retail_profit"] == "1200.00"
        assert report["remaining_kg"] == "60.000"
        assert report["net_profit"] == "1200.00"
        assert report["vendor_payments"] == "5000.00"
        assert [t["type"] for t in report["transactions"]] == ["purchase", "retail", "payment"]
        assert report["inventory"][0]["avg_cost_per_kg"] == "150.0000"

    def test_daily_invalid_date(self, client, auth_headers):
        resp = client.get("/api/report/daily?date=2024-13-45", headers=auth_headers)
        assert resp.status_code == 400

    def test_aggregate(self, client, auth_headers, trading_day):
        resp = client.get("/api/report/aggregate?from=2024-04-30&to=2024-05-02", headers=auth_headers)
        assert resp.status_code == 200

        report = resp.json
        assert [d["date"] for d in report["days"]] == ["2024-04-30", "2024-05-01", "2024-05-02"]
        assert report["totals"]["net_profit"] == "1200.00"
        assert report["totals"]["days"] == 3

    def test_aggregate_single_day_matches_daily(self, client, auth_headers, trading_day):
        daily = client.get(f"/api/report/daily?date={DAY}", headers=auth_headers).json
        ranged = client.get(f"/api/report/aggregate?from={DAY}&to={DAY}", headers=auth_headers).json
        assert ranged["days"] == [daily]

    def test_aggregate_reversed_range_is_empty(self, client, auth_headers):
        resp = client.get("/api/report/aggregate?from=2024-05-03&to=2024-05-01", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json["days"] == []

    def test_aggregate_requires_bounds(self, client, auth_headers):
        assert client.get("/api/report/aggregate?from=2024-05-01", headers=auth_headers).status_code == 400

    def test_aggregate_span_limit(self, app, client, auth_headers, monkeypatch):
        monkeypatch.setitem(app.config, "MAX_REPORT_RANGE_DAYS", 7)
        resp = client.get("/api/report/aggregate?from=2024-05-01&to=2024-05-08", headers=auth_headers)
        assert resp.status_code == 400

    def test_store_failure_is_503(self, client, auth_headers, monkeypatch):
        monkeypatch.setattr(reporting_service, "get_record_store", lambda: FailingStore())
        resp = client.get(f"/api/report/daily?date={DAY}", headers=auth_headers)
        assert resp.status_code == 503
        resp = client.get(f"/api/report/aggregate?from={DAY}&to={DAY}", headers=auth_headers)
        assert resp.status_code == 503


def test_health(client, db_session):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json["checks"]["database"]["status"] == "healthy"
