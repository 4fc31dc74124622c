# Overview: Pytest coverage for the record store backends and their selection.

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from meatbook import create_app
from meatbook.services import purchase_service, reporting_service, sales_service, vendor_service
from meatbook.services.record_store import (
    InMemoryRecordStore,
    SqlAlchemyRecordStore,
    StoreUnavailableError,
    get_record_store,
)
from meatbook.services.records import PurchaseRecord, VendorRecord
from meatbook.services.summary_service import build_daily_summary


class BrokenSession:
    """Session stand-in whose every query fails like a dropped connection."""

    def __init__(self):
        self.rolled_back = False

    def query(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    def rollback(self):
        self.rolled_back = True


@pytest.fixture
def day_of_trade(user, vendor):
    payload = {"vendor_id": vendor.id, "quantity_kg": "10", "rate_per_kg": "100", "date": "2024-05-01"}
    purchase_service.create_purchase(user_id=user.id, payload=payload)
    purchase_service.create_purchase(user_id=user.id, payload={**payload, "date": "2024-05-02"})
    sales_service.create_retail_sale(
        user_id=user.id, payload={"quantity_kg": "3", "rate_per_kg": "130", "date": "2024-05-01"}
    )
    sales_service.create_hotel_sale(
        user_id=user.id,
        payload={
            "hotel_name": "Hotel Saravana",
            "date": "2024-05-01",
            "items": [
                {"product_cut": "whole", "quantity_kg": "2", "rate_per_kg": "120"},
                {"product_cut": "whole", "quantity_kg": "1", "rate_per_kg": "125"},
            ],
        },
    )
    vendor_service.create_vendor_payment(user_id=user.id, vendor_id=vendor.id, amount="300", day="2024-05-01")


class TestSqlAlchemyRecordStore:

    def test_day_filter_uses_calendar_day(self, user, day_of_trade):
        store = SqlAlchemyRecordStore()
        purchases = store.get_purchases(user.id, date(2024, 5, 1))

        assert len(purchases) == 1
        assert purchases[0].vendor_name == "Sri Poultry Farm"
        assert purchases[0].total == Decimal("1000")
        assert len(store.get_purchases(user.id)) == 2

    def test_hotel_sales_resolve_items(self, user, day_of_trade):
        (bill,) = SqlAlchemyRecordStore().get_hotel_sales(user.id, date(2024, 5, 1))
        assert [item.quantity_kg for item in bill.items] == [Decimal("2"), Decimal("1")]
        assert bill.total_amount == Decimal("365")

    def test_payments_filtered_by_vendor(self, user, vendor, day_of_trade):
        store = SqlAlchemyRecordStore()
        assert len(store.get_vendor_payments(user.id, vendor.id, date(2024, 5, 1))) == 1
        assert store.get_vendor_payments(user.id, vendor.id + 1) == []

    def test_scoped_to_user(self, other_user, day_of_trade):
        store = SqlAlchemyRecordStore()
        assert store.get_purchases(other_user.id) == []
        assert store.get_retail_sales(other_user.id) == []

    def test_vendor_read_and_update(self, vendor, day_of_trade):
        store = SqlAlchemyRecordStore()
        record = store.get_vendor(vendor.id)
        assert record.balance == Decimal("1700")

        updated = store.update_vendor(vendor.id, notes="pays on Fridays")
        assert updated.notes == "pays on Fridays"
        assert store.get_vendor(999) is None
        assert store.update_vendor(999, notes="x") is None

    def test_matches_in_memory_backend(self, user, day_of_trade):
        """Both backends feed the same summary code and must agree."""
        sql_store = SqlAlchemyRecordStore()
        memory = InMemoryRecordStore()
        for record in (
            sql_store.get_purchases(user.id)
            + sql_store.get_retail_sales(user.id)
            + sql_store.get_hotel_sales(user.id)
            + sql_store.get_vendor_payments(user.id)
        ):
            memory.add(record)

        day = date(2024, 5, 1)
        assert build_daily_summary(memory, user.id, day).to_dict() == \
            build_daily_summary(sql_store, user.id, day).to_dict()

    def test_failure_is_not_an_empty_day(self):
        session = BrokenSession()
        store = SqlAlchemyRecordStore(session)

        with pytest.raises(StoreUnavailableError):
            build_daily_summary(store, 1, date(2024, 5, 1))
        assert session.rolled_back


class TestInMemoryRecordStore:

    def test_rejects_unknown_record(self):
        with pytest.raises(TypeError):
            InMemoryRecordStore().add(object())

    def test_update_vendor_replaces_record(self):
        store = InMemoryRecordStore()
        store.add(VendorRecord(id=1, user_id=1, name="Sri Poultry Farm", phone="1", balance=Decimal("0")))

        updated = store.update_vendor(1, balance=Decimal("500"))
        assert updated.balance == Decimal("500")
        assert store.get_vendor(1).balance == Decimal("500")
        assert store.update_vendor(2, balance=Decimal("1")) is None

    def test_insertion_order_kept(self):
        store = InMemoryRecordStore()
        for pid in (3, 1, 2):
            store.add(PurchaseRecord(
                id=pid, user_id=1, vendor_id=1, meat_type="chicken", product_cut="whole",
                quantity_kg=Decimal("1"), rate_per_kg=Decimal("1"), total=Decimal("1"),
                date=date(2024, 5, 1), timestamp=datetime(2024, 5, 1, 6),
            ))
        assert [p.id for p in store.get_purchases(1, date(2024, 5, 1))] == [3, 1, 2]


class TestStoreSelection:

    def test_default_is_sqlalchemy(self, app):
        assert isinstance(get_record_store(), SqlAlchemyRecordStore)

    def test_memory_backend_cannot_be_configured(self, app, monkeypatch):
        """Services write through SQLAlchemy, so a memory-backed report would read an empty day."""
        monkeypatch.setitem(app.config, "RECORD_STORE", "memory")
        with pytest.raises(ValueError, match="memory"):
            get_record_store()

    def test_unknown_store_name(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "RECORD_STORE", "firebase")
        with pytest.raises(ValueError):
            get_record_store()

    def test_app_refuses_memory_backend_at_startup(self):
        with pytest.raises(ValueError, match="RECORD_STORE"):
            create_app({
                "TESTING": True,
                "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
                "RECORD_STORE": "memory",
            })

    def test_reports_see_written_records(self, user, vendor):
        purchase_service.create_purchase(
            user_id=user.id,
            payload={"vendor_id": vendor.id, "quantity_kg": "100", "rate_per_kg": "150", "date": "2024-05-01"},
        )
        report = reporting_service.daily_report(user.id, "2024-05-01")
        assert report["total_purchased_kg"] == "100.000"
