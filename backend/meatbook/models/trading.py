from __future__ import annotations

from ..extensions import db
from meatbook.decimal_utils import to_json_number
from meatbook.time_utils import to_iso_date, to_utc_z, utcnow


KG = db.Numeric(12, 3, asdecimal=True)
RATE = db.Numeric(12, 2, asdecimal=True)
AMOUNT = db.Numeric(14, 2, asdecimal=True)


class Hotel(db.Model):
    """Wholesale customer (hotel / restaurant) that buys on bills."""
    __tablename__ = "hotels"
    __table_args__ = (
        db.Index("ix_hotels_user_name", "user_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=True)
    address = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Hotel id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class Purchase(db.Model):
    """
    Stock bought from a vendor.

    Immutable once written; the only mutation is delete, which reverses the
    vendor balance delta applied at creation.
    """
    __tablename__ = "purchases"
    __table_args__ = (
        db.Index("ix_purchases_user_date", "user_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)

    meat_type = db.Column(db.String(32), nullable=False)
    product_cut = db.Column(db.String(32), nullable=False)

    quantity_kg = db.Column(KG, nullable=False)
    rate_per_kg = db.Column(RATE, nullable=False)
    total = db.Column(AMOUNT, nullable=False)

    date = db.Column(db.Date, nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)

    vendor = db.relationship("Vendor", backref=db.backref("purchases", lazy=True))

    def __repr__(self) -> str:
        return f"<Purchase id={self.id} vendor_id={self.vendor_id} total={self.total}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor.name if self.vendor else None,
            "meat_type": self.meat_type,
            "product_cut": self.product_cut,
            "quantity_kg": to_json_number(self.quantity_kg),
            "rate_per_kg": to_json_number(self.rate_per_kg),
            "total": to_json_number(self.total),
            "date": to_iso_date(self.date),
            "timestamp": to_utc_z(self.timestamp),
        }


class RetailSale(db.Model):
    __tablename__ = "retail_sales"
    __table_args__ = (
        db.Index("ix_retail_sales_user_date", "user_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    meat_type = db.Column(db.String(32), nullable=False)
    product_cut = db.Column(db.String(32), nullable=False)

    quantity_kg = db.Column(KG, nullable=False)
    rate_per_kg = db.Column(RATE, nullable=False)
    total = db.Column(AMOUNT, nullable=False)

    customer_note = db.Column(db.String(255), nullable=True)

    date = db.Column(db.Date, nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<RetailSale id={self.id} total={self.total}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "meat_type": self.meat_type,
            "product_cut": self.product_cut,
            "quantity_kg": to_json_number(self.quantity_kg),
            "rate_per_kg": to_json_number(self.rate_per_kg),
            "total": to_json_number(self.total),
            "customer_note": self.customer_note,
            "date": to_iso_date(self.date),
            "timestamp": to_utc_z(self.timestamp),
        }


class HotelSale(db.Model):
    """
    One hotel bill.

    quantity_kg and total_amount are the sums of the bill's items, written by
    sales_service when the bill is created. Reports read the items directly.
    """
    __tablename__ = "hotel_sales"
    __table_args__ = (
        db.Index("ix_hotel_sales_user_date", "user_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    hotel_id = db.Column(db.Integer, db.ForeignKey("hotels.id"), nullable=True, index=True)

    # Display name kept on the bill so it survives hotel renames/deletes
    hotel_name = db.Column(db.String(255), nullable=False)
    bill_number = db.Column(db.String(64), nullable=True)
    is_paid = db.Column(db.Boolean, nullable=False, default=False)

    quantity_kg = db.Column(KG, nullable=False, default=0)
    total_amount = db.Column(AMOUNT, nullable=False, default=0)

    date = db.Column(db.Date, nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)

    hotel = db.relationship("Hotel", backref=db.backref("sales", lazy=True))
    items = db.relationship(
        "HotelSaleItem",
        backref="sale",
        order_by="HotelSaleItem.position",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<HotelSale id={self.id} bill_number={self.bill_number!r} total_amount={self.total_amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "hotel_id": self.hotel_id,
            "hotel_name": self.hotel_name,
            "bill_number": self.bill_number,
            "is_paid": self.is_paid,
            "quantity_kg": to_json_number(self.quantity_kg),
            "total_amount": to_json_number(self.total_amount),
            "date": to_iso_date(self.date),
            "timestamp": to_utc_z(self.timestamp),
            "items": [item.to_dict() for item in self.items],
        }


class HotelSaleItem(db.Model):
    __tablename__ = "hotel_sale_items"
    __table_args__ = (
        db.Index("ix_hotel_sale_items_sale_position", "sale_id", "position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("hotel_sales.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    meat_type = db.Column(db.String(32), nullable=False)
    product_cut = db.Column(db.String(32), nullable=False)

    quantity_kg = db.Column(KG, nullable=False)
    rate_per_kg = db.Column(RATE, nullable=False)
    total = db.Column(AMOUNT, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "position": self.position,
            "meat_type": self.meat_type,
            "product_cut": self.product_cut,
            "quantity_kg": to_json_number(self.quantity_kg),
            "rate_per_kg": to_json_number(self.rate_per_kg),
            "total": to_json_number(self.total),
        }
