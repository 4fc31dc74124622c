from __future__ import annotations

from ..extensions import db
from meatbook.decimal_utils import to_json_number
from meatbook.time_utils import to_iso_date, to_utc_z, utcnow


class Vendor(db.Model):
    """
    Supplier the business buys meat from.

    BALANCE: amount currently owed to the vendor.
    - Purchase create adds purchase.total, purchase delete subtracts it
    - VendorPayment create subtracts payment.amount, payment delete adds it back
    Both sides are applied in the same DB transaction as the triggering row,
    so balance == SUM(purchases.total) - SUM(vendor_payments.amount) always.

    version_id_col makes a lost read-modify-write on balance fail with
    StaleDataError instead of silently overwriting.
    """
    __tablename__ = "vendors"
    __table_args__ = (
        db.Index("ix_vendors_user_name", "user_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=False)
    notes = db.Column(db.Text, nullable=True)

    # e.g. ["chicken", "goat"]
    specializations = db.Column(db.JSON, nullable=True)

    balance = db.Column(db.Numeric(14, 2, asdecimal=True), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Vendor id={self.id} name={self.name!r} user_id={self.user_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "phone": self.phone,
            "notes": self.notes,
            "specializations": list(self.specializations or []),
            "balance": to_json_number(self.balance),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class VendorPayment(db.Model):
    __tablename__ = "vendor_payments"
    __table_args__ = (
        db.Index("ix_vendor_payments_user_date", "user_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)

    amount = db.Column(db.Numeric(14, 2, asdecimal=True), nullable=False)
    notes = db.Column(db.Text, nullable=True)

    # Business day the payment belongs to; distinct from the creation instant
    date = db.Column(db.Date, nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)

    vendor = db.relationship("Vendor", backref=db.backref("payments", lazy=True))

    def __repr__(self) -> str:
        return f"<VendorPayment id={self.id} vendor_id={self.vendor_id} amount={self.amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor.name if self.vendor else None,
            "amount": to_json_number(self.amount),
            "notes": self.notes,
            "date": to_iso_date(self.date),
            "timestamp": to_utc_z(self.timestamp),
        }
