from __future__ import annotations

from ..extensions import db
from workshop_ledger.time_utils import to_utc_z


class Vendor(db.Model):
    """
    Supplier the workshop owes money to.

    DUES: there is no stored total_due. What a vendor is owed is the sum of
    (amount_cents - amount_paid_cents) over its bills, recomputed on read.
    """
    __tablename__ = "vendors"
    __table_args__ = (
        db.Index("ix_vendors_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Vendor id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class VendorBill(db.Model):
    """
    A vendor invoice and what has been paid against it (paise).

    Status (PENDING / PARTIAL / PAID) is derived from the two amounts.
    related_expense_id links the expense recorded for the paid part, if any.
    """
    __tablename__ = "vendor_bills"
    __table_args__ = (
        db.Index("ix_vendor_bills_vendor_date", "vendor_id", "date"),
        db.UniqueConstraint("related_expense_id", name="uq_vendor_bills_related_expense"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)

    date = db.Column(db.DateTime(timezone=True), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    amount_paid_cents = db.Column(db.Integer, nullable=False, default=0)
    payment_mode = db.Column(db.String(16), nullable=True)
    invoice_number = db.Column(db.String(128), nullable=True)
    description = db.Column(db.Text, nullable=True)
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)

    related_expense_id = db.Column(
        db.Integer,
        db.ForeignKey("expenses.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    vendor = db.relationship("Vendor", backref=db.backref("bills", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "date": to_utc_z(self.date),
            "amount_cents": self.amount_cents,
            "amount_paid_cents": self.amount_paid_cents,
            "payment_mode": self.payment_mode,
            "invoice_number": self.invoice_number,
            "description": self.description,
            "due_date": to_utc_z(self.due_date) if self.due_date else None,
            "related_expense_id": self.related_expense_id,
            "created_at": to_utc_z(self.created_at),
        }
