from __future__ import annotations

from ..extensions import db
from workshop_ledger.time_utils import to_utc_z


class InventoryItem(db.Model):
    """
    Stock-keeping item (parts, consumables).

    There is deliberately no quantity column: stock on hand is always derived
    from StockTransaction rows (see services/inventory_service.py).
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.Index("ix_inventory_items_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=True)
    sku = db.Column(db.String(64), nullable=True, index=True)
    brand = db.Column(db.String(120), nullable=True)
    unit = db.Column(db.String(32), nullable=True)

    # Low-stock threshold: stock <= min_stock is reported as low
    min_stock = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "sku": self.sku,
            "brand": self.brand,
            "unit": self.unit,
            "min_stock": self.min_stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockTransaction(db.Model):
    """
    Immutable stock movement. quantity is always positive; direction is `type`.
    """
    __tablename__ = "stock_transactions"
    __table_args__ = (
        db.Index("ix_stock_tx_item_date", "item_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=False, index=True)

    type = db.Column(db.String(8), nullable=False)  # IN, OUT
    quantity = db.Column(db.Integer, nullable=False)

    unit_price_cents = db.Column(db.Integer, nullable=True)
    reason = db.Column(db.String(255), nullable=True)

    date = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    item = db.relationship("InventoryItem", backref=db.backref("stock_transactions", lazy="dynamic"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "type": self.type,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "reason": self.reason,
            "date": to_utc_z(self.date),
            "created_at": to_utc_z(self.created_at),
        }
