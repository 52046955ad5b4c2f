# Overview: Stock ledger for inventory items; stock on hand is always derived from transactions.

"""
Workshop Ledger Inventory Invariants (authoritative)

Stock model:
- No item stores a quantity. Stock on hand is
      SUM(quantity WHERE type = IN) - SUM(quantity WHERE type = OUT)
  over all of the item's StockTransaction rows, computed in SQL on every call.
- A sum does not depend on insertion order, so any replay of the same
  transactions gives the same stock.

Transactions:
- quantity is a positive integer; the direction is carried by type (IN/OUT).
- There is NO balance check. OUT may exceed IN and the resulting negative
  stock is reported as-is, never clamped.
- Transactions are immutable. They can only be removed, and only through
  the item that owns them.

Items:
- An item with transactions cannot be deleted (ConflictError).
- Low stock means stock <= min_stock; out of stock means stock <= 0.
"""

from __future__ import annotations

from sqlalchemy import case, func

from ..extensions import db
from ..enums import AuditAction, EntityType, StockTransactionType
from ..models import InventoryItem, StockTransaction
from ..money import to_major, to_minor
from ..time_utils import to_utc_z, utcnow
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    coerce_datetime,
    coerce_positive_int,
    optional_text,
)
from . import audit_service


def _signed_quantity():
    return case(
        (StockTransaction.type == StockTransactionType.IN.value, StockTransaction.quantity),
        else_=-StockTransaction.quantity,
    )


# ----------------------------------------------------------------------
# Derived stock
# ----------------------------------------------------------------------

def current_stock(item_id: int) -> int:
    """Stock on hand for one item, recomputed from all of its transactions."""
    get_item(item_id)
    total = (
        db.session.query(func.coalesce(func.sum(_signed_quantity()), 0))
        .filter(StockTransaction.item_id == item_id)
        .scalar()
    )
    return int(total or 0)


def stock_levels(item_ids: list[int] | None = None) -> dict[int, int]:
    """
    Stock on hand for many items in one grouped query.

    Items without transactions are included with 0 when item_ids is given;
    with item_ids=None every existing item is returned.
    """
    if item_ids is None:
        item_ids = [row[0] for row in db.session.query(InventoryItem.id).all()]
    if not item_ids:
        return {}

    rows = (
        db.session.query(StockTransaction.item_id, func.sum(_signed_quantity()))
        .filter(StockTransaction.item_id.in_(item_ids))
        .group_by(StockTransaction.item_id)
        .all()
    )
    levels = {item_id: 0 for item_id in item_ids}
    for item_id, total in rows:
        levels[item_id] = int(total or 0)
    return levels


# ----------------------------------------------------------------------
# Items
# ----------------------------------------------------------------------

def get_item(item_id: int) -> InventoryItem:
    item = db.session.get(InventoryItem, item_id)
    if item is None:
        raise NotFoundError("Inventory item not found")
    return item


def serialize_item(item: InventoryItem, stock: int) -> dict:
    payload = item.to_dict()
    payload["current_stock"] = stock
    payload["is_low_stock"] = stock <= item.min_stock
    return payload


def list_items() -> list[dict]:
    items = db.session.query(InventoryItem).order_by(InventoryItem.name.asc(), InventoryItem.id.asc()).all()
    levels = stock_levels([item.id for item in items])
    return [serialize_item(item, levels.get(item.id, 0)) for item in items]


def create_item(patch: dict, *, actor_id: int | None = None) -> InventoryItem:
    """Create an item from a validated patch (see routes/inventory.py)."""
    item = InventoryItem(**patch)
    db.session.add(item)
    db.session.commit()

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.INVENTORY_ITEM,
        entity_id=item.id,
        action=AuditAction.CREATE,
        summary=f"Created inventory item {item.name}",
    )
    return item


def update_item(item_id: int, patch: dict, *, actor_id: int | None = None) -> InventoryItem:
    item = get_item(item_id)
    for key, value in patch.items():
        setattr(item, key, value)
    db.session.commit()

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.INVENTORY_ITEM,
        entity_id=item.id,
        action=AuditAction.UPDATE,
        summary=f"Updated inventory item {item.name}: {', '.join(sorted(patch)) or 'no changes'}",
    )
    return item


def delete_item(item_id: int, *, actor_id: int | None = None) -> None:
    """Delete an item. Blocked while any stock transaction still references it."""
    item = get_item(item_id)
    tx_count = (
        db.session.query(func.count(StockTransaction.id))
        .filter(StockTransaction.item_id == item_id)
        .scalar()
    )
    if tx_count:
        raise ConflictError(
            f"Cannot delete item with {tx_count} stock transaction(s). Remove them first.",
            details={"id": item_id, "transactions": int(tx_count)},
        )

    name = item.name
    db.session.delete(item)
    db.session.commit()

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.INVENTORY_ITEM,
        entity_id=item_id,
        action=AuditAction.DELETE,
        summary=f"Deleted inventory item {name}",
    )


# ----------------------------------------------------------------------
# Transactions
# ----------------------------------------------------------------------

def record_transaction(
    item_id: int,
    type,
    quantity,
    unit_price=None,
    date=None,
    reason=None,
    *,
    actor_id: int | None = None,
) -> StockTransaction:
    """
    Append one stock movement.

    unit_price is in rupees (converted to paise here); date defaults to now.
    """
    tx_type = StockTransactionType.parse(type, "type")
    qty = coerce_positive_int(quantity, "quantity")
    unit_price_cents = None
    if unit_price is not None and unit_price != "":
        unit_price_cents = to_minor(unit_price, field="unit_price")
        if unit_price_cents < 0:
            raise ValidationError("unit_price must be >= 0")
    occurred_at = coerce_datetime(date or None, "date") or utcnow()

    item = get_item(item_id)

    tx = StockTransaction(
        item_id=item.id,
        type=tx_type.value,
        quantity=qty,
        unit_price_cents=unit_price_cents,
        reason=optional_text(reason),
        date=occurred_at,
    )
    db.session.add(tx)
    db.session.commit()

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.STOCK_TRANSACTION,
        entity_id=tx.id,
        action=AuditAction.CREATE,
        summary=f"Stock {tx_type.value} {qty} x {item.name}" + (f" ({tx.reason})" if tx.reason else ""),
    )
    return tx


def remove_transaction(item_id: int, tx_id: int, *, actor_id: int | None = None) -> None:
    tx = (
        db.session.query(StockTransaction)
        .filter(StockTransaction.id == tx_id, StockTransaction.item_id == item_id)
        .first()
    )
    if tx is None:
        raise NotFoundError("Transaction not found for this item")

    summary = f"Removed stock {tx.type} {tx.quantity} from item {item_id}"
    db.session.delete(tx)
    db.session.commit()

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.STOCK_TRANSACTION,
        entity_id=tx_id,
        action=AuditAction.DELETE,
        summary=summary,
    )


def list_transactions(item_id: int, *, limit: int = 200) -> list[StockTransaction]:
    """Newest first."""
    get_item(item_id)
    return (
        db.session.query(StockTransaction)
        .filter(StockTransaction.item_id == item_id)
        .order_by(StockTransaction.date.desc(), StockTransaction.id.desc())
        .limit(limit)
        .all()
    )


def serialize_transaction(tx: StockTransaction) -> dict:
    return {
        "id": tx.id,
        "item_id": tx.item_id,
        "type": tx.type,
        "quantity": tx.quantity,
        "unit_price": to_major(tx.unit_price_cents) if tx.unit_price_cents is not None else None,
        "reason": tx.reason,
        "date": to_utc_z(tx.date),
        "created_at": to_utc_z(tx.created_at),
    }


def low_stock_items() -> list[dict]:
    """Items at or below min_stock, lowest stock first. Current state, no date filter."""
    items = db.session.query(InventoryItem).all()
    levels = stock_levels([item.id for item in items])
    low = [
        {
            "id": item.id,
            "name": item.name,
            "category": item.category,
            "current_stock": levels.get(item.id, 0),
            "min_stock": item.min_stock,
        }
        for item in items
        if levels.get(item.id, 0) <= item.min_stock
    ]
    low.sort(key=lambda row: (row["current_stock"], row["name"].lower(), row["id"]))
    return low
