# Overview: Flask API routes for inventory items and stock transactions.

"""
Inventory routes.

Stock on hand is never written by clients: it is derived from the item's
IN/OUT transactions and returned as `current_stock`.
"""
from flask import Blueprint, g, jsonify, request

from ..decorators import json_errors, with_actor
from ..models import InventoryItem
from ..services import inventory_service
from ..validation import (
    ModelValidationPolicy,
    enforce_rules_inventory_item,
    validate_payload,
)

INVENTORY_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "sku", "brand", "unit", "min_stock"},
    required_on_create={"name"},
)

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@json_errors
def list_items():
    return jsonify(inventory_service.list_items()), 200


@inventory_bp.post("")
@with_actor
@json_errors
def create_item():
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=InventoryItem, payload=payload, policy=INVENTORY_ITEM_POLICY, partial=False)
    enforce_rules_inventory_item(patch)

    item = inventory_service.create_item(patch, actor_id=g.actor_id)
    return jsonify(inventory_service.serialize_item(item, 0)), 201


@inventory_bp.get("/low-stock")
@json_errors
def low_stock():
    return jsonify(inventory_service.low_stock_items()), 200


@inventory_bp.get("/<int:item_id>")
@json_errors
def get_item(item_id: int):
    item = inventory_service.get_item(item_id)
    return jsonify(inventory_service.serialize_item(item, inventory_service.current_stock(item_id))), 200


@inventory_bp.put("/<int:item_id>")
@with_actor
@json_errors
def update_item(item_id: int):
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=InventoryItem, payload=payload, policy=INVENTORY_ITEM_POLICY, partial=True)
    enforce_rules_inventory_item(patch)

    item = inventory_service.update_item(item_id, patch, actor_id=g.actor_id)
    return jsonify(inventory_service.serialize_item(item, inventory_service.current_stock(item_id))), 200


@inventory_bp.delete("/<int:item_id>")
@with_actor
@json_errors
def delete_item(item_id: int):
    """409 while the item still has stock transactions."""
    inventory_service.delete_item(item_id, actor_id=g.actor_id)
    return jsonify({"ok": True}), 200


@inventory_bp.get("/<int:item_id>/transactions")
@json_errors
def list_transactions(item_id: int):
    limit = request.args.get("limit", default=200, type=int)
    txs = inventory_service.list_transactions(item_id, limit=limit)
    return jsonify([inventory_service.serialize_transaction(tx) for tx in txs]), 200


@inventory_bp.post("/<int:item_id>/transactions")
@with_actor
@json_errors
def record_transaction(item_id: int):
    """
    Record a stock movement.

    Body: type (IN/OUT), quantity (positive integer), optional unit_price
    (rupees), date, reason.
    """
    payload = request.get_json(silent=True) or {}
    tx = inventory_service.record_transaction(
        item_id,
        payload.get("type"),
        payload.get("quantity"),
        unit_price=payload.get("unit_price"),
        date=payload.get("date"),
        reason=payload.get("reason"),
        actor_id=g.actor_id,
    )
    return jsonify({
        "transaction": inventory_service.serialize_transaction(tx),
        "current_stock": inventory_service.current_stock(item_id),
    }), 201


@inventory_bp.delete("/<int:item_id>/transactions/<int:tx_id>")
@with_actor
@json_errors
def remove_transaction(item_id: int, tx_id: int):
    inventory_service.remove_transaction(item_id, tx_id, actor_id=g.actor_id)
    return jsonify({"ok": True, "current_stock": inventory_service.current_stock(item_id)}), 200
