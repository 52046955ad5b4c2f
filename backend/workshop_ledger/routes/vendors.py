# Overview: Flask API routes for vendors and their bills; dues are computed, not stored.

from flask import Blueprint, g, jsonify, request

from ..decorators import json_errors, with_actor
from ..services import vendor_service


vendors_bp = Blueprint("vendors", __name__, url_prefix="/api/vendors")


@vendors_bp.post("")
@with_actor
@json_errors
def create_vendor():
    payload = request.get_json(silent=True) or {}
    vendor = vendor_service.create_vendor(payload.get("name"), actor_id=g.actor_id)
    return jsonify(vendor_service.serialize_vendor(vendor)), 201


@vendors_bp.get("/<int:vendor_id>")
@json_errors
def get_vendor(vendor_id: int):
    vendor = vendor_service.get_vendor(vendor_id)
    body = vendor_service.serialize_vendor(vendor)
    body["bills"] = [vendor_service.serialize_bill(b) for b in vendor.bills]
    return jsonify(body), 200


@vendors_bp.post("/<int:vendor_id>/bills")
@with_actor
@json_errors
def record_bill(vendor_id: int):
    """
    Record a bill.

    Body: amount, optional amount_paid, payment_mode, date, invoice_number,
    description, due_date, create_expense (bool), paid_by.
    """
    payload = request.get_json(silent=True) or {}
    bill = vendor_service.record_bill(
        vendor_id,
        payload.get("amount"),
        payload.get("amount_paid") or 0,
        payload.get("payment_mode"),
        date=payload.get("date"),
        invoice_number=payload.get("invoice_number"),
        description=payload.get("description"),
        due_date=payload.get("due_date"),
        create_expense=bool(payload.get("create_expense")),
        paid_by=payload.get("paid_by"),
        actor_id=g.actor_id,
    )
    return jsonify(vendor_service.serialize_bill(bill)), 201


@vendors_bp.put("/<int:vendor_id>/bills/<int:bill_id>")
@with_actor
@json_errors
def update_bill(vendor_id: int, bill_id: int):
    """
    Correct a bill or record a pay-down. Omitted fields keep their values.

    A linked expense follows the new paid amount as a new expense version.
    """
    payload = request.get_json(silent=True) or {}
    bill = vendor_service.update_bill(vendor_id, bill_id, payload, actor_id=g.actor_id)
    return jsonify(vendor_service.serialize_bill(bill)), 200


@vendors_bp.delete("/<int:vendor_id>/bills/<int:bill_id>")
@with_actor
@json_errors
def delete_bill(vendor_id: int, bill_id: int):
    vendor_service.delete_bill(vendor_id, bill_id, actor_id=g.actor_id)
    return jsonify({"ok": True}), 200
