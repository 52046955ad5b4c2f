# Overview: Flask API routes for sales; parses input and returns JSON responses.

"""
Sales routes.

Amounts are rupees in requests and responses. Edits never overwrite: PUT
appends a new version and GET /<id>/history returns every version, newest
first.
"""
from flask import Blueprint, g, jsonify, request

from ..decorators import json_errors, with_actor
from ..services import reporting_service, sales_service


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@json_errors
def list_sales():
    """
    List sales whose current version falls in the date range.

    Query params:
    - from, to: ISO dates (optional, a missing bound is open-ended)
    """
    start, end = reporting_service.open_range(request.args.get("from"), request.args.get("to"))
    rows = sales_service.list_sales(start, end)
    return jsonify([sales_service.serialize_sale(sale, version) for sale, version in rows]), 200


@sales_bp.post("")
@with_actor
@json_errors
def create_sale():
    payload = request.get_json(silent=True) or {}
    sale = sales_service.create_sale(payload, actor_id=g.actor_id)
    return jsonify(sales_service.serialize_sale(sale)), 201


@sales_bp.get("/<int:sale_id>")
@json_errors
def get_sale(sale_id: int):
    sale = sales_service.get_sale(sale_id)
    return jsonify(sales_service.serialize_sale(sale)), 200


@sales_bp.put("/<int:sale_id>")
@with_actor
@json_errors
def amend_sale(sale_id: int):
    """Append a new version. Omitted fields keep their current values."""
    payload = request.get_json(silent=True) or {}
    sales_service.amend_sale(sale_id, payload, actor_id=g.actor_id)
    sale = sales_service.get_sale(sale_id)
    return jsonify(sales_service.serialize_sale(sale)), 200


@sales_bp.delete("/<int:sale_id>")
@with_actor
@json_errors
def delete_sale(sale_id: int):
    sales_service.delete_sale(sale_id, actor_id=g.actor_id)
    return jsonify({"ok": True}), 200


@sales_bp.get("/<int:sale_id>/history")
@json_errors
def sale_history(sale_id: int):
    versions = sales_service.sale_history(sale_id)
    return jsonify([sales_service.serialize_version(v) for v in versions]), 200
