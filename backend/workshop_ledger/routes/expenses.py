# Overview: Flask API routes for expenses; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import json_errors, with_actor
from ..services import expense_service, reporting_service


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("")
@json_errors
def list_expenses():
    start, end = reporting_service.open_range(request.args.get("from"), request.args.get("to"))
    rows = expense_service.list_expenses(start, end)
    return jsonify([expense_service.serialize_expense(expense, version) for expense, version in rows]), 200


@expenses_bp.post("")
@with_actor
@json_errors
def create_expense():
    """
    Create an expense.

    Body: amount (rupees), payment_mode, optional date, category, vendor,
    reference, note and paid_by.
    """
    payload = request.get_json(silent=True) or {}
    expense = expense_service.create_expense(payload, actor_id=g.actor_id)
    return jsonify(expense_service.serialize_expense(expense)), 201


@expenses_bp.get("/<int:expense_id>")
@json_errors
def get_expense(expense_id: int):
    expense = expense_service.get_expense(expense_id)
    return jsonify(expense_service.serialize_expense(expense)), 200


@expenses_bp.put("/<int:expense_id>")
@with_actor
@json_errors
def amend_expense(expense_id: int):
    payload = request.get_json(silent=True) or {}
    expense_service.amend_expense(expense_id, payload, actor_id=g.actor_id)
    expense = expense_service.get_expense(expense_id)
    return jsonify(expense_service.serialize_expense(expense)), 200


@expenses_bp.delete("/<int:expense_id>")
@with_actor
@json_errors
def delete_expense(expense_id: int):
    expense_service.delete_expense(expense_id, actor_id=g.actor_id)
    return jsonify({"ok": True}), 200


@expenses_bp.get("/<int:expense_id>/history")
@json_errors
def expense_history(expense_id: int):
    versions = expense_service.expense_history(expense_id)
    return jsonify([expense_service.serialize_version(v) for v in versions]), 200
