from flask import Blueprint, jsonify, request

from ..decorators import json_errors
from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@json_errors
def dashboard():
    report = reporting_service.dashboard(request.args.get("from"), request.args.get("to"))
    return jsonify(report), 200


@reports_bp.get("/cashflow")
@json_errors
def cashflow():
    report = reporting_service.cashflow(request.args.get("from"), request.args.get("to"))
    return jsonify(report), 200
