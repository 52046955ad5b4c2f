from flask import Blueprint, current_app, jsonify, request

from ..decorators import json_errors
from ..services import audit_service


audit_bp = Blueprint("audit", __name__, url_prefix="/api/audit")


@audit_bp.get("/recent")
@json_errors
def recent():
    limit = request.args.get("limit", default=current_app.config.get("RECENT_ACTIVITY_LIMIT", 20), type=int)
    return jsonify([entry.to_dict() for entry in audit_service.recent(limit)]), 200
