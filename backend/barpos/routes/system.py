# Overview: Flask API routes for system health.

from flask import Blueprint, jsonify, current_app
from sqlalchemy.exc import OperationalError

from ..services import maintenance_service
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")


@system_bp.get("/health")
def health():
    try:
        maintenance_service.check_database()
    except OperationalError:
        current_app.logger.exception("Health check failed")
        return jsonify({"status": "error", "database": "unreachable", "time": to_utc_z(utcnow())}), 503
    return jsonify({"status": "ok", "database": "ok", "time": to_utc_z(utcnow())})
