# Overview: Flask API routes for cashier shifts.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_role
from ..money import format_amount
from ..services import reporting_service, shift_service
from ..services.shift_service import ShiftError
from ..validation import ConflictError, NotFoundError


sessions_bp = Blueprint("sessions", __name__, url_prefix="/api/sessions")


def serialize_stats(stats: dict) -> dict:
    return {
        "session_id": stats["session_id"],
        "total_sales": format_amount(stats["total_sales"]),
        "transaction_count": stats["transaction_count"],
        "active_credits": format_amount(stats["active_credits"]),
        "occupied_tables": stats["occupied_tables"],
        "total_tables": stats["total_tables"],
    }


@sessions_bp.get("/active")
@require_auth
def active_session_route():
    """The caller's own active shift, or null."""
    session = shift_service.get_active_session(g.current_user.id)
    return jsonify({"session": session.to_dict() if session else None})


@sessions_bp.post("")
@require_auth
@require_role("cashier")
def open_session_route():
    """
    Open a shift.

    Request body (optional):
    {
        "shift_type": "morning" | "evening"
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        session = shift_service.open_shift(g.current_user, data.get("shift_type"))
        return jsonify({"session": session.to_dict()}), 201

    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ShiftError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to open session")
        return jsonify({"error": "Internal server error"}), 500


@sessions_bp.post("/<int:session_id>/end")
@require_auth
@require_role("cashier")
def end_session_route(session_id: int):
    try:
        session = shift_service.end_session(session_id, g.current_user)
        return jsonify({"session": session.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ShiftError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to end session")
        return jsonify({"error": "Internal server error"}), 500


@sessions_bp.get("/<int:session_id>/stats")
@require_auth
def session_stats_route(session_id: int):
    try:
        stats = reporting_service.get_session_stats(session_id)
        return jsonify(serialize_stats(stats))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

