# Overview: Flask API routes for employee absences.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_role
from ..models.enums import UserRole
from ..services import absence_service
from ..services.absence_service import AbsenceError
from ..validation import NotFoundError, ValidationError


absences_bp = Blueprint("absences", __name__, url_prefix="/api/absences")


def _is_manager() -> bool:
    return g.current_user.role == UserRole.MANAGER.value


@absences_bp.get("")
@require_auth
def list_absences_route():
    """
    Managers see everyone (optionally ?user_id= or ?pending=true);
    staff see their own.
    """
    if _is_manager():
        user_id = request.args.get("user_id")
        if user_id:
            absences = absence_service.get_absences_by_user(user_id)
        else:
            pending_only = request.args.get("pending", "").lower() in ("1", "true", "yes")
            absences = absence_service.list_absences(pending_only=pending_only)
    else:
        absences = absence_service.get_absences_by_user(g.current_user.id)
    return jsonify({"absences": [a.to_dict() for a in absences]})


@absences_bp.post("")
@require_auth
def create_absence_route():
    """
    Request body:
    {
        "start_date": "2026-03-02",
        "end_date": "2026-03-04",
        "reason": "medical",
        "user_id": "rafa"          (managers only; defaults to the caller)
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        user_id = g.current_user.id
        if data.get("user_id") and data["user_id"] != user_id:
            if not _is_manager():
                return jsonify({"error": "Access denied"}), 403
            user_id = data["user_id"]

        absence = absence_service.create_absence(
            user_id=user_id,
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            reason=data.get("reason"),
        )
        return jsonify({"absence": absence.to_dict()}), 201

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create absence")
        return jsonify({"error": "Internal server error"}), 500


@absences_bp.post("/<int:absence_id>/approve")
@require_auth
@require_role("manager")
def approve_absence_route(absence_id: int):
    try:
        absence = absence_service.approve_absence(absence_id, g.current_user)
        return jsonify({"absence": absence.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AbsenceError as e:
        return jsonify({"error": str(e)}), 400
