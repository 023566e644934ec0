# Overview: Flask API routes for floor tables.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_role
from ..services import table_service
from ..services.table_service import TableError
from ..validation import ConflictError, NotFoundError, ValidationError


tables_bp = Blueprint("tables", __name__, url_prefix="/api/tables")


@tables_bp.get("")
@require_auth
def list_tables_route():
    tables = table_service.list_tables()
    return jsonify({"tables": [t.to_dict() for t in tables]})


@tables_bp.get("/<int:table_id>")
@require_auth
def get_table_route(table_id: int):
    table = table_service.get_table(table_id)
    if not table:
        return jsonify({"error": "Table not found"}), 404
    return jsonify({"table": table.to_dict()})


@tables_bp.post("")
@require_auth
@require_role("manager")
def create_table_route():
    """
    Request body:
    {
        "number": 7,
        "capacity": 4
    }
    """
    try:
        table = table_service.create_table(request.get_json(silent=True))
        return jsonify({"table": table.to_dict()}), 201

    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create table")
        return jsonify({"error": "Internal server error"}), 500


@tables_bp.put("/<int:table_id>/status")
@require_auth
def update_table_status_route(table_id: int):
    """
    Request body:
    {
        "status": "free" | "occupied" | "reserved",
        "order_id": 12          (required for "occupied")
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        order_id = data.get("order_id")
        if order_id is not None and (isinstance(order_id, bool) or not isinstance(order_id, int)):
            return jsonify({"error": "order_id must be an integer"}), 400

        table = table_service.update_table_status(table_id, data.get("status"), order_id)
        return jsonify({"table": table.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, TableError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update table status")
        return jsonify({"error": "Internal server error"}), 500
