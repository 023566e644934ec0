# Overview: Flask API routes for orders; parses input and returns JSON responses.

# backend/barpos/routes/orders.py
"""
Order API Routes

DESIGN:
- Totals and unit prices are always computed server-side; any client
  supplied price/total is ignored
- POST /<id>/items writes absolute quantities (0 removes a line)
- "completed" is reached only through POST /api/payments
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_role
from ..services import order_service
from ..services.order_service import OrderError
from ..time_utils import parse_date
from ..validation import ConflictError, NotFoundError, ValidationError, require_int


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@require_auth
def list_orders_route():
    """
    Query params:
    - status: pending | preparing | ready | completed | cancelled
    - date: YYYY-MM-DD (UTC day the order was created)
    - limit (default 50, max 200), offset
    """
    try:
        day = parse_date(request.args["date"]) if request.args.get("date") else None
        orders = order_service.list_orders(
            status=request.args.get("status") or None,
            day=day,
            limit=request.args.get("limit", order_service.DEFAULT_LIST_LIMIT, type=int),
            offset=request.args.get("offset", 0, type=int),
        )
        return jsonify({"orders": [o.to_dict() for o in orders]})

    except ValueError as e:
        return jsonify({"error": str(e)}), 400


@orders_bp.get("/pending")
@require_auth
def pending_orders_route():
    orders = order_service.list_pending_orders()
    return jsonify({"orders": [o.to_dict() for o in orders]})


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    order = order_service.get_order(order_id)
    if not order:
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"order": order.to_dict()})


@orders_bp.post("")
@require_auth
@require_role("server", "cashier")
def create_order_route():
    """
    Request body:
    {
        "table_id": 4,
        "items": [{"product_id": 1, "quantity": 2}, ...],
        "notes": "no ice"
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.create_order(
            user=g.current_user,
            table_id=require_int(data, "table_id"),
            items=data.get("items"),
            notes=data.get("notes"),
        )
        return jsonify({"order": order.to_dict()}), 201

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/items")
@require_auth
def set_order_items_route(order_id: int):
    """
    Request body, either a single line:
        {"product_id": 1, "quantity": 3}
    or several:
        {"items": [{"product_id": 1, "quantity": 3}, {"product_id": 2, "quantity": 0}]}
    """
    try:
        data = request.get_json(silent=True) or {}
        items = data.get("items")
        if items is None and "product_id" in data:
            items = [{"product_id": data.get("product_id"), "quantity": data.get("quantity")}]

        order = order_service.set_order_items(order_id, items)
        return jsonify({"order": order.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, OrderError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update order items")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.patch("/<int:order_id>/status")
@require_auth
@require_role("server", "cashier", "manager")
def update_order_status_route(order_id: int):
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.update_order_status(order_id, data.get("status"))
        return jsonify({"order": order.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, OrderError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"error": "Internal server error"}), 500
