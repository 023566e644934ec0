# Overview: Flask API routes for the manager back office; staff, stock and reports.

# backend/barpos/routes/manager.py
"""
Manager API Routes

WHY: Managers administer staff accounts, correct stock and read the
day's figures. Everything here is manager-only except the low-stock list,
which cashiers also see.

Dates in paths are YYYY-MM-DD UTC calendar days.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_role
from ..money import format_amount
from ..services import auth_service, catalog_service, credit_service, reporting_service
from ..time_utils import parse_date, to_iso_date
from ..validation import NotFoundError, ValidationError, require_int


manager_bp = Blueprint("manager", __name__, url_prefix="/api/manager")


def _breakdown_dict(breakdown: dict) -> dict:
    result = {}
    for key, value in breakdown.items():
        if isinstance(value, dict):
            result[key] = {"total": format_amount(value["total"]), "count": value["count"]}
        else:
            result[key] = format_amount(value)
    return result


def _top_products_list(rows: list[dict]) -> list[dict]:
    return [
        {
            "product_id": r["product_id"],
            "name": r["name"],
            "sales": r["sales"],
            "revenue": format_amount(r["revenue"]),
        }
        for r in rows
    ]


def _session_summary_dict(summary: dict) -> dict:
    d = summary["session"].to_dict()
    d["cashier_name"] = summary["cashier_name"]
    d["sales"] = format_amount(summary["sales"])
    d["payment_count"] = summary["transaction_count"]
    return d


# =============================================================================
# STAFF
# =============================================================================

@manager_bp.get("/users")
@require_auth
@require_role("manager")
def list_users_route():
    role = request.args.get("role")
    users = auth_service.get_users_by_role(role) if role else auth_service.list_users()
    return jsonify({"users": [u.to_dict() for u in users]})


@manager_bp.post("/users")
@require_auth
@require_role("manager")
def create_user_route():
    """
    Create (or upsert) a staff account.

    Request body:
    {
        "id": "rafa",
        "password": "...",
        "role": "server",
        "first_name": "Rafael",
        "last_name": "Gomes",
        "email": "rafa@example.com"
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.upsert_user(
            user_id=data.get("id") or data.get("username") or "",
            role=data.get("role") or "",
            password=data.get("password"),
            email=data.get("email"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            profile_image_url=data.get("profile_image_url"),
        )
        return jsonify({"user": user.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@manager_bp.put("/users/<user_id>/status")
@require_auth
@require_role("manager")
def update_user_status_route(user_id: str):
    data = request.get_json(silent=True) or {}
    if not isinstance(data.get("is_active"), bool):
        return jsonify({"error": "is_active must be true or false"}), 400
    try:
        user = auth_service.update_user_status(user_id, data["is_active"])
        return jsonify({"user": user.to_dict()})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@manager_bp.put("/users/<user_id>")
@require_auth
@require_role("manager")
def update_user_details_route(user_id: str):
    try:
        user = auth_service.update_user_details(user_id, request.get_json(silent=True) or {})
        return jsonify({"user": user.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# STOCK
# =============================================================================

@manager_bp.get("/low-stock")
@require_auth
@require_role("manager", "cashier")
def low_stock_route():
    products = catalog_service.list_low_stock()
    result = []
    for p in products:
        d = p.to_dict()
        d["status"] = p.stock_status
        result.append(d)
    return jsonify({"products": result})


@manager_bp.post("/update-product-stock")
@require_auth
@require_role("manager")
def update_product_stock_route():
    """
    Request body:
    {
        "product_id": 4,
        "stock_quantity": 60,
        "min_stock_level": 10   (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        product = catalog_service.set_stock(
            require_int(data, "product_id"),
            data.get("stock_quantity"),
            data.get("min_stock_level"),
        )
        return jsonify({"product": product.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update product stock")
        return jsonify({"error": "Internal server error"}), 500


@manager_bp.put("/bulk-stock-update")
@require_auth
@require_role("manager")
def bulk_stock_update_route():
    """
    Request body:
    {
        "updates": [{"product_id": 1, "stock_quantity": 24}, ...]
    }
    All-or-nothing.
    """
    try:
        data = request.get_json(silent=True) or {}
        products = catalog_service.bulk_set_stock(data.get("updates"))
        return jsonify({"products": [p.to_dict() for p in products], "updated": len(products)})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to apply bulk stock update")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# REPORTS
# =============================================================================

@manager_bp.get("/stats/daily/<day>")
@require_auth
@require_role("manager")
def daily_stats_route(day: str):
    try:
        stats = reporting_service.daily_stats(parse_date(day))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "date": to_iso_date(stats["date"]),
        "morning_sales": format_amount(stats["morning_sales"]),
        "evening_sales": format_amount(stats["evening_sales"]),
        "total_sales": format_amount(stats["total_sales"]),
        "active_credits": format_amount(stats["active_credits"]),
        "active_users": stats["active_users"],
        "low_stock_count": stats["low_stock_count"],
        "top_products": _top_products_list(stats["top_products"]),
        "payment_breakdown": _breakdown_dict(stats["payment_breakdown"]),
        "session_history": [_session_summary_dict(s) for s in stats["session_history"]],
    })


@manager_bp.get("/session/<int:session_id>")
@require_auth
@require_role("manager")
def session_details_route(session_id: int):
    try:
        details = reporting_service.session_details(session_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({
        "session": _session_summary_dict(details),
        "payment_breakdown": _breakdown_dict(details["payment_breakdown"]),
        "orders": [o.to_dict() for o in details["orders"]],
    })


@manager_bp.get("/sessions")
@require_auth
@require_role("manager")
def sessions_by_period_route():
    """Query params: period = daily | weekly | monthly (default daily), date = YYYY-MM-DD."""
    try:
        day = parse_date(request.args.get("date"))
        summaries = reporting_service.get_sessions_by_period(request.args.get("period", "daily"), day)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"sessions": [_session_summary_dict(s) for s in summaries]})


@manager_bp.get("/payment-breakdown/<day>")
@require_auth
@require_role("manager")
def payment_breakdown_route(day: str):
    try:
        breakdown = reporting_service.payment_breakdown_for_day(parse_date(day))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(_breakdown_dict(breakdown))


@manager_bp.get("/credit-payments/<day>")
@require_auth
@require_role("manager")
def credit_payments_route(day: str):
    try:
        payments = reporting_service.credit_repayments_for_day(parse_date(day))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"payments": [p.to_dict() for p in payments]})


@manager_bp.get("/detailed-sales/<day>")
@require_auth
@require_role("manager")
def detailed_sales_route(day: str):
    try:
        report = reporting_service.detailed_sales(parse_date(day))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({
        "date": to_iso_date(report["date"]),
        "sessions": [_session_summary_dict(s) for s in report["sessions"]],
        "top_products": _top_products_list(report["top_products"]),
    })


@manager_bp.get("/credit-client/<int:client_id>/details")
@require_auth
@require_role("manager")
def credit_client_details_route(client_id: int):
    try:
        history = credit_service.client_history(client_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    client = history["client"]
    return jsonify({
        "client": client.to_dict(),
        "credit_history": [p.to_dict() for p in history["charges"]],
        "payment_history": [p.to_dict() for p in history["repayments"]],
        "summary": {
            "total_credit_given": format_amount(history["total_charged"]),
            "total_payments_received": format_amount(history["total_repaid"]),
            "outstanding_balance": format_amount(client.total_credit),
        },
    })
