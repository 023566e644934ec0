# Overview: Flask API routes for payments operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_role
from ..money import format_amount
from ..services import payment_service, shift_service
from ..services.payment_service import PaymentError
from ..validation import NotFoundError, ValidationError, optional_amount, require_int


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


@payments_bp.post("")
@require_auth
@require_role("cashier")
def create_payment_route():
    """
    Settle (part of) an order.

    Request body:
    {
        "order_id": 12,
        "method": "cash" | "mobile_money" | "credit" | "partial" | "manager_consumption",
        "amount": "18.00",            (optional, defaults to the remaining balance)
        "received_amount": "20.00",   (cash/partial)
        "credit_client_id": 3,        (credit)
        "consumed_by": "lucelle",     (manager_consumption)
        "is_partial": false
    }

    Response includes change_amount and the updated order.
    """
    try:
        data = request.get_json(silent=True) or {}
        order_id = require_int(data, "order_id")
        credit_client_id = data.get("credit_client_id")
        if credit_client_id is not None:
            credit_client_id = require_int(data, "credit_client_id")
        is_partial = data.get("is_partial", False)
        if not isinstance(is_partial, bool):
            return jsonify({"error": "is_partial must be true or false"}), 400

        result = payment_service.process_payment(
            cashier=g.current_user,
            order_id=order_id,
            method=data.get("method"),
            amount=optional_amount(data, "amount"),
            received_amount=optional_amount(data, "received_amount"),
            credit_client_id=credit_client_id,
            consumed_by=data.get("consumed_by"),
            is_partial=is_partial,
        )

        return jsonify({
            "payment": result.payment.to_dict(),
            "change_amount": result.payment.to_dict()["change_amount"],
            "remaining": format_amount(result.remaining),
            "order_completed": result.order_completed,
            "order": result.order.to_dict(),
        }), 201

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, PaymentError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to process payment")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.get("/session/<int:session_id>")
@require_auth
def session_payments_route(session_id: int):
    if not shift_service.get_session(session_id):
        return jsonify({"error": "Session not found"}), 404
    payments = payment_service.get_payments_by_session(session_id)
    return jsonify({"payments": [p.to_dict() for p in payments]})
