# Overview: Flask API routes for credit clients and credit repayments.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_role
from ..services import credit_service, shift_service
from ..services.credit_service import CreditError
from ..validation import NotFoundError, ValidationError, require_int


credit_clients_bp = Blueprint("credit_clients", __name__, url_prefix="/api/credit-clients")
credit_payments_bp = Blueprint("credit_payments", __name__, url_prefix="/api/credit-payments")


@credit_clients_bp.get("")
@require_auth
def list_credit_clients_route():
    """Active clients, most recently updated first."""
    clients = credit_service.list_credit_clients()
    return jsonify({"credit_clients": [c.to_dict() for c in clients]})


@credit_clients_bp.get("/<int:client_id>")
@require_auth
def get_credit_client_route(client_id: int):
    client = credit_service.get_credit_client(client_id)
    if not client:
        return jsonify({"error": "Credit client not found"}), 404
    return jsonify({"credit_client": client.to_dict()})


@credit_clients_bp.post("")
@require_auth
@require_role("cashier", "server", "manager")
def create_credit_client_route():
    """
    Request body:
    {
        "name": "Carlos Mendes",
        "phone": "+245 955 000 000",
        "email": "carlos@example.com",   (optional)
        "credit_limit": "300.00"         (optional, default 500.00)
    }
    """
    try:
        client = credit_service.create_credit_client(request.get_json(silent=True))
        return jsonify({"credit_client": client.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create credit client")
        return jsonify({"error": "Internal server error"}), 500


@credit_clients_bp.put("/<int:client_id>")
@require_auth
@require_role("manager")
def update_credit_client_route(client_id: int):
    try:
        client = credit_service.update_credit_client(client_id, request.get_json(silent=True))
        return jsonify({"credit_client": client.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, CreditError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update credit client")
        return jsonify({"error": "Internal server error"}), 500


@credit_payments_bp.post("")
@require_auth
@require_role("cashier")
def credit_repayment_route():
    """
    Standalone repayment of a credit balance.

    Request body:
    {
        "credit_client_id": 3,
        "amount": "40.00",
        "method": "cash" | "mobile_money"   (default cash)
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        client_id = require_int(data, "credit_client_id")

        shift = shift_service.get_active_session(g.current_user.id)
        if not shift:
            return jsonify({"error": "An active session is required to record payments"}), 400

        payment, client = credit_service.record_repayment(
            client_id=client_id,
            amount=data.get("amount"),
            cashier=g.current_user,
            session_id=shift.id,
            method=data.get("method") or "cash",
        )
        return jsonify({"payment": payment.to_dict(), "credit_client": client.to_dict()}), 201

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, CreditError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to record credit repayment")
        return jsonify({"error": "Internal server error"}), 500
