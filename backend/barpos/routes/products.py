# Overview: Flask API routes for products and categories; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_role
from ..services import catalog_service
from ..validation import NotFoundError, ValidationError


products_bp = Blueprint("products", __name__, url_prefix="/api/products")
categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


# =============================================================================
# PRODUCTS
# =============================================================================

@products_bp.get("")
@require_auth
def list_products_route():
    """Active products, by name."""
    products = catalog_service.list_products()
    return jsonify({"products": [p.to_dict() for p in products]})


@products_bp.get("/search")
@require_auth
@require_role("manager")
def search_products_route():
    """
    Inventory view: every product (inactive too) with its category name
    and stock status.

    Query params: q (name contains), category_id
    """
    products = catalog_service.search_products(
        request.args.get("q"),
        category_id=request.args.get("category_id", type=int),
    )
    result = []
    for p in products:
        d = p.to_dict()
        d["category_name"] = p.category.name if p.category else None
        d["stock_status"] = p.stock_status
        result.append(d)
    return jsonify({"products": result})


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    product = catalog_service.get_product(product_id)
    if not product:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"product": product.to_dict()})


@products_bp.post("")
@require_auth
@require_role("manager")
def create_product_route():
    """
    Request body:
    {
        "name": "Sagres 33cl",
        "price": "2.50",
        "category_id": 1,
        "stock_quantity": 48,
        "min_stock_level": 12
    }
    """
    try:
        product = catalog_service.create_product(request.get_json(silent=True))
        return jsonify({"product": product.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.put("/<int:product_id>")
@require_auth
@require_role("manager")
def update_product_route(product_id: int):
    try:
        product = catalog_service.update_product(product_id, request.get_json(silent=True))
        return jsonify({"product": product.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role("manager")
def delete_product_route(product_id: int):
    """Soft delete; the product disappears from GET /api/products."""
    try:
        product = catalog_service.deactivate_product(product_id)
        return jsonify({"product": product.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# CATEGORIES
# =============================================================================

@categories_bp.get("")
@require_auth
def list_categories_route():
    return jsonify({"categories": [c.to_dict() for c in catalog_service.list_categories()]})


@categories_bp.post("")
@require_auth
@require_role("manager")
def create_category_route():
    try:
        category = catalog_service.create_category(request.get_json(silent=True))
        return jsonify({"category": category.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@categories_bp.put("/<int:category_id>")
@require_auth
@require_role("manager")
def update_category_route(category_id: int):
    try:
        category = catalog_service.update_category(category_id, request.get_json(silent=True))
        return jsonify({"category": category.to_dict()})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
