# Overview: Service-layer operations for categories, products and stock levels.

from __future__ import annotations

import logging

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Category, Product
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)
from .concurrency import lock_for_update, run_with_retry

logger = logging.getLogger(__name__)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "description",
        "price",
        "category_id",
        "stock_quantity",
        "min_stock_level",
        "is_active",
    },
    required_on_create={"name", "price"},
)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)


# =============================================================================
# CATEGORIES
# =============================================================================

def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name).all()


def get_category(category_id: int) -> Category | None:
    return db.session.get(Category, category_id)


def create_category(payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    category = Category(**patch)
    db.session.add(category)
    db.session.commit()
    return category


def update_category(category_id: int, payload: dict) -> Category:
    category = get_category(category_id)
    if not category:
        raise NotFoundError("Category not found")
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    for k, v in patch.items():
        setattr(category, k, v)
    db.session.commit()
    return category


# =============================================================================
# PRODUCTS
# =============================================================================

def _check_category(patch: dict) -> None:
    category_id = patch.get("category_id")
    if category_id is not None and not get_category(category_id):
        raise ValidationError(f"Category {category_id} does not exist")


def list_products(*, include_inactive: bool = False) -> list[Product]:
    query = db.session.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.name, Product.id).all()


def search_products(term: str | None = None, *, category_id: int | None = None) -> list[Product]:
    """All products (inactive included) with their category loaded, for the manager inventory view."""
    query = db.session.query(Product).options(joinedload(Product.category))
    if term:
        query = query.filter(Product.name.ilike(f"%{term.strip()}%"))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    return query.order_by(Product.name, Product.id).all()


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def create_product(payload: dict) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    _check_category(patch)

    product = Product(**patch)
    db.session.add(product)
    db.session.commit()
    return product


def update_product(product_id: int, payload: dict) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)
    _check_category(patch)

    def _op():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if not product:
            raise NotFoundError("Product not found")
        for k, v in patch.items():
            setattr(product, k, v)
        db.session.commit()
        return product

    return run_with_retry(_op)


def deactivate_product(product_id: int) -> Product:
    """Soft delete: order history keeps referencing the row."""
    return update_product(product_id, {"is_active": False})


# =============================================================================
# STOCK
# =============================================================================

def list_low_stock() -> list[Product]:
    """Active products at or below their minimum level, emptiest first."""
    return db.session.query(Product).filter(
        Product.is_active.is_(True),
        Product.stock_quantity <= Product.min_stock_level,
    ).order_by(Product.stock_quantity, Product.name).all()


def _validated_stock(value, field: str = "stock_quantity") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    if value < 0:
        raise ValidationError(f"{field} must be >= 0")
    return value


def set_stock(product_id: int, stock_quantity, min_stock_level=None) -> Product:
    payload = {"stock_quantity": _validated_stock(stock_quantity)}
    if min_stock_level is not None:
        payload["min_stock_level"] = _validated_stock(min_stock_level, "min_stock_level")
    return update_product(product_id, payload)


def bulk_set_stock(updates: list[dict]) -> list[Product]:
    """
    Apply [{product_id, stock_quantity[, min_stock_level]}...] atomically.

    Everything is validated before anything is written; one bad row rejects
    the whole batch.
    """
    if not isinstance(updates, list) or not updates:
        raise ValidationError("updates must be a non-empty list")

    cleaned = []
    for i, row in enumerate(updates):
        if not isinstance(row, dict):
            raise ValidationError(f"updates[{i}] must be an object")
        product_id = row.get("product_id")
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError(f"updates[{i}].product_id must be an integer")
        entry = {"product_id": product_id, "stock_quantity": _validated_stock(row.get("stock_quantity"))}
        if row.get("min_stock_level") is not None:
            entry["min_stock_level"] = _validated_stock(row["min_stock_level"], "min_stock_level")
        cleaned.append(entry)

    def _op():
        products = []
        for entry in cleaned:
            product = lock_for_update(
                db.session.query(Product).filter_by(id=entry["product_id"])
            ).first()
            if not product:
                raise NotFoundError(f"Product {entry['product_id']} not found")
            product.stock_quantity = entry["stock_quantity"]
            if "min_stock_level" in entry:
                product.min_stock_level = entry["min_stock_level"]
            products.append(product)
        db.session.commit()
        return products

    products = run_with_retry(_op)
    logger.info("Bulk stock update applied to %d products", len(products))
    return products


def decrement_stock(product: Product, quantity: int) -> None:
    """
    Take sold quantity out of stock, clamped at zero.

    Part of a caller's transaction; does not commit.
    """
    remaining = product.stock_quantity - quantity
    if remaining < 0:
        logger.warning(
            "Stock for product %s (%s) would go negative (%d - %d); clamping to 0",
            product.id, product.name, product.stock_quantity, quantity,
        )
        remaining = 0
    product.stock_quantity = remaining
