# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product catalogue routes.

All routes require authentication and only ever see the caller's products.
"""
from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..models import Product
from ..services import products_service
from ..services.import_service import CsvImportError, import_products
from ..services.inventory_service import low_stock_products
from ..services.products_service import ProductNotFoundError
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "sku",
        "category",
        "description",
        "quantity",
        "purchase_price",
        "unit_price",
        "low_stock_threshold",
    },
    required_on_create={"name"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    Query params:
    - q: search name/sku/category
    - category: exact category
    - low_stock: "1" to only list products at or below their threshold
    - page / per_page: optional pagination (per_page max 100)
    """
    return products_service.list_products(
        g.account_id,
        search=request.args.get("q"),
        category=request.args.get("category"),
        low_stock=request.args.get("low_stock") in ("1", "true"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", default=20, type=int),
    )


@products_bp.get("/low-stock")
@require_auth
def list_low_stock():
    items = low_stock_products(g.account_id)
    return {"items": [p.to_dict() for p in items], "count": len(items)}


@products_bp.get("/categories")
@require_auth
def list_categories():
    return {"categories": products_service.list_categories(g.account_id)}


@products_bp.get("/<int:product_id>")
@require_auth
def get_product(product_id: int):
    try:
        return {"product": products_service.get_product(g.account_id, product_id).to_dict()}
    except ProductNotFoundError:
        return {"error": "Product not found"}, 404


@products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    product = products_service.create_product(g.account_id, patch)
    return {"product": product.to_dict()}, 201


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        product = products_service.update_product(g.account_id, product_id, patch)
    except ProductNotFoundError:
        return {"error": "Product not found"}, 404
    return {"product": product.to_dict()}


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(g.account_id, product_id)
    except ProductNotFoundError:
        return {"error": "Product not found"}, 404
    return {"ok": True}


@products_bp.post("/import")
@require_auth
def import_products_route():
    """
    Import products from CSV, either as a multipart "file" upload or as a
    text/csv request body.
    """
    if "file" in request.files:
        raw = request.files["file"].stream.read()
    else:
        raw = request.get_data()
    if not raw:
        return {"error": "No CSV data provided"}, 400

    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return {"error": "CSV must be UTF-8 encoded"}, 400

    try:
        result = import_products(g.account_id, text)
    except CsvImportError as e:
        current_app.logger.warning("Product import failed for account %s", g.account_id)
        return {"error": str(e)}, 400

    status = 200 if result["imported"] or not result["errors"] else 400
    return result, status
