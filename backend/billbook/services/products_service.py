# Overview: Product catalogue operations; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import DocumentLine, Product
from .pagination import paginate


PRODUCT_MUTABLE_FIELDS = {
    "name",
    "sku",
    "category",
    "description",
    "quantity",
    "purchase_price",
    "unit_price",
    "low_stock_threshold",
}


class ProductNotFoundError(ValueError):
    pass


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def get_product(account_id: int, product_id: int) -> Product:
    p = db.session.query(Product).filter_by(id=product_id, account_id=account_id).one_or_none()
    if p is None:
        raise ProductNotFoundError("Product not found")
    return p


def list_products(
    account_id: int,
    *,
    search: str | None = None,
    category: str | None = None,
    low_stock: bool = False,
    page: int | None = None,
    per_page: int = 20,
) -> dict:
    q = db.session.query(Product).filter(Product.account_id == account_id)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(Product.name.ilike(like), Product.sku.ilike(like), Product.category.ilike(like)))
    if category:
        q = q.filter(Product.category == category)
    if low_stock:
        q = q.filter(Product.quantity <= Product.low_stock_threshold)
    q = q.order_by(Product.name.asc(), Product.id.asc())
    return paginate(q, page, per_page)


def create_product(account_id: int, patch: dict) -> Product:
    p = Product(account_id=account_id)
    p.quantity = 0
    p.purchase_price = 0
    p.unit_price = 0
    p.low_stock_threshold = 10
    apply_product_patch(p, patch)
    db.session.add(p)
    db.session.commit()
    return p


def update_product(account_id: int, product_id: int, patch: dict) -> Product:
    """
    Manual edit. Quantity may be set directly here (stock count corrections);
    document-driven stock changes go through the stock engine instead.
    """
    p = get_product(account_id, product_id)
    apply_product_patch(p, patch)
    db.session.commit()
    return p


def delete_product(account_id: int, product_id: int) -> None:
    """Remove a product. Document lines keep their text and price but lose the link."""
    p = get_product(account_id, product_id)
    db.session.query(DocumentLine).filter(DocumentLine.product_id == p.id).update(
        {"product_id": None, "stock_delta": 0},
        synchronize_session=False,
    )
    db.session.delete(p)
    db.session.commit()


def list_categories(account_id: int) -> list[str]:
    rows = (
        db.session.query(Product.category)
        .filter(Product.account_id == account_id, Product.category.isnot(None), Product.category != "")
        .distinct()
        .order_by(Product.category.asc())
        .all()
    )
    return [r[0] for r in rows]
