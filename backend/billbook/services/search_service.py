# Overview: Global search across products, clients, invoices and bills.

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Client, Document, Product
from .lifecycle_service import KIND_BILL, KIND_INVOICE


MAX_HITS_PER_KIND = 10
MIN_QUERY_LENGTH = 1


def search(account_id: int, q: str, *, limit: int = MAX_HITS_PER_KIND) -> dict:
    """Case-insensitive substring match; at most `limit` hits of each kind."""
    q = (q or "").strip()
    empty = {"query": q, "products": [], "clients": [], "invoices": [], "bills": []}
    if len(q) < MIN_QUERY_LENGTH:
        return empty

    like = f"%{q}%"

    products = (
        db.session.query(Product)
        .filter(Product.account_id == account_id, or_(Product.name.ilike(like), Product.sku.ilike(like)))
        .order_by(Product.name.asc())
        .limit(limit)
        .all()
    )
    clients = (
        db.session.query(Client)
        .filter(Client.account_id == account_id, or_(Client.name.ilike(like), Client.email.ilike(like)))
        .order_by(Client.name.asc())
        .limit(limit)
        .all()
    )

    def _documents(kind: str) -> list[Document]:
        return (
            db.session.query(Document)
            .filter(
                Document.account_id == account_id,
                Document.kind == kind,
                or_(Document.document_number.ilike(like), Document.customer_name.ilike(like)),
            )
            .order_by(Document.document_date.desc(), Document.id.desc())
            .limit(limit)
            .all()
        )

    return {
        "query": q,
        "products": [p.to_dict() for p in products],
        "clients": [c.to_dict() for c in clients],
        "invoices": [d.to_dict() for d in _documents(KIND_INVOICE)],
        "bills": [d.to_dict() for d in _documents(KIND_BILL)],
    }
