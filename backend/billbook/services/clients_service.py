# Overview: Client address book operations.

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Client, Document
from .pagination import paginate


CLIENT_MUTABLE_FIELDS = {"name", "email", "phone", "address"}


class ClientNotFoundError(ValueError):
    pass


def _apply_client_patch(c: Client, patch: dict) -> None:
    for k, v in patch.items():
        if k not in CLIENT_MUTABLE_FIELDS:
            continue
        # Optional fields store NULL rather than ""
        setattr(c, k, v if k == "name" else (v or None))


def get_client(account_id: int, client_id: int) -> Client:
    c = db.session.query(Client).filter_by(id=client_id, account_id=account_id).one_or_none()
    if c is None:
        raise ClientNotFoundError("Client not found")
    return c


def list_clients(account_id: int, *, search: str | None = None, page: int | None = None, per_page: int = 20) -> dict:
    q = db.session.query(Client).filter(Client.account_id == account_id)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(Client.name.ilike(like), Client.email.ilike(like), Client.phone.ilike(like)))
    q = q.order_by(Client.name.asc(), Client.id.asc())
    return paginate(q, page, per_page)


def create_client(account_id: int, patch: dict) -> Client:
    c = Client(account_id=account_id)
    _apply_client_patch(c, patch)
    db.session.add(c)
    db.session.commit()
    return c


def update_client(account_id: int, client_id: int, patch: dict) -> Client:
    c = get_client(account_id, client_id)
    _apply_client_patch(c, patch)
    db.session.commit()
    return c


def delete_client(account_id: int, client_id: int) -> int:
    """
    Delete a client. Its documents stay, unlinked, with their own copy of
    customer_name/customer_email. Returns how many documents were unlinked.
    """
    c = get_client(account_id, client_id)
    unlinked = (
        db.session.query(Document)
        .filter(Document.account_id == account_id, Document.client_id == c.id)
        .update({"client_id": None}, synchronize_session=False)
    )
    db.session.delete(c)
    db.session.commit()
    return unlinked
