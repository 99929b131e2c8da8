from __future__ import annotations

from ..extensions import db
from billbook.time_utils import to_utc_z, to_iso_date
from billbook.validation import to_float


class Document(db.Model):
    """
    Invoice (kind="invoice", outgoing stock) or bill (kind="bill", incoming stock).

    Totals are computed once at creation from the committed lines and never
    edited afterwards; only status moves (active <-> cancelled).

    customer_name/customer_email are copied from the client at creation so the
    document survives the client being deleted (client_id is SET NULL).
    """
    __tablename__ = "documents"
    __table_args__ = (
        db.Index("ix_documents_account_kind_date", "account_id", "kind", "document_date"),
        db.Index("ix_documents_account_status", "account_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)

    kind = db.Column(db.String(16), nullable=False)
    document_number = db.Column(db.String(64), nullable=False)

    client_id = db.Column(db.Integer, db.ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    customer_name = db.Column(db.String(200), nullable=False)
    customer_email = db.Column(db.String(255), nullable=True)

    document_date = db.Column(db.Date, nullable=False)
    # Invoices only: document_date + payment terms
    due_date = db.Column(db.Date, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="active")
    notes = db.Column(db.Text, nullable=True)

    subtotal = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    tax_rate = db.Column(db.Numeric(6, 3), nullable=False, default=0)
    tax = db.Column(db.Numeric(20, 8), nullable=False, default=0)
    total = db.Column(db.Numeric(20, 8), nullable=False, default=0)

    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    client = db.relationship("Client", backref=db.backref("documents", lazy=True, passive_deletes=True))
    lines = db.relationship(
        "DocumentLine",
        backref="document",
        cascade="all, delete-orphan",
        order_by="DocumentLine.position",
        lazy=True,
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Document id={self.id} {self.kind} {self.document_number!r} status={self.status}>"

    def to_dict(self, include_lines: bool = False) -> dict:
        data = {
            "id": self.id,
            "kind": self.kind,
            "document_number": self.document_number,
            "client_id": self.client_id,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "document_date": to_iso_date(self.document_date),
            "due_date": to_iso_date(self.due_date),
            "status": self.status,
            "notes": self.notes,
            "subtotal": to_float(self.subtotal),
            "tax_rate": to_float(self.tax_rate),
            "tax": to_float(self.tax),
            "total": to_float(self.total),
            "cancelled_at": to_utc_z(self.cancelled_at),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data


class DocumentLine(db.Model):
    """
    Committed line of a document.

    stock_delta is the change actually applied to the product at creation
    (negative for invoices, positive for bills; 0 when unbound or when the
    adjustment was skipped). Cancelling reverses exactly this value.
    """
    __tablename__ = "document_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    document_id = db.Column(db.Integer, db.ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    description = db.Column(db.String(500), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    amount = db.Column(db.Numeric(14, 2), nullable=False)

    stock_delta = db.Column(db.Integer, nullable=False, default=0)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "position": self.position,
            "product_id": self.product_id,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": to_float(self.unit_price),
            "amount": to_float(self.amount),
            "stock_delta": self.stock_delta,
        }


class DocumentSequence(db.Model):
    """Next number per (account, kind). Incremented with an atomic UPDATE."""
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("account_id", "kind", name="uq_document_sequences_account_kind"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    kind = db.Column(db.String(16), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
