from __future__ import annotations

from ..extensions import db
from billbook.time_utils import to_utc_z
from billbook.validation import to_float


class Product(db.Model):
    """
    Catalogue item with on-hand stock.

    quantity is only ever moved by whole-number deltas (bills add, invoices
    remove) and is kept >= 0 by the stock engine; the CHECK constraint is the
    last line of that invariant.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_nonneg"),
        db.Index("ix_products_account_name", "account_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)

    name = db.Column(db.String(200), nullable=False)
    sku = db.Column(db.String(100), nullable=True)
    category = db.Column(db.String(100), nullable=True)
    description = db.Column(db.Text, nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    purchase_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=10)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_low_stock(self) -> bool:
        return (self.quantity or 0) <= (self.low_stock_threshold or 0)

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "category": self.category,
            "description": self.description,
            "quantity": self.quantity,
            "purchase_price": to_float(self.purchase_price),
            "unit_price": to_float(self.unit_price),
            "low_stock_threshold": self.low_stock_threshold,
            "is_low_stock": self.is_low_stock,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
