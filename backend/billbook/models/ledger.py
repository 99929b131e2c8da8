from __future__ import annotations

from ..extensions import db
from billbook.time_utils import to_iso_date, to_utc_z
from billbook.validation import to_float


class LedgerEntry(db.Model):
    """
    One income or expense line on the balance sheet.

    Entries are entered by hand (rent, owner drawings, a cash sale that never
    got an invoice) and are independent of invoices and bills.
    """
    __tablename__ = "ledger_entries"
    __table_args__ = (
        db.CheckConstraint("entry_type IN ('income', 'expense')", name="ck_ledger_entries_type"),
        db.CheckConstraint("amount > 0", name="ck_ledger_entries_amount_positive"),
        db.Index("ix_ledger_entries_account_date", "account_id", "entry_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)

    entry_type = db.Column(db.String(16), nullable=False)
    category = db.Column(db.String(100), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    entry_date = db.Column(db.Date, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<LedgerEntry id={self.id} {self.entry_type} {self.amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.entry_type,
            "category": self.category,
            "amount": to_float(self.amount),
            "description": self.description,
            "date": to_iso_date(self.entry_date),
            "created_at": to_utc_z(self.created_at),
        }
