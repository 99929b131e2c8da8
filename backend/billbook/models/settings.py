from __future__ import annotations

from ..extensions import db
from billbook.time_utils import to_utc_z


class UserSettings(db.Model):
    """
    Per-account preferences: currency, tax, document numbering, paging,
    notification and navigation toggles.

    Rows are created lazily the first time an account saves settings; until
    then the defaults in settings_service.DEFAULT_SETTINGS apply.
    """
    __tablename__ = "user_settings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, unique=True)

    currency_symbol = db.Column(db.String(8), nullable=False, default="₹")
    currency_code = db.Column(db.String(8), nullable=False, default="INR")

    default_tax_rate = db.Column(db.Numeric(6, 3), nullable=False, default=18)
    tax_name = db.Column(db.String(32), nullable=False, default="GST")
    tax_enabled = db.Column(db.Boolean, nullable=False, default=True)

    email_notifications = db.Column(db.Boolean, nullable=False, default=True)
    low_stock_alerts = db.Column(db.Boolean, nullable=False, default=True)
    invoice_reminders = db.Column(db.Boolean, nullable=False, default=True)
    bill_due_alerts = db.Column(db.Boolean, nullable=False, default=True)

    show_dashboard = db.Column(db.Boolean, nullable=False, default=True)
    show_sales = db.Column(db.Boolean, nullable=False, default=True)
    show_inventory = db.Column(db.Boolean, nullable=False, default=True)
    show_clients = db.Column(db.Boolean, nullable=False, default=True)

    invoice_prefix = db.Column(db.String(16), nullable=False, default="INV-")
    bill_prefix = db.Column(db.String(16), nullable=False, default="BILL-")
    default_payment_terms = db.Column(db.Integer, nullable=False, default=30)
    items_per_page = db.Column(db.Integer, nullable=False, default=10)
    date_format = db.Column(db.String(16), nullable=False, default="DD/MM/YYYY")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "currency_symbol": self.currency_symbol,
            "currency_code": self.currency_code,
            "default_tax_rate": float(self.default_tax_rate),
            "tax_name": self.tax_name,
            "tax_enabled": self.tax_enabled,
            "email_notifications": self.email_notifications,
            "low_stock_alerts": self.low_stock_alerts,
            "invoice_reminders": self.invoice_reminders,
            "bill_due_alerts": self.bill_due_alerts,
            "show_dashboard": self.show_dashboard,
            "show_sales": self.show_sales,
            "show_inventory": self.show_inventory,
            "show_clients": self.show_clients,
            "invoice_prefix": self.invoice_prefix,
            "bill_prefix": self.bill_prefix,
            "default_payment_terms": self.default_payment_terms,
            "items_per_page": self.items_per_page,
            "date_format": self.date_format,
            "updated_at": to_utc_z(self.updated_at),
        }
