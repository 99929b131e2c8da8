from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from decimal import Decimal, InvalidOperation
from typing import Any

from ..extensions import db
from ..models import UserSettings


class SettingsError(ValueError):
    pass


class SettingsValidationError(SettingsError):
    pass


@dataclass(frozen=True)
class EffectiveSettings:
    """
    Resolved per-account settings.

    Built from DEFAULT_SETTINGS when the account has no stored row yet, so
    readers never have to special-case "not configured".
    """
    currency_symbol: str = "₹"
    currency_code: str = "INR"
    default_tax_rate: Decimal = Decimal("18")
    tax_name: str = "GST"
    tax_enabled: bool = True
    email_notifications: bool = True
    low_stock_alerts: bool = True
    invoice_reminders: bool = True
    bill_due_alerts: bool = True
    show_dashboard: bool = True
    show_sales: bool = True
    show_inventory: bool = True
    show_clients: bool = True
    invoice_prefix: str = "INV-"
    bill_prefix: str = "BILL-"
    default_payment_terms: int = 30
    items_per_page: int = 10
    date_format: str = "DD/MM/YYYY"
    id: int | None = field(default=None, compare=False)

    @property
    def effective_tax_rate(self) -> Decimal:
        """Percentage applied to new invoices (0 when tax is disabled)."""
        return self.default_tax_rate if self.tax_enabled else Decimal("0")

    def prefix_for(self, kind: str) -> str:
        return self.bill_prefix if kind == "bill" else self.invoice_prefix

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["default_tax_rate"] = float(self.default_tax_rate)
        return data


DEFAULT_SETTINGS = EffectiveSettings()

SETTING_KEYS = {f.name for f in fields(EffectiveSettings)} - {"id"}

_BOOL_KEYS = {f.name for f in fields(EffectiveSettings) if f.type == "bool"}
_INT_BOUNDS = {
    "default_payment_terms": (0, 365),
    "items_per_page": (1, 100),
}
_STR_LIMITS = {
    "currency_symbol": 8,
    "currency_code": 8,
    "tax_name": 32,
    "invoice_prefix": 16,
    "bill_prefix": 16,
    "date_format": 16,
}
DATE_FORMATS = {"DD/MM/YYYY", "MM/DD/YYYY", "YYYY-MM-DD"}


def _from_row(row: UserSettings) -> EffectiveSettings:
    values = {key: getattr(row, key) for key in SETTING_KEYS}
    values["default_tax_rate"] = Decimal(str(row.default_tax_rate))
    return EffectiveSettings(id=row.id, **values)


def _load_row(account_id: int) -> UserSettings | None:
    return db.session.query(UserSettings).filter_by(account_id=account_id).one_or_none()


def get_settings(account_id: int) -> EffectiveSettings:
    """Stored settings for the account, or the defaults when none are saved yet."""
    row = _load_row(account_id)
    if row is None:
        return DEFAULT_SETTINGS
    return _from_row(row)


def validate_settings_patch(patch: Any) -> dict:
    """Check a partial update and return it with values coerced to their types."""
    if not isinstance(patch, dict):
        raise SettingsValidationError("Invalid JSON payload")

    cleaned: dict = {}
    for key, value in patch.items():
        if key not in SETTING_KEYS:
            raise SettingsValidationError(f"Unknown setting: {key}")
        if value is None:
            raise SettingsValidationError(f"{key} cannot be null")

        if key in _BOOL_KEYS:
            if not isinstance(value, bool):
                raise SettingsValidationError(f"{key} must be a boolean")
            cleaned[key] = value
        elif key in _INT_BOUNDS:
            if isinstance(value, bool) or not isinstance(value, int):
                raise SettingsValidationError(f"{key} must be an integer")
            low, high = _INT_BOUNDS[key]
            if not low <= value <= high:
                raise SettingsValidationError(f"{key} must be between {low} and {high}")
            cleaned[key] = value
        elif key == "default_tax_rate":
            if isinstance(value, bool):
                raise SettingsValidationError("default_tax_rate must be a number")
            try:
                rate = Decimal(str(value))
            except InvalidOperation:
                raise SettingsValidationError("default_tax_rate must be a number")
            if not rate.is_finite() or rate < 0 or rate > 100:
                raise SettingsValidationError("default_tax_rate must be between 0 and 100")
            cleaned[key] = rate
        else:
            if not isinstance(value, str):
                raise SettingsValidationError(f"{key} must be a string")
            text = value.strip()
            if key in {"currency_symbol", "currency_code", "tax_name"} and not text:
                raise SettingsValidationError(f"{key} cannot be blank")
            if len(text) > _STR_LIMITS[key]:
                raise SettingsValidationError(f"{key} must be {_STR_LIMITS[key]} characters or less")
            if key == "date_format" and text not in DATE_FORMATS:
                raise SettingsValidationError(f"date_format must be one of: {', '.join(sorted(DATE_FORMATS))}")
            cleaned[key] = text.upper() if key == "currency_code" else text

    return cleaned


def merge_settings(current: EffectiveSettings, patch: dict) -> EffectiveSettings:
    """Last write wins per field; untouched fields keep their current value."""
    return replace(current, **patch)


def update_settings(account_id: int, patch: dict) -> EffectiveSettings:
    """
    Merge a partial update into the account's settings and persist it.

    The first update creates the row (seeded with the current effective
    values); later updates modify that same row.
    """
    cleaned = validate_settings_patch(patch)

    row = _load_row(account_id)
    merged = merge_settings(_from_row(row) if row else DEFAULT_SETTINGS, cleaned)

    if row is None:
        row = UserSettings(account_id=account_id)
        db.session.add(row)

    for key in SETTING_KEYS:
        setattr(row, key, getattr(merged, key))

    db.session.commit()
    return _from_row(row)
