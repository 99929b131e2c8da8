# Overview: Balance sheet ledger; manual income/expense entries and their totals.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from ..extensions import db
from ..models import LedgerEntry
from ..time_utils import parse_iso_date, today
from ..validation import MAX_MONEY

"""
Ledger rules:

- An entry is either income or expense; the amount is always positive and
  the type carries the sign.
- Category is required (<=100 chars); description is optional (<=500).
- Entries are not linked to invoices or bills and never move stock.
- Net balance = total income - total expenses over the same filtered set.
"""

ENTRY_INCOME = "income"
ENTRY_EXPENSE = "expense"
ENTRY_TYPES = (ENTRY_INCOME, ENTRY_EXPENSE)

MAX_CATEGORY_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500

_ENTRY_FIELDS = {"type", "category", "amount", "description", "date"}


class LedgerError(ValueError):
    pass


class LedgerEntryNotFoundError(LedgerError):
    pass


@dataclass(frozen=True)
class BalanceSummary:
    total_income: Decimal
    total_expenses: Decimal
    entry_count: int

    @property
    def net_balance(self) -> Decimal:
        return self.total_income - self.total_expenses

    def to_dict(self) -> dict:
        return {
            "total_income": float(self.total_income),
            "total_expenses": float(self.total_expenses),
            "net_balance": float(self.net_balance),
            "entry_count": self.entry_count,
        }


def summarize(entries: Iterable[Any]) -> BalanceSummary:
    """Income/expense totals for anything with entry_type and amount."""
    income = Decimal("0")
    expenses = Decimal("0")
    count = 0
    for entry in entries:
        count += 1
        amount = Decimal(str(entry.amount))
        if entry.entry_type == ENTRY_INCOME:
            income += amount
        else:
            expenses += amount
    return BalanceSummary(total_income=income, total_expenses=expenses, entry_count=count)


def _parse_amount(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        raise LedgerError("amount is required")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise LedgerError("amount must be a number") from None
    if not amount.is_finite() or amount <= 0:
        raise LedgerError("amount must be greater than 0")
    if amount > MAX_MONEY:
        raise LedgerError(f"amount cannot exceed {MAX_MONEY}")
    return amount.quantize(Decimal("0.01"))


def validate_entry(payload: Any) -> dict:
    """Clean a create payload into LedgerEntry column values."""
    if not isinstance(payload, dict):
        raise LedgerError("Invalid JSON payload")
    for key in payload:
        if key not in _ENTRY_FIELDS:
            raise LedgerError(f"Field not allowed: {key}")

    entry_type = payload.get("type")
    if entry_type not in ENTRY_TYPES:
        raise LedgerError("type must be income or expense")

    category = str(payload.get("category") or "").strip()
    if not category:
        raise LedgerError("category is required")
    if len(category) > MAX_CATEGORY_LENGTH:
        raise LedgerError(f"category must be {MAX_CATEGORY_LENGTH} characters or less")

    description = str(payload.get("description") or "").strip()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise LedgerError(f"description must be {MAX_DESCRIPTION_LENGTH} characters or less")

    try:
        entry_date = parse_iso_date(payload.get("date")) or today()
    except ValueError:
        raise LedgerError("date must be YYYY-MM-DD") from None

    return {
        "entry_type": entry_type,
        "category": category,
        "amount": _parse_amount(payload.get("amount")),
        "description": description or None,
        "entry_date": entry_date,
    }


def create_entry(account_id: int, payload: Any) -> LedgerEntry:
    entry = LedgerEntry(account_id=account_id, **validate_entry(payload))
    db.session.add(entry)
    db.session.commit()
    return entry


def _filtered(account_id: int, date_from: date | None, date_to: date | None, entry_type: str | None):
    if date_from and date_to and date_from > date_to:
        raise LedgerError("date_from must be on or before date_to")
    q = db.session.query(LedgerEntry).filter(LedgerEntry.account_id == account_id)
    if entry_type:
        if entry_type not in ENTRY_TYPES:
            raise LedgerError("type must be income or expense")
        q = q.filter(LedgerEntry.entry_type == entry_type)
    if date_from:
        q = q.filter(LedgerEntry.entry_date >= date_from)
    if date_to:
        q = q.filter(LedgerEntry.entry_date <= date_to)
    return q


def list_entries(
    account_id: int,
    *,
    date_from: date | None = None,
    date_to: date | None = None,
    entry_type: str | None = None,
) -> list[LedgerEntry]:
    """Newest first; both date bounds are inclusive."""
    return (
        _filtered(account_id, date_from, date_to, entry_type)
        .order_by(LedgerEntry.entry_date.desc(), LedgerEntry.id.desc())
        .all()
    )


def balance_sheet(
    account_id: int,
    *,
    date_from: date | None = None,
    date_to: date | None = None,
    entry_type: str | None = None,
) -> dict:
    entries = list_entries(account_id, date_from=date_from, date_to=date_to, entry_type=entry_type)
    return {
        "entries": [e.to_dict() for e in entries],
        "summary": summarize(entries).to_dict(),
        "date_from": date_from.isoformat() if date_from else None,
        "date_to": date_to.isoformat() if date_to else None,
    }


def delete_entry(account_id: int, entry_id: int) -> None:
    entry = db.session.query(LedgerEntry).filter_by(id=entry_id, account_id=account_id).one_or_none()
    if entry is None:
        raise LedgerEntryNotFoundError("Transaction not found")
    db.session.delete(entry)
    db.session.commit()
