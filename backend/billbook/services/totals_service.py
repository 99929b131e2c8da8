from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class LineInput:
    description: str
    quantity: int
    unit_price: Decimal
    product_id: Optional[int] = None

    @property
    def amount(self) -> Decimal:
        return line_amount(self.quantity, self.unit_price)


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    tax_rate: Decimal
    tax: Decimal
    total: Decimal


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def line_amount(quantity: Any, unit_price: Any) -> Decimal:
    return to_decimal(quantity) * to_decimal(unit_price)


def is_committed(line: LineInput) -> bool:
    """Placeholder rows (blank description, zero qty or zero price) never count."""
    return bool(line.description and line.description.strip()) and line.quantity > 0 and to_decimal(line.unit_price) > 0


def committed_lines(lines: Iterable[LineInput]) -> list[LineInput]:
    return [line for line in lines if is_committed(line)]


def compute_subtotal(lines: Iterable[LineInput]) -> Decimal:
    return sum((line.amount for line in committed_lines(lines)), ZERO)


def compute_totals(lines: Iterable[LineInput], tax_rate_percent: Any = 0) -> DocumentTotals:
    """
    subtotal = sum of committed line amounts, tax = subtotal * rate / 100,
    total = subtotal + tax. Exact decimals; nothing is rounded here.
    """
    rate = to_decimal(tax_rate_percent)
    if rate < 0:
        raise ValueError("tax rate must be >= 0")
    subtotal = compute_subtotal(lines)
    tax = subtotal * rate / HUNDRED
    return DocumentTotals(subtotal=subtotal, tax_rate=rate, tax=tax, total=subtotal + tax)
