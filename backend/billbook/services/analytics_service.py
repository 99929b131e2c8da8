# Overview: Profit analytics and dashboard figures; read-only aggregation over invoices.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import func

from ..extensions import db
from ..models import Client, Document, DocumentLine, Product
from ..time_utils import month_end, month_label, month_start, today
from ..validation import to_float
from .lifecycle_service import KIND_BILL, KIND_INVOICE, STATUS_ACTIVE, STATUS_CANCELLED
from .totals_service import ZERO, to_decimal


UNKNOWN_PRODUCT = "Unknown"
TOP_PRODUCTS_LIMIT = 10
DEFAULT_WINDOW_MONTHS = 5


class ReportError(ValueError):
    pass


@dataclass(frozen=True)
class ProfitLine:
    """One invoice line joined with its product's cost basis."""
    document_date: date
    quantity: int
    amount: Decimal
    product_name: Optional[str] = None
    purchase_price: Optional[Decimal] = None


@dataclass
class ProductProfit:
    name: str
    revenue: Decimal = ZERO
    cost: Decimal = ZERO
    quantity: int = 0

    @property
    def profit(self) -> Decimal:
        return self.revenue - self.cost

    @property
    def margin(self) -> Decimal:
        return margin_percent(self.revenue, self.cost)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "revenue": float(self.revenue),
            "cost": float(self.cost),
            "profit": float(self.profit),
            "quantity": self.quantity,
            "margin": float(self.margin),
        }


@dataclass
class MonthlyProfit:
    month: date
    revenue: Decimal = ZERO
    cost: Decimal = ZERO

    @property
    def profit(self) -> Decimal:
        return self.revenue - self.cost

    @property
    def label(self) -> str:
        return month_label(self.month)

    def to_dict(self) -> dict:
        return {
            "month": self.label,
            "revenue": float(self.revenue),
            "cost": float(self.cost),
            "profit": float(self.profit),
        }


@dataclass
class ProfitReport:
    total_revenue: Decimal = ZERO
    total_cost: Decimal = ZERO
    top_products: list[ProductProfit] = field(default_factory=list)
    monthly: list[MonthlyProfit] = field(default_factory=list)

    @property
    def total_profit(self) -> Decimal:
        return self.total_revenue - self.total_cost

    @property
    def margin(self) -> Decimal:
        return margin_percent(self.total_revenue, self.total_cost)

    def to_dict(self) -> dict:
        return {
            "total_revenue": float(self.total_revenue),
            "total_cost": float(self.total_cost),
            "total_profit": float(self.total_profit),
            "profit_margin_percent": float(self.margin),
            "top_products": [p.to_dict() for p in self.top_products],
            "monthly": [m.to_dict() for m in self.monthly],
        }


def margin_percent(revenue: Decimal, cost: Decimal) -> Decimal:
    """profit / revenue * 100, or 0 when there is no revenue."""
    if revenue <= 0:
        return ZERO
    return (revenue - cost) / revenue * Decimal("100")


def aggregate_profit(lines: Iterable[ProfitLine], *, top: int = TOP_PRODUCTS_LIMIT) -> ProfitReport:
    """
    Revenue, cost and profit per product and per calendar month.

    revenue = line amount, cost = purchase_price * quantity (0 when the line
    has no product or the product was deleted). Products are grouped by name
    ("Unknown" when unbound) and ranked by profit, highest first; months are
    returned oldest first.
    """
    report = ProfitReport()
    by_product: dict[str, ProductProfit] = {}
    by_month: dict[date, MonthlyProfit] = {}

    for line in lines:
        revenue = to_decimal(line.amount)
        cost = to_decimal(line.purchase_price) * line.quantity

        report.total_revenue += revenue
        report.total_cost += cost

        name = line.product_name or UNKNOWN_PRODUCT
        product = by_product.setdefault(name, ProductProfit(name=name))
        product.revenue += revenue
        product.cost += cost
        product.quantity += line.quantity

        key = month_start(line.document_date)
        month = by_month.setdefault(key, MonthlyProfit(month=key))
        month.revenue += revenue
        month.cost += cost

    report.top_products = sorted(by_product.values(), key=lambda p: p.profit, reverse=True)[:top]
    report.monthly = [by_month[k] for k in sorted(by_month)]
    return report


def inventory_profit_potential(products: Iterable) -> Decimal:
    """Sum of (unit_price - purchase_price) * quantity over current stock."""
    total = ZERO
    for p in products:
        total += (to_decimal(p.unit_price) - to_decimal(p.purchase_price)) * (p.quantity or 0)
    return total


def default_window(reference: date | None = None) -> tuple[date, date]:
    """First day of the month five months back through the end of this month."""
    reference = reference or today()
    return month_start(reference, DEFAULT_WINDOW_MONTHS), month_end(reference)


def load_profit_lines(account_id: int, date_from: date, date_to: date) -> list[ProfitLine]:
    rows = (
        db.session.query(
            Document.document_date,
            DocumentLine.quantity,
            DocumentLine.amount,
            Product.name,
            Product.purchase_price,
        )
        .join(Document, DocumentLine.document_id == Document.id)
        .outerjoin(Product, DocumentLine.product_id == Product.id)
        .filter(
            Document.account_id == account_id,
            Document.kind == KIND_INVOICE,
            Document.status != STATUS_CANCELLED,
            Document.document_date >= date_from,
            Document.document_date <= date_to,
        )
        .order_by(Document.document_date.asc(), DocumentLine.id.asc())
        .all()
    )
    return [
        ProfitLine(
            document_date=doc_date,
            quantity=quantity,
            amount=amount,
            product_name=name,
            purchase_price=purchase_price,
        )
        for doc_date, quantity, amount, name, purchase_price in rows
    ]


def profit_report(account_id: int, date_from: date | None = None, date_to: date | None = None) -> dict:
    """Profit analytics for invoices dated within [date_from, date_to] (inclusive)."""
    default_from, default_to = default_window()
    date_from = date_from or default_from
    date_to = date_to or default_to
    if date_from > date_to:
        raise ReportError("date_from must be on or before date_to")

    report = aggregate_profit(load_profit_lines(account_id, date_from, date_to))
    products = db.session.query(Product).filter_by(account_id=account_id).all()

    data = report.to_dict()
    data["date_from"] = date_from.isoformat()
    data["date_to"] = date_to.isoformat()
    data["inventory_profit_potential"] = float(inventory_profit_potential(products))
    return data


def dashboard_summary(account_id: int) -> dict:
    def _count(model, *criteria) -> int:
        return db.session.query(func.count(model.id)).filter(model.account_id == account_id, *criteria).scalar() or 0

    revenue = (
        db.session.query(func.coalesce(func.sum(Document.total), 0))
        .filter(
            Document.account_id == account_id,
            Document.kind == KIND_INVOICE,
            Document.status == STATUS_ACTIVE,
        )
        .scalar()
    )

    return {
        "products": _count(Product),
        "low_stock": _count(Product, Product.quantity <= Product.low_stock_threshold),
        "clients": _count(Client),
        "invoices": _count(Document, Document.kind == KIND_INVOICE),
        "bills": _count(Document, Document.kind == KIND_BILL),
        "active_invoice_revenue": to_float(revenue) or 0.0,
    }
