# Overview: CSV report exports for invoices, bills, products and profit.

from __future__ import annotations

import csv
import io
from datetime import date
from typing import Any, Iterable, Sequence

from ..extensions import db
from ..models import Document, Product
from ..time_utils import today, to_iso_date
from ..validation import format_money, sanitize_text
from .analytics_service import aggregate_profit, default_window, load_profit_lines
from .lifecycle_service import KIND_BILL, KIND_INVOICE


REPORTS = {"invoices", "bills", "products", "profit"}

INVOICE_HEADERS = ["Invoice Number", "Customer", "Email", "Issue Date", "Due Date", "Status", "Subtotal", "Tax", "Total"]
BILL_HEADERS = ["Bill Number", "Customer", "Email", "Bill Date", "Status", "Subtotal", "Tax", "Total"]
PRODUCT_HEADERS = ["Name", "SKU", "Category", "Quantity", "Purchase Price", "Unit Price", "Low Stock Threshold"]
PROFIT_HEADERS = ["Product", "Quantity Sold", "Revenue", "Cost", "Profit", "Margin %"]


class ExportError(ValueError):
    pass


def to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Header row first, every cell double-quoted."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(row)
    return buf.getvalue()


def export_filename(report: str, date_from: date | None = None, date_to: date | None = None, *, on: date | None = None) -> str:
    """
    "<report>_<YYYY-MM-DD>.csv" for point-in-time exports, or
    "<report>_<from>_to_<to>.csv" when a range applies (open ends read
    "start"/"end").
    """
    if date_from is None and date_to is None:
        return f"{report}_{(on or today()).isoformat()}.csv"
    start = date_from.isoformat() if date_from else "start"
    end = date_to.isoformat() if date_to else "end"
    return f"{report}_{start}_to_{end}.csv"


def _documents(account_id: int, kind: str, date_from: date | None, date_to: date | None) -> list[Document]:
    q = db.session.query(Document).filter(Document.account_id == account_id, Document.kind == kind)
    if date_from:
        q = q.filter(Document.document_date >= date_from)
    if date_to:
        q = q.filter(Document.document_date <= date_to)
    return q.order_by(Document.document_date.desc(), Document.id.desc()).all()


def invoice_rows(docs: Iterable[Document]) -> list[list[str]]:
    return [
        [
            sanitize_text(d.document_number),
            sanitize_text(d.customer_name),
            sanitize_text(d.customer_email),
            to_iso_date(d.document_date) or "",
            to_iso_date(d.due_date) or "",
            d.status,
            format_money(d.subtotal),
            format_money(d.tax),
            format_money(d.total),
        ]
        for d in docs
    ]


def bill_rows(docs: Iterable[Document]) -> list[list[str]]:
    return [
        [
            sanitize_text(d.document_number),
            sanitize_text(d.customer_name),
            sanitize_text(d.customer_email),
            to_iso_date(d.document_date) or "",
            d.status,
            format_money(d.subtotal),
            format_money(d.tax),
            format_money(d.total),
        ]
        for d in docs
    ]


def product_rows(products: Iterable[Product]) -> list[list[str]]:
    return [
        [
            sanitize_text(p.name),
            sanitize_text(p.sku),
            sanitize_text(p.category),
            str(p.quantity or 0),
            format_money(p.purchase_price),
            format_money(p.unit_price),
            str(p.low_stock_threshold or 0),
        ]
        for p in products
    ]


def export_report(
    account_id: int,
    report: str,
    date_from: date | None = None,
    date_to: date | None = None,
) -> tuple[str, str]:
    """Returns (filename, csv_text) for one of REPORTS."""
    if report not in REPORTS:
        raise ExportError(f"Unknown report '{report}'. Must be one of: {', '.join(sorted(REPORTS))}")

    if report == "invoices":
        body = to_csv(INVOICE_HEADERS, invoice_rows(_documents(account_id, KIND_INVOICE, date_from, date_to)))
    elif report == "bills":
        body = to_csv(BILL_HEADERS, bill_rows(_documents(account_id, KIND_BILL, date_from, date_to)))
    elif report == "products":
        products = db.session.query(Product).filter_by(account_id=account_id).order_by(Product.name.asc()).all()
        return export_filename(report), to_csv(PRODUCT_HEADERS, product_rows(products))
    else:
        if date_from is None or date_to is None:
            default_from, default_to = default_window()
            date_from = date_from or default_from
            date_to = date_to or default_to
        profit = aggregate_profit(load_profit_lines(account_id, date_from, date_to))
        body = to_csv(
            PROFIT_HEADERS,
            (
                [
                    sanitize_text(p.name),
                    str(p.quantity),
                    format_money(p.revenue),
                    format_money(p.cost),
                    format_money(p.profit),
                    format_money(p.margin),
                ]
                for p in profit.top_products
            ),
        )

    return export_filename(report, date_from, date_to), body
