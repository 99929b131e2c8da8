# Overview: Product CSV import; parses untrusted spreadsheets into catalogue rows.

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product
from ..validation import (
    MAX_CATEGORY_LENGTH,
    MAX_NAME_LENGTH,
    MAX_SKU_LENGTH,
    parse_integer,
    parse_money,
    sanitize_text,
)
from .error_service import get_safe_error_message, log_error_in_dev


DEFAULT_MAX_ROWS = 1000
DEFAULT_LOW_STOCK_THRESHOLD = 10


class CsvImportError(ValueError):
    """Raised when an uploaded file cannot be imported at all."""


@dataclass(frozen=True)
class ProductCsvRow:
    name: str
    sku: Optional[str]
    category: Optional[str]
    quantity: int
    purchase_price: float
    unit_price: float
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD


@dataclass
class CsvParseResult:
    rows: list[ProductCsvRow] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def _find_key(keys: list[str], predicate) -> Optional[str]:
    return next((k for k in keys if predicate(k)), None)


def parse_product_csv(text: str, max_rows: int = DEFAULT_MAX_ROWS) -> CsvParseResult:
    """
    Parse a product spreadsheet exported from anywhere.

    Headers are matched case-insensitively and loosely ("Product Name",
    "qty", "Cost Price", "Sale Price"...). Rows without a name are skipped
    silently; other bad rows are reported as "Row N: ..." where N is the
    spreadsheet row (header is row 1). A file with more than max_rows data
    rows is rejected whole with a single error.
    """
    result = CsvParseResult()

    try:
        reader = csv.DictReader(io.StringIO(text or ""))
        raw_rows = [row for row in reader if any((v or "").strip() for k, v in row.items() if isinstance(v, str))]
    except csv.Error as exc:
        result.errors.append(f"Failed to parse CSV: {exc}")
        return result

    if len(raw_rows) > max_rows:
        result.errors.append(f"Maximum {max_rows} products per import. Your file has {len(raw_rows)} rows.")
        return result

    for index, raw in enumerate(raw_rows):
        row = {
            k.strip().lower(): v
            for k, v in raw.items()
            if isinstance(k, str)
        }
        keys = list(row)
        row_no = index + 2

        name_key = _find_key(keys, lambda k: k in ("name", "product name", "product_name"))
        if not name_key or not (row.get(name_key) or "").strip():
            continue

        name = sanitize_text(row[name_key])
        if len(name) > MAX_NAME_LENGTH:
            result.errors.append(f"Row {row_no}: Product name too long (max {MAX_NAME_LENGTH} characters)")
            continue

        sku_key = _find_key(keys, lambda k: k == "sku")
        category_key = _find_key(keys, lambda k: k == "category")
        quantity_key = _find_key(keys, lambda k: k in ("quantity", "qty"))
        purchase_key = _find_key(keys, lambda k: "purchase" in k or "cost" in k)
        sale_key = _find_key(keys, lambda k: "sale" in k or "unit" in k or k == "price")

        sku = sanitize_text(row.get(sku_key)) if sku_key else ""
        category = sanitize_text(row.get(category_key)) if category_key else ""

        if len(sku) > MAX_SKU_LENGTH:
            result.errors.append(f"Row {row_no}: SKU too long (max {MAX_SKU_LENGTH} characters)")
            continue
        if len(category) > MAX_CATEGORY_LENGTH:
            result.errors.append(f"Row {row_no}: Category too long (max {MAX_CATEGORY_LENGTH} characters)")
            continue

        result.rows.append(
            ProductCsvRow(
                name=name,
                sku=sku or None,
                category=category or None,
                quantity=parse_integer(row.get(quantity_key)) if quantity_key else 0,
                purchase_price=parse_money(row.get(purchase_key)) if purchase_key else 0.0,
                unit_price=parse_money(row.get(sale_key)) if sale_key else 0.0,
            )
        )

    return result


def import_products(account_id: int, text: str, *, max_rows: int | None = None) -> dict:
    """
    Parse and insert products for an account.

    Parsing problems come back in "errors" next to the imported count; an
    insert failure aborts the whole batch with CsvImportError.
    """
    if max_rows is None:
        max_rows = current_app.config.get("CSV_IMPORT_MAX_ROWS", DEFAULT_MAX_ROWS)

    parsed = parse_product_csv(text, max_rows=max_rows)
    if not parsed.rows:
        return {"imported": 0, "errors": parsed.errors}

    for row in parsed.rows:
        db.session.add(
            Product(
                account_id=account_id,
                name=row.name,
                sku=row.sku,
                category=row.category,
                quantity=row.quantity,
                purchase_price=Decimal(str(row.purchase_price)),
                unit_price=Decimal(str(row.unit_price)),
                low_stock_threshold=row.low_stock_threshold,
            )
        )

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        log_error_in_dev("import_products", exc)
        raise CsvImportError(get_safe_error_message(exc, "Failed to import products")) from exc

    current_app.logger.info("Imported %d product(s) for account %s", len(parsed.rows), account_id)
    return {"imported": len(parsed.rows), "errors": parsed.errors}
