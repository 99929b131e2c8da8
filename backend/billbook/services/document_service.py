# Overview: Invoice and bill operations; creation, listing, status changes and deletion.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

from flask import current_app
from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Client, Document, DocumentLine, DocumentSequence, Product
from ..time_utils import parse_iso_date, today, utcnow
from ..validation import MAX_NAME_LENGTH, ValidationError, parse_integer, parse_money
from .concurrency import run_with_retry
from .inventory_service import (
    SqlProductStockStore,
    StockAdjustmentResult,
    StockRequest,
    apply_stock_requests,
)
from .lifecycle_service import (
    KIND_BILL,
    KIND_INVOICE,
    STATUS_ACTIVE,
    STATUS_CANCELLED,
    STOCK_ACTION_REVERSE,
    creation_delta,
    plan_transition,
    validate_kind,
    validate_status,
)
from .pagination import paginate
from .settings_service import EffectiveSettings, get_settings
from .totals_service import LineInput, compute_totals, committed_lines, to_decimal


MAX_EMAIL_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 500
MAX_LINES = 200


class DocumentError(ValueError):
    """Raised for invoice/bill operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class DocumentNotFoundError(DocumentError):
    pass


@dataclass
class StatusChange:
    document: Document
    changed: bool
    stock: StockAdjustmentResult

    def to_dict(self) -> dict:
        return {
            "document": self.document.to_dict(include_lines=True),
            "changed": self.changed,
            "stock": self.stock.to_dict(),
        }


# =============================================================================
# Numbering
# =============================================================================

def next_document_number(*, account_id: int, kind: str, prefix: str, pad: int = 4) -> str:
    """
    Allocate the next "<prefix><NNNN>" number for an account/kind.

    The counter is bumped with a single UPDATE ... SET next_number = next_number + 1
    so two concurrent creators never receive the same number. Runs inside the
    caller's transaction.
    """
    validate_kind(kind)

    stmt = (
        update(DocumentSequence)
        .where(DocumentSequence.account_id == account_id, DocumentSequence.kind == kind)
        .values(next_number=DocumentSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if not result.rowcount:
        try:
            with db.session.begin_nested():
                db.session.add(DocumentSequence(account_id=account_id, kind=kind, next_number=2))
            return f"{prefix}{1:0{pad}d}"
        except IntegrityError:
            # Someone else created the row first
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise

    current = (
        db.session.query(DocumentSequence.next_number)
        .filter_by(account_id=account_id, kind=kind)
        .scalar()
    )
    return f"{prefix}{current - 1:0{pad}d}"


# =============================================================================
# Input normalisation
# =============================================================================

def _clean_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_tax_override(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("tax_rate must be a number")
    try:
        rate = to_decimal(value)
    except ArithmeticError:
        raise ValidationError("tax_rate must be a number")
    if not rate.is_finite() or rate < 0 or rate > 100:
        raise ValidationError("tax_rate must be between 0 and 100")
    return rate


def effective_tax_rate(kind: str, settings: EffectiveSettings, override: Decimal | None = None) -> Decimal:
    """
    Percentage applied to a new document.

    An explicit override always wins. Bills otherwise use the configured
    BILL_TAX_OVERRIDE_PERCENT when set (flat rate, ignores account settings);
    everything else follows the account's tax settings.
    """
    if override is not None:
        return override
    if kind == KIND_BILL:
        configured = current_app.config.get("BILL_TAX_OVERRIDE_PERCENT")
        if configured is not None:
            return to_decimal(configured)
    return settings.effective_tax_rate


def normalize_line_items(account_id: int, raw_items: Any) -> list[LineInput]:
    """
    Turn posted items into LineInputs.

    Product-bound items fall back to the product name when no description
    was typed. Quantities and prices are parsed leniently (never negative);
    placeholder rows survive here and are dropped by committed_lines().
    """
    if raw_items is None:
        return []
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")
    if len(raw_items) > MAX_LINES:
        raise ValidationError(f"A document can have at most {MAX_LINES} items")

    product_ids = set()
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValidationError("Each item must be an object")
        if raw.get("product_id") not in (None, ""):
            product_ids.add(parse_integer(raw.get("product_id")))

    products = {}
    if product_ids:
        rows = (
            db.session.query(Product)
            .filter(Product.account_id == account_id, Product.id.in_(product_ids))
            .all()
        )
        products = {p.id: p for p in rows}
        missing = sorted(product_ids - set(products))
        if missing:
            raise DocumentNotFoundError("Product not found", {"product_ids": missing})

    lines = []
    for index, raw in enumerate(raw_items):
        product_id = raw.get("product_id")
        product_id = parse_integer(product_id) if product_id not in (None, "") else None

        description = _clean_str(raw.get("description"))
        if not description and product_id is not None:
            description = products[product_id].name
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(f"Item {index + 1}: description must be {MAX_DESCRIPTION_LENGTH} characters or less")

        lines.append(
            LineInput(
                description=description,
                quantity=parse_integer(raw.get("quantity")),
                unit_price=to_decimal(parse_money(raw.get("unit_price"))),
                product_id=product_id,
            )
        )

    return lines


def _resolve_client(account_id: int, client_id: Any) -> Client | None:
    if client_id in (None, ""):
        return None
    client = (
        db.session.query(Client)
        .filter_by(id=parse_integer(client_id), account_id=account_id)
        .one_or_none()
    )
    if client is None:
        raise DocumentNotFoundError("Client not found", {"client_id": client_id})
    return client


# =============================================================================
# Creation
# =============================================================================

def _create_document(account_id: int, kind: str, payload: dict) -> tuple[Document, StockAdjustmentResult]:
    validate_kind(kind)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    settings = get_settings(account_id)
    client = _resolve_client(account_id, payload.get("client_id"))

    customer_name = _clean_str(payload.get("customer_name")) or (client.name if client else "")
    if not customer_name:
        raise ValidationError("Customer name is required")
    if len(customer_name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Customer name must be {MAX_NAME_LENGTH} characters or less")

    customer_email = _clean_str(payload.get("customer_email")) or (client.email if client else "") or None
    if customer_email and len(customer_email) > MAX_EMAIL_LENGTH:
        raise ValidationError(f"Customer email must be {MAX_EMAIL_LENGTH} characters or less")

    try:
        document_date = parse_iso_date(payload.get("date")) or today()
        due_date = parse_iso_date(payload.get("due_date"))
    except ValueError:
        raise ValidationError("Dates must be in YYYY-MM-DD format")
    if kind == KIND_INVOICE:
        if due_date is None:
            due_date = document_date + timedelta(days=settings.default_payment_terms)
        if due_date < document_date:
            raise ValidationError("Due date cannot be before the invoice date")
    else:
        due_date = None

    notes = _clean_str(payload.get("notes")) or None

    lines = committed_lines(normalize_line_items(account_id, payload.get("items")))
    rate = effective_tax_rate(kind, settings, _parse_tax_override(payload.get("tax_rate")))
    totals = compute_totals(lines, rate)

    def _op():
        number = next_document_number(
            account_id=account_id,
            kind=kind,
            prefix=settings.prefix_for(kind),
        )
        doc = Document(
            account_id=account_id,
            kind=kind,
            document_number=number,
            client_id=client.id if client else None,
            customer_name=customer_name,
            customer_email=customer_email,
            document_date=document_date,
            due_date=due_date,
            status=STATUS_ACTIVE,
            notes=notes,
            subtotal=totals.subtotal,
            tax_rate=totals.tax_rate,
            tax=totals.tax,
            total=totals.total,
        )
        for position, line in enumerate(lines, start=1):
            doc.lines.append(
                DocumentLine(
                    position=position,
                    product_id=line.product_id,
                    description=line.description,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    amount=line.amount,
                    stock_delta=0,
                )
            )
        db.session.add(doc)
        db.session.flush()

        stock = _run_stock(doc, [
            StockRequest(line_id=dl.id, product_id=dl.product_id, delta=creation_delta(kind, dl.quantity))
            for dl in doc.lines
            if dl.product_id is not None
        ])
        _record_applied(doc, stock)

        db.session.commit()
        return doc, stock

    return run_with_retry(_op)


def create_invoice(account_id: int, payload: dict) -> tuple[Document, StockAdjustmentResult]:
    """Create an active invoice and take its product quantities out of stock."""
    return _create_document(account_id, KIND_INVOICE, payload)


def create_bill(account_id: int, payload: dict) -> tuple[Document, StockAdjustmentResult]:
    """Create an active bill and add its product quantities to stock."""
    return _create_document(account_id, KIND_BILL, payload)


# =============================================================================
# Stock plumbing
# =============================================================================

def _run_stock(doc: Document, requests: list[StockRequest]) -> StockAdjustmentResult:
    return apply_stock_requests(
        SqlProductStockStore(doc.account_id),
        requests,
        logger=current_app.logger,
        context=f"document_id={doc.id} {doc.kind}={doc.document_number}",
    )


def _record_applied(doc: Document, stock: StockAdjustmentResult) -> None:
    """Fold the deltas that actually happened into each line's stock_delta."""
    applied = stock.applied_by_line()
    for dl in doc.lines:
        if dl.id in applied:
            dl.stock_delta = (dl.stock_delta or 0) + applied[dl.id]


def reversal_requests(doc: Document) -> list[StockRequest]:
    """Undo whatever stock each line currently holds."""
    return [
        StockRequest(line_id=dl.id, product_id=dl.product_id, delta=-(dl.stock_delta or 0))
        for dl in doc.lines
        if dl.product_id is not None and dl.stock_delta
    ]


def reapply_requests(doc: Document) -> list[StockRequest]:
    """Bring each line back to its full creation-time impact."""
    requests = []
    for dl in doc.lines:
        if dl.product_id is None:
            continue
        delta = creation_delta(doc.kind, dl.quantity) - (dl.stock_delta or 0)
        if delta:
            requests.append(StockRequest(line_id=dl.id, product_id=dl.product_id, delta=delta))
    return requests


# =============================================================================
# Reads
# =============================================================================

def get_document(account_id: int, kind: str, document_id: int) -> Document:
    doc = (
        db.session.query(Document)
        .filter_by(id=document_id, account_id=account_id, kind=kind)
        .one_or_none()
    )
    if doc is None:
        raise DocumentNotFoundError(f"{kind.capitalize()} not found")
    return doc


def list_documents(
    account_id: int,
    kind: str,
    *,
    status: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    search: str | None = None,
    client_id: int | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Newest first. Without page, every match is returned; with page, the page
    size defaults to the account's items_per_page setting.
    """
    validate_kind(kind)
    q = db.session.query(Document).filter(Document.account_id == account_id, Document.kind == kind)

    if status:
        validate_status(status)
        q = q.filter(Document.status == status)
    if date_from:
        q = q.filter(Document.document_date >= date_from)
    if date_to:
        q = q.filter(Document.document_date <= date_to)
    if client_id is not None:
        q = q.filter(Document.client_id == client_id)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(
            Document.document_number.ilike(like),
            Document.customer_name.ilike(like),
            Document.customer_email.ilike(like),
        ))

    q = q.order_by(Document.document_date.desc(), Document.id.desc())
    return paginate(q, page, per_page or get_settings(account_id).items_per_page)


# =============================================================================
# Status / deletion
# =============================================================================

def change_status(account_id: int, kind: str, document_id: int, new_status: str) -> StatusChange:
    """
    Move a document between active and cancelled.

    Cancelling reverses the stock the lines hold; reactivating re-applies
    the creation impact. The status and every successful item adjustment
    commit together; items that could not be adjusted are reported in the
    result (outcome partial/failed) rather than hidden.
    """
    validate_status(new_status)

    def _op():
        doc = get_document(account_id, kind, document_id)
        transition = plan_transition(doc.status, new_status)

        if transition.is_noop:
            return StatusChange(document=doc, changed=False, stock=StockAdjustmentResult())

        doc.status = new_status
        doc.cancelled_at = utcnow() if new_status == STATUS_CANCELLED else None
        db.session.flush()

        if transition.stock_action == STOCK_ACTION_REVERSE:
            requests = reversal_requests(doc)
        else:
            requests = reapply_requests(doc)

        stock = _run_stock(doc, requests)
        _record_applied(doc, stock)

        db.session.commit()

        if stock.skipped:
            current_app.logger.warning(
                "Status change %s -> %s for %s %s left %d stock item(s) unadjusted",
                transition.from_status, transition.to_status, doc.kind,
                doc.document_number, len(stock.skipped),
            )
        return StatusChange(document=doc, changed=True, stock=stock)

    return run_with_retry(_op)


def delete_document(account_id: int, kind: str, document_id: int) -> StockAdjustmentResult:
    """
    Delete a document and its lines.

    An active document's stock impact is reversed first. If any item cannot
    be reversed the delete is refused, since the lines that record what to
    undo would be lost with it.
    """
    def _op():
        doc = get_document(account_id, kind, document_id)

        stock = StockAdjustmentResult()
        if doc.status == STATUS_ACTIVE:
            doc.status = STATUS_CANCELLED
            db.session.flush()
            stock = _run_stock(doc, reversal_requests(doc))
            if stock.skipped:
                db.session.rollback()
                raise DocumentError(
                    "Stock for some items could not be restored; document was not deleted",
                    {"stock": stock.to_dict()},
                )

        db.session.delete(doc)
        db.session.commit()
        return stock

    return run_with_retry(_op)
