# Overview: Stock adjustment engine; applies and reverses the stock impact of documents.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product
from .concurrency import RETRYABLE_ERRORS, lock_for_update, savepoint


OUTCOME_FULL = "full"
OUTCOME_PARTIAL = "partial"
OUTCOME_FAILED = "failed"
OUTCOME_NONE = "none"

log = logging.getLogger(__name__)


class StockStoreError(Exception):
    """A single product adjustment could not be made (missing product, bad delta)."""


class ProductStockStore(Protocol):
    def adjust_quantity(self, product_id: int, delta: int) -> tuple[int, int]:
        """
        Add delta to the product's quantity, clamping the result at 0.

        Returns (before, after). Raises StockStoreError or a SQLAlchemy error
        when the adjustment could not be made; in that case nothing changed.
        """
        ...


@dataclass(frozen=True)
class StockRequest:
    line_id: Optional[int]
    product_id: int
    delta: int


@dataclass(frozen=True)
class AppliedAdjustment:
    line_id: Optional[int]
    product_id: int
    requested: int
    applied: int
    before: int
    after: int

    def to_dict(self) -> dict:
        return {
            "line_id": self.line_id,
            "product_id": self.product_id,
            "requested": self.requested,
            "applied": self.applied,
            "quantity_before": self.before,
            "quantity_after": self.after,
        }


@dataclass(frozen=True)
class SkippedAdjustment:
    line_id: Optional[int]
    product_id: int
    requested: int
    reason: str

    def to_dict(self) -> dict:
        return {
            "line_id": self.line_id,
            "product_id": self.product_id,
            "requested": self.requested,
            "reason": self.reason,
        }


@dataclass
class StockAdjustmentResult:
    """
    What happened to each product line of a stock operation.

    outcome:
      none    - nothing to adjust (no product-bound lines)
      full    - every requested adjustment was made
      partial - some were made, the rest are listed in skipped
      failed  - none could be made
    """
    applied: list[AppliedAdjustment] = field(default_factory=list)
    skipped: list[SkippedAdjustment] = field(default_factory=list)

    @property
    def outcome(self) -> str:
        if not self.applied and not self.skipped:
            return OUTCOME_NONE
        if not self.skipped:
            return OUTCOME_FULL
        if not self.applied:
            return OUTCOME_FAILED
        return OUTCOME_PARTIAL

    def applied_by_line(self) -> dict:
        return {a.line_id: a.applied for a in self.applied}

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome,
            "applied": [a.to_dict() for a in self.applied],
            "skipped": [s.to_dict() for s in self.skipped],
        }


def apply_stock_requests(
    store: ProductStockStore,
    requests: Iterable[StockRequest],
    *,
    logger: logging.Logger | None = None,
    context: str = "",
) -> StockAdjustmentResult:
    """
    Run each request against the store, one product at a time.

    A failing item is logged at WARNING and skipped; the remaining items
    still run. Lock timeouts and version conflicts are not item failures:
    they propagate so the caller can retry the whole operation.
    Zero-delta requests are ignored.
    """
    logger = logger or log
    result = StockAdjustmentResult()

    for req in requests:
        if not req.delta:
            continue
        try:
            before, after = store.adjust_quantity(req.product_id, req.delta)
        except RETRYABLE_ERRORS:
            raise
        except (StockStoreError, SQLAlchemyError) as exc:
            logger.warning(
                "Stock adjustment skipped %s line_id=%s product_id=%s delta=%s: %s",
                context, req.line_id, req.product_id, req.delta, exc,
            )
            result.skipped.append(
                SkippedAdjustment(
                    line_id=req.line_id,
                    product_id=req.product_id,
                    requested=req.delta,
                    reason=str(exc) if isinstance(exc, StockStoreError) else "Stock update failed",
                )
            )
            continue

        result.applied.append(
            AppliedAdjustment(
                line_id=req.line_id,
                product_id=req.product_id,
                requested=req.delta,
                applied=after - before,
                before=before,
                after=after,
            )
        )

    return result


def clamp_quantity(quantity: int, delta: int) -> int:
    return max(0, int(quantity) + int(delta))


class SqlProductStockStore:
    """
    ProductStockStore over the products table, scoped to one account.

    Each adjustment locks the product row, writes the clamped quantity and
    flushes inside its own savepoint; the Product version_id turns a
    concurrent write into StaleDataError instead of a lost update.
    """

    def __init__(self, account_id: int):
        self.account_id = account_id

    def adjust_quantity(self, product_id: int, delta: int) -> tuple[int, int]:
        with savepoint():
            product = lock_for_update(
                db.session.query(Product).filter_by(id=product_id, account_id=self.account_id)
            ).one_or_none()
            if product is None:
                raise StockStoreError(f"Product {product_id} not found")

            before = product.quantity or 0
            after = clamp_quantity(before, delta)
            product.quantity = after

        return before, after


def low_stock_products(account_id: int) -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.account_id == account_id, Product.quantity <= Product.low_stock_threshold)
        .order_by(Product.quantity.asc(), Product.name.asc())
        .all()
    )
