# Overview: Status state machine for invoices and bills.

"""
Document status lifecycle.

STATE MACHINE:
    active <-> cancelled

    active:    stock impact of the document's product lines is applied
    cancelled: stock impact has been reversed

RULES:
1. Only "active" and "cancelled" exist. Drafts and payment states are not
   part of this lifecycle.
2. active -> cancelled reverses the stock the document applied.
3. cancelled -> active re-applies it, so stock never silently drifts when
   a document is restored.
4. A transition to the current status is a no-op: nothing is reversed or
   applied twice.

Everything here is pure; the stock writes themselves live in
inventory_service and are driven by document_service.change_status().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


STATUS_ACTIVE = "active"
STATUS_CANCELLED = "cancelled"
VALID_STATUSES = {STATUS_ACTIVE, STATUS_CANCELLED}
DocumentStatus = Literal["active", "cancelled"]

KIND_INVOICE = "invoice"
KIND_BILL = "bill"
VALID_KINDS = {KIND_INVOICE, KIND_BILL}

# Bills bring stock in, invoices send it out
STOCK_SIGN = {KIND_INVOICE: -1, KIND_BILL: 1}

STOCK_ACTION_NONE = "none"
STOCK_ACTION_REVERSE = "reverse"
STOCK_ACTION_REAPPLY = "reapply"


class LifecycleError(ValueError):
    """
    Raised when a status value or transition is not allowed.

    This is a domain error: the caller asked for something the lifecycle
    rules forbid, not a technical failure.
    """


@dataclass(frozen=True)
class Transition:
    from_status: str
    to_status: str
    stock_action: str

    @property
    def is_noop(self) -> bool:
        return self.from_status == self.to_status


def validate_status(status: str) -> None:
    if status not in VALID_STATUSES:
        raise LifecycleError(
            f"Invalid status '{status}'. Must be one of: {', '.join(sorted(VALID_STATUSES))}"
        )


def validate_kind(kind: str) -> None:
    if kind not in VALID_KINDS:
        raise LifecycleError(
            f"Invalid document kind '{kind}'. Must be one of: {', '.join(sorted(VALID_KINDS))}"
        )


def can_transition(from_status: str, to_status: str) -> bool:
    """Both directions are allowed; same-state requests are allowed as no-ops."""
    validate_status(from_status)
    validate_status(to_status)
    return True


def plan_transition(from_status: str, to_status: str) -> Transition:
    """
    Decide what a status change must do to stock.

    Raises:
        LifecycleError: unknown status on either side
    """
    if not can_transition(from_status, to_status):
        raise LifecycleError(f"Cannot change status from '{from_status}' to '{to_status}'")

    if from_status == to_status:
        action = STOCK_ACTION_NONE
    elif to_status == STATUS_CANCELLED:
        action = STOCK_ACTION_REVERSE
    else:
        action = STOCK_ACTION_REAPPLY

    return Transition(from_status=from_status, to_status=to_status, stock_action=action)


def creation_delta(kind: str, quantity: int) -> int:
    """Signed stock change a line causes when its document is (re)activated."""
    validate_kind(kind)
    return STOCK_SIGN[kind] * int(quantity)
