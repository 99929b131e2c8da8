# Overview: Flask API routes for the balance sheet (income and expense entries).

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..services import ledger_service
from ..services.ledger_service import LedgerEntryNotFoundError, LedgerError
from ..time_utils import parse_iso_date

ledger_bp = Blueprint("ledger", __name__, url_prefix="/api/transactions")


@ledger_bp.get("")
@require_auth
def list_transactions():
    """
    Entries plus income/expense/net totals for the same filter.

    Query params: date_from, date_to (YYYY-MM-DD, inclusive), type.
    """
    try:
        date_from = parse_iso_date(request.args.get("date_from"))
        date_to = parse_iso_date(request.args.get("date_to"))
    except ValueError:
        return {"error": "Dates must be in YYYY-MM-DD format"}, 400

    try:
        return ledger_service.balance_sheet(
            g.account_id,
            date_from=date_from,
            date_to=date_to,
            entry_type=request.args.get("type") or None,
        )
    except LedgerError as e:
        return {"error": str(e)}, 400


@ledger_bp.post("")
@require_auth
def create_transaction():
    try:
        entry = ledger_service.create_entry(g.account_id, request.get_json(silent=True))
    except LedgerError as e:
        return {"error": str(e)}, 400
    return {"transaction": entry.to_dict()}, 201


@ledger_bp.delete("/<int:entry_id>")
@require_auth
def delete_transaction(entry_id: int):
    try:
        ledger_service.delete_entry(g.account_id, entry_id)
    except LedgerEntryNotFoundError as e:
        return {"error": str(e)}, 404
    return {"ok": True}
