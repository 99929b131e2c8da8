# Overview: Flask API routes for invoices and bills; parses input and returns JSON responses.

"""
Invoice and bill routes.

Both document kinds share one set of handlers; invoices_bp and bills_bp
only differ in URL prefix and kind.

Status changes report what happened to stock:
    {"document": {...}, "changed": true,
     "stock": {"outcome": "full" | "partial" | "failed" | "none",
               "applied": [...], "skipped": [...]}}
"""
from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..services import document_service
from ..services.document_service import DocumentError, DocumentNotFoundError
from ..services.lifecycle_service import KIND_BILL, KIND_INVOICE, LifecycleError
from ..time_utils import parse_iso_date
from ..validation import ValidationError

invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")
bills_bp = Blueprint("bills", __name__, url_prefix="/api/bills")


def _error(e: DocumentError, status: int):
    body = {"error": str(e)}
    if e.details:
        body["details"] = e.details
    return body, status


def _register(bp: Blueprint, kind: str) -> None:
    creator = document_service.create_invoice if kind == KIND_INVOICE else document_service.create_bill

    @bp.get("")
    @require_auth
    def list_documents():
        """
        Query params: status, date_from, date_to (YYYY-MM-DD), q, client_id,
        page, per_page (defaults to the account's items_per_page).
        """
        try:
            date_from = parse_iso_date(request.args.get("date_from"))
            date_to = parse_iso_date(request.args.get("date_to"))
        except ValueError:
            return {"error": "Dates must be in YYYY-MM-DD format"}, 400

        try:
            return document_service.list_documents(
                g.account_id,
                kind,
                status=request.args.get("status") or None,
                date_from=date_from,
                date_to=date_to,
                search=request.args.get("q"),
                client_id=request.args.get("client_id", type=int),
                page=request.args.get("page", type=int),
                per_page=request.args.get("per_page", type=int),
            )
        except LifecycleError as e:
            return {"error": str(e)}, 400

    @bp.get("/<int:document_id>")
    @require_auth
    def get_document(document_id: int):
        try:
            doc = document_service.get_document(g.account_id, kind, document_id)
        except DocumentNotFoundError as e:
            return {"error": str(e)}, 404
        return {"document": doc.to_dict(include_lines=True)}

    @bp.post("")
    @require_auth
    def create_document():
        payload = request.get_json(silent=True) or {}
        try:
            doc, stock = creator(g.account_id, payload)
        except ValidationError as e:
            return {"error": str(e)}, 400
        except DocumentNotFoundError as e:
            return _error(e, 404)
        except DocumentError as e:
            return _error(e, 400)

        return {"document": doc.to_dict(include_lines=True), "stock": stock.to_dict()}, 201

    @bp.patch("/<int:document_id>/status")
    @require_auth
    def change_status(document_id: int):
        payload = request.get_json(silent=True) or {}
        new_status = payload.get("status")
        if not new_status:
            return {"error": "status is required"}, 400

        try:
            change = document_service.change_status(g.account_id, kind, document_id, new_status)
        except DocumentNotFoundError as e:
            return {"error": str(e)}, 404
        except LifecycleError as e:
            return {"error": str(e)}, 400

        if change.stock.skipped:
            current_app.logger.warning(
                "%s %s status set to %s with stock outcome %s",
                kind, document_id, new_status, change.stock.outcome,
            )
        return change.to_dict()

    @bp.delete("/<int:document_id>")
    @require_auth
    def delete_document(document_id: int):
        try:
            stock = document_service.delete_document(g.account_id, kind, document_id)
        except DocumentNotFoundError as e:
            return {"error": str(e)}, 404
        except DocumentError as e:
            return _error(e, 409)
        return {"ok": True, "stock": stock.to_dict()}


_register(invoices_bp, KIND_INVOICE)
_register(bills_bp, KIND_BILL)
