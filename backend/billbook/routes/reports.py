# Overview: Flask API routes for analytics and CSV exports; parses input and returns JSON responses.

from flask import Blueprint, Response, g, request

from ..decorators import require_auth
from ..services import analytics_service, export_service
from ..services.analytics_service import ReportError
from ..services.export_service import ExportError
from ..time_utils import parse_iso_date

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _date_range():
    return parse_iso_date(request.args.get("date_from")), parse_iso_date(request.args.get("date_to"))


@reports_bp.get("/dashboard")
@require_auth
def dashboard():
    return analytics_service.dashboard_summary(g.account_id)


@reports_bp.get("/profit")
@require_auth
def profit():
    """
    Profit analytics over non-cancelled invoices.

    Query params: date_from, date_to (YYYY-MM-DD). Defaults to the start of
    the month five months ago through the end of the current month.
    """
    try:
        date_from, date_to = _date_range()
    except ValueError:
        return {"error": "Dates must be in YYYY-MM-DD format"}, 400

    try:
        return analytics_service.profit_report(g.account_id, date_from, date_to)
    except ReportError as e:
        return {"error": str(e)}, 400


@reports_bp.get("/export/<report>")
@require_auth
def export(report: str):
    """CSV download for invoices, bills, products or profit."""
    try:
        date_from, date_to = _date_range()
    except ValueError:
        return {"error": "Dates must be in YYYY-MM-DD format"}, 400

    try:
        filename, body = export_service.export_report(g.account_id, report, date_from, date_to)
    except ExportError as e:
        return {"error": str(e)}, 404

    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
