# Overview: Flask API route for global search.

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..services.search_service import search as search_service

search_bp = Blueprint("search", __name__, url_prefix="/api/search")


@search_bp.get("")
@require_auth
def search():
    return search_service(g.account_id, request.args.get("q", ""))
