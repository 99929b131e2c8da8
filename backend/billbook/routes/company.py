# Overview: Flask API routes for the company profile and stored files.

from flask import Blueprint, g, request, send_from_directory

from ..decorators import require_auth
from ..services import company_service, storage_service
from ..services.company_service import CompanyProfileError
from ..services.storage_service import StorageError

company_bp = Blueprint("company", __name__)


@company_bp.get("/api/company")
@require_auth
def get_company():
    profile = company_service.get_profile(g.account_id)
    return {"company": company_service.profile_to_dict(profile)}


@company_bp.put("/api/company")
@require_auth
def update_company():
    payload = request.get_json(silent=True)
    try:
        profile = company_service.upsert_profile(g.account_id, payload)
    except CompanyProfileError as e:
        return {"error": str(e)}, 400
    return {"company": company_service.profile_to_dict(profile)}


@company_bp.post("/api/company/logo")
@require_auth
def upload_logo():
    if "file" not in request.files:
        return {"error": "No file provided"}, 400
    try:
        profile = company_service.save_logo(g.account_id, request.files["file"])
    except StorageError as e:
        return {"error": str(e)}, 400
    return {"company": company_service.profile_to_dict(profile)}, 201


@company_bp.get("/api/files/<token>")
def stored_file(token: str):
    """Serve a stored file through a signed, time-limited link (no auth header)."""
    try:
        directory, filename = storage_service.resolve_signed_token(token)
    except StorageError as e:
        return {"error": str(e)}, 404
    return send_from_directory(directory, filename)
