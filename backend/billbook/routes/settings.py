# Overview: Flask API routes for account settings; parses input and returns JSON responses.

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..services import settings_service
from ..services.settings_service import SettingsError

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_auth
def get_settings():
    return {"settings": settings_service.get_settings(g.account_id).to_dict()}


@settings_bp.put("")
@require_auth
def update_settings():
    payload = request.get_json(silent=True)
    try:
        settings = settings_service.update_settings(g.account_id, payload)
    except SettingsError as e:
        return {"error": str(e)}, 400
    return {"settings": settings.to_dict()}
