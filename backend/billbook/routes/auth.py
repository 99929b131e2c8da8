# Overview: Flask API routes for accounts, sessions and PINs; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..extensions import db
from ..services import account_service, auth_service, session_service
from ..services.auth_service import AuthError, PasswordValidationError
from ..services.error_service import get_safe_auth_error_message, log_error_in_dev
from ..services.storage_service import StorageError

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

PROFILE_FIELDS = {"full_name": 200, "company_name": 200, "mobile": 32}


@auth_bp.post("/register")
def register():
    payload = request.get_json(silent=True) or {}
    try:
        account = auth_service.create_account(
            payload.get("email"),
            payload.get("password") or "",
            full_name=payload.get("full_name"),
            company_name=payload.get("company_name"),
            mobile=payload.get("mobile"),
        )
    except PasswordValidationError as e:
        return {"error": str(e)}, 400
    except AuthError as e:
        log_error_in_dev("auth.register", e)
        return {"error": get_safe_auth_error_message(e)}, 400

    _, token = session_service.create_session(account)
    return {"account": account_service.account_to_dict(account), "token": token}, 201


@auth_bp.post("/login")
def login():
    payload = request.get_json(silent=True) or {}
    email = payload.get("email")
    password = payload.get("password")
    if not email or not password:
        return {"error": "Email and password are required"}, 400

    try:
        account = auth_service.authenticate(email, password)
    except AuthError as e:
        log_error_in_dev("auth.login", e)
        current_app.logger.info("Failed login attempt (%s)", e.code)
        return {"error": get_safe_auth_error_message(e)}, 401

    session, token = session_service.create_session(account)
    return {
        "account": account_service.account_to_dict(account),
        "token": token,
        "expires_at": session.expires_at.isoformat() + "Z",
    }


@auth_bp.post("/logout")
@require_auth
def logout():
    session_service.revoke_session(g.session_token)
    return {"ok": True}


@auth_bp.get("/me")
@require_auth
def me():
    return {"account": account_service.account_to_dict(g.account)}


@auth_bp.put("/me")
@require_auth
def update_me():
    payload = request.get_json(silent=True) or {}
    for key, value in payload.items():
        if key not in PROFILE_FIELDS:
            return {"error": f"Field not allowed: {key}"}, 400
        text = (value or "").strip() if isinstance(value, str) or value is None else None
        if text is None:
            return {"error": f"{key} must be a string"}, 400
        if len(text) > PROFILE_FIELDS[key]:
            return {"error": f"{key} must be {PROFILE_FIELDS[key]} characters or less"}, 400
        setattr(g.account, key, text or None)
    db.session.commit()
    return {"account": account_service.account_to_dict(g.account)}


@auth_bp.post("/password")
@require_auth
def change_password():
    payload = request.get_json(silent=True) or {}
    try:
        auth_service.change_password(g.account, payload.get("current_password") or "", payload.get("new_password") or "")
    except PasswordValidationError as e:
        return {"error": str(e)}, 400
    except AuthError as e:
        return {"error": get_safe_auth_error_message(e)}, 400

    session_service.revoke_all_account_sessions(g.account_id)
    _, token = session_service.create_session(g.account)
    return {"ok": True, "token": token}


@auth_bp.post("/pin")
@require_auth
def set_pin():
    payload = request.get_json(silent=True) or {}
    try:
        auth_service.set_user_pin(g.account, str(payload.get("pin") or ""))
    except AuthError as e:
        return {"error": get_safe_auth_error_message(e)}, 400
    return {"ok": True, "pin_enabled": True}


@auth_bp.post("/pin/verify")
@require_auth
def verify_pin():
    payload = request.get_json(silent=True) or {}
    try:
        valid = auth_service.verify_pin(g.account, str(payload.get("pin") or ""))
    except AuthError as e:
        return {"error": get_safe_auth_error_message(e)}, 400
    if not valid:
        return {"error": get_safe_auth_error_message({"code": "invalid_pin"}), "valid": False}, 401
    return {"valid": True}


@auth_bp.delete("/pin")
@require_auth
def clear_pin():
    auth_service.clear_user_pin(g.account)
    return {"ok": True, "pin_enabled": False}


@auth_bp.post("/avatar")
@require_auth
def upload_avatar():
    if "file" not in request.files:
        return {"error": "No file provided"}, 400
    try:
        account = account_service.save_avatar(g.account, request.files["file"])
    except StorageError as e:
        return {"error": str(e)}, 400
    return {"account": account_service.account_to_dict(account)}, 201


@auth_bp.delete("/account")
@require_auth
def delete_account():
    """Permanently delete the signed-in account and everything it owns."""
    account_service.delete_account(g.account)
    return {"ok": True}
