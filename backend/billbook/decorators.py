# Overview: Request decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets on flask.g:
    - g.account: the authenticated Account
    - g.account_id: its id; every query in the route is scoped to it

    Returns 401 when the header is missing, or the token is unknown,
    revoked, expired, or belongs to a disabled account.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        account = session_service.validate_session(token)
        if account is None:
            return jsonify({"error": "Your session has expired. Please sign in again"}), 401

        g.account = account
        g.account_id = account.id
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function
