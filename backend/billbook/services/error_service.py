# Overview: Service-layer helpers that turn raw backend errors into safe, user-facing messages.

"""
Error classification.

Database drivers, SQLAlchemy, auth helpers and HTTP clients all fail with
differently shaped errors. Routes never show those to users; they pass
them through classify_error() and return the category's safe message.

classify_error() is total: any input (None, strings, dicts, exceptions,
arbitrary objects) yields a ClassifiedError and nothing here raises.
"""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Any

from flask import current_app, has_app_context


DEFAULT_ERROR_MESSAGE = "An error occurred. Please try again or contact support."
DEFAULT_AUTH_ERROR_MESSAGE = "Authentication failed. Please check your credentials and try again."
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


class ErrorCategory(str, enum.Enum):
    DUPLICATE_RECORD = "DuplicateRecord"
    MISSING_REFERENCE = "MissingReference"
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    INVALID_VALUE = "InvalidValue"
    PERMISSION_DENIED = "PermissionDenied"
    NOT_FOUND = "NotFound"
    INVALID_INPUT = "InvalidInput"
    AUTH_FAILED = "AuthFailed"
    TRANSIENT_RETRYABLE = "TransientRetryable"
    TIMEOUT = "Timeout"
    ACCESS_DENIED = "AccessDenied"
    NETWORK_ERROR = "NetworkError"
    UNKNOWN = "Unknown"


CATEGORY_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.DUPLICATE_RECORD: "This record already exists",
    ErrorCategory.MISSING_REFERENCE: "Related record not found",
    ErrorCategory.MISSING_REQUIRED_FIELD: "Required information is missing",
    ErrorCategory.INVALID_VALUE: "The value provided is not valid",
    ErrorCategory.PERMISSION_DENIED: "You do not have permission to perform this action",
    ErrorCategory.NOT_FOUND: "The requested resource was not found",
    ErrorCategory.INVALID_INPUT: "Invalid input format",
    ErrorCategory.AUTH_FAILED: "Authentication failed",
    ErrorCategory.TRANSIENT_RETRYABLE: "Please try again",
    ErrorCategory.TIMEOUT: "Operation timed out. Please try again",
    ErrorCategory.ACCESS_DENIED: "You do not have access to this resource",
    ErrorCategory.NETWORK_ERROR: "Network error. Please check your connection",
    ErrorCategory.UNKNOWN: DEFAULT_ERROR_MESSAGE,
}


@dataclass(frozen=True)
class ClassifiedError:
    category: ErrorCategory
    message: str

    def to_dict(self) -> dict:
        return {"category": self.category.value, "message": self.message}


# PostgreSQL SQLSTATE codes
DB_ERROR_CODES: dict[str, ErrorCategory] = {
    "23505": ErrorCategory.DUPLICATE_RECORD,
    "23503": ErrorCategory.MISSING_REFERENCE,
    "23502": ErrorCategory.MISSING_REQUIRED_FIELD,
    "23514": ErrorCategory.INVALID_VALUE,
    "42501": ErrorCategory.PERMISSION_DENIED,
    "42P01": ErrorCategory.NOT_FOUND,
    "22P02": ErrorCategory.INVALID_INPUT,
    "28P01": ErrorCategory.AUTH_FAILED,
    "40001": ErrorCategory.TRANSIENT_RETRYABLE,
    "40P01": ErrorCategory.TRANSIENT_RETRYABLE,
    "57014": ErrorCategory.TIMEOUT,
}

# REST gateway style codes (record missing, connection trouble, gateway timeout)
API_ERROR_CODES: dict[str, tuple[ErrorCategory, str]] = {
    "PGRST116": (ErrorCategory.NOT_FOUND, "The requested record was not found"),
    "PGRST301": (ErrorCategory.NETWORK_ERROR, "Connection error. Please check your network"),
    "PGRST302": (ErrorCategory.TIMEOUT, "Request timeout. Please try again"),
}

# HTTP status codes carried by client errors
HTTP_STATUS_CODES: dict[str, ErrorCategory] = {
    "400": ErrorCategory.INVALID_INPUT,
    "401": ErrorCategory.AUTH_FAILED,
    "403": ErrorCategory.PERMISSION_DENIED,
    "404": ErrorCategory.NOT_FOUND,
    "408": ErrorCategory.TIMEOUT,
    "409": ErrorCategory.DUPLICATE_RECORD,
    "429": ErrorCategory.TRANSIENT_RETRYABLE,
    "503": ErrorCategory.TRANSIENT_RETRYABLE,
    "504": ErrorCategory.TIMEOUT,
}

# "user not found" and "invalid password" share one message so responses
# never reveal whether an email is registered.
AUTH_ERROR_CODES: dict[str, str] = {
    "invalid_credentials": INVALID_CREDENTIALS_MESSAGE,
    "user_not_found": INVALID_CREDENTIALS_MESSAGE,
    "invalid_password": INVALID_CREDENTIALS_MESSAGE,
    "invalid_grant": INVALID_CREDENTIALS_MESSAGE,
    "email_not_confirmed": "Please verify your email address",
    "user_already_exists": "An account with this email already exists",
    "email_taken": "An account with this email already exists",
    "weak_password": "Password is too weak. Please use a stronger password",
    "invalid_email": "Please enter a valid email address",
    "signup_disabled": "Sign up is currently disabled",
    "invalid_pin": "Invalid PIN",
    "pin_not_set": "PIN login is not enabled for this account",
    "session_not_found": "Your session has expired. Please sign in again",
    "session_expired": "Your session has expired. Please sign in again",
    "user_banned": "Your account has been suspended",
    "over_request_rate_limit": "Too many attempts. Please try again later",
}

# Ordered; first match wins
MESSAGE_PATTERNS: list[tuple[re.Pattern, ErrorCategory, str | None]] = [
    (re.compile(r"duplicate key|unique constraint", re.I), ErrorCategory.DUPLICATE_RECORD, None),
    (re.compile(r"violates foreign key|foreign key constraint", re.I), ErrorCategory.MISSING_REFERENCE, None),
    (re.compile(r"violates not-null|not null constraint", re.I), ErrorCategory.MISSING_REQUIRED_FIELD, None),
    (re.compile(r"violates check constraint|check constraint", re.I), ErrorCategory.INVALID_VALUE, None),
    (re.compile(r"permission denied", re.I), ErrorCategory.PERMISSION_DENIED, None),
    (re.compile(r"row-level security", re.I), ErrorCategory.ACCESS_DENIED, None),
    (re.compile(r"database is locked|deadlock|could not serialize", re.I), ErrorCategory.TRANSIENT_RETRYABLE, None),
    (re.compile(r"network|connection refused|connection reset", re.I), ErrorCategory.NETWORK_ERROR, None),
    (re.compile(r"timeout|timed out", re.I), ErrorCategory.TIMEOUT, "Request timed out. Please try again"),
    (re.compile(r"invalid password|invalid login", re.I), ErrorCategory.AUTH_FAILED, INVALID_CREDENTIALS_MESSAGE),
    (re.compile(r"email not confirmed", re.I), ErrorCategory.AUTH_FAILED, "Please verify your email address"),
    (re.compile(r"already registered", re.I), ErrorCategory.DUPLICATE_RECORD, "An account with this email already exists"),
    (re.compile(r"rate limit", re.I), ErrorCategory.TRANSIENT_RETRYABLE, "Too many attempts. Please try again later"),
]


def _get(obj: Any, name: str) -> Any:
    """Attribute or key lookup that tolerates any object shape."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    try:
        return getattr(obj, name, None)
    except Exception:  # noqa: BLE001
        return None


def _as_code(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        code = str(value)
    except Exception:  # noqa: BLE001
        return None
    return code or None


def extract_error_code(error: Any) -> str | None:
    """
    Pull a code out of an error, in priority order:
    code, error_code, errorCode, nested error.code, driver pgcode
    (directly or on a SQLAlchemy-wrapped .orig), then HTTP-style status.
    """
    if error is None or isinstance(error, str):
        return None

    for name in ("code", "error_code", "errorCode"):
        code = _as_code(_get(error, name))
        # SQLAlchemy's own .code is a docs link id ("gkpj"), not a backend code
        if code and not (name == "code" and _get(error, "orig") is not None):
            return code

    nested = _get(error, "error")
    if nested is not None and not isinstance(nested, str):
        code = _as_code(_get(nested, "code"))
        if code:
            return code

    code = _as_code(_get(error, "pgcode")) or _as_code(_get(_get(error, "orig"), "pgcode"))
    if code:
        return code

    for name in ("status", "status_code"):
        code = _as_code(_get(error, name))
        if code:
            return code

    return None


def extract_error_message(error: Any) -> str | None:
    if error is None:
        return None
    if isinstance(error, str):
        return error

    for name in ("message", "error_description", "msg"):
        message = _get(error, name)
        if isinstance(message, str) and message:
            return message

    nested = _get(error, "error")
    if isinstance(nested, str) and nested:
        return nested
    if nested is not None:
        message = _get(nested, "message")
        if isinstance(message, str) and message:
            return message

    if isinstance(error, BaseException):
        try:
            text = str(error)
        except Exception:  # noqa: BLE001
            return None
        return text or None

    return None


def classify_error(error: Any, default_message: str | None = None) -> ClassifiedError:
    """Map any error to a ClassifiedError. Never raises."""
    fallback = default_message or DEFAULT_ERROR_MESSAGE
    if error is None:
        return ClassifiedError(ErrorCategory.UNKNOWN, fallback)

    code = extract_error_code(error)
    if code:
        if code in DB_ERROR_CODES:
            category = DB_ERROR_CODES[code]
            return ClassifiedError(category, CATEGORY_MESSAGES[category])
        if code in API_ERROR_CODES:
            category, message = API_ERROR_CODES[code]
            return ClassifiedError(category, message)
        if code in AUTH_ERROR_CODES:
            return ClassifiedError(ErrorCategory.AUTH_FAILED, AUTH_ERROR_CODES[code])
        if code in HTTP_STATUS_CODES:
            category = HTTP_STATUS_CODES[code]
            return ClassifiedError(category, CATEGORY_MESSAGES[category])

    message = extract_error_message(error)
    if message:
        for pattern, category, safe_message in MESSAGE_PATTERNS:
            if pattern.search(message):
                return ClassifiedError(category, safe_message or CATEGORY_MESSAGES[category])

    return ClassifiedError(ErrorCategory.UNKNOWN, fallback)


def get_safe_error_message(error: Any, default_message: str | None = None) -> str:
    return classify_error(error, default_message).message


def get_safe_auth_error_message(error: Any) -> str:
    """
    Safe message for login/PIN failures.

    Unknown-user and wrong-password conditions collapse to the same string.
    """
    code = extract_error_code(error)
    if code and code in AUTH_ERROR_CODES:
        return AUTH_ERROR_CODES[code]

    message = extract_error_message(error)
    if message:
        if re.search(r"invalid.*password", message, re.I) or re.search(r"user.*not.*found", message, re.I):
            return INVALID_CREDENTIALS_MESSAGE
        if re.search(r"email.*not.*confirmed", message, re.I):
            return "Please verify your email address"
        if re.search(r"already.*exists", message, re.I) or re.search(r"already.*registered", message, re.I):
            return "An account with this email already exists"

    return DEFAULT_AUTH_ERROR_MESSAGE


def log_error_in_dev(context: str, error: Any) -> None:
    """Log the raw error only when ERROR_DETAIL_LOGGING is on."""
    if not has_app_context():
        return
    if current_app.config.get("ERROR_DETAIL_LOGGING"):
        current_app.logger.error("[%s] Full error: %r", context, error)
