# Overview: Account credentials and PIN primitives.

"""
Account authentication.

Passwords and PINs are stored only as bcrypt hashes (cost factor 12).

authenticate() raises AuthError with a machine code ("user_not_found",
"invalid_password", ...). Routes never show those codes; they go through
error_service.get_safe_auth_error_message(), which gives unknown-email and
wrong-password the same text.
"""

import re
from functools import lru_cache

import bcrypt
from flask import current_app, has_app_context

from ..extensions import db
from ..models import Account, UserPin


BCRYPT_ROUNDS = 12
PIN_RE = re.compile(r"^\d{4,6}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthError(ValueError):
    """Authentication failure carrying a code for error classification."""
    def __init__(self, message: str, code: str, details: dict | None = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}


class PasswordValidationError(AuthError):
    def __init__(self, message: str):
        super().__init__(message, "weak_password")


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")
    if not re.search(r"[A-Za-z]", password):
        raise PasswordValidationError("Password must contain at least one letter")
    if not re.search(r"\d", password):
        raise PasswordValidationError("Password must contain at least one digit")


def _rounds() -> int:
    if has_app_context():
        return current_app.config.get("BCRYPT_ROUNDS", BCRYPT_ROUNDS)
    return BCRYPT_ROUNDS


def _hash_secret(secret: str) -> str:
    salt = bcrypt.gensalt(rounds=_rounds())
    return bcrypt.hashpw(secret.encode("utf-8"), salt).decode("utf-8")


def _check_secret(secret: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(secret.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def hash_password(password: str) -> str:
    validate_password_strength(password)
    return _hash_secret(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    return _check_secret(password, password_hash)


def create_account(
    email: str,
    password: str,
    *,
    full_name: str | None = None,
    company_name: str | None = None,
    mobile: str | None = None,
) -> Account:
    email = normalize_email(email)
    if not EMAIL_RE.match(email) or len(email) > 255:
        raise AuthError("Invalid email address", "invalid_email")

    if db.session.query(Account).filter_by(email=email).first():
        raise AuthError("Account already exists", "user_already_exists")

    account = Account(
        email=email,
        password_hash=hash_password(password),
        full_name=(full_name or "").strip() or None,
        company_name=(company_name or "").strip() or None,
        mobile=(mobile or "").strip() or None,
        is_active=True,
    )
    db.session.add(account)
    db.session.commit()
    return account


def authenticate(email: str, password: str) -> Account:
    """
    Return the active account for these credentials.

    Raises:
        AuthError: code "user_not_found", "invalid_password" or "user_banned"
    """
    account = db.session.query(Account).filter_by(email=normalize_email(email)).first()
    if account is None:
        # Spend the same bcrypt time as a real check
        _check_secret(password or "", _dummy_hash())
        raise AuthError("User not found", "user_not_found")

    if not verify_password(password, account.password_hash):
        raise AuthError("Invalid password", "invalid_password")

    if not account.is_active:
        raise AuthError("Account disabled", "user_banned")

    return account


def change_password(account: Account, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, account.password_hash):
        raise AuthError("Invalid password", "invalid_password")
    account.password_hash = hash_password(new_password)
    db.session.commit()


# =============================================================================
# PIN (quick unlock)
# =============================================================================

def set_user_pin(account: Account, pin: str) -> None:
    """Store (or replace) the account's 4-6 digit PIN and enable PIN unlock."""
    pin = (pin or "").strip()
    if not PIN_RE.match(pin):
        raise AuthError("PIN must be 4 to 6 digits", "invalid_pin")

    row = db.session.query(UserPin).filter_by(account_id=account.id).first()
    if row is None:
        row = UserPin(account_id=account.id, pin_hash=_hash_secret(pin))
        db.session.add(row)
    else:
        row.pin_hash = _hash_secret(pin)

    account.pin_enabled = True
    db.session.commit()


def verify_pin(account: Account, pin: str) -> bool:
    """
    True when the PIN matches.

    Raises:
        AuthError: code "pin_not_set" when the account never set a PIN
    """
    row = db.session.query(UserPin).filter_by(account_id=account.id).first()
    if row is None or not account.pin_enabled:
        raise AuthError("PIN not set", "pin_not_set")
    if not PIN_RE.match((pin or "").strip()):
        return False
    return _check_secret(pin.strip(), row.pin_hash)


def clear_user_pin(account: Account) -> None:
    db.session.query(UserPin).filter_by(account_id=account.id).delete()
    account.pin_enabled = False
    db.session.commit()


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return _hash_secret("billbook-timing-equaliser")
