# Overview: Bearer session tokens; issue, validate and revoke.

"""
Session tokens.

- 32 random bytes (hex) handed to the client once
- only the SHA-256 of the token is stored
- absolute lifetime of SESSION_TTL_HOURS (config, default 24h)
- revocable on logout
"""

import hashlib
import secrets
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import Account, SessionToken
from ..time_utils import utcnow


DEFAULT_TTL_HOURS = 24


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _ttl() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", DEFAULT_TTL_HOURS))


def create_session(account: Account) -> tuple[SessionToken, str]:
    """Returns (session_record, plaintext_token); only the hash is persisted."""
    token = generate_token()
    now = utcnow()
    session = SessionToken(
        account_id=account.id,
        token_hash=hash_token(token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _ttl(),
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def validate_session(token: str) -> Account | None:
    """
    The active account behind a token, or None when the token is unknown,
    revoked, expired, or its account has been disabled.
    """
    if not token:
        return None

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if session is None:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    account = session.account
    if account is None or not account.is_active:
        session.is_revoked = True
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()
    return account


def revoke_session(token: str) -> bool:
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if session is None:
        return False
    session.is_revoked = True
    db.session.commit()
    return True


def revoke_all_account_sessions(account_id: int) -> int:
    count = (
        db.session.query(SessionToken)
        .filter_by(account_id=account_id, is_revoked=False)
        .update({"is_revoked": True})
    )
    db.session.commit()
    return count
