# Overview: Account profile picture and whole-account deletion.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import (
    Account,
    Client,
    CompanyProfile,
    Document,
    DocumentLine,
    DocumentSequence,
    LedgerEntry,
    Product,
    SessionToken,
    UserPin,
    UserSettings,
)
from .storage_service import create_signed_url, remove_account_files, save_image


def account_to_dict(account: Account) -> dict:
    """Account JSON with a short-lived avatar link (needs a request context)."""
    data = account.to_dict()
    data["avatar_url"] = create_signed_url(account.avatar_path) if account.avatar_path else None
    return data


def save_avatar(account: Account, file_storage) -> Account:
    """
    Replace the account's profile picture.

    Raises:
        StorageError: not an image, or larger than AVATAR_MAX_BYTES
    """
    max_bytes = current_app.config.get("AVATAR_MAX_BYTES")
    account.avatar_path = save_image(account.id, file_storage, "avatar", max_bytes=max_bytes)
    db.session.commit()
    return account


# Children before parents; every table keyed by account_id
_ACCOUNT_TABLES = (
    Document,
    DocumentSequence,
    LedgerEntry,
    Product,
    Client,
    UserSettings,
    UserPin,
    CompanyProfile,
    SessionToken,
)


def delete_account(account: Account) -> dict:
    """
    Remove an account, every row it owns and its stored files.

    Rows go in one transaction; files are removed only after the commit
    succeeds. Returns the number of rows deleted per table.
    """
    account_id = account.id
    deleted = {}

    document_ids = db.session.query(Document.id).filter(Document.account_id == account_id)
    deleted[DocumentLine.__tablename__] = (
        db.session.query(DocumentLine)
        .filter(DocumentLine.document_id.in_(document_ids.scalar_subquery()))
        .delete(synchronize_session=False)
    )
    for model in _ACCOUNT_TABLES:
        deleted[model.__tablename__] = (
            db.session.query(model)
            .filter(model.account_id == account_id)
            .delete(synchronize_session=False)
        )

    db.session.delete(account)
    db.session.commit()
    db.session.expire_all()

    removed_files = remove_account_files(account_id)
    current_app.logger.info(
        "Deleted account %s (%d rows, files removed: %s)",
        account_id, sum(deleted.values()), removed_files,
    )
    return deleted
