# Overview: Per-account file storage for logos and avatars, with signed download links.

from __future__ import annotations

import os
import shutil

from flask import current_app, url_for
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.utils import secure_filename


IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg"}
SIGNING_SALT = "billbook-stored-file"


class StorageError(ValueError):
    pass


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=SIGNING_SALT)


def upload_root() -> str:
    root = current_app.config.get("UPLOAD_FOLDER", "uploads")
    if not os.path.isabs(root):
        root = os.path.join(current_app.instance_path, root)
    return root


def create_signed_url(path: str) -> str:
    """Time-limited link to a stored file; lifetime is SIGNED_URL_TTL_SECONDS."""
    token = _serializer().dumps(path)
    return url_for("company.stored_file", token=token)


def resolve_signed_token(token: str) -> tuple[str, str]:
    """
    Returns (directory, filename) for a valid token.

    Raises:
        StorageError: expired, tampered or pointing at a missing file
    """
    ttl = current_app.config.get("SIGNED_URL_TTL_SECONDS", 3600)
    try:
        path = _serializer().loads(token, max_age=ttl)
    except SignatureExpired:
        raise StorageError("Link has expired")
    except BadSignature:
        raise StorageError("Invalid link")

    full = os.path.join(upload_root(), path)
    if not os.path.isfile(full):
        raise StorageError("File not found")
    return os.path.dirname(full), os.path.basename(full)


def _stream_size(file_storage) -> int:
    stream = file_storage.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def save_image(account_id: int, file_storage, stem: str, *, max_bytes: int | None = None) -> str:
    """
    Store an uploaded image as <account_id>/<stem><ext>.

    Returns the path relative to the upload root. Any earlier file with the
    same stem but another extension is removed.
    """
    filename = secure_filename(file_storage.filename or "")
    ext = os.path.splitext(filename)[1].lower()
    if ext not in IMAGE_EXTENSIONS:
        raise StorageError(f"Image must be one of: {', '.join(sorted(IMAGE_EXTENSIONS))}")

    mimetype = file_storage.mimetype or ""
    if mimetype and mimetype != "application/octet-stream" and not mimetype.startswith("image/"):
        raise StorageError("File must be an image")

    if max_bytes is not None and _stream_size(file_storage) > max_bytes:
        if max_bytes >= 1024 * 1024:
            limit = f"{max_bytes // (1024 * 1024)}MB"
        else:
            limit = f"{max_bytes // 1024}KB"
        raise StorageError(f"Image must be {limit} or smaller")

    account_dir = os.path.join(upload_root(), str(account_id))
    os.makedirs(account_dir, exist_ok=True)
    for old_ext in IMAGE_EXTENSIONS - {ext}:
        old = os.path.join(account_dir, f"{stem}{old_ext}")
        if os.path.isfile(old):
            os.remove(old)

    rel_path = os.path.join(str(account_id), f"{stem}{ext}")
    file_storage.save(os.path.join(upload_root(), rel_path))
    return rel_path


def remove_account_files(account_id: int) -> bool:
    """Delete every stored file of an account. False when there were none."""
    account_dir = os.path.join(upload_root(), str(account_id))
    if not os.path.isdir(account_dir):
        return False
    shutil.rmtree(account_dir)
    return True
