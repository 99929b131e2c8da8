# Overview: Company profile (letterhead) and logo storage.

from __future__ import annotations

from ..extensions import db
from ..models import CompanyProfile
from .storage_service import create_signed_url, save_image


PROFILE_FIELDS = {"company_name", "address", "phone", "email", "gst_number", "website"}
PROFILE_LIMITS = {
    "company_name": 200,
    "phone": 32,
    "email": 255,
    "gst_number": 32,
    "website": 255,
}


class CompanyProfileError(ValueError):
    pass


def get_profile(account_id: int) -> CompanyProfile | None:
    return db.session.query(CompanyProfile).filter_by(account_id=account_id).one_or_none()


def upsert_profile(account_id: int, patch: dict) -> CompanyProfile:
    """Create the profile on first save, otherwise update it in place."""
    if not isinstance(patch, dict):
        raise CompanyProfileError("Invalid JSON payload")

    cleaned = {}
    for key, value in patch.items():
        if key not in PROFILE_FIELDS:
            raise CompanyProfileError(f"Field not allowed: {key}")
        text = "" if value is None else str(value).strip()
        limit = PROFILE_LIMITS.get(key)
        if limit and len(text) > limit:
            raise CompanyProfileError(f"{key} must be {limit} characters or less")
        cleaned[key] = text

    profile = get_profile(account_id)
    if profile is None:
        profile = CompanyProfile(account_id=account_id, company_name="")
        db.session.add(profile)

    for key, text in cleaned.items():
        setattr(profile, key, text if key == "company_name" else (text or None))

    db.session.commit()
    return profile


def save_logo(account_id: int, file_storage) -> CompanyProfile:
    """Store the uploaded logo and point the profile at it (raises StorageError)."""
    rel_path = save_image(account_id, file_storage, "logo")

    profile = get_profile(account_id)
    if profile is None:
        profile = CompanyProfile(account_id=account_id, company_name="")
        db.session.add(profile)
    profile.logo_path = rel_path
    db.session.commit()
    return profile


def profile_to_dict(profile: CompanyProfile | None) -> dict:
    if profile is None:
        return {
            "company_name": "",
            "address": None,
            "phone": None,
            "email": None,
            "gst_number": None,
            "website": None,
            "logo_path": None,
            "logo_url": None,
        }
    data = profile.to_dict()
    data["logo_url"] = create_signed_url(profile.logo_path) if profile.logo_path else None
    return data
