from __future__ import annotations

from ..extensions import db
from billbook.time_utils import to_utc_z


class CompanyProfile(db.Model):
    """Letterhead details printed on invoices and bills. One per account."""
    __tablename__ = "company_profiles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, unique=True)

    company_name = db.Column(db.String(200), nullable=False, default="")
    address = db.Column(db.Text, nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    gst_number = db.Column(db.String(32), nullable=True)
    website = db.Column(db.String(255), nullable=True)

    # Object-storage path of the uploaded logo; signed URLs are issued by the storage client
    logo_path = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_name": self.company_name,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "gst_number": self.gst_number,
            "website": self.website,
            "logo_path": self.logo_path,
            "updated_at": to_utc_z(self.updated_at),
        }
