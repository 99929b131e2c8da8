# Overview: Pytest coverage for profile pictures and account deletion.

import io
import os

import pytest
from werkzeug.datastructures import FileStorage

from billbook.extensions import db
from billbook.models import (
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
from billbook.services import account_service, auth_service, document_service, ledger_service, storage_service
from billbook.services.session_service import create_session, validate_session
from billbook.services.settings_service import update_settings
from billbook.services.storage_service import StorageError


def image(name="me.png", size=16, content_type="image/png"):
    return FileStorage(stream=io.BytesIO(b"\x89PNG" + b"0" * size), filename=name, content_type=content_type)


class TestAvatar:
    def test_saved_under_account_folder(self, app, account):
        account_service.save_avatar(account, image())
        assert account.avatar_path == os.path.join(str(account.id), "avatar.png")
        assert os.path.isfile(os.path.join(storage_service.upload_root(), account.avatar_path))

    def test_new_extension_replaces_old_file(self, app, account):
        account_service.save_avatar(account, image("me.png"))
        old = os.path.join(storage_service.upload_root(), account.avatar_path)
        account_service.save_avatar(account, image("me.jpg", content_type="image/jpeg"))

        assert account.avatar_path.endswith("avatar.jpg")
        assert not os.path.exists(old)

    @pytest.mark.parametrize("upload", [
        image("notes.txt", content_type="text/plain"),
        image("me.png", content_type="application/pdf"),
    ])
    def test_rejects_non_images(self, app, account, upload):
        with pytest.raises(StorageError):
            account_service.save_avatar(account, upload)
        assert account.avatar_path is None

    def test_size_limit(self, app, account, monkeypatch):
        monkeypatch.setitem(app.config, "AVATAR_MAX_BYTES", 8)
        with pytest.raises(StorageError, match="or smaller"):
            account_service.save_avatar(account, image(size=64))

    def test_signed_url_in_account_json(self, app, account):
        account_service.save_avatar(account, image())
        with app.test_request_context():
            data = account_service.account_to_dict(account)
        assert data["avatar_url"].startswith("/api/files/")


class TestDeleteAccount:
    def _populate(self, account_id, product):
        update_settings(account_id, {"invoice_prefix": "S-"})
        document_service.create_invoice(account_id, {
            "customer_name": "A",
            "items": [{"product_id": product.id, "quantity": 1, "unit_price": "100", "description": ""}],
        })
        document_service.create_bill(account_id, {"customer_name": "B", "items": []})
        ledger_service.create_entry(account_id, {"type": "expense", "amount": "20", "category": "Rent"})
        db.session.add(Client(account_id=account_id, name="Client"))
        db.session.add(CompanyProfile(account_id=account_id, company_name="Acme"))
        db.session.commit()

    def test_removes_every_owned_row(self, app, account, product_a):
        self._populate(account.id, product_a)
        auth_service.set_user_pin(account, "1234")
        _, token = create_session(account)
        account_id = account.id

        deleted = account_service.delete_account(account)

        assert deleted["documents"] == 2
        assert deleted["document_lines"] == 1
        for model in (Document, DocumentLine, DocumentSequence, LedgerEntry, Product, Client,
                      UserSettings, UserPin, CompanyProfile, SessionToken):
            assert db.session.query(model).count() == 0, model.__tablename__
        assert db.session.get(Account, account_id) is None
        assert validate_session(token) is None

    def test_other_accounts_are_untouched(self, app, account, other_account, product_a, make_product):
        other_product = make_product(other_account.id, "Theirs", 4)
        self._populate(other_account.id, other_product)

        account_service.delete_account(account)

        assert db.session.query(Product).filter_by(account_id=other_account.id).count() == 1
        assert db.session.query(Document).filter_by(account_id=other_account.id).count() == 2
        assert db.session.query(LedgerEntry).count() == 1
        assert db.session.get(Account, other_account.id) is not None

    def test_stored_files_are_removed(self, app, account):
        account_service.save_avatar(account, image())
        folder = os.path.join(storage_service.upload_root(), str(account.id))
        assert os.path.isdir(folder)

        account_service.delete_account(account)
        assert not os.path.exists(folder)
