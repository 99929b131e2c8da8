# Overview: Pytest coverage for invoice/bill creation, status changes and stock side effects.

"""
Document lifecycle tests.

Covers:
- numbering per account and kind
- totals and tax rate selection at creation
- stock impact of bills (+qty) and invoices (-qty)
- cancel / reactivate symmetry and idempotence
- partial stock outcomes when a product disappears
- delete and client unlinking
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.orm.exc import StaleDataError

from billbook.extensions import db
from billbook.models import Document, DocumentLine
from billbook.services import document_service
from billbook.services.clients_service import delete_client
from billbook.services.document_service import DocumentError, DocumentNotFoundError
from billbook.services.inventory_service import (
    OUTCOME_FULL,
    OUTCOME_NONE,
    OUTCOME_PARTIAL,
    SqlProductStockStore,
)
from billbook.services.lifecycle_service import LifecycleError
from billbook.services.products_service import delete_product
from billbook.services.settings_service import update_settings
from billbook.validation import ValidationError


def bill_payload(*items, **extra):
    payload = {"customer_name": "Supplier Co", "date": "2026-03-10", "items": list(items)}
    payload.update(extra)
    return payload


def item(product, quantity, unit_price="10.00", description=""):
    return {
        "product_id": product.id,
        "quantity": quantity,
        "unit_price": unit_price,
        "description": description,
    }


def quantities(*products):
    for p in products:
        db.session.refresh(p)
    return tuple(p.quantity for p in products)


class TestNumbering:
    def test_sequential_per_kind(self, account):
        first, _ = document_service.create_invoice(account.id, {"customer_name": "A"})
        second, _ = document_service.create_invoice(account.id, {"customer_name": "B"})
        bill, _ = document_service.create_bill(account.id, {"customer_name": "C"})

        assert first.document_number == "INV-0001"
        assert second.document_number == "INV-0002"
        assert bill.document_number == "BILL-0001"

    def test_prefix_comes_from_settings(self, account):
        update_settings(account.id, {"invoice_prefix": "AC/"})
        doc, _ = document_service.create_invoice(account.id, {"customer_name": "A"})
        assert doc.document_number == "AC/0001"

    def test_accounts_have_independent_sequences(self, account, other_account):
        document_service.create_invoice(account.id, {"customer_name": "A"})
        doc, _ = document_service.create_invoice(other_account.id, {"customer_name": "B"})
        assert doc.document_number == "INV-0001"


class TestCreation:
    def test_invoice_totals_use_account_tax(self, account, product_a):
        doc, _ = document_service.create_invoice(account.id, {
            "customer_name": "Ravi",
            "items": [item(product_a, 2, "100.00"), {"description": "Delivery", "quantity": 1, "unit_price": "50"}],
        })
        assert doc.subtotal == Decimal("250.00")
        assert doc.tax_rate == Decimal("18")
        assert doc.tax == Decimal("45")
        assert doc.total == Decimal("295")

    def test_tax_disabled(self, account):
        update_settings(account.id, {"tax_enabled": False})
        doc, _ = document_service.create_invoice(account.id, {
            "customer_name": "Ravi",
            "items": [{"description": "Service", "quantity": 1, "unit_price": "100"}],
        })
        assert doc.tax == 0
        assert doc.total == Decimal("100")

    def test_bill_uses_configured_flat_rate(self, app, account):
        doc, _ = document_service.create_bill(account.id, bill_payload(
            {"description": "Boxes", "quantity": 10, "unit_price": "5"},
        ))
        assert app.config["BILL_TAX_OVERRIDE_PERCENT"] == 10.0
        assert doc.tax_rate == Decimal("10")
        assert doc.total == Decimal("55")

    def test_bill_follows_settings_without_override(self, app, account):
        app.config["BILL_TAX_OVERRIDE_PERCENT"] = None
        try:
            doc, _ = document_service.create_bill(account.id, bill_payload(
                {"description": "Boxes", "quantity": 10, "unit_price": "5"},
            ))
        finally:
            app.config["BILL_TAX_OVERRIDE_PERCENT"] = 10.0
        assert doc.tax_rate == Decimal("18")

    def test_explicit_tax_rate_wins(self, account):
        doc, _ = document_service.create_bill(account.id, bill_payload(
            {"description": "Boxes", "quantity": 1, "unit_price": "100"},
            tax_rate=5,
        ))
        assert doc.tax == Decimal("5")

    def test_placeholder_lines_are_dropped(self, account):
        doc, _ = document_service.create_invoice(account.id, {
            "customer_name": "Ravi",
            "items": [
                {"description": "Real", "quantity": 1, "unit_price": "10"},
                {"description": "", "quantity": 1, "unit_price": "10"},
                {"description": "Zero", "quantity": 0, "unit_price": "10"},
            ],
        })
        assert [dl.description for dl in doc.lines] == ["Real"]

    def test_product_name_fills_blank_description(self, account, product_a):
        doc, _ = document_service.create_invoice(account.id, {"customer_name": "Ravi", "items": [item(product_a, 1)]})
        assert doc.lines[0].description == "Product A"

    def test_due_date_defaults_to_payment_terms(self, account):
        doc, _ = document_service.create_invoice(account.id, {"customer_name": "A", "date": "2026-01-01"})
        assert doc.due_date == date(2026, 1, 1) + timedelta(days=30)

    def test_due_date_before_issue_date(self, account):
        with pytest.raises(ValidationError):
            document_service.create_invoice(account.id, {
                "customer_name": "A", "date": "2026-01-10", "due_date": "2026-01-01",
            })

    def test_customer_name_required(self, account):
        with pytest.raises(ValidationError, match="Customer name is required"):
            document_service.create_invoice(account.id, {"items": []})

    def test_customer_taken_from_client(self, account, customer):
        doc, _ = document_service.create_invoice(account.id, {"client_id": customer.id})
        assert doc.customer_name == "Ravi Kumar"
        assert doc.customer_email == "ravi@example.test"

    def test_unknown_product(self, account):
        with pytest.raises(DocumentNotFoundError):
            document_service.create_invoice(account.id, {
                "customer_name": "A", "items": [{"product_id": 424242, "quantity": 1, "unit_price": "1"}],
            })

    def test_cannot_reference_another_accounts_product(self, other_account, product_a):
        with pytest.raises(DocumentNotFoundError):
            document_service.create_invoice(other_account.id, {"customer_name": "A", "items": [item(product_a, 1)]})


class TestStockScenarios:
    def test_bill_create_then_cancel_nets_zero(self, account, product_a, product_b):
        baseline = quantities(product_a, product_b)

        doc, stock = document_service.create_bill(account.id, bill_payload(item(product_a, 5), item(product_b, 3)))
        assert stock.outcome == OUTCOME_FULL
        assert quantities(product_a, product_b) == (baseline[0] + 5, baseline[1] + 3)
        assert [dl.stock_delta for dl in doc.lines] == [5, 3]

        change = document_service.change_status(account.id, "bill", doc.id, "cancelled")
        assert change.changed
        assert change.stock.outcome == OUTCOME_FULL
        assert change.document.status == "cancelled"
        assert change.document.cancelled_at is not None
        assert quantities(product_a, product_b) == baseline

    def test_invoice_takes_stock_out(self, account, product_a):
        document_service.create_invoice(account.id, {"customer_name": "A", "items": [item(product_a, 2)]})
        assert quantities(product_a) == (3,)

    def test_cancelling_twice_restores_once(self, account, product_a):
        doc, _ = document_service.create_invoice(account.id, {"customer_name": "A", "items": [item(product_a, 2)]})
        document_service.change_status(account.id, "invoice", doc.id, "cancelled")
        again = document_service.change_status(account.id, "invoice", doc.id, "cancelled")

        assert not again.changed
        assert again.stock.outcome == OUTCOME_NONE
        assert quantities(product_a) == (5,)

    def test_reactivation_reapplies(self, account, product_a):
        doc, _ = document_service.create_invoice(account.id, {"customer_name": "A", "items": [item(product_a, 2)]})
        document_service.change_status(account.id, "invoice", doc.id, "cancelled")
        change = document_service.change_status(account.id, "invoice", doc.id, "active")

        assert change.changed
        assert change.document.status == "active"
        assert change.document.cancelled_at is None
        assert quantities(product_a) == (3,)

    def test_clamped_invoice_reverses_only_what_it_took(self, account, product_b):
        # Product B has 3; selling 5 can only take 3
        doc, stock = document_service.create_invoice(account.id, {"customer_name": "A", "items": [item(product_b, 5)]})
        assert stock.applied[0].applied == -3
        assert doc.lines[0].stock_delta == -3
        assert quantities(product_b) == (0,)

        document_service.change_status(account.id, "invoice", doc.id, "cancelled")
        assert quantities(product_b) == (3,)

    def test_deleted_product_is_reported_not_hidden(self, account, product_a, product_b):
        doc, _ = document_service.create_bill(account.id, bill_payload(item(product_a, 1), item(product_b, 1)))
        line_b = doc.lines[1]
        # Simulate a product removed behind the document's back
        db.session.query(DocumentLine).filter_by(id=line_b.id).update({"product_id": 999999})
        db.session.commit()

        change = document_service.change_status(account.id, "bill", doc.id, "cancelled")
        assert change.stock.outcome == OUTCOME_PARTIAL
        assert [s.product_id for s in change.stock.skipped] == [999999]
        assert change.document.status == "cancelled"
        assert quantities(product_a) == (5,)

    def test_stock_conflict_retries_the_status_change(self, account, product_a, product_b, monkeypatch):
        doc, _ = document_service.create_bill(account.id, bill_payload(item(product_a, 5), item(product_b, 3)))
        baseline = (5, 3)

        real_adjust = SqlProductStockStore.adjust_quantity
        calls = []

        def conflict_once(store, product_id, delta):
            calls.append(product_id)
            if len(calls) == 1:
                raise StaleDataError("products row changed")
            return real_adjust(store, product_id, delta)

        monkeypatch.setattr(SqlProductStockStore, "adjust_quantity", conflict_once)
        change = document_service.change_status(account.id, "bill", doc.id, "cancelled")

        assert change.stock.outcome == OUTCOME_FULL
        assert change.document.status == "cancelled"
        assert calls == [product_a.id, product_a.id, product_b.id]
        assert quantities(product_a, product_b) == baseline

    def test_product_delete_unlinks_lines(self, account, product_a):
        doc, _ = document_service.create_invoice(account.id, {"customer_name": "A", "items": [item(product_a, 2)]})
        delete_product(account.id, product_a.id)
        db.session.expire_all()

        line = db.session.get(DocumentLine, doc.lines[0].id)
        assert line.product_id is None
        assert line.stock_delta == 0

        change = document_service.change_status(account.id, "invoice", doc.id, "cancelled")
        assert change.stock.outcome == OUTCOME_NONE

    def test_invalid_status(self, account):
        doc, _ = document_service.create_invoice(account.id, {"customer_name": "A"})
        with pytest.raises(LifecycleError):
            document_service.change_status(account.id, "invoice", doc.id, "paid")


class TestReadsAndDeletes:
    def test_list_filters(self, account):
        document_service.create_invoice(account.id, {"customer_name": "Alpha", "date": "2026-01-05"})
        doc, _ = document_service.create_invoice(account.id, {"customer_name": "Beta", "date": "2026-02-05"})
        document_service.change_status(account.id, "invoice", doc.id, "cancelled")

        assert document_service.list_documents(account.id, "invoice")["count"] == 2
        assert document_service.list_documents(account.id, "invoice", status="cancelled")["count"] == 1
        assert document_service.list_documents(account.id, "invoice", search="alp")["count"] == 1
        ranged = document_service.list_documents(account.id, "invoice", date_from=date(2026, 2, 1))
        assert [d["customer_name"] for d in ranged["items"]] == ["Beta"]

    def test_list_paginates_with_settings_page_size(self, account):
        update_settings(account.id, {"items_per_page": 2})
        for n in range(3):
            document_service.create_invoice(account.id, {"customer_name": f"C{n}"})
        page = document_service.list_documents(account.id, "invoice", page=2)
        assert page["count"] == 1
        assert page["pagination"]["total"] == 3
        assert page["pagination"]["has_prev"]

    def test_kind_is_part_of_identity(self, account):
        doc, _ = document_service.create_invoice(account.id, {"customer_name": "A"})
        with pytest.raises(DocumentNotFoundError):
            document_service.get_document(account.id, "bill", doc.id)

    def test_delete_active_restores_stock(self, account, product_a):
        doc, _ = document_service.create_invoice(account.id, {"customer_name": "A", "items": [item(product_a, 2)]})
        stock = document_service.delete_document(account.id, "invoice", doc.id)

        assert stock.outcome == OUTCOME_FULL
        assert quantities(product_a) == (5,)
        assert db.session.query(DocumentLine).count() == 0

    def test_delete_refused_when_stock_cannot_be_restored(self, account, product_a):
        doc, _ = document_service.create_invoice(account.id, {"customer_name": "A", "items": [item(product_a, 2)]})
        db.session.query(DocumentLine).filter_by(document_id=doc.id).update({"product_id": 999999})
        db.session.commit()

        with pytest.raises(DocumentError):
            document_service.delete_document(account.id, "invoice", doc.id)
        assert db.session.get(Document, doc.id) is not None

    def test_deleting_client_keeps_documents(self, account, customer):
        doc, _ = document_service.create_invoice(account.id, {"client_id": customer.id})
        assert delete_client(account.id, customer.id) == 1

        db.session.expire_all()
        kept = db.session.get(Document, doc.id)
        assert kept.client_id is None
        assert kept.customer_name == "Ravi Kumar"
