# Overview: Pytest coverage for profit aggregation and the dashboard summary.

from datetime import date
from decimal import Decimal

import pytest

from billbook.services import document_service
from billbook.services.analytics_service import (
    ProfitLine,
    ReportError,
    aggregate_profit,
    dashboard_summary,
    default_window,
    margin_percent,
    profit_report,
)


def sale(account, product, quantity, unit_price, on="2026-03-15", customer="Walk-in"):
    doc, _ = document_service.create_invoice(account.id, {
        "customer_name": customer,
        "date": on,
        "items": [{"product_id": product.id, "quantity": quantity, "unit_price": unit_price}],
    })
    return doc


class TestAggregate:
    def test_single_line(self):
        report = aggregate_profit([
            ProfitLine(date(2026, 3, 1), 4, Decimal("400"), "Widget", Decimal("60")),
        ])
        assert report.total_revenue == 400
        assert report.total_cost == 240
        assert report.total_profit == 160
        assert report.margin == 40

    def test_unbound_lines_have_no_cost(self):
        report = aggregate_profit([ProfitLine(date(2026, 3, 1), 1, Decimal("50"))])
        assert report.top_products[0].name == "Unknown"
        assert report.total_cost == 0
        assert report.margin == 100

    def test_ranked_by_profit(self):
        report = aggregate_profit([
            ProfitLine(date(2026, 3, 1), 1, Decimal("100"), "Low", Decimal("90")),
            ProfitLine(date(2026, 3, 1), 1, Decimal("100"), "High", Decimal("10")),
        ])
        assert [p.name for p in report.top_products] == ["High", "Low"]

    def test_top_limit(self):
        lines = [ProfitLine(date(2026, 3, 1), 1, Decimal(n + 1), f"P{n}", Decimal("0")) for n in range(15)]
        assert len(aggregate_profit(lines).top_products) == 10

    def test_months_oldest_first(self):
        report = aggregate_profit([
            ProfitLine(date(2026, 3, 9), 1, Decimal("10"), "A", Decimal("1")),
            ProfitLine(date(2026, 1, 20), 1, Decimal("10"), "A", Decimal("1")),
        ])
        assert [m.label for m in report.monthly] == ["Jan 2026", "Mar 2026"]

    def test_empty(self):
        report = aggregate_profit([])
        assert report.to_dict()["profit_margin_percent"] == 0.0


def test_margin_without_revenue():
    assert margin_percent(Decimal("0"), Decimal("50")) == 0


def test_default_window():
    assert default_window(date(2026, 3, 17)) == (date(2025, 10, 1), date(2026, 3, 31))


class TestProfitReport:
    def test_invoice_with_cost_basis(self, account, make_product):
        widget = make_product(account.id, "Widget", 10, purchase_price="60", unit_price="100")
        sale(account, widget, 4, "100")

        data = profit_report(account.id, date(2026, 1, 1), date(2026, 12, 31))
        assert data["total_revenue"] == 400.0
        assert data["total_cost"] == 240.0
        assert data["total_profit"] == 160.0
        assert data["profit_margin_percent"] == 40.0
        assert data["top_products"][0]["name"] == "Widget"
        assert data["monthly"] == [{"month": "Mar 2026", "revenue": 400.0, "cost": 240.0, "profit": 160.0}]

    def test_cancelled_invoices_are_excluded(self, account, make_product):
        widget = make_product(account.id, "Widget", 10, purchase_price="60", unit_price="100")
        doc = sale(account, widget, 4, "100")
        document_service.change_status(account.id, "invoice", doc.id, "cancelled")

        data = profit_report(account.id, date(2026, 1, 1), date(2026, 12, 31))
        assert data["total_revenue"] == 0.0

    def test_window_is_inclusive(self, account, make_product):
        widget = make_product(account.id, "Widget", 10)
        sale(account, widget, 1, "100", on="2026-03-31")
        data = profit_report(account.id, date(2026, 3, 1), date(2026, 3, 31))
        assert data["total_revenue"] == 100.0

    def test_bills_do_not_count_as_revenue(self, account, make_product):
        widget = make_product(account.id, "Widget", 10)
        document_service.create_bill(account.id, {
            "customer_name": "Supplier", "date": "2026-03-01",
            "items": [{"product_id": widget.id, "quantity": 5, "unit_price": "60"}],
        })
        data = profit_report(account.id, date(2026, 1, 1), date(2026, 12, 31))
        assert data["total_revenue"] == 0.0

    def test_inventory_potential(self, account, make_product):
        make_product(account.id, "Widget", 10, purchase_price="60", unit_price="100")
        data = profit_report(account.id, date(2026, 1, 1), date(2026, 12, 31))
        assert data["inventory_profit_potential"] == 400.0

    def test_reversed_window(self, account):
        with pytest.raises(ReportError):
            profit_report(account.id, date(2026, 5, 1), date(2026, 4, 1))

    def test_other_accounts_sales_are_invisible(self, account, other_account, make_product):
        widget = make_product(account.id, "Widget", 10)
        sale(account, widget, 1, "100")
        data = profit_report(other_account.id, date(2026, 1, 1), date(2026, 12, 31))
        assert data["total_revenue"] == 0.0


def test_dashboard_summary(account, product_a, make_product, customer):
    make_product(account.id, "Nearly gone", 1)
    sale(account, product_a, 1, "100", customer="Ravi")
    document_service.create_bill(account.id, {"customer_name": "Supplier"})

    summary = dashboard_summary(account.id)
    assert summary["products"] == 2
    assert summary["low_stock"] == 2
    assert summary["clients"] == 1
    assert summary["invoices"] == 1
    assert summary["bills"] == 1
    assert summary["active_invoice_revenue"] == 118.0
