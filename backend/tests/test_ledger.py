# Overview: Pytest coverage for balance sheet entries and totals.

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from billbook.services import ledger_service
from billbook.services.ledger_service import LedgerEntryNotFoundError, LedgerError, summarize
from billbook.time_utils import today


def entry(entry_type, amount, when="2026-03-10", category="General", **extra):
    payload = {"type": entry_type, "amount": amount, "category": category, "date": when}
    payload.update(extra)
    return payload


class TestSummarize:
    def test_totals_and_net(self):
        rows = [
            SimpleNamespace(entry_type="income", amount=Decimal("1500.00")),
            SimpleNamespace(entry_type="expense", amount=Decimal("400.50")),
            SimpleNamespace(entry_type="income", amount=Decimal("99.50")),
        ]
        summary = summarize(rows)
        assert summary.total_income == Decimal("1599.50")
        assert summary.total_expenses == Decimal("400.50")
        assert summary.net_balance == Decimal("1199.00")
        assert summary.entry_count == 3

    def test_expenses_can_make_net_negative(self):
        summary = summarize([SimpleNamespace(entry_type="expense", amount=Decimal("10"))])
        assert summary.net_balance == Decimal("-10")

    def test_empty(self):
        assert summarize([]).to_dict() == {
            "total_income": 0.0,
            "total_expenses": 0.0,
            "net_balance": 0.0,
            "entry_count": 0,
        }


class TestValidateEntry:
    def test_cleans_values(self):
        values = ledger_service.validate_entry(entry("income", "250.456", category="  Sales  ", description=" "))
        assert values == {
            "entry_type": "income",
            "category": "Sales",
            "amount": Decimal("250.46"),
            "description": None,
            "entry_date": date(2026, 3, 10),
        }

    def test_date_defaults_to_today(self):
        values = ledger_service.validate_entry({"type": "expense", "amount": 5, "category": "Tea"})
        assert values["entry_date"] == today()

    @pytest.mark.parametrize("payload", [
        entry("refund", 10),
        entry("income", 0),
        entry("income", -5),
        entry("income", "ten"),
        entry("income", True),
        entry("income", None),
        entry("income", 10, category="   "),
        entry("income", 10, category="x" * 101),
        entry("income", 10, description="x" * 501),
        entry("income", 10, when="10/03/2026"),
        entry("income", 10, account_id=2),
        "not a dict",
    ])
    def test_rejects(self, payload):
        with pytest.raises(LedgerError):
            ledger_service.validate_entry(payload)


class TestBalanceSheet:
    def test_window_and_totals(self, account):
        ledger_service.create_entry(account.id, entry("income", "1000", when="2026-02-28", category="Sales"))
        ledger_service.create_entry(account.id, entry("income", "500", when="2026-03-01", category="Sales"))
        ledger_service.create_entry(account.id, entry("expense", "200", when="2026-03-15", category="Rent"))
        ledger_service.create_entry(account.id, entry("expense", "50", when="2026-04-01", category="Tea"))

        sheet = ledger_service.balance_sheet(account.id, date_from=date(2026, 3, 1), date_to=date(2026, 3, 31))

        assert [e["category"] for e in sheet["entries"]] == ["Rent", "Sales"]
        assert sheet["summary"]["total_income"] == 500.0
        assert sheet["summary"]["total_expenses"] == 200.0
        assert sheet["summary"]["net_balance"] == 300.0

    def test_type_filter(self, account):
        ledger_service.create_entry(account.id, entry("income", "10"))
        ledger_service.create_entry(account.id, entry("expense", "4"))

        sheet = ledger_service.balance_sheet(account.id, entry_type="expense")
        assert [e["type"] for e in sheet["entries"]] == ["expense"]
        assert sheet["summary"]["net_balance"] == -4.0

    def test_reversed_window_is_rejected(self, account):
        with pytest.raises(LedgerError):
            ledger_service.list_entries(account.id, date_from=date(2026, 4, 1), date_to=date(2026, 3, 1))

    def test_accounts_are_isolated(self, account, other_account):
        ledger_service.create_entry(other_account.id, entry("income", "999"))
        assert ledger_service.list_entries(account.id) == []

    def test_delete(self, account, other_account):
        row = ledger_service.create_entry(account.id, entry("income", "10"))
        with pytest.raises(LedgerEntryNotFoundError):
            ledger_service.delete_entry(other_account.id, row.id)

        ledger_service.delete_entry(account.id, row.id)
        assert ledger_service.list_entries(account.id) == []
