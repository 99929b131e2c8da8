# Overview: Pytest coverage for input cleaning and payload validation.

from decimal import Decimal

import pytest

from billbook.models import Product
from billbook.validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    format_money,
    parse_integer,
    parse_money,
    sanitize_text,
    validate_payload,
)


class TestSanitizeText:
    @pytest.mark.parametrize("raw", ["=SUM(A1:A9)", "+1", "-2", "@cmd"])
    def test_formula_prefixes_are_neutralized(self, raw):
        assert sanitize_text(raw) == "'" + raw

    def test_surrounding_tabs_are_trimmed_first(self):
        assert sanitize_text("\t=1+1\r") == "'=1+1"

    def test_trims_plain_text(self):
        assert sanitize_text("  Widget  ") == "Widget"

    def test_none_is_empty(self):
        assert sanitize_text(None) == ""

    def test_leading_whitespace_does_not_hide_a_formula(self):
        assert sanitize_text("   =HYPERLINK(x)") == "'=HYPERLINK(x)"


class TestParseMoney:
    def test_strips_currency_and_separators(self):
        assert parse_money("₹1,234.50") == 1234.5

    def test_negative_clamps_to_zero(self):
        assert parse_money("-50") == 0.0

    def test_garbage_returns_default(self):
        assert parse_money("abc", default=7) == 7

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_returns_default(self, value):
        assert parse_money(value) == 0

    def test_none_returns_default(self):
        assert parse_money(None, default=3) == 3

    def test_accepts_numbers(self):
        assert parse_money(Decimal("12.5")) == 12.5
        assert parse_money(4) == 4.0

    @pytest.mark.parametrize("raw, expected", [
        ("5-", 5.0),
        ("1.234.56", 1.234),
        ("12abc", 12.0),
        ("5.", 5.0),
        (".5", 0.5),
        ("3-4", 3.0),
    ])
    def test_reads_leading_number(self, raw, expected):
        assert parse_money(raw) == expected

    @pytest.mark.parametrize("raw", ["", ".", "-", "--5", "kg"])
    def test_no_leading_number_returns_default(self, raw):
        assert parse_money(raw, default=9) == 9


class TestParseInteger:
    def test_floors(self):
        assert parse_integer("7.9") == 7

    def test_negative_clamps(self):
        assert parse_integer("-3") == 0

    def test_default(self):
        assert parse_integer("n/a", default=2) == 2


def test_format_money_two_decimals():
    assert format_money(Decimal("1234.5")) == "1234.50"
    assert format_money(None) == "0.00"
    assert format_money(3) == "3.00"


@pytest.mark.parametrize("value", [0, 0.1, 1.005, 2.675, 19.999, 1234567.891])
def test_formatted_money_parses_back_to_rounded_value(value):
    assert parse_money(format_money(value), 0) == round(value, 2)


POLICY = ModelValidationPolicy(
    writable_fields={"name", "sku", "quantity", "unit_price", "purchase_price", "low_stock_threshold"},
    required_on_create={"name"},
)


class TestValidatePayload:
    def test_coerces_types(self):
        patch = validate_payload(
            model=Product,
            payload={"name": " Pen ", "quantity": "12", "unit_price": "9.99"},
            policy=POLICY,
            partial=False,
        )
        assert patch == {"name": "Pen", "quantity": 12, "unit_price": Decimal("9.99")}

    def test_missing_required(self):
        with pytest.raises(ValidationError, match="Missing required fields: name"):
            validate_payload(model=Product, payload={"sku": "X"}, policy=POLICY, partial=False)

    def test_field_not_allowed(self):
        with pytest.raises(ValidationError, match="Field not allowed: account_id"):
            validate_payload(model=Product, payload={"account_id": 2}, policy=POLICY, partial=True)

    @pytest.mark.parametrize("value", ["1.5", "1e3", 2.0, ""])
    def test_integer_strictness(self, value):
        with pytest.raises(ValidationError):
            validate_payload(model=Product, payload={"quantity": value}, policy=POLICY, partial=True)

    def test_string_length_cap(self):
        with pytest.raises(ValidationError, match="200 characters or less"):
            validate_payload(model=Product, payload={"name": "x" * 201}, policy=POLICY, partial=True)

    def test_blank_required_string(self):
        with pytest.raises(ValidationError, match="name cannot be blank"):
            validate_payload(model=Product, payload={"name": "   "}, policy=POLICY, partial=True)


class TestProductRules:
    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            enforce_rules_product({"unit_price": Decimal("-1")})

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValidationError):
            enforce_rules_product({"quantity": -1})

    def test_valid_patch_passes(self):
        enforce_rules_product({"unit_price": Decimal("0"), "quantity": 0, "low_stock_threshold": 5})
