from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Field caps shared by forms and CSV import
MAX_NAME_LENGTH = 200
MAX_SKU_LENGTH = 100
MAX_CATEGORY_LENGTH = 100

# 9,999,999,999.99 fits Numeric(12, 2)
MAX_MONEY = Decimal("9999999999.99")

# Leading characters a spreadsheet would treat as a formula
FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
# Longest numeric prefix of the cleaned text
_LEADING_NUMBER = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")


class ValidationError(ValueError):
    """400-level input problem."""


# -----------------------------------------------------------------------------
# Untrusted value cleaning (never raises)
# -----------------------------------------------------------------------------

def sanitize_text(value: Any) -> str:
    """
    Trim a cell/form value and neutralize spreadsheet formulas.

    "=SUM(A1)" -> "'=SUM(A1)", " plain " -> "plain", None -> "".
    """
    if value is None:
        return ""
    text = str(value).strip()
    if text.startswith(FORMULA_PREFIXES):
        return "'" + text
    return text


def parse_money(value: Any, default: float = 0) -> float:
    """
    Lenient money parsing: drops everything except digits, '.' and '-',
    then reads the longest number at the start ("1.234.56" -> 1.234).

    Unparseable or non-finite input returns `default`; the result is never
    negative.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    else:
        match = _LEADING_NUMBER.match(_NON_NUMERIC.sub("", str(value)))
        if match is None:
            return default
        number = float(match.group())
    if math.isnan(number) or math.isinf(number):
        return default
    return max(number, 0.0)


def parse_integer(value: Any, default: int = 0) -> int:
    """parse_money() floored to an int."""
    number = parse_money(value, default)
    return int(math.floor(number))


def format_money(value: Any) -> str:
    """Two-decimal rendering used by exports ("1234.5" -> "1234.50")."""
    if value is None:
        return "0.00"
    return f"{float(value):.2f}"


def to_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


# -----------------------------------------------------------------------------
# Payload validation against model metadata
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ModelValidationPolicy:
    """Which columns a JSON body may set, and which a create must supply."""
    writable_fields: frozenset[str] | set[str]
    required_on_create: frozenset[str] | set[str] = frozenset()


def _as_integer(key: str, value: Any) -> int:
    # JSON numbers arrive as int; bool is an int subclass but never a count
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"{key} must be a whole number")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text.lstrip("-").isdigit():
        raise ValidationError(f"{key} must be a whole number")
    return int(text)


def _as_decimal(key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number") from None
    if not number.is_finite():
        raise ValidationError(f"{key} must be a finite number")
    return number


def _as_text(key: str, value: Any) -> str:
    return str(value).strip()


_COERCERS = (
    (Integer, _as_integer),
    (Numeric, _as_decimal),
    ((String, Text), _as_text),
)


def _coerce(column, value: Any) -> Any:
    for column_type, coercer in _COERCERS:
        if isinstance(column.type, column_type):
            return coercer(column.key, value)
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Turn a JSON body into a column patch for `model`.

    Keys outside `policy.writable_fields` are rejected outright. Values are
    coerced by column type; NOT NULL text columns may not be blank and
    sized String columns enforce their length. With partial=False every
    `policy.required_on_create` key has to be present.
    """
    body = payload if payload is not None else {}
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        absent = sorted(set(policy.required_on_create) - set(body))
        if absent:
            raise ValidationError(f"Missing required fields: {', '.join(absent)}")

    columns = {column.key: column for column in model.__mapper__.columns}
    patch: dict = {}

    for key, raw in body.items():
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        column = columns.get(key)
        if column is None:
            raise ValidationError(f"Unknown field: {key}")

        if raw is None:
            if not column.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
            continue

        value = _coerce(column, raw)
        if isinstance(value, str):
            if value == "" and not column.nullable:
                raise ValidationError(f"{key} cannot be blank")
            limit = getattr(column.type, "length", None)
            if limit and len(value) > limit:
                raise ValidationError(f"{key} must be {limit} characters or less")
        patch[key] = value

    return patch


def enforce_rules_product(patch: dict) -> None:
    """Price and count bounds a product patch must respect."""
    for field in ("purchase_price", "unit_price"):
        if field in patch and patch[field] is not None:
            price = patch[field]
            if price < 0:
                raise ValidationError(f"{field} must be >= 0")
            if price > MAX_MONEY:
                raise ValidationError(f"{field} cannot exceed {MAX_MONEY}")
    for field in ("quantity", "low_stock_threshold"):
        if field in patch and patch[field] is not None and patch[field] < 0:
            raise ValidationError(f"{field} must be >= 0")
