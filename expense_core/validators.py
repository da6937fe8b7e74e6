"""Validation helpers shared by the store and the entry surfaces."""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List

from .exceptions import ValidationError
from .models import parse_date

MONTH_NAMES: List[str] = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

MONTH_ABBREVIATIONS: List[str] = [name[:3] for name in MONTH_NAMES]


def _quantize_two_decimals(amount: Decimal) -> Decimal:
    """Round the amount to two decimal places using HALF_UP rounding."""
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_amount(raw: object, field: str, *, allow_negative: bool = True) -> Decimal:
    """Convert raw input to a finite Decimal with exactly two fraction digits.

    The data layer accepts any finite number; entry forms pass
    ``allow_negative=False`` to enforce ``amount >= 0``.
    """
    if isinstance(raw, bool) or raw is None:
        raise ValidationError(f"{field} must be a numeric value")
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, TypeError) as exc:  # type: ignore[arg-type]
        raise ValidationError(f"{field} must be a numeric value") from exc

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if not allow_negative and amount < 0:
        raise ValidationError(f"{field} cannot be negative")

    return _quantize_two_decimals(amount)


def validate_required_str(value: object, field: str, max_length: int) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty")
    if len(trimmed) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return trimmed


def validate_date(value: object, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a date or YYYY-MM-DD string")
    try:
        return parse_date(value)
    except ValueError as exc:
        raise ValidationError(f"{field} must be a valid YYYY-MM-DD date") from exc


def validate_month_name(value: object) -> str:
    """Accept a full English month name, normalising its capitalisation."""
    if not isinstance(value, str):
        raise ValidationError("month must be a string")
    canonical = value.strip().capitalize()
    if canonical not in MONTH_NAMES:
        raise ValidationError(f"month must be one of: {', '.join(MONTH_NAMES)}")
    return canonical


def validate_year(value: object) -> str:
    text = str(value).strip() if value is not None else ""
    if len(text) != 4 or not text.isdigit():
        raise ValidationError("year must be a 4-digit number")
    return text
