"""
Lenient value coercion for cells read from the stores and fields read from
forms. A value that cannot be parsed falls back to the caller's default; it
never raises.
"""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, TypeVar

T = TypeVar("T")


def parse_or_default(raw: Any, default: T, parser: Callable[[Any], T]) -> T:
    if raw is None:
        return default
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return default
    try:
        return parser(raw)
    except (TypeError, ValueError, ArithmeticError):
        return default


def _to_decimal(raw: Any) -> Decimal:
    if isinstance(raw, bool):
        raise TypeError("bool is not a number")
    if isinstance(raw, float):
        if not math.isfinite(raw):
            raise ValueError("non-finite")
        raw = repr(raw)
    try:
        value = Decimal(str(raw).replace(",", "").lstrip("$"))
    except InvalidOperation as exc:
        raise ValueError(str(raw)) from exc
    if not value.is_finite():
        raise ValueError(str(raw))
    return value


def _to_int(raw: Any) -> int:
    if isinstance(raw, bool):
        raise TypeError("bool is not a number")
    if isinstance(raw, int):
        return raw
    # "12.7" -> 12, the way a spreadsheet integer read truncates.
    return int(_to_decimal(raw))


def parse_decimal_or_default(raw: Any, default: Decimal = Decimal("0")) -> Decimal:
    return parse_or_default(raw, default, _to_decimal)


def parse_int_or_default(raw: Any, default: int = 0) -> int:
    return parse_or_default(raw, default, _to_int)
