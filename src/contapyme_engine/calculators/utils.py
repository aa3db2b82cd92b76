"""Shared numeric and row-matching helpers."""

from __future__ import annotations

import re
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
PESO = Decimal("1")

_PERIOD_RE = re.compile(r"^(\d{4})-(\d{1,2})$")
_RUT_STRIP_RE = re.compile(r"[.\s-]")


def to_amount(value: Any) -> Decimal:
    """Normalise a monetary value to whole Chilean pesos.

    ``None`` and empty strings count as zero. Rounding is half-up, matching
    how amounts are shown on liquidations.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid monetary amount: {value!r}") from exc
    return amount.quantize(PESO, rounding=ROUND_HALF_UP)


def sum_amounts(values: Iterable[Decimal]) -> Decimal:
    """Sum amounts starting from a Decimal zero."""
    return sum(values, ZERO)


def normalize_rut(rut: str) -> str:
    """Canonical form of a RUT used as the join key.

    ``"12.345.678-k"`` and ``"12345678K"`` both become ``"12345678-K"``.
    """
    if rut is None:
        raise ValueError("RUT is required")
    compact = _RUT_STRIP_RE.sub("", str(rut)).upper()
    if len(compact) < 2:
        raise ValueError(f"Invalid RUT: {rut!r}")
    return f"{compact[:-1]}-{compact[-1]}"


def parse_period(period: str) -> tuple[int, int]:
    """Split a ``YYYY-MM`` period into (year, month)."""
    match = _PERIOD_RE.match(period.strip()) if period else None
    if match is None:
        raise ValueError(f"Invalid period {period!r}, expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month in period {period!r}")
    return year, month


def format_period(year: int, month: int) -> str:
    """Build a ``YYYY-MM`` period string."""
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    return f"{year:04d}-{month:02d}"
