"""
Values -- Decimal coercion and fixed-point formatting.

Responsibility:
    Turns whatever a form field or a wire record holds (numbers, numeric
    strings, blanks, garbage) into well-formed ``Decimal`` / ``int`` values,
    and renders ``Decimal`` amounts as fixed-point strings for the wire.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - Coerced amounts are finite and never negative; anything else is zero.
    - Monetary arithmetic is Decimal-only; floats are converted through
      their shortest ``repr`` so ``0.1`` becomes ``Decimal("0.1")``.
    - Formatting rounds once, at the end, with ROUND_HALF_UP.

Failure modes:
    None. Input-shape problems degrade to the documented default.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, TypeAlias

from lease_kernel.logging_config import get_logger

logger = get_logger("domain.values")

ExternalId: TypeAlias = int | str
"""Identity assigned by the remote lease store."""

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TWO_PLACES = Decimal("0.01")

_TRUE_STRINGS = frozenset({"true", "1", "yes", "y", "on"})
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a finite Decimal, or return ``None``. Sign is preserved."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        candidate = value
    elif isinstance(value, int):
        candidate = Decimal(value)
    elif isinstance(value, float):
        candidate = Decimal(repr(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            candidate = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    if not candidate.is_finite():
        return None
    return candidate


def coerce_amount(value: Any) -> Decimal:
    """
    Coerce user or wire input to a non-negative, finite Decimal.

    Non-numeric, blank, non-finite and negative inputs all become ``0``.
    """
    parsed = parse_decimal(value)
    if parsed is None or parsed < ZERO:
        blank = value is None or (isinstance(value, str) and not value.strip())
        if not blank:
            logger.debug("amount_coerced_to_zero", extra={"raw_value": repr(value)})
        return ZERO
    # Normalises -0 to 0
    return parsed + ZERO


def coerce_int(
    value: Any,
    default: int = 0,
    low: int | None = 0,
    high: int | None = None,
) -> int:
    """
    Coerce input to an integer, truncating fractions.

    Leading digits are honoured (``"5th"`` -> 5).
    Returns ``default`` when the input is not numeric or falls outside
    ``[low, high]``.
    """
    parsed = parse_decimal(value)
    if parsed is None:
        match = _LEADING_INT.match(value) if isinstance(value, str) else None
        if match is None:
            return default
        parsed = Decimal(match.group(1))
    result = int(parsed)
    if low is not None and result < low:
        return default
    if high is not None and result > high:
        return default
    return result


def coerce_bool(value: Any) -> bool:
    """Interpret wire booleans, which may arrive as strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if isinstance(value, (int, Decimal)):
        return value != 0
    return False


def coerce_text(value: Any) -> str:
    """Pass-through text: ``None`` becomes an empty string."""
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def coerce_identity(value: Any) -> ExternalId | None:
    """Blank identities mean "not yet persisted"."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    return value


def percent_of(percent: Decimal, base: Decimal) -> Decimal:
    """``percent`` of ``base`` with no intermediate rounding."""
    return percent * base / HUNDRED


def format_fixed(value: Decimal, places: Decimal = TWO_PLACES) -> str:
    """Render a Decimal as a fixed-point string, e.g. ``"1500000.00"``."""
    return f"{value.quantize(places, rounding=ROUND_HALF_UP):f}"


def format_measure(value: Decimal, places: Decimal = TWO_PLACES) -> str:
    """
    Render an area, rate or percent for the wire.

    Padded to at least two places like money, but finer input keeps every
    digit it was entered with (``"50.125"`` stays ``"50.125"``).
    """
    if value.as_tuple().exponent >= places.as_tuple().exponent:
        return format_fixed(value, places)
    return f"{value:f}"
