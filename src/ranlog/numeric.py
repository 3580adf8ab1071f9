"""Locale-tolerant decimal parsing for node CLI exports.

Field values come from several vendor tools and locales, so the same metric
can appear as ``-3.50``, ``-3,50`` or ``-3.5 dB``. Every helper here returns
a float and never raises: malformed, empty or missing text yields
:data:`NOT_A_NUMBER`, which fails every relational comparison (including
``==`` against itself), so a threshold predicate over it is always False.
"""
from __future__ import annotations

import math
import re

NOT_A_NUMBER: float = math.nan

# Longest leading float literal: "-4.0 dB" -> "-4.0", ".5x" -> ".5", "1e3" -> "1e3".
_LEADING_FLOAT_RE: re.Pattern[str] = re.compile(
    r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)",
)

# First decimal anywhere in the text: "RL 12,3" -> "12,3".
_ANY_DECIMAL_RE: re.Pattern[str] = re.compile(r"[+-]?(?:\d+(?:[.,]\d+)?|[.,]\d+)")

# Leading magnitude of a compound field such as "1,8(12,3)" or "1.45 (14.2)".
_LEADING_DECIMAL_RE: re.Pattern[str] = re.compile(
    r"^\s*([+-]?(?:\d+(?:[.,]\d+)?|[.,]\d+))",
)


def parse_decimal(text: object) -> float:
    """Parse *text* as a decimal number, accepting a comma separator.

    Only the first comma is treated as the decimal separator, so thousands
    grouping such as ``1,234,5`` is not guessed at. Trailing units are
    ignored. Returns :data:`NOT_A_NUMBER` when no number can be read.
    """
    if text is None:
        return NOT_A_NUMBER
    raw = str(text).replace(",", ".", 1)
    m = _LEADING_FLOAT_RE.match(raw)
    if not m:
        return NOT_A_NUMBER
    try:
        return float(m.group(1))
    except ValueError:
        return NOT_A_NUMBER


def parse_leading_decimal(text: object) -> float:
    """Parse the leading magnitude of a compound field (``"1.8(12.3)"`` -> 1.8)."""
    if text is None:
        return NOT_A_NUMBER
    m = _LEADING_DECIMAL_RE.match(str(text))
    if not m:
        return NOT_A_NUMBER
    return float(m.group(1).replace(",", "."))


def parse_first_decimal(text: object) -> float:
    """Parse the first number found anywhere in *text* (``"RL 12,3 dB"`` -> 12.3)."""
    if text is None:
        return NOT_A_NUMBER
    m = _ANY_DECIMAL_RE.search(str(text))
    if not m:
        return NOT_A_NUMBER
    return float(m.group(0).replace(",", "."))


def is_number(value: float) -> bool:
    """Return True unless *value* is the not-a-number sentinel."""
    return not math.isnan(value)