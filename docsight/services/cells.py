"""
Cell value coercion shared by the tabular profiler.

Parsed CSV/XLSX rows carry loosely-typed cells (text, numbers, booleans or
nothing at all).  These helpers give each cell a textual, numeric and date
reading without guessing at the column it came from.
"""
from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional, Tuple, Union

from dateutil import parser as date_parser

Cell = Union[None, str, int, float, bool]
Row = Mapping[str, Cell]

# Decimal literal, optionally signed, with optional exponent: 1, -2.5, .5, 1., 1e3
_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
# Prefixed integer literals (unsigned only)
_PREFIXED_RE = re.compile(r"^0([xX][0-9a-fA-F]+|[bB][01]+|[oO][0-7]+)$")
_PREFIX_BASES: Dict[str, int] = {"x": 16, "b": 2, "o": 8}

# Missing day/month/year components are filled from this date, never "today"
_DATE_DEFAULT = datetime(1970, 1, 1)

BOOLEAN_LITERALS = frozenset({"true", "false", "yes", "no", "1", "0"})


def is_null(value: Cell) -> bool:
    """A cell is null when it is absent or the empty string."""
    return value is None or (isinstance(value, str) and value == "")


def display_string(value: Cell) -> str:
    """Render a cell the way it is shown to users and compared as text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def distinct_key(value: Cell) -> Tuple[str, object]:
    """
    Hashable identity for distinct-value counting.

    Python treats ``True == 1 == 1.0``; tagging by kind keeps a boolean and
    a number apart while letting ``1`` and ``1.0`` collapse.
    """
    if isinstance(value, bool):
        return ("boolean", value)
    if isinstance(value, (int, float)):
        return ("number", float(value))
    return (type(value).__name__, value)


def is_boolean_literal(value: Cell) -> bool:
    return isinstance(value, bool) or display_string(value).lower() in BOOLEAN_LITERALS


def to_number(value: Cell) -> Optional[float]:
    """Return the finite numeric reading of a cell, or None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        # Whitespace-only text reads as zero
        return 0.0
    if _DECIMAL_RE.match(text):
        number = float(text)
        return number if math.isfinite(number) else None
    prefixed = _PREFIXED_RE.match(text)
    if prefixed:
        digits = prefixed.group(1)
        return float(int(digits[1:], _PREFIX_BASES[digits[0].lower()]))
    return None


def to_datetime(value: Cell) -> Optional[datetime]:
    """Parse a textual cell as a date/time; numbers and booleans are not dates."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = date_parser.parse(value, default=_DATE_DEFAULT)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
