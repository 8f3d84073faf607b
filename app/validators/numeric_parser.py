"""
app/validators/numeric_parser.py

Total, currency-aware numeric parsing for spreadsheet financial cells.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any

_IGNORED_CHARACTERS = re.compile(r"[$€£¥,\s]")
_UNSIGNED_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_numeric_value(value: Any) -> float | None:
    """
    Parse a cell value into a float, or None when it is not a number.

    Accepts native numbers and strings such as ``"$1,234.56"``,
    ``"($9,876.54)"`` (negative) and ``"-3,210"``. Dashes on their own
    (``"-"``, ``"--"``) and free text yield None. Never raises.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        return number if math.isfinite(number) else None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1]

    cleaned = _IGNORED_CHARACTERS.sub("", text)
    if cleaned.startswith("-"):
        negative = True
        cleaned = cleaned[1:]
    elif cleaned.startswith("+"):
        cleaned = cleaned[1:]

    if not _UNSIGNED_NUMBER.fullmatch(cleaned):
        return None

    number = float(cleaned)
    if not math.isfinite(number):
        return None
    return -number if negative else number


def format_currency(value: float, *, symbol: str = "$", decimals: int = 2) -> str:
    """
    Render a number the way cost reports display it: ``$1,234.56`` or ``($1,234.56)``.
    """

    amount = f"{symbol}{abs(value):,.{decimals}f}"
    return f"({amount})" if value < 0 else amount
