"""
app/validators package marker.
"""

from app.validators.numeric_parser import format_currency, parse_numeric_value

__all__ = [
    "format_currency",
    "parse_numeric_value",
]
