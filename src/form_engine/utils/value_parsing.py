"""Parsing helpers for raw form values.

Raw values come from UI controls and are mostly strings; these helpers
decide emptiness and convert text into numbers, booleans, lists and JSON.
"""

import json
import math
import re
from typing import Any, List, Optional, Union

_INT_PATTERN = re.compile(r"^[+-]?\d+$")
_FLOAT_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


class ValueParseError(ValueError):
    """Raised when a raw value cannot be converted to the requested kind."""
    pass


def is_empty(value: Any) -> bool:
    """Check whether a raw value counts as "not supplied".

    ``None``, whitespace-only strings and empty lists/dicts are empty.
    ``0`` and ``False`` are values.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def as_text(value: Any) -> Optional[str]:
    """Render a scalar in the text form used for comparisons.

    Booleans render as ``true``/``false`` and integral floats as integers, so
    ``True`` matches ``"true"`` and ``25.0`` matches ``"25"``. Returns None for
    None and for non-scalar values.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return None


def parse_number(value: Any) -> Optional[Union[int, float]]:
    """Parse a numeric value.

    Handles:
    - ints and floats (returned unchanged)
    - integer text: "25" -> 25
    - decimal/exponent text: "2.5" -> 2.5, "1e3" -> 1000.0

    Returns:
        Parsed number, or None if the value is empty

    Raises:
        ValueParseError: If the value is not numeric
    """
    if is_empty(value):
        return None
    if isinstance(value, bool):
        raise ValueParseError(f"Expected a number, got boolean {value}")
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueParseError(f"Expected a finite number, got {value}")
        return value
    if not isinstance(value, str):
        raise ValueParseError(f"Expected a number, got {type(value).__name__}")

    text = value.strip()
    if _INT_PATTERN.match(text):
        return int(text)
    if _FLOAT_PATTERN.match(text):
        number = float(text)
        if not math.isfinite(number):
            raise ValueParseError(f"'{text}' is out of range")
        return number
    raise ValueParseError(f"'{text}' is not a number")


def parse_bool(value: Any) -> Optional[bool]:
    """Parse 'true'/'false' (case-insensitive) into a boolean."""
    if is_empty(value):
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text == "true":
            return True
        if text == "false":
            return False
    raise ValueParseError(f"Expected 'true' or 'false', got {value!r}")


def split_list(value: Any) -> List[str]:
    """Split comma-separated text into trimmed, non-empty strings.

    "a, b ,,c" -> ["a", "b", "c"]. Lists are trimmed and filtered the same way.
    """
    if is_empty(value):
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise ValueParseError(f"Expected a list or comma-separated text, got {type(value).__name__}")

    result = []
    for item in items:
        text = as_text(item)
        if text:
            result.append(text)
    return result


def parse_json(value: Any) -> Any:
    """Parse JSON text; already-structured values pass through."""
    if is_empty(value):
        return None
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise ValueParseError(f"Invalid JSON: {e.msg} at position {e.pos}")
