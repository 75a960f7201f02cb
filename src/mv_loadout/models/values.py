"""Lenient coercion of raw JSON values.

Reference data and user input are untrusted: a missing or non-finite
number reads as the default rather than raising.
"""

import math
from typing import Any


def as_number(value: Any, default: float = 0) -> float:
    """Finite number from *value*; integral floats come back as int."""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        num = value
    elif isinstance(value, str) and value.strip():
        try:
            num = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    if not math.isfinite(num):
        return default
    if isinstance(num, float) and num.is_integer():
        return int(num)
    return num


def as_int(value: Any, default: int = 0) -> int:
    num = as_number(value, default)
    return int(math.floor(num)) if isinstance(num, float) else int(num)


def as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def as_str_list(value: Any) -> list[str]:
    """List of non-empty strings; a single string becomes a one-item list."""
    if isinstance(value, str):
        return [value] if value else []
    if not isinstance(value, (list, tuple, set, frozenset)):
        return []
    out = []
    for item in value:
        text = as_str(item)
        if text:
            out.append(text)
    return out


def as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}
