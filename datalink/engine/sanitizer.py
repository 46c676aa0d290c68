"""
Value sanitizer.

Reduces arbitrary cell values to the scalar set allowed in joined records
(str, int, float, bool, None). Lists become ``" | "``-joined strings, dicts
become compact JSON. Applied to every joined record and to every row that
comes back from the reasoning service.
"""

import json
import math
from typing import Any, Dict, List

ARRAY_SEPARATOR = " | "

SCALAR_TYPES = (str, int, float, bool)


def to_json(value: Any) -> str:
    """Compact JSON, matching the separators of a browser JSON.stringify."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def to_text(value: Any) -> str:
    """
    String form of a primitive.

    Booleans render lowercase and integral floats drop their fractional
    part, so ``True`` -> ``"true"`` and ``101.0`` -> ``"101"``.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def _element_text(value: Any) -> str:
    if isinstance(value, (dict, list, tuple)):
        return to_json(value)
    return to_text(value)


def sanitize(value: Any, for_text: bool = False) -> Any:
    """
    Reduce a cell value to a join-safe scalar.

    Args:
        value: Any cell value
        for_text: True when the value is headed for a text surface (CSV),
            where None becomes an empty string

    Returns:
        A str, int, float, bool or None

    Example:
        >>> sanitize([1, {"a": 2}])
        '1 | {"a":2}'
        >>> sanitize(None, for_text=True)
        ''
    """
    if value is None:
        return "" if for_text else None
    if isinstance(value, (list, tuple)):
        return ARRAY_SEPARATOR.join(_element_text(v) for v in value)
    if isinstance(value, dict):
        return to_json(value)
    if isinstance(value, SCALAR_TYPES):
        return value
    return str(value)


def sanitize_record(row: Dict[str, Any], for_text: bool = False) -> Dict[str, Any]:
    """Sanitize every value of a record, keeping key order."""
    return {str(k): sanitize(v, for_text=for_text) for k, v in row.items()}


def sanitize_rows(payload: Any) -> List[Dict[str, Any]]:
    """
    Sanitize an untrusted list of rows.

    Anything that is not a list yields no rows. Elements that are not
    records (bare strings, numbers, None) become empty records instead of
    failing the whole batch.
    """
    if not isinstance(payload, list):
        return []
    return [sanitize_record(row) if isinstance(row, dict) else {} for row in payload]
