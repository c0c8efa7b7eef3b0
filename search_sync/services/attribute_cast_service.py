"""Normalization of scalar attribute values before indexing.

Numeric-looking values become ``int`` or ``float``, and ``|``-delimited
strings become lists of cast values. Casting is deterministic and
idempotent: casting an already cast record changes nothing.
"""

import math
import re
from typing import Any, Iterable, Mapping

# Attributes that are never cast, whatever the configuration says
DEFAULT_NON_CASTABLE_ATTRIBUTES = frozenset({"objectID", "sku", "name", "description"})

MULTI_VALUE_DELIMITER = "|"

# Longer digit strings stay strings (barcodes, serials)
MAX_INTEGER_DIGITS = 4300

INTEGER_RE = re.compile(r"^\s*[+-]?\d+\s*$")
NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")


def is_numeric(value: Any) -> bool:
    """True for ints, finite floats and numeric strings. Booleans are not numbers."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, str):
        return NUMERIC_RE.match(value) is not None
    return False


def cast_scalar(value: Any) -> Any:
    """
    Apply the numeric rule to a single value.

    Returns an int when the float value equals its integer truncation, a
    float otherwise. Non-numeric values are returned unchanged.

    Examples:
        >>> cast_scalar("12")
        12
        >>> cast_scalar("12.0")
        12
        >>> cast_scalar("12.5")
        12.5
        >>> cast_scalar("abc")
        'abc'
    """
    if not is_numeric(value):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, str) and INTEGER_RE.match(value):
        if len(value.strip().lstrip("+-")) > MAX_INTEGER_DIGITS:
            return value
        try:
            return int(value)
        except ValueError:
            # Interpreter int conversion limit lowered below MAX_INTEGER_DIGITS
            return value

    number = float(value)
    if not math.isfinite(number):
        return value
    if number == float(int(number)):
        return int(number)
    return number


def _is_scalar(value: Any) -> bool:
    return not isinstance(value, (list, tuple, dict))


def cast_value(value: Any) -> Any:
    """
    Cast one attribute value.

    - numeric scalars follow the numeric rule
    - other strings are split on ``|``: one part is stored as a scalar,
      several parts as a list, each part cast independently
    - flat lists of scalars have each element cast
    - mappings, nested lists, booleans and None pass through
    """
    if isinstance(value, list):
        if all(_is_scalar(element) for element in value):
            return [cast_scalar(element) for element in value]
        return value

    if not isinstance(value, str):
        return cast_scalar(value)

    if is_numeric(value):
        return cast_scalar(value)

    parts = value.split(MULTI_VALUE_DELIMITER)
    if len(parts) == 1:
        return cast_scalar(parts[0])
    return [cast_scalar(part) for part in parts]


def cast_record(record: Mapping[str, Any], non_castable: Iterable[str] = ()) -> dict:
    """
    Return a copy of ``record`` with every castable attribute normalized.

    Attributes in ``non_castable`` and in DEFAULT_NON_CASTABLE_ATTRIBUTES
    are copied as is.
    """
    skipped = DEFAULT_NON_CASTABLE_ATTRIBUTES | frozenset(non_castable)
    return {
        key: value if key in skipped else cast_value(value)
        for key, value in record.items()
    }
