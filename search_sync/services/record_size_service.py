"""
Record size budget enforcement.

The search engine rejects records whose serialized form exceeds a byte
budget. This module decides, record by record, whether a record fits as is,
fits after truncation, or has to be discarded.

Truncation Order:
1. Drop potentially long attributes one by one, in their configured order
2. If the identifier list (e.g. child SKUs) is the longest attribute, drop
   trailing identifiers while keeping at least one
3. Discard the record when it still does not fit

Sizes are measured on the compact JSON serialization, re-measured after
every removal.
"""

import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Union

# Attributes removed first when a record is too big, in this order
POTENTIALLY_LONG_ATTRIBUTES = (
    "description",
    "short_description",
    "meta_description",
    "content",
)

# Multi-valued identifier attribute that may be shortened
IDENTIFIER_LIST_ATTRIBUTE = "sku"


@dataclass(frozen=True)
class Kept:
    """
    A record that fits the budget.

    Attributes:
        record: The record to index (a copy when it was truncated)
        truncated: True when attributes or identifiers were removed
    """

    record: dict
    truncated: bool = False


@dataclass(frozen=True)
class Discarded:
    """
    A record that cannot fit the budget and must not be indexed.

    Attributes:
        object_id: objectID of the discarded record
        reason: Human-readable explanation
        longest_attribute: Largest contributor to the record size
        size: Serialized size after all truncation attempts
    """

    object_id: Any
    reason: str
    longest_attribute: str
    size: int


FitResult = Union[Kept, Discarded]


def serialize(value: Any) -> str:
    """Compact, ASCII-escaped JSON used for every size measurement."""
    return json.dumps(value, separators=(",", ":"))


def record_size(record: Mapping[str, Any]) -> int:
    """Byte length of the serialized record."""
    return len(serialize(record).encode("utf-8"))


def attribute_size(value: Any) -> int:
    """Byte length of a single serialized attribute value."""
    return len(serialize(value).encode("utf-8"))


def longest_attribute(record: Mapping[str, Any]) -> str:
    """
    Name of the attribute with the largest serialized value.

    Ties keep the first attribute in record order. Returns an empty string
    for an empty record.

    Examples:
        >>> longest_attribute({"objectID": "1", "name": "a long name"})
        'name'
    """
    max_size = 0
    longest = ""
    for attribute, value in record.items():
        size = attribute_size(value)
        if size > max_size:
            longest = attribute
            max_size = size
    return longest


def fit_record(
    record: Mapping[str, Any],
    max_bytes: int,
    candidate_attributes: Sequence[str] = POTENTIALLY_LONG_ATTRIBUTES,
    identifier_list_attribute: Optional[str] = IDENTIFIER_LIST_ATTRIBUTE,
) -> FitResult:
    """
    Fit a record under ``max_bytes``.

    The input mapping is never modified. A record that already fits is
    returned unchanged (``Kept(truncated=False)``); otherwise a truncated copy
    is returned, or a Discarded decision when nothing makes it fit.

    Args:
        record: Record to fit, must contain ``objectID``
        max_bytes: Maximum serialized size
        candidate_attributes: Attributes that may be removed, in removal order
        identifier_list_attribute: List attribute that may lose trailing
            elements when it is the longest attribute (None disables)

    Returns:
        Kept or Discarded
    """
    size = record_size(record)
    if size <= max_bytes:
        return Kept(record=dict(record), truncated=False)

    fitted = dict(record)

    # Step 1: drop potentially long attributes
    for attribute in candidate_attributes:
        if attribute not in fitted:
            continue
        del fitted[attribute]
        size = record_size(fitted)
        if size <= max_bytes:
            return Kept(record=fitted, truncated=True)

    # Step 2: shorten the identifier list, always keeping its first element
    if identifier_list_attribute and longest_attribute(fitted) == identifier_list_attribute:
        identifiers = fitted[identifier_list_attribute]
        if isinstance(identifiers, list) and len(identifiers) > 1:
            identifiers = list(identifiers)
            fitted[identifier_list_attribute] = identifiers
            while len(identifiers) > 1 and size > max_bytes:
                identifiers.pop()
                size = record_size(fitted)
            if size <= max_bytes:
                return Kept(record=fitted, truncated=True)

    # Step 3: nothing left to remove
    return Discarded(
        object_id=record.get("objectID"),
        reason=f"record size {size} exceeds the {max_bytes} bytes limit",
        longest_attribute=longest_attribute(record),
        size=size,
    )
