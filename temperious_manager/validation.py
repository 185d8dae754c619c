"""
Record validation.

The rules live on the `Location` schema. This module turns pydantic's
errors into the store's own error types:
- `validate` fails fast on the first bad row (server side)
- `collect_violations` reports every bad field of every row
- `field_errors` gives per-field messages for the client edit form
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import ValidationError

from .errors import DecodeError, InvalidRecord
from .schemas import Location

# Canonical field order used when the collection is written back.
RECORD_FIELDS = tuple(Location.model_fields)

# Form wording per field.
FIELD_MESSAGES = {
    "name": "Name must be at least 2 chars",
    "lat": "Latitude must be between -90 and 90",
    "lon": "Longitude must be between -180 and 180",
    "threshold": "Threshold must be a number",
    "notify": "Notify must be text",
}


def _broken_fields(row: Any) -> List[str]:
    """Fields the row breaks, in field order. "row" if it is not an object."""
    if not isinstance(row, dict):
        return ["row"]
    try:
        Location.model_validate(row)
    except ValidationError as e:
        broken: List[str] = []
        for err in e.errors():
            field = str(err["loc"][0]) if err["loc"] else "row"
            if field not in broken:
                broken.append(field)
        return broken
    return []


def _invalid(index: int, field: str) -> InvalidRecord:
    if field == "row":
        return InvalidRecord(index, "row", "must be object")
    return InvalidRecord(index, field, f"invalid {field}")


def validate(candidate: Any) -> List[Dict[str, Any]]:
    """
    Validate a whole replacement collection.

    Pure, no I/O. Checks rows in order and raises InvalidRecord for the
    first offending row only. Returns the collection unchanged on success.
    """
    if not isinstance(candidate, list):
        raise DecodeError("Body must be an array")

    for i, row in enumerate(candidate):
        broken = _broken_fields(row)
        if broken:
            raise _invalid(i, broken[0])
    return candidate


def collect_violations(candidate: List[Any]) -> List[InvalidRecord]:
    """
    Stricter variant of `validate`: one InvalidRecord per broken field of
    every row, instead of stopping at the first.
    """
    return [_invalid(i, field) for i, row in enumerate(candidate) for field in _broken_fields(row)]


def field_errors(row: Dict[str, Any]) -> Dict[str, str]:
    """field -> form message for every broken field of a single record."""
    return {field: FIELD_MESSAGES.get(field, f"Invalid {field}") for field in _broken_fields(row)}
