"""
Typed edit form.

The form is the only way a candidate record enters an EditSession. Raw
values (text typed by a user, or numbers from code) are parsed once here
and either become a single record dict or a ClientValidationError naming
every bad field. The record rules themselves are the `Location` schema's.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping

from pydantic import BaseModel

from .errors import ClientValidationError
from .validation import field_errors

# JSON number grammar only: no "1_000", "0030", "0x1f", "inf" or "nan".
NUMBER_RE = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
INTEGER_RE = re.compile(r"-?(?:0|[1-9]\d*)")


def _parse_number(raw: Any) -> Any:
    """
    "52.5" -> 52.5, "30" -> 30, 28 -> 28.

    Text that is not a plain number (including "") is returned as-is so the
    schema rejects it; it never turns into 0.
    """
    if not isinstance(raw, str):
        return raw
    text = raw.strip()
    if INTEGER_RE.fullmatch(text):
        return int(text)
    if NUMBER_RE.fullmatch(text):
        return float(text)
    return text


class LocationForm(BaseModel):
    """Raw field values as typed; nothing is checked until `parse()`."""
    name: Any = ""
    lat: Any = ""
    lon: Any = ""
    threshold: Any = ""
    notify: Any = ""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "LocationForm":
        """Populate the form from a stored row (missing fields become blank)."""
        values = {}
        for name in cls.model_fields:
            v = record.get(name)
            values[name] = "" if v is None else v
        return cls(**values)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LocationForm":
        return cls(**{k: v for k, v in data.items() if k in cls.model_fields})

    def is_blank(self) -> bool:
        return all(getattr(self, name) in ("", None) for name in type(self).model_fields)

    def parse(self) -> Dict[str, Any]:
        """
        Produce a record dict or raise ClientValidationError.

        `notify` is dropped when blank, matching what gets stored.
        """
        record: Dict[str, Any] = {
            "name": "" if self.name is None else str(self.name).strip(),
            "lat": _parse_number(self.lat),
            "lon": _parse_number(self.lon),
            "threshold": _parse_number(self.threshold),
        }
        notify = "" if self.notify is None else str(self.notify).strip()
        if notify:
            record["notify"] = notify

        errors = field_errors(record)
        if errors:
            raise ClientValidationError(errors)
        return record
