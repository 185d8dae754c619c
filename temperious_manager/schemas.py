"""
Pydantic schemas.

Why:
- `Location` holds the record rules (types, ranges, name length) for both
  the server-side collection check and the client edit form
- the envelopes define the contract of /api/locations
"""

from __future__ import annotations

import math
from typing import Annotated, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, StrictFloat, StrictInt, StrictStr, field_validator

NAME_MIN_LENGTH = 2


def _finite(value: Union[int, float]) -> Union[int, float]:
    # ints of any size are finite; only floats can be nan/inf
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("must be a finite number")
    return value


# Strict: bool and numeric strings are not numbers.
Number = Annotated[Union[StrictInt, StrictFloat], AfterValidator(_finite)]


class Location(BaseModel):
    """
    One watched location, as stored in the JSON file.

    Unknown keys are allowed and left alone so they survive a round trip.
    """
    model_config = ConfigDict(extra="allow")

    name: StrictStr
    lat: Number
    lon: Number
    threshold: Number
    notify: Optional[StrictStr] = None

    @field_validator("name")
    @classmethod
    def name_long_enough(cls, v: str) -> str:
        if len(v.strip()) < NAME_MIN_LENGTH:
            raise ValueError(f"must be at least {NAME_MIN_LENGTH} chars")
        return v

    @field_validator("lat")
    @classmethod
    def lat_in_range(cls, v):
        if not -90 <= v <= 90:
            raise ValueError("must be between -90 and 90")
        return v

    @field_validator("lon")
    @classmethod
    def lon_in_range(cls, v):
        if not -180 <= v <= 180:
            raise ValueError("must be between -180 and 180")
        return v


class CommitOut(BaseModel):
    """Commit info returned after a successful save."""
    sha: str
    version: str
    url: Optional[str] = None


class SaveResponse(BaseModel):
    ok: bool = True
    commit: CommitOut


class ErrorResponse(BaseModel):
    error: str
