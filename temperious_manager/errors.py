"""
Error taxonomy.

Every failure the store or the edit session can surface derives from
StoreError, so the HTTP layer needs a single handler and the client can
show `str(err)` to the user as-is.
"""

from __future__ import annotations

from typing import Dict


class StoreError(RuntimeError):
    """Raised for user-facing record store failures."""
    pass


class ConfigError(StoreError):
    """Required configuration is missing. No request can proceed."""
    pass


class DecodeError(StoreError):
    """Stored (or received) content is not a JSON array."""
    pass


class InvalidRecord(StoreError):
    """
    A row of a candidate collection violates a record invariant.

    Only the first offending row is reported.
    """

    def __init__(self, index: int, field: str, reason: str):
        self.index = index
        self.field = field
        self.reason = reason
        super().__init__(f"Row {index}: {reason}")


class RemoteRejected(StoreError):
    """The remote API answered with a non-2xx status."""

    def __init__(self, status: int, body: str, message: str | None = None):
        self.status = status
        self.body = body
        super().__init__(message or f"GitHub {status}: {body}")


class Conflict(RemoteRejected):
    """The sha precondition of a write no longer matches the stored file."""
    pass


class RemoteUnavailable(StoreError):
    """Transport-level failure reaching the remote API."""
    pass


class ClientValidationError(StoreError):
    """
    Form-level rejection of a single candidate record.

    `errors` maps field name -> message for every invalid field, so a form
    can flag each one.
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(self.errors.values()))


class SessionBusy(StoreError):
    """Another load/save is still in flight."""
    pass
