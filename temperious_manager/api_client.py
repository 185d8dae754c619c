"""
Client for the /api/locations HTTP contract.

This is what an EditSession talks to when it runs away from the server
process. It mirrors RecordStore's fetch_rows/commit_rows so the session
does not care which one it is given.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from .errors import DecodeError, RemoteRejected, RemoteUnavailable
from .record_store import CommitResult
from .schemas import SaveResponse

Rows = List[Dict[str, Any]]


class LocationsApiClient:
    def __init__(self, base_url: str, timeout_s: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.transport = transport

    async def _send(self, method: str, **kwargs: Any) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.request(method, f"{self.base}/api/locations", **kwargs)
        except httpx.HTTPError as e:
            raise RemoteUnavailable(f"Locations API unreachable: {e}") from e

        if r.status_code != 200:
            # Server errors carry {"error": "..."}; fall back to raw text.
            try:
                message = r.json().get("error") or r.text
            except (ValueError, AttributeError):
                message = r.text
            raise RemoteRejected(r.status_code, r.text, message=message)

        try:
            return r.json()
        except ValueError as e:
            raise DecodeError("Invalid data from API") from e

    async def fetch_rows(self) -> Rows:
        data = await self._send("GET")
        if not isinstance(data, list):
            raise DecodeError("Invalid data from API")
        return data

    async def commit_rows(self, rows: Rows) -> CommitResult:
        data = await self._send("PUT", json=rows)
        try:
            out = SaveResponse.model_validate(data)
        except ValidationError as e:
            raise DecodeError("Invalid data from API") from e
        return CommitResult(version=out.commit.version, commit_sha=out.commit.sha, url=out.commit.url)
