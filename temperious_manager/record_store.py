"""
Repository-backed record store.

The location collection is a single JSON file in a GitHub repository.
Reads return the collection together with the blob sha it was read at;
writes replace the whole file and use a freshly read sha as the
compare-and-swap precondition, so a concurrent writer makes the second
commit fail with Conflict instead of silently overwriting it.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .errors import DecodeError
from .github_contents import GitHubContentsClient
from .validation import RECORD_FIELDS, validate

logger = logging.getLogger(__name__)

COMMIT_MESSAGE = "chore: update locations via Temperious Manager"

Rows = List[Dict[str, Any]]


@dataclass(frozen=True)
class CommitResult:
    """What a successful commit hands back."""
    version: str                # new blob sha of the file
    commit_sha: str
    url: Optional[str] = None   # html url of the commit, if GitHub sent one

    def to_dict(self) -> Dict[str, Any]:
        return {"sha": self.commit_sha, "version": self.version, "url": self.url}

    @property
    def short_sha(self) -> str:
        return self.commit_sha[:7]


# -------------------------
# Codec
# -------------------------

def reject_constant(token: str) -> Any:
    """`parse_constant` hook: NaN and Infinity are not JSON."""
    raise ValueError(f"{token} is not valid JSON")


def decode_content(content_b64: str) -> Rows:
    """
    base64 blob -> JSON array.

    GitHub wraps base64 content at 60 columns; the line breaks are dropped
    before decoding.
    """
    try:
        raw = base64.b64decode("".join((content_b64 or "").split()), validate=True)
        text = raw.decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise DecodeError(f"Stored content is not valid base64 UTF-8: {e}") from e

    try:
        data = json.loads(text, parse_constant=reject_constant)
    except ValueError as e:
        raise DecodeError(f"Stored content is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise DecodeError("Stored content is not a JSON array")
    return data


def canonical_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Known fields first in fixed order, then any extra keys as they came."""
    out = {k: row[k] for k in RECORD_FIELDS if k in row}
    out.update((k, v) for k, v in row.items() if k not in out)
    return out


def encode_collection(rows: Rows) -> str:
    """
    Rows -> the exact text stored in the repository: 2-space indented JSON,
    stable field order, non-ASCII kept literal, one trailing newline.
    """
    try:
        text = json.dumps([canonical_row(r) for r in rows], indent=2, ensure_ascii=False, allow_nan=False)
    except ValueError as e:
        raise DecodeError(f"Collection cannot be stored as JSON: {e}") from e
    return text + "\n"


def to_base64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


# -------------------------
# Store
# -------------------------

class RecordStore:
    """
    One file, one branch. Stateless between calls: nothing is cached, so
    each request can build its own store.
    """

    def __init__(self, client: GitHubContentsClient, path: str = "locations.json", branch: str = "main"):
        self.client = client
        self.path = path
        self.branch = branch

    validate = staticmethod(validate)

    async def fetch(self) -> Tuple[Rows, str]:
        """Current collection and the blob sha it was read at."""
        out = await self.client.get_file(self.path, self.branch)
        rows = decode_content(out.get("content", ""))
        version = out.get("sha", "")
        logger.info("fetched path=%s ref=%s rows=%d sha=%s", self.path, self.branch, len(rows), version)
        return rows, version

    async def commit(self, rows: Any) -> CommitResult:
        """
        Validate, then replace the file.

        The sha is always re-read right before writing (never taken from an
        earlier fetch); GitHub enforces it, and a mismatch raises Conflict.
        No retry.
        """
        validate(rows)
        text = encode_collection(rows)

        head = await self.client.get_file(self.path, self.branch)
        sha = head.get("sha", "")

        out = await self.client.put_file(self.path, to_base64(text), sha, self.branch, COMMIT_MESSAGE)

        commit = out.get("commit") or {}
        content = out.get("content") or {}
        result = CommitResult(
            version=content.get("sha", ""),
            commit_sha=commit.get("sha", ""),
            url=commit.get("html_url"),
        )
        logger.info(
            "committed path=%s branch=%s rows=%d base_sha=%s new_sha=%s commit=%s",
            self.path, self.branch, len(rows), sha, result.version, result.short_sha,
        )
        return result

    # LocationsBackend protocol (see edit_session.py)

    async def fetch_rows(self) -> Rows:
        rows, _ = await self.fetch()
        return rows

    async def commit_rows(self, rows: Rows) -> CommitResult:
        return await self.commit(rows)
