"""
GitHub Contents API client.

Endpoints used:
- Read a file:
    GET  /repos/{owner}/{repo}/contents/{path}?ref={branch}
    -> {"content": "<base64>", "sha": "<blob sha>", ...}
- Replace a file:
    PUT  /repos/{owner}/{repo}/contents/{path}
    body {"message", "content": "<base64>", "sha": "<current blob sha>", "branch"}
    GitHub refuses the write (409) when `sha` is not the file's current blob.

Kept apart from the record store so the HTTP details (headers, status
mapping, truncation) live in one place and can be faked with
httpx.MockTransport in tests.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from .errors import Conflict, DecodeError, RemoteRejected, RemoteUnavailable

logger = logging.getLogger(__name__)

# Response bodies are truncated to this many characters in error messages.
ERROR_BODY_LIMIT = 300

# Statuses GitHub uses for a failed sha precondition.
CONFLICT_STATUSES = (409, 412)


class GitHubContentsClient:
    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        api_base: str = "https://api.github.com",
        user_agent: str = "temperious-manager",
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.owner = owner
        self.repo = repo
        self.base = api_base.rstrip("/")
        self.user_agent = user_agent
        self.timeout_s = timeout_s
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
        }

    def _url(self, path: str) -> str:
        return f"{self.base}/repos/{self.owner}/{self.repo}/contents/{quote(path, safe='/')}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        """
        Single attempt, no retry. Transport errors -> RemoteUnavailable,
        non-2xx -> RemoteRejected (Conflict for a failed precondition).
        """
        url = self._url(path)
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise RemoteUnavailable(f"GitHub unreachable: {e}") from e

        if not 200 <= r.status_code < 300:
            body = r.text[:ERROR_BODY_LIMIT]
            if method == "PUT" and r.status_code in CONFLICT_STATUSES:
                logger.warning("github_conflict path=%s status=%s", path, r.status_code)
                raise Conflict(r.status_code, body)
            logger.warning("github_rejected method=%s path=%s status=%s", method, path, r.status_code)
            raise RemoteRejected(r.status_code, body)

        try:
            return r.json() or {}
        except ValueError:
            return {}

    async def get_file(self, path: str, ref: str) -> Dict[str, Any]:
        """Fetch file metadata + base64 content at `ref`."""
        out = await self._request("GET", path, params={"ref": ref})
        # a directory answers with a list of entries
        if not isinstance(out, dict):
            raise DecodeError(f"{path} is not a file")
        return out

    async def put_file(self, path: str, content_b64: str, sha: str, branch: str, message: str) -> Dict[str, Any]:
        """
        Replace the whole file. `sha` is the compare-and-swap precondition.
        Returns GitHub's {"content": {...}, "commit": {...}} payload.
        """
        payload = {"message": message, "content": content_b64, "sha": sha, "branch": branch}
        return await self._request("PUT", path, json=payload)
