from __future__ import annotations

import base64
import hashlib
import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from temperious_manager.github_contents import GitHubContentsClient
from temperious_manager.record_store import RecordStore

OWNER = "acme"
REPO = "watchlist"
FILE_PATH = "locations.json"


def blob_sha(text: str) -> str:
    """Same id git would give the blob."""
    data = text.encode("utf-8")
    return hashlib.sha1(b"blob %d\0" % len(data) + data).hexdigest()


def wrapped_b64(text: str) -> str:
    """base64 broken into 60-char lines, the way GitHub returns it."""
    b64 = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return "\n".join(b64[i:i + 60] for i in range(0, len(b64), 60)) + "\n"


class FakeContentsApi:
    """
    in-memory stand-in for the GitHub contents api, for one file.
    PUT is refused with 409 unless the supplied sha matches the current blob.
    """

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None, path: str = FILE_PATH):
        self.path = path
        self.requests: List[httpx.Request] = []
        self.commits: List[Dict[str, Any]] = []
        self.fail_status: Optional[int] = None
        self.set_text(json.dumps(rows or [], indent=2) + "\n")

    def set_text(self, text: str) -> None:
        self.text = text
        self.sha = blob_sha(text)

    @property
    def rows(self) -> Any:
        return json.loads(self.text)

    def url_path(self) -> str:
        return f"/repos/{OWNER}/{REPO}/contents/{self.path}"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.fail_status is not None:
            return httpx.Response(self.fail_status, text="upstream is sad " + "x" * 500)
        if request.url.path != self.url_path():
            return httpx.Response(404, json={"message": "Not Found"})

        if request.method == "GET":
            return httpx.Response(200, json={"path": self.path, "sha": self.sha, "content": wrapped_b64(self.text)})

        if request.method == "PUT":
            body = json.loads(request.content)
            if body.get("sha") != self.sha:
                return httpx.Response(409, json={"message": f"{self.path} does not match {body.get('sha')}"})
            self.set_text(base64.b64decode(body["content"]).decode("utf-8"))
            self.commits.append(body)
            commit_sha = hashlib.sha1(f"commit-{len(self.commits)}".encode()).hexdigest()
            return httpx.Response(200, json={
                "content": {"path": self.path, "sha": self.sha},
                "commit": {"sha": commit_sha, "html_url": f"https://github.com/{OWNER}/{REPO}/commit/{commit_sha}"},
            })

        return httpx.Response(405, json={"message": "nope"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_store(transport: httpx.AsyncBaseTransport, path: str = FILE_PATH) -> RecordStore:
    client = GitHubContentsClient("t0ken", OWNER, REPO, transport=transport)
    return RecordStore(client, path=path, branch="main")


BERLIN = {"name": "Berlin", "lat": 52.5, "lon": 13.4, "threshold": 30}
OSLO = {"name": "Oslo", "lat": 59.9, "lon": 10.7, "threshold": -5, "notify": "ops@example.com"}


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def fake_github() -> FakeContentsApi:
    return FakeContentsApi([dict(BERLIN), dict(OSLO)])


@pytest.fixture()
def store(fake_github: FakeContentsApi) -> RecordStore:
    return make_store(fake_github.transport())
