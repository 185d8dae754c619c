"""
FastAPI entrypoint.

This file focuses on:
- routing for /api/locations (GET = read collection, PUT = replace it)
- turning every StoreError into a JSON error body
- wiring settings -> GitHub client -> RecordStore per request
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from .errors import DecodeError, StoreError
from .github_contents import GitHubContentsClient
from .record_store import RecordStore, reject_constant
from .schemas import CommitOut, ErrorResponse, SaveResponse
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

app = FastAPI(title="Temperious Manager")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def get_store(settings: Settings = Depends(get_settings)) -> RecordStore:
    """
    Per-request store. Missing configuration fails here (ConfigError) before
    any remote call is made.
    """
    client = GitHubContentsClient(
        settings.github_token,
        settings.github_owner,
        settings.github_repo,
        api_base=settings.github_api_base,
        user_agent=settings.user_agent,
    )
    return RecordStore(client, path=settings.github_file_path, branch=settings.github_branch)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    """All store failures share one shape: 500 + {"error": message}."""
    logger.warning("request_failed method=%s path=%s error=%s: %s",
                   request.method, request.url.path, type(exc).__name__, exc)
    return JSONResponse(status_code=500, content=ErrorResponse(error=str(exc)).model_dump())


# -------------------------
# UI route
# -------------------------

@app.get("/", response_class=HTMLResponse)
async def home(request: Request, store: RecordStore = Depends(get_store)):
    """Read-only listing of the stored locations."""
    rows, version = await store.fetch()
    return templates.TemplateResponse(
        request,
        "index.html",
        {"rows": rows, "version": version, "path": store.path, "branch": store.branch},
    )


@app.get("/health")
def health():
    return {"ok": True}


# -------------------------
# Collection API
# -------------------------

@app.get("/api/locations")
async def api_list_locations(store: RecordStore = Depends(get_store)):
    """The full collection as a JSON array."""
    rows, _ = await store.fetch()
    return JSONResponse(rows)


@app.put("/api/locations", response_model=SaveResponse)
async def api_replace_locations(request: Request, store: RecordStore = Depends(get_store)):
    """
    Replace the whole collection.

    The body is parsed by hand (not via a pydantic body model) so a bad row
    is reported as "Row N: ..." by the store's own validation.
    """
    body = await request.body()
    try:
        rows = json.loads(body, parse_constant=reject_constant)
    except ValueError:
        raise DecodeError("Invalid JSON body")

    result = await store.commit(rows)
    return SaveResponse(commit=CommitOut(**result.to_dict()))


@app.api_route("/api/locations", methods=["POST", "PATCH", "DELETE"], include_in_schema=False)
async def api_locations_not_allowed():
    return JSONResponse(status_code=405, content=ErrorResponse(error="Method Not Allowed").model_dump())
