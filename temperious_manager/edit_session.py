"""
Client-side edit state.

An EditSession owns a local copy of the location collection and
reconciles it with the remote store:

    Clean --add/update/delete--> Dirty
    Dirty --save ok-----------> Clean
    Dirty --save failed-------> Dirty   (no merge, no retry)
    Dirty --load (confirmed)--> Clean
    Clean --load--------------> Clean

`edit_target` (None = next submit appends, int = next submit overwrites
that row) resets on every successful load or submit.

Only one load/save may be in flight at a time (`busy`). Local mutations
are refused while a load is in flight, since its result replaces the
rows wholesale. They are allowed during a save; the session then stays
dirty after the save because the saved snapshot is already stale.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Union

from .errors import Conflict, SessionBusy, StoreError
from .forms import LocationForm
from .record_store import CommitResult

logger = logging.getLogger(__name__)

Rows = List[Dict[str, Any]]


class LocationsBackend(Protocol):
    """What a session needs from the store (RecordStore or LocationsApiClient)."""

    async def fetch_rows(self) -> Rows: ...

    async def commit_rows(self, rows: Rows) -> CommitResult: ...


class EditSession:
    def __init__(self, backend: LocationsBackend, confirm_discard: Optional[Callable[[], bool]] = None):
        self.backend = backend
        # Asked before a load throws away unsaved edits. Refuses by default.
        self.confirm_discard = confirm_discard or (lambda: False)

        self.rows: Rows = []
        self.edit_target: Optional[int] = None
        self.form = LocationForm()
        self.dirty = False

        self.busy: Optional[str] = None   # "load" | "save" | None
        self.status = ""
        self.last_commit: Optional[CommitResult] = None

        # bumped on every local mutation; lets save() tell if rows moved under it
        self._revision = 0

    # -------------------------
    # guards
    # -------------------------

    def _require_idle(self, op: str) -> None:
        if self.busy is not None:
            raise SessionBusy(f"Cannot {op}: {self.busy} still in progress")

    def _require_not_loading(self, op: str) -> None:
        if self.busy == "load":
            raise SessionBusy(f"Cannot {op}: load still in progress")

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.rows):
            raise IndexError(f"row index out of range: {index}")

    def _touch(self) -> None:
        self.dirty = True
        self._revision += 1

    # -------------------------
    # remote operations
    # -------------------------

    async def load(self) -> bool:
        """
        Replace local rows with the remote collection.

        With unsaved edits, proceeds only if `confirm_discard()` agrees;
        returns False (nothing changed) otherwise. On a fetch failure the
        local state is left as it was and the error propagates.
        """
        self._require_idle("load")
        if self.dirty and not self.confirm_discard():
            self.status = "Reload cancelled. Local changes kept."
            return False

        self.busy = "load"
        self.status = "Loading…"
        try:
            rows = await self.backend.fetch_rows()
        except StoreError as e:
            self.status = f"Failed to load: {e}"
            raise
        finally:
            self.busy = None

        self.rows = copy.deepcopy(rows)
        self.edit_target = None
        self.form = LocationForm()
        self.dirty = False
        self.status = f"Loaded {len(self.rows)} location(s)"
        logger.info("session_loaded rows=%d", len(self.rows))
        return True

    async def save(self) -> CommitResult:
        """
        Commit the current rows. Success clears `dirty` (unless rows changed
        while the save was in flight); any failure keeps it and propagates.
        """
        self._require_idle("save")
        snapshot = copy.deepcopy(self.rows)
        revision = self._revision

        self.busy = "save"
        self.status = "Saving…"
        try:
            result = await self.backend.commit_rows(snapshot)
        except Conflict as e:
            self.status = (
                f"Save rejected, the file changed remotely ({e}). "
                "Reload (discarding local edits) and redo your changes."
            )
            raise
        except StoreError as e:
            self.status = f"Save failed: {e}. Local changes kept, try again."
            raise
        finally:
            self.busy = None

        self.last_commit = result
        self.dirty = self._revision != revision
        self.status = f"Saved ✓ commit: {result.short_sha or 'ok'}"
        logger.info("session_saved rows=%d commit=%s still_dirty=%s", len(snapshot), result.short_sha, self.dirty)
        return result

    # -------------------------
    # local edits
    # -------------------------

    def begin_add(self) -> None:
        self.edit_target = None
        self.form = LocationForm()

    def begin_edit(self, index: int) -> None:
        self._check_index(index)
        self.edit_target = index
        self.form = LocationForm.from_record(self.rows[index])

    def cancel(self) -> None:
        """Drop the form without touching rows."""
        self.begin_add()

    def submit(self, candidate: Union[LocationForm, Mapping[str, Any], None] = None) -> Dict[str, Any]:
        """
        Validate one candidate (defaults to the current form) and append it
        or overwrite the row being edited.

        Raises ClientValidationError with rows, form and edit target left
        unchanged.
        """
        self._require_not_loading("submit")
        if candidate is None:
            form = self.form
        elif isinstance(candidate, LocationForm):
            form = candidate
        else:
            form = LocationForm.from_mapping(candidate)

        record = form.parse()

        if self.edit_target is None:
            self.rows.append(record)
            self.status = "Added. Remember to Save to Repo."
        else:
            self.rows[self.edit_target] = record
            self.edit_target = None
            self.status = "Updated. Remember to Save to Repo."

        self.form = LocationForm()
        self._touch()
        return record

    def delete(self, index: int) -> None:
        self._require_not_loading("delete")
        self._check_index(index)
        del self.rows[index]

        # keep the edit target pointing at the same row
        if self.edit_target is not None:
            if self.edit_target == index:
                self.begin_add()
            elif self.edit_target > index:
                self.edit_target -= 1

        self._touch()
        self.status = "Deleted. Remember to Save to Repo."
