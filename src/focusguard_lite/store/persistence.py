"""Whole-file JSON persistence for the policy and classification stores.

Every save replaces the entire document: the payload goes to a sibling
temp file which is then os.replace()d over the target, so a reader never
sees a half-written file. There is no merge, so two concurrent writers
would lose updates. JsonDocument holds one lock per file and allows only
one write in flight at a time.

Failures follow the fail-open rule:
  - load(): a missing, unreadable or unparseable file yields None and
    the caller starts from an empty store
  - save(): an I/O or serialization error is logged and reported as
    False; the in-memory state stays authoritative until the next
    successful save
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)


class StoreFormatError(Exception):
    """Raised when a persisted document has an unrecognized shape."""


class JsonDocument:
    """A JSON file that is always read and written as a whole.

    Args:
        path: file location, or None for a memory-only document
            (load() returns None, save() is a no-op that succeeds).
    """

    def __init__(self, path: str | os.PathLike[str] | None) -> None:
        self._path = Path(path) if path is not None else None
        self._lock = threading.Lock()
        self._writes: int = 0

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def writes(self) -> int:
        """Number of successful saves."""
        return self._writes

    def load(self) -> Any | None:
        """Read and parse the document, or None if it cannot be used."""
        if self._path is None:
            return None
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except FileNotFoundError:
            log.info("No document at %s, starting empty", self._path)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            log.error("Error loading %s: %s", self._path, exc)
        return None

    def save(self, doc: Any) -> bool:
        """Replace the document on disk. Returns False if the write failed."""
        if self._path is None:
            return True
        with self._lock:
            try:
                payload = json.dumps(doc, indent=2)
                self._replace(payload)
            except (OSError, TypeError, ValueError):
                log.exception("Error saving %s", self._path)
                return False
            self._writes += 1
            return True

    def _replace(self, payload: str) -> None:
        assert self._path is not None
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
