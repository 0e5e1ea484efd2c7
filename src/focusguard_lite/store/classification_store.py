"""ClassificationStore: the durable set of known-distracting domains.

Only DISTRACTING is ever recorded; PRODUCTIVE is the default and is
never written down. Membership grows through DomainClassifier and is
flushed to disk after every insertion.

Accepted document shapes (normalized at load time):
    {"version": 2, "distracting": [...]}                 current
    {"productive": [...], "distracting": [...]}           legacy, productive dropped
    {"youtube.com": "distracting", "docs.rs": "productive"}  legacy flat map
"""
from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from typing import Any

from focusguard_lite.domain.policy import DOCUMENT_VERSION
from focusguard_lite.domain.types import DomainName
from focusguard_lite.store.persistence import JsonDocument, StoreFormatError

log = logging.getLogger(__name__)


def parse_classification_document(doc: Any) -> list[DomainName]:
    """Extract the distracting domains from any accepted document shape.

    Raises:
        StoreFormatError: if the document matches none of the shapes.
    """
    if not isinstance(doc, dict):
        raise StoreFormatError(
            f"Classification document must be an object, got {type(doc).__name__}"
        )

    if "version" in doc or isinstance(doc.get("distracting"), list):
        version = doc.get("version", DOCUMENT_VERSION)
        if version != DOCUMENT_VERSION:
            raise StoreFormatError(f"Unsupported classification document version: {version!r}")
        domains = doc.get("distracting", [])
        if not isinstance(domains, list) or not all(isinstance(d, str) for d in domains):
            raise StoreFormatError("'distracting' must be a list of strings")
        return list(domains)

    # Flat {domain: "type"} map
    if not all(isinstance(v, str) for v in doc.values()):
        raise StoreFormatError("Unrecognized classification document shape")
    return [domain for domain, kind in doc.items() if kind == "distracting"]


class ClassificationStore:
    """Set of distracting domains backed by a JsonDocument.

    Args:
        domains: initial members.
        document: where to flush; memory-only when omitted.
    """

    def __init__(
        self,
        domains: Iterable[DomainName] | None = None,
        document: JsonDocument | None = None,
    ) -> None:
        self._domains: set[DomainName] = set(domains or ())
        self._document = document or JsonDocument(None)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None) -> ClassificationStore:
        """Load from disk. Any failure yields an empty store."""
        document = JsonDocument(path)
        raw = document.load()
        if raw is None:
            return cls(document=document)
        try:
            domains = parse_classification_document(raw)
        except StoreFormatError as exc:
            log.error("Error loading classification cache %s: %s", path, exc)
            return cls(document=document)
        log.info("Loaded %d distracting domains from %s", len(domains), path)
        return cls(domains, document=document)

    def __contains__(self, domain: object) -> bool:
        return domain in self._domains

    def __len__(self) -> int:
        return len(self._domains)

    def __iter__(self) -> Iterator[DomainName]:
        return iter(sorted(self._domains))

    @property
    def document(self) -> JsonDocument:
        return self._document

    def add(self, domain: DomainName) -> bool:
        """Record a distracting domain and flush. Returns True if it was new."""
        if domain in self._domains:
            return False
        self._domains.add(domain)
        self.save()
        return True

    def to_document(self) -> dict[str, Any]:
        return {"version": DOCUMENT_VERSION, "distracting": sorted(self._domains)}

    def save(self) -> bool:
        return self._document.save(self.to_document())
