"""Domain classifier: productive or distracting, with suffix inheritance.

Algorithm for classify("a.b.c.com"):
  1. "a.b.c.com" in the store -> DISTRACTING
  2. Walk parent suffixes, most specific first: "b.c.com", then "c.com".
     The bare TLD ("com") is never checked. A hit memoizes the full name
     into the store (flushed immediately) -> DISTRACTING
  3. Otherwise PRODUCTIVE, and nothing is written

Callers must pass a normalized, non-empty name (see normalize_domain).
"""
from __future__ import annotations

import logging

from focusguard_lite.domain.classification import Classification
from focusguard_lite.domain.types import DomainName
from focusguard_lite.store.classification_store import ClassificationStore

log = logging.getLogger(__name__)


def parent_suffixes(domain: DomainName) -> list[DomainName]:
    """Proper parent suffixes of domain down to the last two labels.

    >>> parent_suffixes("a.b.c.com")
    ['b.c.com', 'c.com']
    >>> parent_suffixes("example.com")
    []
    """
    labels = domain.split(".")
    return [".".join(labels[i:]) for i in range(1, len(labels) - 1)]


class DomainClassifier:
    """Classifies domains against a ClassificationStore.

    Deterministic for a given store content. The only side effect is the
    write-through memoization on the inheritance path.
    """

    def __init__(self, store: ClassificationStore) -> None:
        self._store = store

    @property
    def store(self) -> ClassificationStore:
        return self._store

    def classify(self, domain: DomainName) -> Classification:
        if domain in self._store:
            return Classification.DISTRACTING

        for parent in parent_suffixes(domain):
            if parent in self._store:
                log.info("%s inherits classification from %s: distracting", domain, parent)
                self._store.add(domain)
                return Classification.DISTRACTING

        log.debug("%s not in blocklist, treating as productive", domain)
        return Classification.PRODUCTIVE

    def is_known_distracting(self, domain: DomainName) -> bool:
        """Exact membership only. No inheritance, never writes."""
        return domain in self._store
