"""Durable stores for classification and access policy.

Both stores are loaded once at startup and flushed as whole documents
after every mutation:
    policy_store, classification_store = load_stores("config.json", "domain-cache.json")
"""
from __future__ import annotations

import os

from focusguard_lite.store.classification_store import (
    ClassificationStore,
    parse_classification_document,
)
from focusguard_lite.store.persistence import JsonDocument, StoreFormatError
from focusguard_lite.store.policy_store import AccessPolicyStore


def load_stores(
    config_path: str | os.PathLike[str] | None,
    cache_path: str | os.PathLike[str] | None,
) -> tuple[AccessPolicyStore, ClassificationStore]:
    """Load both stores. Never raises for I/O or format problems."""
    return AccessPolicyStore.load(config_path), ClassificationStore.load(cache_path)


__all__ = [
    "AccessPolicyStore",
    "ClassificationStore",
    "JsonDocument",
    "StoreFormatError",
    "load_stores",
    "parse_classification_document",
]
