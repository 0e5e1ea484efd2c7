"""Access policy configuration: parent secret, allow-list, temporary allowances.

A policy config contains:
  - parent_secret_hash: hex SHA-256 of the 6-digit parent secret, or None
    until a parent provisions one
  - allow_list: domains that are never blocked (exact string match)
  - temporary_allowances: domain -> expiry (Unix epoch seconds)

Documents on disk come in two shapes. The current one is tagged with
"version": 2. The legacy one (no version key) used camelCase keys and
stored expiries in epoch milliseconds. from_document() normalizes both
into the same in-memory structure, so nothing past the load boundary
needs to know which shape was read.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any

from focusguard_lite.domain.types import DomainName, Timestamp

DOCUMENT_VERSION = 2


def hash_secret(secret: str) -> str:
    """SHA-256 hex digest of a parent secret."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


@dataclass(slots=True)
class AccessPolicyConfig:
    """In-memory access policy. Mutated only through AccessPolicyStore."""
    parent_secret_hash: str | None = None
    allow_list: list[DomainName] = field(default_factory=list)
    temporary_allowances: dict[DomainName, Timestamp] = field(default_factory=dict)

    def is_provisioned(self) -> bool:
        return self.parent_secret_hash is not None

    def is_allow_listed(self, domain: DomainName) -> bool:
        return domain in self.allow_list

    def allowance_expiry(self, domain: DomainName) -> Timestamp | None:
        return self.temporary_allowances.get(domain)

    def to_document(self) -> dict[str, Any]:
        return {
            "version": DOCUMENT_VERSION,
            "parent_secret_hash": self.parent_secret_hash,
            "allow_list": list(self.allow_list),
            "temporary_allowances": dict(self.temporary_allowances),
        }

    @classmethod
    def from_document(cls, doc: Any) -> AccessPolicyConfig:
        """Build a config from either document shape.

        Raises:
            ValueError: if doc is not a JSON object or a field has the
                wrong type.
        """
        if not isinstance(doc, dict):
            raise ValueError(f"Policy document must be an object, got {type(doc).__name__}")

        if "version" in doc:
            if doc["version"] != DOCUMENT_VERSION:
                raise ValueError(f"Unsupported policy document version: {doc['version']!r}")
            secret_hash = doc.get("parent_secret_hash")
            allow_list = doc.get("allow_list", [])
            allowances = doc.get("temporary_allowances", {})
            scale = 1.0
        else:
            secret_hash = doc.get("parentCodeHash")
            allow_list = doc.get("whitelist", [])
            allowances = doc.get("temporaryAccess", {})
            scale = 1000.0  # legacy expiries are epoch milliseconds

        if secret_hash is not None and not isinstance(secret_hash, str):
            raise ValueError("parent secret hash must be a string or null")
        if not isinstance(allow_list, list) or not all(isinstance(d, str) for d in allow_list):
            raise ValueError("allow-list must be a list of strings")
        if not isinstance(allowances, dict):
            raise ValueError("temporary allowances must be an object")

        normalized: dict[DomainName, Timestamp] = {}
        for domain, expiry in allowances.items():
            if isinstance(expiry, bool) or not isinstance(expiry, (int, float)):
                raise ValueError(f"Expiry for {domain} must be a number")
            normalized[domain] = float(expiry) / scale

        # dict.fromkeys keeps first-seen order while dropping duplicates
        return cls(
            parent_secret_hash=secret_hash,
            allow_list=list(dict.fromkeys(allow_list)),
            temporary_allowances=normalized,
        )
