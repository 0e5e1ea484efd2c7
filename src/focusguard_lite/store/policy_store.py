"""AccessPolicyStore: owns the AccessPolicyConfig and its persistence.

All mutations of the policy config go through this object, and every
mutation is followed by a synchronous whole-document flush. Readers
(AccessPolicyEvaluator, AdminService) get read-only views.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from focusguard_lite.domain.policy import AccessPolicyConfig
from focusguard_lite.domain.types import DomainName, Timestamp
from focusguard_lite.store.persistence import JsonDocument

log = logging.getLogger(__name__)


class AccessPolicyStore:
    """Durable parent secret, allow-list and temporary allowances."""

    def __init__(
        self,
        config: AccessPolicyConfig | None = None,
        document: JsonDocument | None = None,
    ) -> None:
        self._config = config or AccessPolicyConfig()
        self._document = document or JsonDocument(None)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None) -> AccessPolicyStore:
        """Load from disk. Any failure yields an unprovisioned, empty config."""
        document = JsonDocument(path)
        raw = document.load()
        if raw is None:
            return cls(document=document)
        try:
            config = AccessPolicyConfig.from_document(raw)
        except ValueError as exc:
            log.error("Error loading policy config %s: %s", path, exc)
            return cls(document=document)
        return cls(config, document=document)

    @property
    def document(self) -> JsonDocument:
        return self._document

    @property
    def parent_secret_hash(self) -> str | None:
        return self._config.parent_secret_hash

    @property
    def allow_list(self) -> tuple[DomainName, ...]:
        return tuple(self._config.allow_list)

    @property
    def temporary_allowances(self) -> Mapping[DomainName, Timestamp]:
        return dict(self._config.temporary_allowances)

    def is_allow_listed(self, domain: DomainName) -> bool:
        return self._config.is_allow_listed(domain)

    def allowance_expiry(self, domain: DomainName) -> Timestamp | None:
        return self._config.allowance_expiry(domain)

    # --- mutations (each one flushes) ---

    def set_parent_secret_hash(self, secret_hash: str) -> None:
        self._config.parent_secret_hash = secret_hash
        self.save()

    def add_allowed(self, domain: DomainName) -> bool:
        """Add to the allow-list. Returns False (and skips the flush) if present."""
        if self._config.is_allow_listed(domain):
            return False
        self._config.allow_list.append(domain)
        self.save()
        return True

    def remove_allowed(self, domain: DomainName) -> bool:
        if not self._config.is_allow_listed(domain):
            return False
        self._config.allow_list = [d for d in self._config.allow_list if d != domain]
        self.save()
        return True

    def grant_allowance(self, domain: DomainName, expires_at: Timestamp) -> None:
        self._config.temporary_allowances[domain] = expires_at
        self.save()

    def revoke_allowance(self, domain: DomainName) -> bool:
        """Drop a temporary allowance. Idempotent: a missing entry is a no-op."""
        if self._config.temporary_allowances.pop(domain, None) is None:
            return False
        self.save()
        return True

    def save(self) -> bool:
        return self._document.save(self._config.to_document())
