"""Administrative operations on the access policy.

Every mutating call takes the parent secret and checks it against the
stored SHA-256 digest first. A wrong or missing secret raises
Unauthorized and changes nothing; the error carries no hint about why.
Malformed input raises InvalidSecretFormat (or ValueError) before any
state is touched.

This is the layer an HTTP control panel would sit on. It is also where
the activity feed gets its blocked/allowed annotation.
"""
from __future__ import annotations

import hmac
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from focusguard_lite.domain.classification import Classification
from focusguard_lite.domain.policy import hash_secret
from focusguard_lite.domain.types import DomainName, Timestamp, normalize_domain
from focusguard_lite.interceptor.classifier import DomainClassifier
from focusguard_lite.interceptor.evaluator import AccessPolicyEvaluator
from focusguard_lite.store.policy_store import AccessPolicyStore

log = logging.getLogger(__name__)

SECRET_LENGTH = 6


class InvalidSecretFormat(Exception):
    """Raised when a new parent secret is not exactly six digits."""


class Unauthorized(Exception):
    """Raised when the supplied parent secret does not verify."""


@dataclass(frozen=True, slots=True)
class PolicySnapshot:
    """Read-only view returned by AdminService.settings()."""
    allow_list: tuple[DomainName, ...]
    temporary_allowances: Mapping[DomainName, Timestamp]


class AdminService:
    """Parent-gated mutations of the access policy store.

    Args:
        store: the access policy store shared with the evaluator.
        classifier: used to annotate activity reports.
        evaluator: used to annotate activity reports.
        clock: returns the current Unix time in seconds.
        default_unlock_minutes: duration used when none is given.
    """

    def __init__(
        self,
        store: AccessPolicyStore,
        classifier: DomainClassifier,
        evaluator: AccessPolicyEvaluator,
        clock: Callable[[], Timestamp] = time.time,
        default_unlock_minutes: int = 30,
    ) -> None:
        self._store = store
        self._classifier = classifier
        self._evaluator = evaluator
        self._clock = clock
        self._default_unlock_minutes = default_unlock_minutes

    def set_parent_secret(self, secret: str) -> None:
        if (
            not isinstance(secret, str)
            or len(secret) != SECRET_LENGTH
            or not (secret.isascii() and secret.isdigit())
        ):
            raise InvalidSecretFormat(f"Parent code must be exactly {SECRET_LENGTH} digits")
        self._store.set_parent_secret_hash(hash_secret(secret))
        log.info("Parent secret set")

    def verify_parent_secret(self, secret: str | None) -> bool:
        """True iff a secret is provisioned and secret matches it."""
        expected = self._store.parent_secret_hash
        if expected is None or not isinstance(secret, str):
            return False
        return hmac.compare_digest(hash_secret(secret), expected)

    def _require(self, secret: str | None) -> None:
        if not self.verify_parent_secret(secret):
            raise Unauthorized("Incorrect parent code")

    def grant_temporary_allowance(
        self, secret: str | None, domain: str, minutes: int | None = None
    ) -> Timestamp:
        """Unlock domain for minutes (default 30). Returns the expiry."""
        self._require(secret)
        domain = self._clean_domain(domain)
        if minutes is None:
            minutes = self._default_unlock_minutes
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
            raise ValueError("minutes must be a positive integer")
        expires_at = self._clock() + minutes * 60
        self._store.grant_allowance(domain, expires_at)
        log.info("Domain %s unlocked for %d minutes", domain, minutes)
        return expires_at

    def add_allowed(self, secret: str | None, domain: str) -> bool:
        self._require(secret)
        added = self._store.add_allowed(self._clean_domain(domain))
        if added:
            log.info("Domain %s added to allow-list", domain)
        return added

    def remove_allowed(self, secret: str | None, domain: str) -> bool:
        self._require(secret)
        removed = self._store.remove_allowed(self._clean_domain(domain))
        if removed:
            log.info("Domain %s removed from allow-list", domain)
        return removed

    def settings(self, secret: str | None) -> PolicySnapshot:
        self._require(secret)
        return PolicySnapshot(
            allow_list=self._store.allow_list,
            temporary_allowances=self._store.temporary_allowances,
        )

    def annotate_activity(self, activity: Mapping[str, Any]) -> dict[str, Any]:
        """Copy of an activity report with isBlocked and checkedDomain added.

        Only the exact classification cache is consulted (no inheritance),
        so annotating never grows the cache.
        """
        annotated = dict(activity)
        domain: str | None = None
        blocked = False

        url = activity.get("browserUrl")
        if isinstance(url, str) and url:
            try:
                domain = urlsplit(url).hostname
            except ValueError:
                log.debug("Ignoring unparseable activity URL %r", url)
                domain = None
        if domain:
            classification = (
                Classification.DISTRACTING
                if self._classifier.is_known_distracting(domain)
                else Classification.PRODUCTIVE
            )
            blocked = self._evaluator.should_block(domain, classification)

        annotated["isBlocked"] = blocked
        annotated["checkedDomain"] = domain
        return annotated

    @staticmethod
    def _clean_domain(domain: str) -> DomainName:
        if not isinstance(domain, str):
            raise ValueError("domain must be a string")
        cleaned = normalize_domain(domain)
        if not cleaned:
            raise ValueError("domain must not be empty")
        return cleaned
