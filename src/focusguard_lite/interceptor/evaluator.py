"""Access policy evaluator: given a domain and its classification, block or allow.

Evaluation order, first match wins:
  1. Management exemptions: "localhost", "127.0.0.1", anything containing
     the control panel marker
  2. Critical domains: exact or dot-boundary suffix match against
     CRITICAL_DOMAINS
  3. Allow-list: exact string match only
  4. Temporary allowance: granted while now < expiry. An expired entry is
     removed from the store (and flushed), then evaluation falls through
  5. Default: BLOCK iff the classification is DISTRACTING

Note the asymmetry between 2 and 3: allow-listing "example.com" does not
allow "www.example.com".

The decision is a pure function of (domain, classification, store, clock).
The one side effect, pruning an expired allowance, is idempotent.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from focusguard_lite.domain.classification import Classification
from focusguard_lite.domain.decisions import AccessDecision
from focusguard_lite.domain.types import DomainName, Timestamp
from focusguard_lite.store.policy_store import AccessPolicyStore

log = logging.getLogger(__name__)

MANAGEMENT_MARKER = "focusguard"

LOCAL_NAMES: frozenset[str] = frozenset({"localhost", "127.0.0.1"})

CRITICAL_DOMAINS: tuple[str, ...] = (
    # DNS and system services
    "dns.google",
    "cloudflare-dns.com",
    "1.1.1.1",
    "8.8.8.8",
    # Apple services
    "apple.com",
    "icloud.com",
    "apple-cloudkit.com",
    "push.apple.com",
    # Microsoft services
    "microsoft.com",
    "windows.com",
    # Developer tooling
    "github.com",
    "githubcopilot.com",
)


def is_critical(domain: DomainName) -> bool:
    return any(
        domain == critical or domain.endswith("." + critical)
        for critical in CRITICAL_DOMAINS
    )


@dataclass(slots=True)
class EvaluationResult:
    """Result of evaluating a domain against the access policy."""
    decision: AccessDecision
    reason: str

    @property
    def blocked(self) -> bool:
        return self.decision is AccessDecision.BLOCK


class AccessPolicyEvaluator:
    """Applies exemptions and the policy store to a classification.

    Args:
        store: the access policy store (read, and pruned on expiry).
        clock: returns the current Unix time in seconds.
    """

    def __init__(
        self,
        store: AccessPolicyStore,
        clock: Callable[[], Timestamp] = time.time,
    ) -> None:
        self._store = store
        self._clock = clock

    def should_block(self, domain: DomainName, classification: Classification) -> bool:
        return self.evaluate(domain, classification).blocked

    def evaluate(
        self, domain: DomainName, classification: Classification
    ) -> EvaluationResult:
        if domain in LOCAL_NAMES or MANAGEMENT_MARKER in domain:
            return EvaluationResult(AccessDecision.ALLOW, "local or management name")

        if is_critical(domain):
            return EvaluationResult(AccessDecision.ALLOW, "critical domain")

        if self._store.is_allow_listed(domain):
            return EvaluationResult(AccessDecision.ALLOW, "allow-listed")

        expiry = self._store.allowance_expiry(domain)
        if expiry is not None:
            if self._clock() < expiry:
                return EvaluationResult(AccessDecision.ALLOW, "temporary allowance")
            log.info("Temporary allowance for %s expired, removing", domain)
            self._store.revoke_allowance(domain)

        if classification is Classification.DISTRACTING:
            return EvaluationResult(AccessDecision.BLOCK, "distracting")
        return EvaluationResult(AccessDecision.ALLOW, "productive")
