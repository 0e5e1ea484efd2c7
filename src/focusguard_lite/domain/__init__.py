"""Domain model for focusguard-lite.

Re-exports all public types for convenient access:
    from focusguard_lite.domain import Classification, AccessDecision, AccessPolicyConfig
"""
from focusguard_lite.domain.classification import Classification
from focusguard_lite.domain.decisions import AccessDecision
from focusguard_lite.domain.policy import (
    DOCUMENT_VERSION,
    AccessPolicyConfig,
    hash_secret,
)
from focusguard_lite.domain.types import DomainName, Timestamp, normalize_domain

__all__ = [
    "Classification",
    "AccessDecision",
    "DOCUMENT_VERSION",
    "AccessPolicyConfig",
    "hash_secret",
    "DomainName",
    "Timestamp",
    "normalize_domain",
]
