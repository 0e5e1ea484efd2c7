"""DNS interceptor: classification, policy evaluation and query handling.

The async UDP server receives DNS questions, classifies the queried
domain, evaluates the access policy, and either sinkholes the name to
loopback or forwards the question to an upstream resolver.
"""
from focusguard_lite.interceptor.async_interceptor import AsyncDnsInterceptor
from focusguard_lite.interceptor.classifier import DomainClassifier, parent_suffixes
from focusguard_lite.interceptor.evaluator import (
    CRITICAL_DOMAINS,
    AccessPolicyEvaluator,
    EvaluationResult,
    is_critical,
)
from focusguard_lite.interceptor.protocol import DnsQuestion
from focusguard_lite.interceptor.upstream import UpstreamResolver

__all__ = [
    "AsyncDnsInterceptor",
    "DomainClassifier",
    "parent_suffixes",
    "CRITICAL_DOMAINS",
    "AccessPolicyEvaluator",
    "EvaluationResult",
    "is_critical",
    "DnsQuestion",
    "UpstreamResolver",
]
