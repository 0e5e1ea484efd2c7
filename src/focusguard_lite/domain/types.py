"""Shared type aliases and helpers used across the domain."""
from __future__ import annotations

from typing import TypeAlias

DomainName: TypeAlias = str
Timestamp: TypeAlias = float  # Unix epoch seconds


def normalize_domain(name: str) -> DomainName:
    """Lowercase a DNS name and strip one trailing root dot.

    "M.YouTube.com." -> "m.youtube.com". Everything downstream of the
    query handler compares exact text, so this runs once at the boundary.
    """
    name = name.strip().lower()
    if name.endswith("."):
        name = name[:-1]
    return name
