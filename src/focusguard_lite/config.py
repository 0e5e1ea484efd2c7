"""Runtime settings for the DNS sinkhole.

Defaults mirror a single-machine install: listen on every interface on
port 53, forward to Google DNS with a one second budget, sinkhole to
loopback with a five minute TTL. The CLI overrides any of them.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_CONFIG_FILE = "config.json"
DEFAULT_CACHE_FILE = "domain-cache.json"


@dataclass(frozen=True, slots=True)
class Settings:
    listen_host: str = "0.0.0.0"
    listen_port: int = 53
    upstream_host: str = "8.8.8.8"
    upstream_port: int = 53
    upstream_timeout: float = 1.0       # seconds
    sinkhole_address: str = "127.0.0.1"
    sinkhole_ttl: int = 300             # seconds
    config_path: Path = Path(DEFAULT_CONFIG_FILE)
    cache_path: Path = Path(DEFAULT_CACHE_FILE)
    default_unlock_minutes: int = 30

    def __post_init__(self) -> None:
        if self.upstream_timeout <= 0:
            raise ValueError("upstream_timeout must be positive")
        if not 0 < self.sinkhole_ttl <= 3600:
            raise ValueError("sinkhole_ttl must be between 1 and 3600 seconds")
        if self.default_unlock_minutes < 1:
            raise ValueError("default_unlock_minutes must be at least 1")
