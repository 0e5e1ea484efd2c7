"""focusguard-lite: a DNS sinkhole for distracting domains."""

__version__ = "0.1.0"
