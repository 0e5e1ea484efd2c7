"""Upstream forwarding: one UDP exchange with a bounded wait.

Each forward opens its own connected datagram endpoint, sends the query
once, and waits on a future that the protocol fills with the first
reply carrying the matching transaction id. asyncio.wait_for bounds the
wait. There are exactly two outcomes:
  - reply before the deadline -> parsed DNSRecord
  - deadline (or transport error) first -> None

The endpoint is closed in both cases, so a reply arriving after the
deadline has nowhere to go. Even if one slips into the protocol before
the close, the future is already done and the reply is dropped. No
retries: a None here is final for that query.
"""
from __future__ import annotations

import asyncio
import logging

from dnslib import DNSRecord
from dnslib.dns import DNSError

log = logging.getLogger(__name__)


class _ExchangeProtocol(asyncio.DatagramProtocol):
    """Resolves a future with the first datagram whose DNS id matches."""

    def __init__(self, future: asyncio.Future[bytes], expected_id: int) -> None:
        self._future = future
        self._expected_id = expected_id

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        if self._future.done():
            log.debug("Discarding late upstream reply from %s", addr)
            return
        # DNS id is the first two bytes, big-endian
        if len(data) < 2 or int.from_bytes(data[:2], "big") != self._expected_id:
            log.debug("Ignoring upstream datagram with mismatched id from %s", addr)
            return
        self._future.set_result(data)

    def error_received(self, exc: Exception) -> None:
        if not self._future.done():
            self._future.set_exception(exc)

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None and not self._future.done():
            self._future.set_exception(exc)


class UpstreamResolver:
    """Forwards queries to a single upstream resolver over UDP.

    Args:
        host: upstream resolver address (default 8.8.8.8).
        port: upstream port (default 53).
        timeout: seconds to wait for the reply.
    """

    def __init__(self, host: str = "8.8.8.8", port: int = 53, timeout: float = 1.0) -> None:
        self._host = host
        self._port = port
        self._timeout = timeout
        self._timeouts: int = 0

    @property
    def address(self) -> tuple[str, int]:
        return (self._host, self._port)

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def timeouts(self) -> int:
        """Number of exchanges that hit the deadline."""
        return self._timeouts

    async def forward(self, query: DNSRecord) -> DNSRecord | None:
        """Send query upstream once. None on timeout or transport failure."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future[bytes] = loop.create_future()
        try:
            transport, _ = await loop.create_datagram_endpoint(
                lambda: _ExchangeProtocol(future, query.header.id),
                remote_addr=(self._host, self._port),
            )
        except OSError as exc:
            log.error("Cannot reach upstream %s:%d: %s", self._host, self._port, exc)
            return None

        try:
            transport.sendto(query.pack())
            data = await asyncio.wait_for(future, timeout=self._timeout)
        except asyncio.TimeoutError:
            self._timeouts += 1
            log.warning("DNS upstream timeout for %s", query.q.qname)
            return None
        except OSError as exc:
            log.error("DNS upstream error for %s: %s", query.q.qname, exc)
            return None
        finally:
            transport.close()

        try:
            return DNSRecord.parse(data)
        except DNSError as exc:
            log.error("Unparseable upstream reply for %s: %s", query.q.qname, exc)
            return None
