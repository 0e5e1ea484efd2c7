"""Shared fixtures for focusguard-lite tests.

Provides stores backed by tmp_path, a controllable clock, and async
helpers for a fake upstream resolver and a UDP DNS client.

Requires: pip install pytest-asyncio
"""
from __future__ import annotations

import asyncio

import pytest
from dnslib import QTYPE, RCODE, RR, A, DNSRecord

from focusguard_lite.admin import AdminService
from focusguard_lite.config import Settings
from focusguard_lite.interceptor.async_interceptor import AsyncDnsInterceptor
from focusguard_lite.interceptor.classifier import DomainClassifier
from focusguard_lite.interceptor.evaluator import AccessPolicyEvaluator
from focusguard_lite.interceptor.upstream import UpstreamResolver
from focusguard_lite.store.classification_store import ClassificationStore
from focusguard_lite.store.policy_store import AccessPolicyStore

T0 = 1_760_000_000.0


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: float = T0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Store and engine fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache_path(tmp_path):
    return tmp_path / "domain-cache.json"


@pytest.fixture()
def config_path(tmp_path):
    return tmp_path / "config.json"


@pytest.fixture()
def classification_store(cache_path) -> ClassificationStore:
    return ClassificationStore.load(cache_path)


@pytest.fixture()
def policy_store(config_path) -> AccessPolicyStore:
    return AccessPolicyStore.load(config_path)


@pytest.fixture()
def classifier(classification_store) -> DomainClassifier:
    return DomainClassifier(classification_store)


@pytest.fixture()
def evaluator(policy_store, clock) -> AccessPolicyEvaluator:
    return AccessPolicyEvaluator(policy_store, clock=clock)


@pytest.fixture()
def admin(policy_store, classifier, evaluator, clock) -> AdminService:
    return AdminService(policy_store, classifier, evaluator, clock=clock)


# ---------------------------------------------------------------------------
# Network helpers
# ---------------------------------------------------------------------------

class FakeUpstream(asyncio.DatagramProtocol):
    """UDP resolver answering A queries from a fixed table.

    silent: never reply.
    delay: reply after this many seconds.
    spoof_first: send a reply with the wrong transaction id first.
    Unknown names get NXDOMAIN.
    """

    def __init__(
        self,
        records: dict[str, str],
        silent: bool = False,
        delay: float = 0.0,
        spoof_first: bool = False,
    ) -> None:
        self.records = records
        self.silent = silent
        self.delay = delay
        self.spoof_first = spoof_first
        self.received: list[DNSRecord] = []
        self.transport: asyncio.DatagramTransport | None = None
        self._handles: list[asyncio.TimerHandle] = []

    @classmethod
    async def start(cls, records: dict[str, str] | None = None, **kwargs) -> FakeUpstream:
        loop = asyncio.get_running_loop()
        _, protocol = await loop.create_datagram_endpoint(
            lambda: cls(records or {}, **kwargs),
            local_addr=("127.0.0.1", 0),
        )
        return protocol

    @property
    def port(self) -> int:
        return self.transport.get_extra_info("sockname")[1]

    def connection_made(self, transport) -> None:
        self.transport = transport

    def datagram_received(self, data: bytes, addr) -> None:
        request = DNSRecord.parse(data)
        self.received.append(request)
        if self.silent:
            return

        reply = request.reply()
        address = self.records.get(str(request.q.qname).rstrip("."))
        if address is None:
            reply.header.rcode = RCODE.NXDOMAIN
        else:
            reply.add_answer(RR(request.q.qname, QTYPE.A, rdata=A(address), ttl=60))

        if self.spoof_first:
            spoof = DNSRecord.parse(reply.pack())
            spoof.header.id = (request.header.id + 1) % 65536
            spoof.rr = [RR(request.q.qname, QTYPE.A, rdata=A("6.6.6.6"), ttl=60)]
            self.transport.sendto(spoof.pack(), addr)

        if self.delay:
            loop = asyncio.get_running_loop()
            self._handles.append(
                loop.call_later(self.delay, self.transport.sendto, reply.pack(), addr)
            )
        else:
            self.transport.sendto(reply.pack(), addr)

    def close(self) -> None:
        for handle in self._handles:
            handle.cancel()
        if self.transport is not None:
            self.transport.close()


class DnsClient(asyncio.DatagramProtocol):
    """One-shot UDP client: send a query, wait for one reply."""

    def __init__(self) -> None:
        self.reply: asyncio.Future[bytes] = asyncio.get_running_loop().create_future()

    def datagram_received(self, data: bytes, addr) -> None:
        if not self.reply.done():
            self.reply.set_result(data)

    @classmethod
    async def query(
        cls, host: str, port: int, name: str, qtype: str = "A", timeout: float = 3.0
    ) -> DNSRecord:
        loop = asyncio.get_running_loop()
        transport, protocol = await loop.create_datagram_endpoint(
            cls, remote_addr=(host, port)
        )
        try:
            transport.sendto(DNSRecord.question(name, qtype).pack())
            data = await asyncio.wait_for(protocol.reply, timeout=timeout)
        finally:
            transport.close()
        return DNSRecord.parse(data)


@pytest.fixture()
def fake_upstream():
    return FakeUpstream


@pytest.fixture()
def dns_client():
    return DnsClient


@pytest.fixture()
def make_interceptor(classifier, evaluator):
    """Factory: AsyncDnsInterceptor pointed at a local upstream port."""

    def _make(upstream_port: int, timeout: float = 0.5) -> AsyncDnsInterceptor:
        settings = Settings(
            listen_host="127.0.0.1",
            listen_port=0,
            upstream_host="127.0.0.1",
            upstream_port=upstream_port,
            upstream_timeout=timeout,
        )
        return AsyncDnsInterceptor(
            classifier=classifier,
            evaluator=evaluator,
            upstream=UpstreamResolver("127.0.0.1", upstream_port, timeout),
            settings=settings,
        )

    return _make
