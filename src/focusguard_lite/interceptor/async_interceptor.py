"""Async DNS interceptor: UDP server that sinkholes distracting domains.

Architecture:
    Single thread, single event loop.
    loop.create_datagram_endpoint() receives queries.
    Each datagram becomes its own task running the per-query flow.

Per-query flow:
    Received    parse the datagram, extract and normalize the question
    Classified  DomainClassifier.classify() (synchronous, may flush)
    Decided     AccessPolicyEvaluator.evaluate() (synchronous, may flush)
    Synthesized BLOCK: one A record at the sinkhole address, sent at once
    Forwarded   ALLOW: UpstreamResolver.forward(), bounded wait, answers
                copied verbatim or an empty answer on timeout
    Answered    exactly one sendto() per query

Classification and evaluation are fast CPU work with no await, so two
queries can never interleave inside them. The only suspension point is
the upstream exchange. Queries are independent: no ordering between them.
"""
from __future__ import annotations

import asyncio
import logging

from dnslib import RCODE, DNSRecord

from focusguard_lite.config import Settings
from focusguard_lite.domain.classification import Classification
from focusguard_lite.interceptor.classifier import DomainClassifier
from focusguard_lite.interceptor.evaluator import AccessPolicyEvaluator, EvaluationResult
from focusguard_lite.interceptor.protocol import (
    DNSError,
    DnsQuestion,
    empty_reply,
    error_reply,
    forwarded_reply,
    parse_query,
    question_of,
    sinkhole_reply,
    upstream_query,
)
from focusguard_lite.interceptor.upstream import UpstreamResolver

log = logging.getLogger(__name__)


class _ServerProtocol(asyncio.DatagramProtocol):
    """Hands each datagram to the interceptor as a separate task."""

    def __init__(self, interceptor: AsyncDnsInterceptor) -> None:
        self._interceptor = interceptor
        self.transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        self._interceptor._spawn(self._respond(data, addr))

    async def _respond(self, data: bytes, addr: tuple[str, int]) -> None:
        response = await self._interceptor.handle_datagram(data)
        if response is not None and self.transport is not None:
            self.transport.sendto(response, addr)

    def error_received(self, exc: Exception) -> None:
        log.error("DNS server socket error: %s", exc)


class AsyncDnsInterceptor:
    """Asyncio UDP DNS server applying the focus policy.

    Args:
        classifier: classifies queried domains.
        evaluator: turns a classification into BLOCK/ALLOW.
        upstream: resolver used for allowed queries.
        settings: listen address and sinkhole parameters.
    """

    def __init__(
        self,
        classifier: DomainClassifier,
        evaluator: AccessPolicyEvaluator,
        upstream: UpstreamResolver | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._classifier = classifier
        self._evaluator = evaluator
        self._upstream = upstream or UpstreamResolver(
            self._settings.upstream_host,
            self._settings.upstream_port,
            self._settings.upstream_timeout,
        )
        self._transport: asyncio.DatagramTransport | None = None
        self._tasks: set[asyncio.Task] = set()
        self._ready = asyncio.Event()
        self._bound_port: int = 0
        self._queries_handled: int = 0
        self._queries_blocked: int = 0
        self._queries_forwarded: int = 0

    @property
    def address(self) -> tuple[str, int]:
        """Return (host, port) the server is bound to."""
        return (self._settings.listen_host, self._bound_port)

    @property
    def queries_handled(self) -> int:
        return self._queries_handled

    @property
    def queries_blocked(self) -> int:
        return self._queries_blocked

    @property
    def queries_forwarded(self) -> int:
        return self._queries_forwarded

    @property
    def upstream_timeouts(self) -> int:
        return self._upstream.timeouts

    async def start(self) -> None:
        """Bind the UDP socket and start serving."""
        loop = asyncio.get_running_loop()
        transport, _ = await loop.create_datagram_endpoint(
            lambda: _ServerProtocol(self),
            local_addr=(self._settings.listen_host, self._settings.listen_port),
        )
        self._transport = transport
        # Grab the actual bound port (important when port=0)
        self._bound_port = transport.get_extra_info("sockname")[1]
        log.info("DNS server running on %s:%d", *self.address)
        self._ready.set()

    async def stop(self) -> None:
        """Stop receiving and let in-flight queries finish."""
        if self._transport is not None:
            self._transport.close()
            self._transport = None
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def wait_ready(self, timeout: float = 5.0) -> None:
        """Wait until the server is accepting queries."""
        await asyncio.wait_for(self._ready.wait(), timeout=timeout)

    def _spawn(self, coro) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def handle_datagram(self, data: bytes) -> bytes | None:
        """Run one query through the full flow. None means drop silently."""
        try:
            request = parse_query(data)
        except DNSError as exc:
            log.debug("Dropping malformed DNS datagram: %s", exc)
            return None

        try:
            reply = await self.resolve(request)
            return reply.pack()
        except Exception:
            log.exception("Error handling DNS query")
            return error_reply(request, rcode=RCODE.SERVFAIL).pack()
        finally:
            self._queries_handled += 1

    async def resolve(self, request: DNSRecord) -> DNSRecord:
        """Answer a parsed request: sinkhole it or forward it upstream."""
        question = question_of(request)
        if question is None or not question.is_valid:
            log.debug("Rejecting query without a usable question")
            return error_reply(request)

        log.debug("DNS Query: %s %s", question.domain, question.qtype)
        result = self.decide(question)

        if result.blocked:
            self._queries_blocked += 1
            log.info("BLOCKED: %s", question.domain)
            return sinkhole_reply(
                request, self._settings.sinkhole_address, self._settings.sinkhole_ttl
            )

        self._queries_forwarded += 1
        log.debug("ALLOWED: %s (%s)", question.domain, result.reason)
        answer = await self._upstream.forward(upstream_query(request))
        if answer is None:
            return empty_reply(request)
        return forwarded_reply(request, answer)

    def decide(self, question: DnsQuestion) -> EvaluationResult:
        """Classified -> Decided. Synchronous, no await."""
        classification: Classification = self._classifier.classify(question.domain)
        return self._evaluator.evaluate(question.domain, classification)
