"""DNS wire helpers built on dnslib.

Parsing and reply construction for the query handler:

    request = parse_query(datagram)          # DNSRecord, raises DNSError
    question = question_of(request)          # DnsQuestion | None
    sinkhole_reply(request, "127.0.0.1", 300)
    forwarded_reply(request, upstream_answer)
    empty_reply(request)

A sinkhole reply always carries exactly one A record pointing at the
sinkhole address, whatever record type was asked for.
"""
from __future__ import annotations

from dataclasses import dataclass

from dnslib import QTYPE, RCODE, RR, A, DNSRecord
from dnslib.dns import DNSError

from focusguard_lite.domain.types import DomainName, normalize_domain

__all__ = [
    "DNSError",
    "DnsQuestion",
    "parse_query",
    "question_of",
    "upstream_query",
    "sinkhole_reply",
    "forwarded_reply",
    "empty_reply",
    "error_reply",
]

MAX_DATAGRAM_SIZE = 4096


@dataclass(frozen=True, slots=True)
class DnsQuestion:
    """The part of a query the policy engine cares about."""
    domain: DomainName
    qtype: str

    @property
    def is_valid(self) -> bool:
        return bool(self.domain)


def parse_query(data: bytes) -> DNSRecord:
    """Parse a wire-format query. Raises DNSError on garbage."""
    return DNSRecord.parse(data)


def question_of(request: DNSRecord) -> DnsQuestion | None:
    """First question of the request, normalized. None if there is none."""
    if not request.questions:
        return None
    q = request.questions[0]
    return DnsQuestion(
        domain=normalize_domain(str(q.qname)),
        qtype=QTYPE.forward.get(q.qtype, f"TYPE{q.qtype}"),
    )


def upstream_query(request: DNSRecord) -> DNSRecord:
    """Equivalent query for the upstream resolver, with a fresh transaction id."""
    return DNSRecord(q=request.q)


def sinkhole_reply(request: DNSRecord, address: str, ttl: int) -> DNSRecord:
    reply = request.reply()
    reply.add_answer(RR(request.q.qname, QTYPE.A, rdata=A(address), ttl=ttl))
    return reply


def forwarded_reply(request: DNSRecord, upstream: DNSRecord) -> DNSRecord:
    """Reply to the client carrying the upstream answer section verbatim."""
    reply = request.reply(aa=0)
    reply.header.rcode = upstream.header.rcode
    if upstream.rr:
        reply.add_answer(*upstream.rr)
    return reply


def empty_reply(request: DNSRecord) -> DNSRecord:
    """NOERROR with no answers. Used when the upstream did not answer."""
    return request.reply(aa=0)


def error_reply(request: DNSRecord, rcode: int = RCODE.FORMERR) -> DNSRecord:
    reply = request.reply(aa=0)
    reply.header.rcode = rcode
    return reply
