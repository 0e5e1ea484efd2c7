"""Tests for the dnslib reply helpers."""
from __future__ import annotations

import pytest
from dnslib import QTYPE, RCODE, RR, A, DNSRecord

from focusguard_lite.interceptor.protocol import (
    DNSError,
    empty_reply,
    error_reply,
    forwarded_reply,
    parse_query,
    question_of,
    sinkhole_reply,
    upstream_query,
)


def test_question_is_normalized():
    request = DNSRecord.question("M.YouTube.com", "AAAA")
    question = question_of(request)
    assert question.domain == "m.youtube.com"
    assert question.qtype == "AAAA"
    assert question.is_valid


def test_root_question_is_invalid():
    question = question_of(DNSRecord.question("."))
    assert question.domain == ""
    assert not question.is_valid


def test_no_question():
    assert question_of(DNSRecord()) is None


def test_parse_garbage_raises():
    with pytest.raises(DNSError):
        parse_query(b"\x00\x01garbage")


@pytest.mark.parametrize("qtype", ["A", "AAAA", "MX", "TXT"])
def test_sinkhole_is_single_a_record_for_any_type(qtype):
    request = DNSRecord.question("youtube.com", qtype)
    reply = sinkhole_reply(request, "127.0.0.1", 300)
    assert reply.header.id == request.header.id
    assert len(reply.rr) == 1
    rr = reply.rr[0]
    assert rr.rtype == QTYPE.A
    assert str(rr.rname) == "youtube.com."
    assert str(rr.rdata) == "127.0.0.1"
    assert rr.ttl == 300


def test_forwarded_reply_copies_answers_verbatim():
    request = DNSRecord.question("example.com")
    upstream = DNSRecord.question("example.com").reply()
    upstream.add_answer(
        RR("example.com", QTYPE.A, rdata=A("93.184.216.34"), ttl=120),
        RR("example.com", QTYPE.A, rdata=A("93.184.216.35"), ttl=120),
    )
    reply = forwarded_reply(request, upstream)
    assert reply.header.id == request.header.id
    assert [str(rr.rdata) for rr in reply.rr] == ["93.184.216.34", "93.184.216.35"]
    assert all(rr.ttl == 120 for rr in reply.rr)


def test_forwarded_reply_keeps_nxdomain():
    request = DNSRecord.question("nope.example")
    upstream = request.reply()
    upstream.header.rcode = RCODE.NXDOMAIN
    reply = forwarded_reply(request, upstream)
    assert reply.header.rcode == RCODE.NXDOMAIN
    assert reply.rr == []


def test_empty_reply_has_no_answers():
    request = DNSRecord.question("example.com")
    reply = empty_reply(request)
    assert reply.rr == []
    assert reply.header.rcode == RCODE.NOERROR
    assert reply.header.id == request.header.id


def test_error_reply_defaults_to_formerr():
    reply = error_reply(DNSRecord.question("."))
    assert reply.header.rcode == RCODE.FORMERR


def test_upstream_query_has_same_question_and_fresh_id():
    request = DNSRecord.question("example.com", "MX")
    query = upstream_query(request)
    assert query.q.qname == request.q.qname
    assert query.q.qtype == QTYPE.MX
    assert query.rr == []
