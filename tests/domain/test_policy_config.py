"""Tests for AccessPolicyConfig and its document formats."""
from __future__ import annotations

import pytest

from focusguard_lite.domain.classification import Classification
from focusguard_lite.domain.decisions import AccessDecision
from focusguard_lite.domain.policy import DOCUMENT_VERSION, AccessPolicyConfig, hash_secret
from focusguard_lite.domain.types import normalize_domain


def test_defaults_are_unprovisioned_and_empty():
    cfg = AccessPolicyConfig()
    assert cfg.parent_secret_hash is None
    assert not cfg.is_provisioned()
    assert cfg.allow_list == []
    assert cfg.temporary_allowances == {}


def test_current_document_roundtrip():
    cfg = AccessPolicyConfig(
        parent_secret_hash=hash_secret("123456"),
        allow_list=["docs.python.org"],
        temporary_allowances={"reddit.com": 1_760_000_000.5},
    )
    doc = cfg.to_document()
    assert doc["version"] == DOCUMENT_VERSION
    assert AccessPolicyConfig.from_document(doc) == cfg


def test_legacy_document_is_normalized():
    legacy = {
        "parentCodeHash": "ab" * 32,
        "whitelist": ["youtube.com", "youtube.com", "khanacademy.org"],
        "temporaryAccess": {"reddit.com": 1_760_000_000_000},
    }
    cfg = AccessPolicyConfig.from_document(legacy)
    assert cfg.parent_secret_hash == "ab" * 32
    assert cfg.allow_list == ["youtube.com", "khanacademy.org"]
    # milliseconds -> seconds
    assert cfg.temporary_allowances == {"reddit.com": 1_760_000_000.0}


def test_legacy_document_with_missing_keys():
    cfg = AccessPolicyConfig.from_document({"parentCodeHash": None})
    assert cfg == AccessPolicyConfig()


@pytest.mark.parametrize(
    "doc",
    [
        [],
        "config",
        {"version": 99},
        {"version": 2, "allow_list": "youtube.com"},
        {"version": 2, "temporary_allowances": {"reddit.com": "soon"}},
        {"version": 2, "temporary_allowances": {"reddit.com": True}},
        {"version": 2, "parent_secret_hash": 123456},
    ],
)
def test_bad_documents_raise_value_error(doc):
    with pytest.raises(ValueError):
        AccessPolicyConfig.from_document(doc)


def test_hash_secret_is_sha256_hex():
    digest = hash_secret("123456")
    assert len(digest) == 64
    assert digest == "8d969eef6ecad3c29a3a629280e686cf0c3f5d5a86aff3ca12020c923adc6c92"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("youtube.com", "youtube.com"),
        ("M.YouTube.com.", "m.youtube.com"),
        ("example.com. ", "example.com"),
        (".", ""),
        ("", ""),
    ],
)
def test_normalize_domain(raw, expected):
    assert normalize_domain(raw) == expected


def test_enums():
    assert Classification.DISTRACTING.is_distracting()
    assert not Classification.PRODUCTIVE.is_distracting()
    assert AccessDecision.ALLOW.is_permitted()
    assert not AccessDecision.BLOCK.is_permitted()
