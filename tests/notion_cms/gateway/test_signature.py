"""Tests for webhook signature verification."""

import hashlib
import hmac

import pytest

from notion_cms.gateway.signature import compute_signature, verify_signature

SECRET = "secret_verification_token"
BODY = b'{"type":"page.properties_updated","entity":{"id":"abc","type":"page"}}'


def test_compute_signature_format():
    expected = "sha256=" + hmac.new(SECRET.encode(), BODY, hashlib.sha256).hexdigest()
    assert compute_signature(BODY, SECRET) == expected


def test_valid_signature_is_accepted():
    assert verify_signature(BODY, compute_signature(BODY, SECRET), SECRET)


def test_verification_is_deterministic():
    signature = compute_signature(BODY, SECRET)
    assert all(verify_signature(BODY, signature, SECRET) for _ in range(5))


def test_every_single_byte_flip_is_rejected():
    signature = compute_signature(BODY, SECRET)
    for i in range(len(BODY)):
        tampered = bytearray(BODY)
        tampered[i] ^= 0x01
        assert not verify_signature(bytes(tampered), signature, SECRET), f"byte {i} flip accepted"


def test_wrong_secret_is_rejected():
    assert not verify_signature(BODY, compute_signature(BODY, "other"), SECRET)


def test_reserialized_body_is_rejected():
    reserialized = b'{"type": "page.properties_updated", "entity": {"id": "abc", "type": "page"}}'
    assert not verify_signature(reserialized, compute_signature(BODY, SECRET), SECRET)


@pytest.mark.parametrize(
    "presented",
    [
        None,
        "",
        "sha256=",
        "not-a-signature",
        "sha256=zz",
        "sha256=" + "é" * 64,
        compute_signature(BODY, SECRET).removeprefix("sha256="),
        compute_signature(BODY, SECRET).upper(),
    ],
)
def test_malformed_signatures_are_mismatches(presented):
    assert verify_signature(BODY, presented, SECRET) is False
