"""Notion webhook signature verification.

Notion signs every webhook delivery with HMAC-SHA256 over the exact request
body, keyed by the subscription's verification token, and sends the result in
the `X-Notion-Signature` header as `sha256=<lowercase hex>`.
"""

import hashlib
import hmac

SIGNATURE_HEADER = "X-Notion-Signature"
SIGNATURE_PREFIX = "sha256="


def compute_signature(raw_body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(raw_body: bytes, presented_signature: str | None, secret: str) -> bool:
    """Return True only if `presented_signature` matches the body's HMAC.

    Must be called with the bytes as received, before any JSON parsing:
    re-serializing the payload does not reproduce the signed bytes.
    Malformed signatures are a mismatch, never an error.
    """
    if not presented_signature or not secret:
        return False
    try:
        presented = presented_signature.encode("ascii")
    except UnicodeEncodeError:
        return False
    expected = compute_signature(raw_body, secret).encode("ascii")
    return hmac.compare_digest(expected, presented)
