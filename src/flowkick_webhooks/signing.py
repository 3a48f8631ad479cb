"""HMAC-SHA256 signing of webhook bodies."""
from __future__ import annotations

import hmac
import secrets
from hashlib import sha256


def sign(payload: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of the exact bytes that go on the wire."""
    return hmac.new(secret.encode("utf-8"), payload, sha256).hexdigest()


def verify(payload: bytes, signature: str, secret: str) -> bool:
    """Constant-time check of ``signature`` against a freshly computed one."""
    if not isinstance(signature, str) or not signature:
        return False
    expected = sign(payload, secret)
    return hmac.compare_digest(expected.encode("ascii"), signature.strip().lower().encode("utf-8"))


def generate_secret() -> str:
    return secrets.token_hex(32)
