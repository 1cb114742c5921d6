"""
Stateless Bearer Tokens.

Tokens bind an expiry instant to the shared secret with HMAC-SHA256. No
server-side record exists for any token: a token is valid exactly when its
signature checks out under the current secret and its expiry is still in
the future.

Wire Format:
    <base64(expiry_ms)>.<hex(HMAC-SHA256(secret, expiry_ms))>

    expiry_ms is the expiry instant in epoch milliseconds written as a
    decimal string. base64 uses the standard alphabet with padding.

Example:
    secret = b"changeme", issued at 1700000000000 with a 30 day TTL:

        MTcwMjU5MjAwMDAwMA==.<64 hex chars>

    The first segment decodes to "1702592000000".

Verification never raises. Malformed input, a bad signature and an expired
token all produce the same ``False`` so callers cannot tell which check
failed.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import re
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

DAY_MS = 24 * 60 * 60 * 1000

_DECIMAL_RE = re.compile(r"-?[0-9]+")


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def _sign(secret: bytes, payload: str) -> str:
    return hmac.new(secret, payload.encode("utf-8"), hashlib.sha256).hexdigest()


def issue_token(secret: bytes, now: int, ttl_ms: int) -> str:
    """
    Issue a bearer token that expires ``ttl_ms`` after ``now``.

    Args:
        secret: Shared secret used as the HMAC key. Must be non-empty; the
            configuration layer enforces this.
        now: Current time in epoch milliseconds.
        ttl_ms: Token lifetime in milliseconds.

    Returns:
        Token string in ``<base64 expiry>.<hex signature>`` form.
    """
    payload = str(now + ttl_ms)
    encoded = base64.b64encode(payload.encode("ascii")).decode("ascii")
    return f"{encoded}.{_sign(secret, payload)}"


def verify_token(token: Optional[str], secret: bytes, now: int) -> bool:
    """
    Check a bearer token against the shared secret and the clock.

    The checks run in a fixed order and stop at the first failure:
    structure, base64 payload (strict and canonical), signature, integer
    payload, expiry.

    Args:
        token: Token string as presented by the client (may be None).
        secret: Shared secret used as the HMAC key.
        now: Current time in epoch milliseconds.

    Returns:
        True if the token is intact and ``now`` is strictly before its
        expiry, False otherwise.
    """
    if not token or not isinstance(token, str):
        return False

    parts = token.split(".")
    if len(parts) != 2:
        return False
    encoded, signature = parts

    try:
        raw = base64.b64decode(encoded, validate=True)
        payload = raw.decode("utf-8")
    except (binascii.Error, ValueError):
        return False
    # Non-zero padding bits decode to the same bytes; only the canonical
    # encoding is accepted
    if base64.b64encode(raw).decode("ascii") != encoded:
        return False

    expected = _sign(secret, payload)
    if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8", "surrogatepass")):
        return False

    if not _DECIMAL_RE.fullmatch(payload):
        return False

    return int(payload) > now


@dataclass(frozen=True)
class TokenIssuer:
    """
    Issues tokens for one shared secret with a fixed TTL.

    The TTL comes from configuration and is never chosen per call.

    Attributes:
        secret: Shared secret (HMAC key).
        ttl_ms: Token lifetime in milliseconds.
        clock: Source of the current time in epoch milliseconds.
    """
    secret: bytes
    ttl_ms: int
    clock: Callable[[], int] = field(default=now_ms, compare=False)

    def issue(self) -> str:
        """Issue a token expiring ``ttl_ms`` from now."""
        return issue_token(self.secret, self.clock(), self.ttl_ms)


@dataclass(frozen=True)
class TokenVerifier:
    """
    Verifies tokens for one shared secret.

    Attributes:
        secret: Shared secret (HMAC key).
        clock: Source of the current time in epoch milliseconds.
    """
    secret: bytes
    clock: Callable[[], int] = field(default=now_ms, compare=False)

    def verify(self, token: Optional[str]) -> bool:
        return verify_token(token, self.secret, self.clock())
