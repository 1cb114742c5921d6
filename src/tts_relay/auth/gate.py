"""
Authentication Gate.

Sits between the HTTP layer and the protected relay operation. The gate
pulls the bearer token out of the Authorization header, runs it through the
TokenVerifier, and either lets the request through or raises a uniform
AuthenticationError.

Every rejection looks the same to the caller. The gate does not log or
report which check failed.
"""
from __future__ import annotations

from typing import Optional

from tts_relay.auth.tokens import TokenVerifier
from tts_relay.core.logging import get_logger, verbose
from tts_relay.core.metrics import metrics
from tts_relay.services.relay import AuthenticationError

_LOG = get_logger("tts-relay.auth")

BEARER_PREFIX = "Bearer "


def extract_bearer(header: Optional[str]) -> str:
    """
    Extract the token from an Authorization header value.

    A single leading ``"Bearer "`` is stripped. Headers without the prefix
    are returned as-is, and a missing header yields an empty string.
    """
    if not header:
        return ""
    if header.startswith(BEARER_PREFIX):
        return header[len(BEARER_PREFIX):]
    return header


class AuthGate:
    """
    Stateless per-request token gate.

    Args:
        verifier: TokenVerifier bound to the shared secret.
        endpoint: Label used for metrics when the gate rejects a request.
    """

    def __init__(self, verifier: TokenVerifier, endpoint: str = "gate"):
        self._verifier = verifier
        self._endpoint = endpoint

    def check(self, header: Optional[str]) -> bool:
        """Return True if the header carries a valid token."""
        return self._verifier.verify(extract_bearer(header))

    def require(self, header: Optional[str], message: str = "Unauthorized") -> None:
        """
        Raise AuthenticationError unless the header carries a valid token.

        Args:
            header: Raw Authorization header value (may be None).
            message: Message placed in the 401 response body.
        """
        if self.check(header):
            metrics.record_auth(self._endpoint, "success")
            return
        metrics.record_auth(self._endpoint, "rejected")
        verbose(_LOG, "auth_rejected", endpoint=self._endpoint)
        raise AuthenticationError(message)
