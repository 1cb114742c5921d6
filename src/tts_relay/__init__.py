"""
tts-relay: Authenticated speech synthesis relay.

A small FastAPI service that lets a pre-authorized browser client call the
ElevenLabs text-to-speech API without ever seeing the provider's API key.

Key Features:
    - Password login that returns a stateless, HMAC-signed bearer token
    - Token verification with no server-side session store
    - Single protected relay endpoint (/api/generate)
    - Structured logging with request correlation
    - Prometheus metrics for auth and relay outcomes

Example Usage:
    >>> from tts_relay.auth import TokenIssuer, TokenVerifier
    >>>
    >>> issuer = TokenIssuer(secret=b"changeme", ttl_ms=30 * 86_400_000)
    >>> token = issuer.issue()
    >>> TokenVerifier(secret=b"changeme").verify(token)
    True
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
