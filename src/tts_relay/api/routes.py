"""
Relay API Routes.

Endpoints:
    POST /api/auth/login   - Exchange the shared password for a bearer token
    GET  /api/auth/verify  - Check whether a bearer token is still valid
    POST /api/generate     - Relay a synthesis request to ElevenLabs (token required)
    GET  /health           - Health check for load balancers and orchestration
    GET  /metrics          - Prometheus metrics

Error Handling:
    Route handlers raise RelayError subclasses; the app-level handler in
    main.py turns them into JSON:
    {
        "ok": false,
        "error": "<ERROR_CODE>",
        "message": "<human readable message>"
    }

    Status codes:
        - UNAUTHORIZED / INVALID_PASSWORD -> 401
        - INVALID_INPUT -> 400
        - UPSTREAM_NOT_CONFIGURED -> 500
        - UPSTREAM_ERROR -> upstream 4xx/5xx status (502 if unreachable or 3xx)
        - UPSTREAM_TIMEOUT -> 504

Example Usage:
    >>> import httpx
    >>> token = httpx.post(f"{base}/api/auth/login", json={"password": pw}).json()["token"]
    >>> r = httpx.post(
    ...     f"{base}/api/generate",
    ...     headers={"Authorization": f"Bearer {token}"},
    ...     json={"voiceId": "21m00Tcm4TlvDq8ikWAM", "text": "Hello"},
    ... )
    >>> r.json()["audio_base64"]
"""
from __future__ import annotations

import hmac
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Response

from tts_relay import __version__
from tts_relay.api.dependencies import (
    get_relay_config,
    get_speech_relay,
    get_token_issuer,
    get_token_verifier,
    require_token,
)
from tts_relay.api.schemas import (
    GenerateRequest,
    HealthResponse,
    LoginRequest,
    LoginResponse,
    VerifyResponse,
)
from tts_relay.auth.gate import AuthGate
from tts_relay.auth.tokens import TokenIssuer, TokenVerifier
from tts_relay.core.config import RelayConfig
from tts_relay.core.logging import get_logger, info, warn
from tts_relay.core.metrics import metrics
from tts_relay.services.relay import InvalidPasswordError, SpeechRelay

router = APIRouter()

_LOG = get_logger("tts-relay.api")


@router.post("/api/auth/login", response_model=LoginResponse)
def login(
    req: Optional[LoginRequest] = None,
    config: RelayConfig = Depends(get_relay_config),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """
    Exchange the shared password for a bearer token.

    The password is compared in constant time. Any mismatch, including a
    missing body, a missing, empty or non-string password, yields 401
    INVALID_PASSWORD.
    """
    password = req.password if req is not None else None
    supplied = password.encode("utf-8") if isinstance(password, str) else b""
    if not supplied or not hmac.compare_digest(supplied, config.auth.secret):
        metrics.record_auth("login", "rejected")
        warn(_LOG, "login_rejected")
        raise InvalidPasswordError()

    metrics.record_auth("login", "success")
    info(_LOG, "login_ok", ttl_days=config.auth.token_ttl_days)
    return LoginResponse(token=issuer.issue())


@router.get("/api/auth/verify", response_model=VerifyResponse)
def verify(
    authorization: Optional[str] = Header(default=None),
    verifier: TokenVerifier = Depends(get_token_verifier),
):
    """
    Report whether the presented bearer token is valid.

    Returns ``{"ok": true}``, or 401 UNAUTHORIZED for any invalid token.
    """
    AuthGate(verifier, endpoint="verify").require(authorization, message="Invalid or expired token")
    return VerifyResponse(ok=True)


@router.post("/api/generate", dependencies=[Depends(require_token)])
async def generate(
    req: GenerateRequest,
    relay: SpeechRelay = Depends(get_speech_relay),
) -> Dict[str, Any]:
    """
    Relay a synthesis request to ElevenLabs.

    Requires ``Authorization: Bearer <token>``. Returns the upstream
    JSON (``audio_base64`` plus alignment data) unchanged.
    """
    return await relay.synthesize(
        voice_id=req.voice_id,
        text=req.text,
        stability=req.stability,
        similarity_boost=req.similarity_boost,
        style=req.style,
        use_speaker_boost=req.use_speaker_boost,
    )


@router.get("/health", response_model=HealthResponse)
def health(config: RelayConfig = Depends(get_relay_config)):
    """Health check endpoint for load balancers and orchestration."""
    return HealthResponse(
        ok=True,
        version=__version__,
        upstream_configured=config.upstream.configured,
    )


@router.get("/metrics")
def prometheus_metrics():
    """Prometheus metrics endpoint."""
    content, content_type = metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)
