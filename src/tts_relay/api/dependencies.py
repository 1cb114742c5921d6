"""
FastAPI Dependency Injection Providers.

Architecture:
    1. get_settings() - Loads and caches the raw settings
    2. get_relay_config() - Validated RelayConfig (cached)
    3. get_token_issuer() / get_token_verifier() - Bound to the shared secret
    4. get_speech_relay() - SpeechRelay for the upstream call
    5. require_token() - Authentication gate for protected routes

Tests replace get_relay_config or get_speech_relay through
``app.dependency_overrides``; everything downstream picks the override up.

Usage in Route Handlers:
    @router.post("/api/generate", dependencies=[Depends(require_token)])
    async def generate(req: GenerateRequest, relay: SpeechRelay = Depends(get_speech_relay)):
        ...
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from tts_relay.auth.gate import AuthGate
from tts_relay.auth.tokens import TokenIssuer, TokenVerifier
from tts_relay.core.config import RelayConfig, Settings, load_settings
from tts_relay.services.relay import SpeechRelay


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    The settings file is optional; without it, defaults plus environment
    overrides (APP_PASSWORD, ELEVEN_API_KEY, ...) are used.
    """
    return load_settings(required=False)


@lru_cache(maxsize=1)
def get_relay_config() -> RelayConfig:
    """
    Validated configuration, built once per process.

    Raises:
        ConfigValidationError: If the settings are invalid.
    """
    return get_settings().get_relay_config()


def get_token_issuer(config: RelayConfig = Depends(get_relay_config)) -> TokenIssuer:
    return TokenIssuer(secret=config.auth.secret, ttl_ms=config.auth.token_ttl_ms)


def get_token_verifier(config: RelayConfig = Depends(get_relay_config)) -> TokenVerifier:
    return TokenVerifier(secret=config.auth.secret)


def get_speech_relay(config: RelayConfig = Depends(get_relay_config)) -> SpeechRelay:
    return SpeechRelay(config.upstream, config.voice)


def require_token(
    authorization: Optional[str] = Header(default=None),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> None:
    """
    Gate a route behind a valid bearer token.

    Raises:
        AuthenticationError: 401 for a missing, malformed, forged or
            expired token. All cases produce the same response.
    """
    AuthGate(verifier, endpoint="generate").require(authorization)
