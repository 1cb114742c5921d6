"""
SpeechRelay - Forwarding to the ElevenLabs API.

The relay is the one operation the bearer token protects. It takes a
client's synthesis request, attaches the server-held API key and calls
ElevenLabs' text-to-speech "with-timestamps" endpoint, then hands the
JSON response (base64 audio plus character alignment) back unchanged.

Architecture:
    Client → /api/generate → AuthGate → SpeechRelay → ElevenLabs

The upstream call is async and bounded by ``upstream.timeout_s``. If the
client disconnects and the call is cancelled, nothing else is affected;
the relay keeps no state between calls.

Error Handling:
    - RelayError: Base exception with an error code and HTTP status
    - AuthenticationError / InvalidPasswordError: 401
    - InvalidInputError: 400
    - UpstreamNotConfiguredError: 500 (no API key)
    - UpstreamError: upstream 4xx/5xx status, or 502 on transport failure or 3xx
    - UpstreamTimeoutError: 504

Example:
    >>> relay = SpeechRelay(UpstreamConfig(api_key="sk-..."), VoiceDefaults())
    >>> data = await relay.synthesize(voice_id="21m00Tcm4TlvDq8ikWAM", text="Hello")
    >>> data["audio_base64"][:16]
"""
from __future__ import annotations

import time
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from tts_relay.core.config import UpstreamConfig, VoiceDefaults
from tts_relay.core.logging import fail, get_logger, info, success, verbose
from tts_relay.core.metrics import metrics

_LOG = get_logger("tts-relay.relay")


# =============================================================================
# Error Codes and Exceptions
# =============================================================================

class ErrorCode:
    """
    Standardized error codes for API responses.

    Returned in the ``error`` field of every JSON error body.
    """
    UNAUTHORIZED = "UNAUTHORIZED"                        # Missing/invalid/expired token
    INVALID_PASSWORD = "INVALID_PASSWORD"                # Login rejected
    INVALID_INPUT = "INVALID_INPUT"                      # Bad request data
    UPSTREAM_NOT_CONFIGURED = "UPSTREAM_NOT_CONFIGURED"  # No ElevenLabs key
    UPSTREAM_ERROR = "UPSTREAM_ERROR"                    # Upstream rejected or unreachable
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"                # Upstream too slow
    INTERNAL_ERROR = "INTERNAL_ERROR"                    # Unexpected error


class RelayError(Exception):
    """
    Base exception for relay errors.

    Attributes:
        message: Human-readable error message.
        code: Error code from ErrorCode.
        status_code: HTTP status to respond with.
        details: Optional dictionary with additional context.
    """
    def __init__(
        self,
        message: str,
        code: str = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the standard error response body."""
        result: Dict[str, Any] = {
            "ok": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class AuthenticationError(RelayError):
    """Raised when a request lacks a valid bearer token."""
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, ErrorCode.UNAUTHORIZED, 401)


class InvalidPasswordError(RelayError):
    """Raised when a login password is missing or wrong."""
    def __init__(self, message: str = "Invalid password"):
        super().__init__(message, ErrorCode.INVALID_PASSWORD, 401)


class InvalidInputError(RelayError):
    """Raised when a relay request is missing required fields."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.INVALID_INPUT, 400, details)


class UpstreamNotConfiguredError(RelayError):
    """Raised when no ElevenLabs API key is configured."""
    def __init__(self, message: str = "ELEVEN_API_KEY not set in environment variables"):
        super().__init__(message, ErrorCode.UPSTREAM_NOT_CONFIGURED, 500)


class UpstreamError(RelayError):
    """Raised when ElevenLabs returns an error or cannot be reached."""
    def __init__(self, message: str, status_code: int = 502, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.UPSTREAM_ERROR, status_code, details)


class UpstreamTimeoutError(RelayError):
    """Raised when ElevenLabs does not answer within the configured timeout."""
    def __init__(self, message: str = "Upstream request timed out"):
        super().__init__(message, ErrorCode.UPSTREAM_TIMEOUT, 504)


# =============================================================================
# Relay
# =============================================================================

class SpeechRelay:
    """
    Forwards synthesis requests to ElevenLabs.

    Args:
        config: Upstream endpoint, key, model and timeout.
        voice: Fallback voice settings for values the client leaves unset.
        transport: Optional httpx transport (tests pass a MockTransport).
    """

    def __init__(
        self,
        config: UpstreamConfig,
        voice: VoiceDefaults,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config
        self._voice = voice
        self._transport = transport

    @property
    def configured(self) -> bool:
        return self._config.configured

    def build_url(self, voice_id: str) -> str:
        return f"{self._config.base_url}/v1/text-to-speech/{quote(voice_id, safe='')}/with-timestamps"

    def build_body(
        self,
        text: str,
        stability: Optional[float] = None,
        similarity_boost: Optional[float] = None,
        style: Optional[float] = None,
        use_speaker_boost: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """
        Build the upstream JSON body.

        Unset voice settings fall back to the configured defaults, so with
        stock settings speaker boost stays on unless the client sends ``false``.
        """
        return {
            "text": text,
            "model_id": self._config.model_id,
            "voice_settings": {
                "stability": self._voice.stability if stability is None else stability,
                "similarity_boost": self._voice.similarity_boost if similarity_boost is None else similarity_boost,
                "style": self._voice.style if style is None else style,
                "use_speaker_boost": (
                    self._voice.use_speaker_boost if use_speaker_boost is None else use_speaker_boost
                ),
            },
        }

    async def synthesize(
        self,
        voice_id: Optional[str],
        text: Optional[str],
        stability: Optional[float] = None,
        similarity_boost: Optional[float] = None,
        style: Optional[float] = None,
        use_speaker_boost: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """
        Relay one synthesis request.

        Returns:
            The upstream JSON response, unchanged.

        Raises:
            InvalidInputError: voice_id or text is missing/empty.
            UpstreamNotConfiguredError: No API key configured.
            UpstreamTimeoutError: Upstream exceeded the timeout.
            UpstreamError: Upstream returned non-2xx, invalid JSON, or
                could not be reached.
        """
        if not voice_id or not text:
            metrics.record_relay("invalid_input")
            raise InvalidInputError("voiceId and text are required")

        if not self._config.configured:
            metrics.record_relay("not_configured")
            raise UpstreamNotConfiguredError()

        url = self.build_url(voice_id)
        body = self.build_body(text, stability, similarity_boost, style, use_speaker_boost)
        headers = {
            "Content-Type": "application/json",
            "xi-api-key": self._config.api_key,
        }

        info(_LOG, "relay_start", voice_id=voice_id, chars=len(text))
        t0 = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self._config.timeout_s, transport=self._transport) as client:
                response = await client.post(url, json=body, headers=headers)
        except httpx.TimeoutException:
            elapsed = time.perf_counter() - t0
            metrics.record_relay("timeout", duration=elapsed)
            fail(_LOG, "relay_timeout", seconds=elapsed)
            raise UpstreamTimeoutError()
        except httpx.HTTPError as e:
            elapsed = time.perf_counter() - t0
            metrics.record_relay("upstream_error", duration=elapsed)
            fail(_LOG, "relay_unreachable", error=type(e).__name__, seconds=elapsed)
            raise UpstreamError(f"ElevenLabs API unreachable: {type(e).__name__}") from e

        elapsed = time.perf_counter() - t0
        verbose(_LOG, "relay_response", status=response.status_code, seconds=elapsed)

        if not response.is_success:
            metrics.record_relay("upstream_error", duration=elapsed, upstream_status=response.status_code)
            fail(_LOG, "relay_upstream_error", status=response.status_code, seconds=elapsed)
            # Redirects are not followed, so a 3xx is reported as 502
            raise UpstreamError(
                f"ElevenLabs API Error: {response.status_code} - {response.text}",
                status_code=response.status_code if response.status_code >= 400 else 502,
            )

        try:
            data = response.json()
        except ValueError as e:
            metrics.record_relay("upstream_error", duration=elapsed, upstream_status=response.status_code)
            fail(_LOG, "relay_bad_json", status=response.status_code)
            raise UpstreamError("ElevenLabs API returned invalid JSON") from e

        metrics.record_relay("success", duration=elapsed, upstream_status=response.status_code)
        success(_LOG, "relay_done", status=response.status_code, seconds=elapsed)
        return data
