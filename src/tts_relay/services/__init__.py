"""
tts-relay Services Layer.

    - relay.py: SpeechRelay (ElevenLabs forwarding) and the error taxonomy
"""
from .relay import (
    AuthenticationError,
    ErrorCode,
    InvalidInputError,
    InvalidPasswordError,
    RelayError,
    SpeechRelay,
    UpstreamError,
    UpstreamNotConfiguredError,
    UpstreamTimeoutError,
)

__all__ = [
    "SpeechRelay",
    "RelayError",
    "AuthenticationError",
    "InvalidPasswordError",
    "InvalidInputError",
    "UpstreamNotConfiguredError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "ErrorCode",
]
