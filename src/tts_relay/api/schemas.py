"""
API Request/Response Schemas.

Pydantic models for the relay's HTTP endpoints.

Models:
    LoginRequest / LoginResponse: POST /api/auth/login
    VerifyResponse: GET /api/auth/verify
    GenerateRequest: POST /api/generate
    HealthResponse: GET /health

Example Generate Request:
    {
        "voiceId": "21m00Tcm4TlvDq8ikWAM",
        "text": "Hello there!",
        "stability": 0.4,
        "similarity_boost": 0.8,
        "style": 0.0,
        "use_speaker_boost": true
    }

Required fields of GenerateRequest are declared optional on purpose: a
missing voiceId or text is answered with a 400 INVALID_INPUT from the
relay, not a 422 validation error.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Login with the shared password."""
    password: Any = Field(
        default=None,
        description="Shared password configured on the server; non-strings never match",
    )


class LoginResponse(BaseModel):
    """
    Successful login.

    Attributes:
        token: Bearer token to send as ``Authorization: Bearer <token>``.
    """
    token: str = Field(..., description="Stateless bearer token")


class VerifyResponse(BaseModel):
    ok: bool = True


class GenerateRequest(BaseModel):
    """
    Speech synthesis request relayed to ElevenLabs.

    Attributes:
        voice_id: ElevenLabs voice id (JSON key ``voiceId``).
        text: Text to synthesize.
        stability: Voice stability 0-1 (server default if omitted).
        similarity_boost: Similarity boost 0-1 (server default if omitted).
        style: Style exaggeration 0-1 (server default if omitted).
        use_speaker_boost: Speaker boost; on unless explicitly false.
    """
    model_config = ConfigDict(populate_by_name=True)

    voice_id: str | None = Field(default=None, alias="voiceId", description="ElevenLabs voice id")
    text: str | None = Field(default=None, description="Text to synthesize")
    stability: float | None = Field(default=None, ge=0.0, le=1.0)
    similarity_boost: float | None = Field(default=None, ge=0.0, le=1.0)
    style: float | None = Field(default=None, ge=0.0, le=1.0)
    use_speaker_boost: bool | None = Field(default=None)


class HealthResponse(BaseModel):
    """
    Service health.

    Attributes:
        ok: Always true when the process is serving requests.
        version: Package version.
        upstream_configured: Whether an ElevenLabs key is configured.
    """
    ok: bool = True
    version: str
    upstream_configured: bool
