"""
Tests for POST /api/generate, /health, error handling and the static mount.

The relay dependency is overridden with a SpeechRelay on an
httpx.MockTransport, so ElevenLabs is never contacted.
"""
from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from tts_relay import __version__
from tts_relay.api.dependencies import get_speech_relay
from tts_relay.auth.tokens import DAY_MS, issue_token, now_ms
from tts_relay.core.config import AuthConfig, RelayConfig, ServerConfig, UpstreamConfig
from tts_relay.main import create_app
from tts_relay.services.relay import SpeechRelay

PASSWORD = "s3cret"
VOICE_ID = "21m00Tcm4TlvDq8ikWAM"
UPSTREAM_JSON = {"audio_base64": "SUQzBAAAAAAA", "alignment": {"characters": ["H", "i"]}}


def _config(api_key: str = "sk-test", static_dir: str = "public") -> RelayConfig:
    return RelayConfig(
        auth=AuthConfig(password=PASSWORD),
        upstream=UpstreamConfig(api_key=api_key),
        server=ServerConfig(static_dir=static_dir),
    )


@pytest.fixture
def upstream_calls():
    return []


@pytest.fixture
def client(upstream_calls):
    config = _config()
    app = create_app(config)

    def handler(request: httpx.Request) -> httpx.Response:
        upstream_calls.append(request)
        return httpx.Response(200, json=UPSTREAM_JSON)

    app.dependency_overrides[get_speech_relay] = lambda: SpeechRelay(
        config.upstream, config.voice, transport=httpx.MockTransport(handler)
    )
    with TestClient(app) as c:
        yield c


@pytest.fixture
def token(client):
    return client.post("/api/auth/login", json={"password": PASSWORD}).json()["token"]


class TestGenerate:
    """Tests for the protected relay endpoint."""

    def test_valid_token_relays(self, client, token, upstream_calls):
        r = client.post(
            "/api/generate",
            headers={"Authorization": f"Bearer {token}"},
            json={"voiceId": VOICE_ID, "text": "Hi"},
        )
        assert r.status_code == 200
        assert r.json() == UPSTREAM_JSON
        assert len(upstream_calls) == 1

    def test_voice_settings_forwarded(self, client, token, upstream_calls):
        client.post(
            "/api/generate",
            headers={"Authorization": f"Bearer {token}"},
            json={
                "voiceId": VOICE_ID,
                "text": "Hi",
                "stability": 0.2,
                "similarity_boost": 0.9,
                "style": 0.4,
                "use_speaker_boost": False,
            },
        )
        body = json.loads(upstream_calls[-1].content)
        assert body["voice_settings"] == {
            "stability": 0.2,
            "similarity_boost": 0.9,
            "style": 0.4,
            "use_speaker_boost": False,
        }

    def test_speaker_boost_on_by_default(self, client, token, upstream_calls):
        client.post(
            "/api/generate",
            headers={"Authorization": f"Bearer {token}"},
            json={"voiceId": VOICE_ID, "text": "Hi"},
        )
        body = json.loads(upstream_calls[-1].content)
        assert body["voice_settings"]["use_speaker_boost"] is True

    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"Authorization": "Bearer "},
            {"Authorization": "Bearer garbage"},
        ],
        ids=["missing", "empty", "garbage"],
    )
    def test_rejected_without_valid_token(self, client, upstream_calls, headers):
        r = client.post("/api/generate", headers=headers, json={"voiceId": VOICE_ID, "text": "Hi"})
        assert r.status_code == 401
        assert r.json() == {"ok": False, "error": "UNAUTHORIZED", "message": "Unauthorized"}
        assert upstream_calls == []

    def test_expired_token_rejected(self, client, upstream_calls):
        expired = issue_token(PASSWORD.encode(), now_ms() - 31 * DAY_MS, 30 * DAY_MS)
        r = client.post(
            "/api/generate",
            headers={"Authorization": f"Bearer {expired}"},
            json={"voiceId": VOICE_ID, "text": "Hi"},
        )
        assert r.status_code == 401
        assert upstream_calls == []

    def test_auth_checked_before_body(self, client, upstream_calls):
        """An unauthenticated request with a bad body still gets 401."""
        r = client.post("/api/generate", json={"text": "Hi"})
        assert r.status_code == 401

    def test_missing_fields(self, client, token, upstream_calls):
        r = client.post(
            "/api/generate",
            headers={"Authorization": f"Bearer {token}"},
            json={"text": "Hi"},
        )
        assert r.status_code == 400
        assert r.json()["error"] == "INVALID_INPUT"
        assert r.json()["message"] == "voiceId and text are required"
        assert upstream_calls == []

    def test_out_of_range_setting(self, client, token):
        r = client.post(
            "/api/generate",
            headers={"Authorization": f"Bearer {token}"},
            json={"voiceId": VOICE_ID, "text": "Hi", "stability": 2.0},
        )
        assert r.status_code == 422

    def test_upstream_error_status(self, token):
        config = _config()
        app = create_app(config)
        app.dependency_overrides[get_speech_relay] = lambda: SpeechRelay(
            config.upstream,
            config.voice,
            transport=httpx.MockTransport(lambda req: httpx.Response(429, text="quota_exceeded")),
        )
        with TestClient(app) as c:
            r = c.post(
                "/api/generate",
                headers={"Authorization": f"Bearer {token}"},
                json={"voiceId": VOICE_ID, "text": "Hi"},
            )
        assert r.status_code == 429
        j = r.json()
        assert j["error"] == "UPSTREAM_ERROR"
        assert j["message"] == "ElevenLabs API Error: 429 - quota_exceeded"

    def test_no_api_key(self, token):
        app = create_app(_config(api_key=""))
        with TestClient(app) as c:
            r = c.post(
                "/api/generate",
                headers={"Authorization": f"Bearer {token}"},
                json={"voiceId": VOICE_ID, "text": "Hi"},
            )
        assert r.status_code == 500
        assert r.json()["error"] == "UPSTREAM_NOT_CONFIGURED"
        assert r.json()["message"] == "ELEVEN_API_KEY not set in environment variables"


class TestHealth:
    """Tests for GET /health."""

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"ok": True, "version": __version__, "upstream_configured": True}

    def test_health_without_key(self):
        with TestClient(create_app(_config(api_key=""))) as c:
            assert c.get("/health").json()["upstream_configured"] is False

    def test_health_needs_no_token(self, client):
        assert client.get("/health").status_code == 200


class TestUnhandledErrors:
    """Unexpected exceptions become a generic 500."""

    def test_internal_error_body(self):
        config = _config()
        app = create_app(config)

        def broken_relay():
            raise RuntimeError("boom sk-test")

        app.dependency_overrides[get_speech_relay] = broken_relay
        token = issue_token(PASSWORD.encode(), now_ms(), DAY_MS)
        with TestClient(app, raise_server_exceptions=False) as c:
            r = c.post(
                "/api/generate",
                headers={"Authorization": f"Bearer {token}"},
                json={"voiceId": VOICE_ID, "text": "Hi"},
            )
        assert r.status_code == 500
        assert r.json() == {"ok": False, "error": "INTERNAL_ERROR", "message": "Internal server error"}
        assert "boom" not in r.text
        assert r.headers.get("X-Request-Id")


class TestStaticFrontend:
    """The frontend directory is served at / without shadowing the API."""

    def test_index_served(self, tmp_path):
        (tmp_path / "index.html").write_text("<html>relay</html>", encoding="utf-8")
        with TestClient(create_app(_config(static_dir=str(tmp_path)))) as c:
            r = c.get("/")
            assert r.status_code == 200
            assert "relay" in r.text
            assert c.get("/health").status_code == 200
            assert c.post("/api/auth/login", json={"password": PASSWORD}).status_code == 200

    def test_missing_directory_not_mounted(self, tmp_path):
        with TestClient(create_app(_config(static_dir=str(tmp_path / "absent")))) as c:
            assert c.get("/").status_code == 404
