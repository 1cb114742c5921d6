"""
Tests for configuration validation and defaults.

Tests cover:
- RelayConfig.from_settings() - all sections
- Defaults class values
- ConfigValidationError on invalid values
- Environment overrides (APP_PASSWORD, ELEVEN_API_KEY, PORT)
- config_warnings() for insecure setups
- Secrets hidden from repr
"""

import pytest

from tts_relay.core.config import (
    AuthConfig,
    ConfigValidationError,
    Defaults,
    RelayConfig,
    Settings,
    UpstreamConfig,
    apply_env_overrides,
    config_warnings,
    load_settings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove env overrides that would leak into these tests."""
    for name in ("APP_PASSWORD", "ELEVEN_API_KEY", "ELEVEN_BASE_URL", "PORT", "TTS_RELAY_STATIC_DIR", "TTS_RELAY_SETTINGS"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    """Tests for Defaults class values."""

    def test_auth_defaults(self):
        assert Defaults.AUTH_PASSWORD == "changeme"
        assert Defaults.AUTH_TOKEN_TTL_DAYS == 30

    def test_upstream_defaults(self):
        assert Defaults.UPSTREAM_API_KEY == ""
        assert Defaults.UPSTREAM_BASE_URL == "https://api.elevenlabs.io"
        assert Defaults.UPSTREAM_MODEL_ID == "eleven_v3"
        assert Defaults.UPSTREAM_TIMEOUT_S == 60.0

    def test_voice_defaults(self):
        assert Defaults.VOICE_STABILITY == 0.5
        assert Defaults.VOICE_SIMILARITY_BOOST == 0.75
        assert Defaults.VOICE_STYLE == 0.0
        assert Defaults.VOICE_USE_SPEAKER_BOOST is True

    def test_server_defaults(self):
        assert Defaults.SERVER_PORT == 3000
        assert Defaults.SERVER_STATIC_DIR == "public"


class TestRelayConfigFromSettings:
    """Tests for RelayConfig.from_settings()."""

    def test_from_settings_with_empty_raw(self):
        config = RelayConfig.from_settings(Settings(raw={}))

        assert config.auth.password == Defaults.AUTH_PASSWORD
        assert config.auth.token_ttl_days == 30
        assert config.upstream.api_key == ""
        assert config.upstream.model_id == "eleven_v3"
        assert config.voice.stability == 0.5
        assert config.server.port == 3000
        assert config.logging.level == 2

    def test_token_ttl_ms(self):
        config = RelayConfig.from_settings(Settings(raw={"auth": {"token_ttl_days": 30}}))
        assert config.auth.token_ttl_ms == 2_592_000_000

    def test_secret_bytes(self):
        config = RelayConfig.from_settings(Settings(raw={"auth": {"password": "pässword"}}))
        assert config.auth.secret == "pässword".encode("utf-8")

    def test_upstream_section(self):
        config = RelayConfig.from_settings(Settings(raw={
            "upstream": {
                "api_key": "sk-test",
                "base_url": "http://localhost:9000/",
                "model_id": "eleven_multilingual_v2",
                "timeout_s": 5,
            }
        }))
        assert config.upstream.api_key == "sk-test"
        assert config.upstream.base_url == "http://localhost:9000"
        assert config.upstream.model_id == "eleven_multilingual_v2"
        assert config.upstream.timeout_s == 5.0
        assert config.upstream.configured is True

    def test_voice_section(self):
        config = RelayConfig.from_settings(Settings(raw={
            "voice": {"stability": 0.2, "similarity_boost": 1.0, "style": 0.3, "use_speaker_boost": False}
        }))
        assert config.voice.stability == 0.2
        assert config.voice.similarity_boost == 1.0
        assert config.voice.style == 0.3
        assert config.voice.use_speaker_boost is False

    @pytest.mark.parametrize(
        "raw_value,expected",
        [("false", False), ("False", False), ("off", False), ("0", False), (0, False),
         ("true", True), ("yes", True), (1, True)],
    )
    def test_speaker_boost_spellings(self, raw_value, expected):
        config = RelayConfig.from_settings(Settings(raw={"voice": {"use_speaker_boost": raw_value}}))
        assert config.voice.use_speaker_boost is expected

    def test_numeric_strings_accepted(self):
        config = RelayConfig.from_settings(Settings(raw={
            "auth": {"token_ttl_days": "7"},
            "upstream": {"timeout_s": "2.5"},
            "server": {"port": "8080"},
        }))
        assert config.auth.token_ttl_days == 7
        assert config.upstream.timeout_s == 2.5
        assert config.server.port == 8080

    def test_string_log_level(self):
        config = RelayConfig.from_settings(Settings(raw={"logging": {"level": "DEBUG"}}))
        assert config.logging.level == 4

    def test_null_sections_use_defaults(self):
        config = RelayConfig.from_settings(Settings(raw={"auth": None, "upstream": None, "server": None}))
        assert config.auth.password == Defaults.AUTH_PASSWORD
        assert config.server.port == Defaults.SERVER_PORT


class TestValidation:
    """Invalid values raise ConfigValidationError."""

    @pytest.mark.parametrize(
        "raw",
        [
            {"auth": {"password": ""}},
            {"auth": {"password": None}},
            {"auth": {"token_ttl_days": 0}},
            {"auth": {"token_ttl_days": -1}},
            {"upstream": {"timeout_s": 0}},
            {"upstream": {"base_url": "ftp://example.com"}},
            {"voice": {"stability": 1.5}},
            {"voice": {"style": -0.1}},
            {"server": {"port": 0}},
            {"server": {"port": 70000}},
            {"logging": {"level": 9}},
            {"server": {"port": "abc"}},
            {"server": {"port": None}},
            {"auth": {"token_ttl_days": "abc"}},
            {"upstream": {"timeout_s": "fast"}},
            {"voice": {"stability": "high"}},
            {"voice": {"use_speaker_boost": "maybe"}},
            {"voice": {"use_speaker_boost": 2}},
        ],
    )
    def test_invalid_values_rejected(self, raw):
        with pytest.raises(ConfigValidationError):
            RelayConfig.from_settings(Settings(raw=raw))

    def test_error_message_names_field(self):
        with pytest.raises(ConfigValidationError, match="auth.token_ttl_days"):
            RelayConfig.from_settings(Settings(raw={"auth": {"token_ttl_days": 0}}))

    def test_non_numeric_message_names_field(self):
        with pytest.raises(ConfigValidationError, match="server.port must be an integer"):
            RelayConfig.from_settings(Settings(raw={"server": {"port": "abc"}}))

    def test_non_numeric_env_port(self, monkeypatch):
        monkeypatch.setenv("PORT", "3000x")
        settings = Settings(raw=apply_env_overrides({}))
        with pytest.raises(ConfigValidationError, match="server.port"):
            RelayConfig.from_settings(settings)
        with pytest.raises(ConfigValidationError):
            settings.port


class TestEnvironmentOverrides:
    """Environment variables take precedence over the settings file."""

    def test_app_password(self, monkeypatch):
        monkeypatch.setenv("APP_PASSWORD", "from-env")
        raw = apply_env_overrides({"auth": {"password": "from-file"}})
        assert raw["auth"]["password"] == "from-env"

    def test_api_key_and_port(self, monkeypatch):
        monkeypatch.setenv("ELEVEN_API_KEY", "sk-env")
        monkeypatch.setenv("PORT", "8080")
        config = RelayConfig.from_settings(Settings(raw=apply_env_overrides({})))
        assert config.upstream.api_key == "sk-env"
        assert config.server.port == 8080

    def test_empty_env_ignored(self, monkeypatch):
        monkeypatch.setenv("APP_PASSWORD", "")
        raw = apply_env_overrides({"auth": {"password": "from-file"}})
        assert raw["auth"]["password"] == "from-file"


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_missing_file_required(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(str(tmp_path / "nope.yaml"))

    def test_missing_file_optional(self, tmp_path, monkeypatch):
        monkeypatch.setenv("APP_PASSWORD", "pw")
        settings = load_settings(str(tmp_path / "nope.yaml"), required=False)
        assert settings.raw == {"auth": {"password": "pw"}}

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("auth:\n  token_ttl_days: 7\nserver:\n  port: 4000\n", encoding="utf-8")
        settings = load_settings(str(path))
        assert settings.port == 4000
        assert settings.get_relay_config().auth.token_ttl_days == 7

    def test_settings_path_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("server:\n  host: 127.0.0.1\n", encoding="utf-8")
        monkeypatch.setenv("TTS_RELAY_SETTINGS", str(path))
        assert load_settings().host == "127.0.0.1"

    def test_empty_yaml_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(str(path)).raw == {}

    def test_repo_settings_file_is_valid(self):
        from pathlib import Path

        path = Path(__file__).parent.parent / "config" / "settings.yaml"
        config = load_settings(str(path)).get_relay_config()
        assert config.auth.token_ttl_days == 30


class TestConfigWarnings:
    """Tests for config_warnings()."""

    def test_default_password_and_missing_key(self):
        warnings = config_warnings(RelayConfig())
        assert len(warnings) == 2
        assert any("changeme" in w for w in warnings)
        assert any("ELEVEN_API_KEY" in w for w in warnings)

    def test_clean_setup(self):
        config = RelayConfig(
            auth=AuthConfig(password="long-random-secret"),
            upstream=UpstreamConfig(api_key="sk-test"),
        )
        assert config_warnings(config) == []


class TestSecretsNotInRepr:
    """Secrets must not leak through repr()."""

    def test_auth_repr(self):
        assert "hunter2" not in repr(AuthConfig(password="hunter2"))

    def test_upstream_repr(self):
        assert "sk-secret" not in repr(UpstreamConfig(api_key="sk-secret"))

    def test_relay_config_repr(self):
        config = RelayConfig(auth=AuthConfig(password="hunter2"), upstream=UpstreamConfig(api_key="sk-secret"))
        text = repr(config)
        assert "hunter2" not in text
        assert "sk-secret" not in text
