"""
Configuration Management for tts-relay.

This module provides centralized configuration handling with:
    - Default values (Defaults class)
    - Dataclass-based configuration objects
    - YAML file loading with environment variable overrides
    - Validation with meaningful error messages
    - Startup warnings for insecure or incomplete setups

Configuration Hierarchy (highest priority first):
    1. Environment variables (APP_PASSWORD, ELEVEN_API_KEY, PORT, ...)
    2. YAML config file (config/settings.yaml, or TTS_RELAY_SETTINGS)
    3. Defaults class values

Example settings.yaml:
    auth:
      token_ttl_days: 30

    upstream:
      model_id: eleven_v3
      timeout_s: 60

    logging:
      level: 2  # NORMAL

Secrets (the login password and the ElevenLabs key) are expected to come
from the environment rather than the YAML file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List
import os
import yaml


class ConfigValidationError(Exception):
    """
    Raised when configuration validation fails.

    This exception is thrown when a configuration value is outside
    acceptable bounds or of the wrong type.
    """
    pass


class Defaults:
    """
    Centralized default configuration values.

    Sections:
        - Auth: Shared password and token lifetime
        - Upstream: ElevenLabs endpoint, model and timeout
        - Voice: Fallback voice settings for the relay body
        - Server: Bind address and static frontend directory
        - Logging: Log level
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Auth
    # ─────────────────────────────────────────────────────────────────────────
    AUTH_PASSWORD = "changeme"          # Insecure placeholder, warned about at startup
    AUTH_TOKEN_TTL_DAYS = 30            # Bearer token lifetime

    # ─────────────────────────────────────────────────────────────────────────
    # Upstream (ElevenLabs)
    # ─────────────────────────────────────────────────────────────────────────
    UPSTREAM_API_KEY = ""
    UPSTREAM_BASE_URL = "https://api.elevenlabs.io"
    UPSTREAM_MODEL_ID = "eleven_v3"
    UPSTREAM_TIMEOUT_S = 60.0

    # ─────────────────────────────────────────────────────────────────────────
    # Voice settings
    # ─────────────────────────────────────────────────────────────────────────
    VOICE_STABILITY = 0.5
    VOICE_SIMILARITY_BOOST = 0.75
    VOICE_STYLE = 0.0
    VOICE_USE_SPEAKER_BOOST = True

    # ─────────────────────────────────────────────────────────────────────────
    # Server
    # ─────────────────────────────────────────────────────────────────────────
    SERVER_HOST = "0.0.0.0"
    SERVER_PORT = 3000
    SERVER_STATIC_DIR = "public"

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_LEVEL = 2                   # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG


DEFAULT_SETTINGS_PATH = "config/settings.yaml"

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


def _coerce(name: str, value: Any, type_: type) -> Any:
    """Convert a raw setting to int/float, raising ConfigValidationError on junk."""
    try:
        return type_(value)
    except (TypeError, ValueError):
        raise ConfigValidationError(
            f"{name} must be {'an integer' if type_ is int else 'a number'}, got {value!r}"
        ) from None


def _coerce_bool(name: str, value: Any) -> bool:
    """Accept real booleans and the usual YAML/env spellings ("false", "0", "off")."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ConfigValidationError(f"{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class AuthConfig:
    """
    Shared-secret authentication configuration.

    The password doubles as the HMAC signing key for bearer tokens.
    """
    password: str = Defaults.AUTH_PASSWORD
    token_ttl_days: int = Defaults.AUTH_TOKEN_TTL_DAYS

    @property
    def secret(self) -> bytes:
        """Shared secret as HMAC key bytes."""
        return self.password.encode("utf-8")

    @property
    def token_ttl_ms(self) -> int:
        return self.token_ttl_days * 24 * 60 * 60 * 1000

    def __repr__(self) -> str:
        return f"AuthConfig(password='***', token_ttl_days={self.token_ttl_days})"


@dataclass(frozen=True)
class UpstreamConfig:
    """ElevenLabs API configuration."""
    api_key: str = Defaults.UPSTREAM_API_KEY
    base_url: str = Defaults.UPSTREAM_BASE_URL
    model_id: str = Defaults.UPSTREAM_MODEL_ID
    timeout_s: float = Defaults.UPSTREAM_TIMEOUT_S

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def __repr__(self) -> str:
        key = "***" if self.api_key else "''"
        return (
            f"UpstreamConfig(api_key={key}, base_url={self.base_url!r}, "
            f"model_id={self.model_id!r}, timeout_s={self.timeout_s})"
        )


@dataclass(frozen=True)
class VoiceDefaults:
    """Voice settings used when the client leaves a value unset."""
    stability: float = Defaults.VOICE_STABILITY
    similarity_boost: float = Defaults.VOICE_SIMILARITY_BOOST
    style: float = Defaults.VOICE_STYLE
    use_speaker_boost: bool = Defaults.VOICE_USE_SPEAKER_BOOST


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server configuration."""
    host: str = Defaults.SERVER_HOST
    port: int = Defaults.SERVER_PORT
    static_dir: str = Defaults.SERVER_STATIC_DIR


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, critical errors only
        2 = NORMAL: Request lifecycle (default)
        3 = VERBOSE: Auth decisions, upstream timing
        4 = DEBUG: Internal state
    """
    level: int = Defaults.LOGGING_LEVEL


@dataclass(frozen=True)
class RelayConfig:
    """
    Validated configuration for the relay service.

    Built once at startup and passed explicitly to the token components
    and the relay; nothing reads configuration from module globals.

    Usage:
        settings = load_settings("config/settings.yaml")
        config = RelayConfig.from_settings(settings)
        issuer = TokenIssuer(config.auth.secret, config.auth.token_ttl_ms)
    """
    auth: AuthConfig = field(default_factory=AuthConfig)
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    voice: VoiceDefaults = field(default_factory=VoiceDefaults)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RelayConfig":
        """
        Create RelayConfig from Settings with validation.

        Args:
            settings: Raw Settings object loaded from YAML.

        Returns:
            Validated RelayConfig instance.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        # ─────────────────────────────────────────────────────────────────────
        # Auth configuration
        # ─────────────────────────────────────────────────────────────────────
        auth_raw = raw.get("auth", {}) or {}
        password = auth_raw.get("password", Defaults.AUTH_PASSWORD)
        auth = AuthConfig(
            password="" if password is None else str(password),
            token_ttl_days=_coerce("auth.token_ttl_days", auth_raw.get("token_ttl_days", Defaults.AUTH_TOKEN_TTL_DAYS), int),
        )
        if not auth.password:
            raise ConfigValidationError("auth.password must not be empty")
        cls._validate_positive("auth.token_ttl_days", auth.token_ttl_days)

        # ─────────────────────────────────────────────────────────────────────
        # Upstream configuration
        # ─────────────────────────────────────────────────────────────────────
        upstream_raw = raw.get("upstream", {}) or {}
        upstream = UpstreamConfig(
            api_key=str(upstream_raw.get("api_key") or ""),
            base_url=str(upstream_raw.get("base_url", Defaults.UPSTREAM_BASE_URL)).rstrip("/"),
            model_id=str(upstream_raw.get("model_id", Defaults.UPSTREAM_MODEL_ID)),
            timeout_s=_coerce("upstream.timeout_s", upstream_raw.get("timeout_s", Defaults.UPSTREAM_TIMEOUT_S), float),
        )
        cls._validate_positive("upstream.timeout_s", upstream.timeout_s)
        if not upstream.base_url.startswith(("http://", "https://")):
            raise ConfigValidationError(f"upstream.base_url must be an http(s) URL, got {upstream.base_url!r}")

        # ─────────────────────────────────────────────────────────────────────
        # Voice defaults
        # ─────────────────────────────────────────────────────────────────────
        voice_raw = raw.get("voice", {}) or {}
        voice = VoiceDefaults(
            stability=_coerce("voice.stability", voice_raw.get("stability", Defaults.VOICE_STABILITY), float),
            similarity_boost=_coerce(
                "voice.similarity_boost", voice_raw.get("similarity_boost", Defaults.VOICE_SIMILARITY_BOOST), float
            ),
            style=_coerce("voice.style", voice_raw.get("style", Defaults.VOICE_STYLE), float),
            use_speaker_boost=_coerce_bool(
                "voice.use_speaker_boost", voice_raw.get("use_speaker_boost", Defaults.VOICE_USE_SPEAKER_BOOST)
            ),
        )
        cls._validate_range("voice.stability", voice.stability, 0.0, 1.0)
        cls._validate_range("voice.similarity_boost", voice.similarity_boost, 0.0, 1.0)
        cls._validate_range("voice.style", voice.style, 0.0, 1.0)

        # ─────────────────────────────────────────────────────────────────────
        # Server configuration
        # ─────────────────────────────────────────────────────────────────────
        server_raw = raw.get("server", {}) or {}
        server = ServerConfig(
            host=str(server_raw.get("host", Defaults.SERVER_HOST)),
            port=_coerce("server.port", server_raw.get("port", Defaults.SERVER_PORT), int),
            static_dir=str(server_raw.get("static_dir", Defaults.SERVER_STATIC_DIR)),
        )
        cls._validate_range("server.port", server.port, 1, 65535)

        # ─────────────────────────────────────────────────────────────────────
        # Logging configuration
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        log_level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)

        # Handle string log levels (e.g., "INFO", "DEBUG")
        if isinstance(log_level_raw, str):
            level_map = {
                "MINIMAL": 1, "1": 1,
                "NORMAL": 2, "INFO": 2, "2": 2,
                "VERBOSE": 3, "3": 3,
                "DEBUG": 4, "TRACE": 4, "4": 4,
            }
            log_level = level_map.get(log_level_raw.upper(), Defaults.LOGGING_LEVEL)
        else:
            log_level = _coerce("logging.level", log_level_raw, int)

        logging_cfg = LoggingConfig(level=log_level)
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        return cls(
            auth=auth,
            upstream=upstream,
            voice=voice,
            server=server,
            logging=logging_cfg,
        )

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")


def config_warnings(config: RelayConfig) -> List[str]:
    """
    List configuration problems that should be surfaced at startup.

    These never stop the service; they are logged as warnings so an operator
    notices a placeholder password or a missing upstream key.

    Returns:
        Human-readable warning messages (empty when the setup looks sane).
    """
    warnings: List[str] = []
    if config.auth.password == Defaults.AUTH_PASSWORD:
        warnings.append(
            f'Using default password "{Defaults.AUTH_PASSWORD}"; set the APP_PASSWORD env var'
        )
    if not config.upstream.configured:
        warnings.append("ELEVEN_API_KEY is not set; /api/generate will fail until it is")
    return warnings


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container loaded from YAML.

    This is the raw settings object before validation. Use
    get_relay_config() to get a validated RelayConfig.

    Attributes:
        raw: Dictionary of raw configuration values.
    """
    raw: Dict[str, Any]

    @property
    def host(self) -> str:
        return str((self.raw.get("server") or {}).get("host", Defaults.SERVER_HOST))

    @property
    def port(self) -> int:
        return _coerce("server.port", (self.raw.get("server") or {}).get("port", Defaults.SERVER_PORT), int)

    def get_relay_config(self) -> RelayConfig:
        """
        Get validated RelayConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return RelayConfig.from_settings(self)


def apply_env_overrides(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Overlay environment variables onto a raw settings dictionary.

    Environment Variables:
        - APP_PASSWORD: auth.password
        - ELEVEN_API_KEY: upstream.api_key
        - ELEVEN_BASE_URL: upstream.base_url
        - PORT: server.port
        - TTS_RELAY_STATIC_DIR: server.static_dir

    Returns:
        The same dictionary, updated in place.
    """
    overrides = {
        "APP_PASSWORD": ("auth", "password"),
        "ELEVEN_API_KEY": ("upstream", "api_key"),
        "ELEVEN_BASE_URL": ("upstream", "base_url"),
        "PORT": ("server", "port"),
        "TTS_RELAY_STATIC_DIR": ("server", "static_dir"),
    }
    for env_name, (section, key) in overrides.items():
        value = os.getenv(env_name)
        if value:
            section_raw = raw.get(section)
            if not isinstance(section_raw, dict):
                section_raw = raw[section] = {}
            section_raw[key] = value
    return raw


def load_settings(path: str | None = None, required: bool = True) -> Settings:
    """
    Load settings from a YAML configuration file.

    Args:
        path: Path to the YAML configuration file. Defaults to the
            TTS_RELAY_SETTINGS env var, then config/settings.yaml.
        required: If False, a missing file yields defaults plus
            environment overrides instead of an error.

    Returns:
        Settings object with loaded configuration.

    Raises:
        FileNotFoundError: If the settings file doesn't exist and is required.
    """
    p = Path(path or os.getenv("TTS_RELAY_SETTINGS") or DEFAULT_SETTINGS_PATH)
    raw: Dict[str, Any] = {}
    if p.exists():
        with p.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    elif required:
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    return Settings(raw=apply_env_overrides(raw))
