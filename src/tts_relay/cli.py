"""
Command-Line Interface for tts-relay.

Token housekeeping and server startup without writing any Python.

Usage Examples:
    # Issue a token for the configured password
    APP_PASSWORD=s3cret tts-relay --issue

    # Check a token (exit code 0 = valid, 1 = invalid)
    tts-relay --verify "MTcwMjU5MjAwMDAwMA==.5f3c..."

    # Show configuration warnings
    tts-relay --check --json

    # Run the HTTP server
    tts-relay --serve --port 3000

Environment Variables:
    APP_PASSWORD: Shared password (token signing key)
    ELEVEN_API_KEY: ElevenLabs API key
    PORT: Server port
    TTS_RELAY_SETTINGS: Settings file path
"""

from __future__ import annotations

import argparse
import json
from typing import List, Optional

from tts_relay.auth.tokens import TokenIssuer, TokenVerifier
from tts_relay.core.config import ConfigValidationError, RelayConfig, config_warnings, load_settings
from tts_relay.core.logging import configure_logging, get_logger, info, set_request_id, new_request_id


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="tts-relay CLI (tokens and server)")

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--issue", action="store_true", help="Print a new bearer token")
    mode.add_argument("--verify", metavar="TOKEN", help="Check a bearer token")
    mode.add_argument("--check", action="store_true", help="Show configuration warnings")
    mode.add_argument("--serve", action="store_true", help="Run the HTTP server")

    parser.add_argument("--settings", help="Settings file (default: config/settings.yaml)")
    parser.add_argument("--host", help="Bind host override (with --serve)")
    parser.add_argument("--port", type=int, help="Bind port override (with --serve)")
    parser.add_argument("--json", action="store_true", help="Print JSON output")

    return parser.parse_args(argv)


def _load_config(args: argparse.Namespace) -> RelayConfig:
    settings = load_settings(args.settings, required=args.settings is not None)
    return settings.get_relay_config()


def _emit(args: argparse.Namespace, payload: dict, text: str) -> None:
    if args.json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(text)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code: 0 on success, 1 for an invalid token, 2 for bad config.
    """
    args = _parse_args(argv)

    configure_logging()
    log = get_logger("tts-relay.cli")
    set_request_id(new_request_id())

    try:
        config = _load_config(args)
    except (ConfigValidationError, FileNotFoundError) as e:
        _emit(args, {"ok": False, "error": str(e)}, f"Configuration error: {e}")
        return 2

    if args.issue:
        issuer = TokenIssuer(secret=config.auth.secret, ttl_ms=config.auth.token_ttl_ms)
        token = issuer.issue()
        info(log, "token_issued", ttl_days=config.auth.token_ttl_days)
        _emit(args, {"ok": True, "token": token}, token)
        return 0

    if args.verify is not None:
        valid = TokenVerifier(secret=config.auth.secret).verify(args.verify)
        _emit(args, {"ok": valid}, "VALID" if valid else "INVALID")
        return 0 if valid else 1

    if args.check:
        warnings = config_warnings(config)
        text = "\n".join(f"WARN: {w}" for w in warnings) or "OK"
        _emit(args, {"ok": not warnings, "warnings": warnings}, text)
        return 0

    import uvicorn

    from tts_relay.main import create_app

    host = args.host or config.server.host
    port = args.port or config.server.port
    info(log, "serve", host=host, port=port)
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
