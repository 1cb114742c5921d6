"""
Token Authentication.

    - tokens.py: TokenIssuer / TokenVerifier and the token wire format
    - gate.py: Bearer header extraction and the per-request gate
"""
from .gate import AuthGate, extract_bearer
from .tokens import DAY_MS, TokenIssuer, TokenVerifier, issue_token, now_ms, verify_token

__all__ = [
    "AuthGate",
    "extract_bearer",
    "DAY_MS",
    "TokenIssuer",
    "TokenVerifier",
    "issue_token",
    "verify_token",
    "now_ms",
]
