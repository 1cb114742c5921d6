"""
FastAPI REST API Layer for tts-relay.

This package defines all HTTP endpoints:
    - routes.py: Login, verify, generate, health and metrics endpoints
    - schemas.py: Request/response Pydantic models
    - dependencies.py: FastAPI dependency injection and the auth gate
"""
