"""
API Module - Black Box Interface

Purpose: HTTP routing for the auth endpoints and the route guard
Interface: create_auth_router(), requires_auth()
Hidden: Verifier lookup, error mapping

The API module only orchestrates - verification logic lives in modules.auth.
"""

from .models import ErrorResponse, HealthResponse, KeyInfoResponse, RoleInfo, SeedResponse
from .routes import create_auth_router, get_verifier, requires_auth

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "KeyInfoResponse",
    "RoleInfo",
    "SeedResponse",
    "create_auth_router",
    "get_verifier",
    "requires_auth",
]
