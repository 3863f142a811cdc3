"""
Rollkey API data models.

Wire shapes of the auth endpoints. Business payloads carried over the
authenticated channel are opaque and have no models here.
"""

from typing import List

from pydantic import BaseModel, Field


class SeedResponse(BaseModel):
    """Fresh seed anchoring a new rolling chain."""

    seed: str = Field(..., description="High-entropy server seed, never reused")


class RoleInfo(BaseModel):
    """One role bit held by a key."""

    role: int = Field(..., description="Role bit value", ge=1)
    description: str = Field(..., description="Human readable role description")


class KeyInfoResponse(BaseModel):
    """Key introspection result. Never contains the secret."""

    id: str = Field(..., description="Public key identifier")
    name: str = Field(..., description="Display name")
    domains: List[str] = Field(default_factory=list, description="Domains the key is used from")
    roles: List[RoleInfo] = Field(default_factory=list, description="Roles held by the key")


class ErrorResponse(BaseModel):
    """Error body returned by every failing endpoint."""

    error: str = Field(..., description="Error message")


class HealthResponse(BaseModel):
    """Liveness probe result."""

    status: str = "healthy"
    timestamp: str
