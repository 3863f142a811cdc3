"""
Auth endpoints and the route guard for the Rollkey API.

The verifier is looked up on ``request.app.state.verifier`` so the same
router works with an injected test verifier or one built at startup.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response

from ...errors import ApiError
from ..auth.keys import ApiKeyRecord
from ..auth.roles import contains_some
from ..auth.verifier import RollingVerifier
from .models import ErrorResponse, KeyInfoResponse, SeedResponse

logger = logging.getLogger(__name__)


def get_verifier(request: Request) -> RollingVerifier:
    verifier = getattr(request.app.state, "verifier", None)
    if verifier is None:
        raise HTTPException(503, "Service not initialized")
    return verifier


def requires_auth(required_roles: Optional[int] = None):
    """
    Build a dependency that authenticates the request.

    Args:
        required_roles: Role bits; holding any one of them is enough

    Returns:
        FastAPI dependency resolving to the authenticated ApiKeyRecord.
        Verification failures raise ChainDesyncError (401), missing
        roles raise ApiError (403).
    """

    async def dependency(
        authorization: Optional[str] = Header(None, description="Rolling digest Basic header"),
        verifier: RollingVerifier = Depends(get_verifier),
    ) -> ApiKeyRecord:
        key = await verifier.authenticate(authorization)

        if required_roles and not contains_some(key.roles, required_roles):
            logger.warning(f"Key {key.id} lacks roles {int(required_roles)} for this route")
            raise ApiError("you do not have the permissions to access this route", 403)

        return key

    return dependency


def create_auth_router() -> APIRouter:
    """
    Create the auth router.

    Returns:
        FastAPI router with the seed and keyinfo endpoints
    """
    router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

    @router.get("/seed", response_model=SeedResponse)
    async def get_seed(
        response: Response, verifier: RollingVerifier = Depends(get_verifier)
    ) -> SeedResponse:
        """
        Issue a fresh seed. Unauthenticated.

        Every call returns a new value; clients pair it with their own
        salt to start a chain.
        """
        response.headers["Cache-Control"] = "no-store"
        return SeedResponse(seed=await verifier.issue_seed())

    @router.get(
        "/keyinfo",
        response_model=KeyInfoResponse,
        responses={401: {"model": ErrorResponse}},
    )
    async def get_key_info(key: ApiKeyRecord = Depends(requires_auth())) -> KeyInfoResponse:
        """Describe the authenticated key: id, name, domains and roles."""
        return KeyInfoResponse(**key.public_info())

    return router
