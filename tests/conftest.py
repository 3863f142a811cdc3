"""
Shared pytest fixtures for Rollkey tests.

This module provides common fixtures including:
- Known API keys and a RollingVerifier over an in-memory chain store
- The FastAPI app with a few opaque protected routes mounted
- RecordingTransport: an httpx transport that records every request
  before handing it to the app over ASGI
- Redis mocks for the Redis-backed stores
"""

import os
import sys
from dataclasses import dataclass
from typing import List, Optional
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rollkey.main import create_app
from rollkey.modules.api import requires_auth
from rollkey.modules.auth import ApiKeyRecord, MemoryChainStore, Role, RollingVerifier
from rollkey.modules.client import Authenticator
from rollkey.modules.digest import decode_header
from rollkey.modules.session import MemorySessionStore

BASE_URL = "http://testserver"

DASHBOARD_KEY = ApiKeyRecord(
    id="validKey",
    key="key-123",
    roles=Role.INFORMATION_OBTAINER | Role.CONTROLLER,
    name="Dashboard",
    domains=["dashboard.example.com"],
)
SCRAPER_KEY = ApiKeyRecord(id="scraperKey", key="scrape-456", roles=Role.SCRAPER)
DISABLED_KEY = ApiKeyRecord(id="oldKey", key="old-789", roles=Role.CONTROLLER, enabled=False)


# =============================================================================
# Request recording
# =============================================================================

@dataclass
class RecordedRequest:
    """One request as seen on the wire."""
    method: str
    path: str
    query: str
    authorization: Optional[str]

    @property
    def digest(self) -> Optional[bytes]:
        if not self.authorization:
            return None
        return decode_header(self.authorization).digest

    @property
    def salt(self) -> Optional[str]:
        if not self.authorization:
            return None
        return decode_header(self.authorization).salt


class RecordingTransport(httpx.AsyncBaseTransport):
    """
    Record requests, then delegate to another transport.

    Usage:
        transport = RecordingTransport(httpx.ASGITransport(app=app))
        ...
        assert transport.paths() == ["/api/v1/auth/seed", "/api/v1/auth/keyinfo"]
    """

    def __init__(self, inner: httpx.AsyncBaseTransport):
        self.inner = inner
        self.requests: List[RecordedRequest] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.url.path,
                query=request.url.query.decode("ascii"),
                authorization=request.headers.get("Authorization"),
            )
        )
        return await self.inner.handle_async_request(request)

    def paths(self) -> List[str]:
        return [r.path for r in self.requests]

    def to(self, path: str) -> List[RecordedRequest]:
        return [r for r in self.requests if r.path == path]

    def reset(self) -> None:
        self.requests.clear()


# =============================================================================
# Server side
# =============================================================================

def mount_business_routes(app: FastAPI) -> None:
    """Opaque protected routes standing in for the real business endpoints."""

    @app.get("/api/v1/things")
    async def list_things(key: ApiKeyRecord = Depends(requires_auth(Role.INFORMATION_OBTAINER))):
        return {"items": [1, 2, 3], "key": key.id}

    @app.post("/api/v1/things")
    async def create_thing(
        payload: dict, key: ApiKeyRecord = Depends(requires_auth(Role.CONTROLLER))
    ):
        return {"created": payload}

    @app.delete("/api/v1/things/1", status_code=204)
    async def delete_thing(key: ApiKeyRecord = Depends(requires_auth(Role.CONTROLLER))):
        return None

    @app.get("/api/v1/broken")
    async def broken(key: ApiKeyRecord = Depends(requires_auth())):
        return JSONResponse(status_code=422, content={"error": "name cannot be empty"})

    @app.get("/api/v1/soft-error")
    async def soft_error(key: ApiKeyRecord = Depends(requires_auth())):
        return {"error": "matcher not found"}

    @app.get("/api/v1/admin")
    async def admin_only(key: ApiKeyRecord = Depends(requires_auth(Role.ADMIN))):
        return {"ok": True}


@pytest.fixture
def api_keys():
    return [DASHBOARD_KEY, SCRAPER_KEY, DISABLED_KEY]


@pytest.fixture
def chain_store():
    return MemoryChainStore()


@pytest.fixture
def verifier(api_keys, chain_store):
    return RollingVerifier(api_keys, store=chain_store)


@pytest.fixture
def app(verifier):
    app = create_app(verifier)
    mount_business_routes(app)
    return app


@pytest.fixture
def transport(app):
    return RecordingTransport(httpx.ASGITransport(app=app))


@pytest.fixture
def http_client(transport):
    return httpx.AsyncClient(transport=transport, base_url=BASE_URL)


# =============================================================================
# Client side
# =============================================================================

@pytest.fixture
def session_store():
    return MemorySessionStore()


@pytest.fixture
def reauth_calls():
    return []


@pytest.fixture
def authenticator(http_client, session_store, reauth_calls):
    return Authenticator(
        http_client,
        store=session_store,
        on_reauth_required=reauth_calls.append,
    )


def offline_client(handler=None) -> httpx.AsyncClient:
    """
    HTTP client backed by httpx.MockTransport.

    Without a handler every request fails the test, which makes it easy
    to assert that something never touches the network.
    """

    def fail(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request {request.method} {request.url.path}")

    return httpx.AsyncClient(transport=httpx.MockTransport(handler or fail), base_url=BASE_URL)


# =============================================================================
# Redis mocks
# =============================================================================

@pytest.fixture
def mock_redis():
    """Create a mock Redis client."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    redis.setex = AsyncMock()
    redis.delete = AsyncMock(return_value=1)
    redis.exists = AsyncMock(return_value=1)
    redis.zadd = AsyncMock()
    redis.zrem = AsyncMock()
    redis.zrange = AsyncMock(return_value=[])
    redis.zrevrange = AsyncMock(return_value=[])
    redis.zremrangebyrank = AsyncMock()
    return redis
