"""Builds a ready-to-use Authenticator from configuration."""

import logging
from typing import Any, Optional

import httpx

from ...config.provider import ClientConfig
from ..session import MemorySessionStore, RedisSessionStore
from .authenticator import Authenticator, ReauthCallback

logger = logging.getLogger(__name__)


def build_authenticator(
    config: ClientConfig,
    redis_client: Optional[Any] = None,
    on_reauth_required: Optional[ReauthCallback] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Authenticator:
    """
    Build an Authenticator and its HTTP client.

    The caller owns the returned authenticator's ``client`` and must
    close it (``await auth.client.aclose()``).

    Args:
        config: Client configuration
        redis_client: Optional async Redis client for session persistence
        on_reauth_required: Terminal auth failure callback
        transport: Optional httpx transport (e.g. ASGITransport in tests)
    """
    client = httpx.AsyncClient(
        base_url=config.api_url,
        timeout=config.timeout,
        transport=transport,
    )

    if redis_client is not None:
        store = RedisSessionStore(redis_client, name=config.session_name, ttl=config.session_ttl)
    else:
        store = MemorySessionStore()

    if config.api_url.startswith("http://"):
        logger.warning("Using HTTP without TLS - this should only be used for local development!")

    return Authenticator(
        client,
        store=store,
        required_role=config.required_role,
        algorithm=config.algorithm,
        on_reauth_required=on_reauth_required,
    )
