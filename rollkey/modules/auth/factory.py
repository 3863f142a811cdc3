"""
Authentication Factory following Black Box Design principles.

This factory:
- Constructs the verifier based on configuration
- Wires the key registry and chain storage together
- Returns only the verifier (hiding storage choices)
"""

import logging
from typing import Any, Optional

from ...config.provider import ConfigProvider
from .chain_store import MemoryChainStore, RedisChainStore
from .keys import keys_from_env
from .verifier import RollingVerifier

logger = logging.getLogger(__name__)


class AuthFactory:
    """Composition root for the server-side authentication stack."""

    @staticmethod
    def build(
        config_provider: ConfigProvider,
        redis_client: Optional[Any] = None
    ) -> RollingVerifier:
        """
        Build the verifier.

        Args:
            config_provider: Configuration provider
            redis_client: Optional async Redis client; chains and seeds are
                kept in memory without one

        Returns:
            RollingVerifier ready to serve requests
        """
        auth_config = config_provider.get_auth_config()
        keys = keys_from_env(",".join(auth_config.api_keys))
        if not keys:
            raise ValueError("API_KEYS did not contain any usable key")

        if redis_client is not None:
            logger.info("Building verifier with Redis chain store")
            store = RedisChainStore(
                redis_client, max_pending_seeds=auth_config.max_pending_seeds
            )
        else:
            logger.info("Building verifier with in-memory chain store")
            store = MemoryChainStore(max_pending_seeds=auth_config.max_pending_seeds)

        logger.info(f"Loaded {len(keys)} API key(s)")
        return RollingVerifier(
            keys,
            store=store,
            seed_ttl=auth_config.seed_ttl,
            max_pending_seeds=auth_config.max_pending_seeds,
        )
