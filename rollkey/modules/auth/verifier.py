"""
Server-side rolling digest verifier.

This is the counterpart of the client Authenticator. It tracks one chain
per key id and accepts a header only if its digest is exactly the next
value of that chain. A header with an unknown salt is treated as an
implicit chain registration: it must equal digest[1] derived from one of
the seeds handed out by the seed endpoint, and that seed is consumed.
"""

import asyncio
import hmac
import logging
from datetime import UTC, datetime
from typing import Dict, Iterable, Optional

from ...errors import ChainDesyncError
from ..digest import decode_header, generate_seed, initial_digest, next_digest
from .chain_store import MemoryChainStore
from .interfaces import ChainState, ChainStore
from .keys import ApiKeyRecord, index_keys

logger = logging.getLogger(__name__)


class RollingVerifier:
    """
    Verifies rolling Authorization headers.

    Only the final outcome is visible to callers: the key record on
    success, ChainDesyncError (or its MalformedHeaderError subclass) on
    any failure. Failure messages are generic.
    """

    def __init__(
        self,
        keys: Iterable[ApiKeyRecord],
        store: Optional[ChainStore] = None,
        seed_ttl: int = 300,
        max_pending_seeds: int = 1024,
    ):
        """
        Initialize verifier.

        Args:
            keys: Known API keys (disabled keys are ignored)
            store: Chain/seed storage, in-memory if omitted
            seed_ttl: Seconds an issued seed stays usable for registration
            max_pending_seeds: Pending seed bound for the default in-memory store
        """
        self.keys: Dict[str, ApiKeyRecord] = index_keys(keys)
        self.store: ChainStore = store or MemoryChainStore(max_pending_seeds)
        self.seed_ttl = seed_ttl
        self._lock = asyncio.Lock()

    def get_key(self, key_id: str) -> Optional[ApiKeyRecord]:
        return self.keys.get(key_id)

    async def issue_seed(self) -> str:
        """
        Hand out a fresh seed.

        Every call returns a new value; the seed stays pending until it
        is used to register a chain or its TTL runs out.
        """
        seed = generate_seed()
        await self.store.add_seed(seed, self.seed_ttl)
        return seed

    async def authenticate(self, authorization: Optional[str]) -> ApiKeyRecord:
        """
        Verify an Authorization header and advance the key's chain.

        Args:
            authorization: Raw Authorization header value

        Returns:
            The authenticated key record

        Raises:
            MalformedHeaderError: Header could not be parsed
            ChainDesyncError: Unknown key or digest not next in chain
        """
        header = decode_header(authorization or "")

        key = self.keys.get(header.key_id)
        if key is None:
            raise ChainDesyncError("invalid key")

        async with self._lock:
            chain = await self.store.get_chain(key.id)

            if chain and chain.salt == header.salt and chain.algorithm == header.algorithm:
                expected = next_digest(
                    bytes.fromhex(chain.digest), key.key, chain.salt, chain.algorithm
                )
                if not hmac.compare_digest(expected, header.digest):
                    self._log_event("chain_mismatch", key.id, header.salt)
                    raise ChainDesyncError("invalid key")

                chain.digest = header.digest_hex
                await self.store.put_chain(chain)
                return key

            registered = await self._register_chain(key, header)
            if registered is None:
                self._log_event("registration_failed", key.id, header.salt)
                raise ChainDesyncError("invalid key")

            self._log_event("chain_registered", key.id, header.salt)
            return key

    async def _register_chain(self, key: ApiKeyRecord, header) -> Optional[ChainState]:
        """Match the header against pending seeds; on a hit consume the seed and store the chain."""
        for seed in await self.store.pending_seeds():
            first = next_digest(
                initial_digest(seed, key.key, header.salt, header.algorithm),
                key.key,
                header.salt,
                header.algorithm,
            )
            if not hmac.compare_digest(first, header.digest):
                continue

            if not await self.store.consume_seed(seed):
                # Raced with another registration for the same seed
                continue

            chain = ChainState(
                key_id=key.id,
                salt=header.salt,
                seed=seed,
                algorithm=header.algorithm,
                digest=header.digest_hex,
            )
            await self.store.put_chain(chain)
            return chain

        return None

    async def reset_chain(self, key_id: str) -> None:
        """Drop a key's chain; its client must resync."""
        async with self._lock:
            await self.store.delete_chain(key_id)
        self._log_event("chain_reset", key_id, None)

    def _log_event(self, event_type: str, key_id: str, salt: Optional[str]):
        """Log a security event for audit. Secrets and digests are never logged."""
        logger.info(
            f"auth event={event_type} key_id={key_id} salt={salt} "
            f"timestamp={datetime.now(UTC).isoformat()}"
        )
