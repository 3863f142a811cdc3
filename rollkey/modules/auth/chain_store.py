import json
import time
from collections import OrderedDict
from typing import Dict, List, Optional

from .interfaces import ChainState


class MemoryChainStore:
    """In-process chain store. Suitable for a single API worker and for tests."""

    def __init__(self, max_pending_seeds: int = 1024):
        """
        Initialize memory chain store.

        Args:
            max_pending_seeds: Upper bound on outstanding seeds; the oldest
                are evicted first
        """
        self.max_pending_seeds = max_pending_seeds
        self._chains: Dict[str, ChainState] = {}
        self._seeds: "OrderedDict[str, float]" = OrderedDict()

    async def get_chain(self, key_id: str) -> Optional[ChainState]:
        return self._chains.get(key_id)

    async def put_chain(self, chain: ChainState) -> None:
        self._chains[chain.key_id] = chain

    async def delete_chain(self, key_id: str) -> None:
        self._chains.pop(key_id, None)

    async def add_seed(self, seed: str, ttl: int) -> None:
        self._seeds[seed] = time.monotonic() + ttl
        while len(self._seeds) > self.max_pending_seeds:
            self._seeds.popitem(last=False)

    async def pending_seeds(self) -> List[str]:
        now = time.monotonic()
        for seed in [s for s, expires_at in self._seeds.items() if expires_at <= now]:
            del self._seeds[seed]
        # Newest first: a client usually registers the seed it fetched last
        return list(reversed(self._seeds))

    async def consume_seed(self, seed: str) -> bool:
        return self._seeds.pop(seed, None) is not None


class RedisChainStore:
    def __init__(self, redis_client, prefix: str = "rollkey", max_pending_seeds: int = 1024):
        """
        Initialize Redis chain store.

        Args:
            redis_client: Async Redis client
            prefix: Key namespace
            max_pending_seeds: Upper bound on outstanding seeds; the oldest
                are evicted first

        Layout:
        - {prefix}:chain:{key_id}  JSON ChainState, no expiry
        - {prefix}:seed:{seed}     "1" with TTL (pending marker)
        - {prefix}:seeds           sorted set of seeds scored by issue time
        """
        self.redis = redis_client
        self.prefix = prefix
        self.max_pending_seeds = max_pending_seeds

    def _chain_key(self, key_id: str) -> str:
        return f"{self.prefix}:chain:{key_id}"

    def _seed_key(self, seed: str) -> str:
        return f"{self.prefix}:seed:{seed}"

    @property
    def _seeds_key(self) -> str:
        return f"{self.prefix}:seeds"

    @staticmethod
    def _text(value) -> str:
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def get_chain(self, key_id: str) -> Optional[ChainState]:
        data = await self.redis.get(self._chain_key(key_id))
        if data:
            return ChainState.from_dict(json.loads(self._text(data)))
        return None

    async def put_chain(self, chain: ChainState) -> None:
        await self.redis.set(self._chain_key(chain.key_id), json.dumps(chain.to_dict()))

    async def delete_chain(self, key_id: str) -> None:
        await self.redis.delete(self._chain_key(key_id))

    async def add_seed(self, seed: str, ttl: int) -> None:
        await self.redis.setex(self._seed_key(seed), ttl, "1")
        await self.redis.zadd(self._seeds_key, {seed: time.time()})

        # Evict the oldest seeds beyond the bound
        overflow = await self.redis.zrange(self._seeds_key, 0, -(self.max_pending_seeds + 1))
        if overflow:
            await self.redis.delete(*[self._seed_key(self._text(s)) for s in overflow])
            await self.redis.zremrangebyrank(self._seeds_key, 0, len(overflow) - 1)

    async def pending_seeds(self) -> List[str]:
        members = await self.redis.zrevrange(self._seeds_key, 0, -1)

        seeds = []
        for member in members:
            seed = self._text(member)
            if await self.redis.exists(self._seed_key(seed)):
                seeds.append(seed)
            else:
                # Expired, clean up stale entry
                await self.redis.zrem(self._seeds_key, seed)

        return seeds

    async def consume_seed(self, seed: str) -> bool:
        deleted = await self.redis.delete(self._seed_key(seed))
        await self.redis.zrem(self._seeds_key, seed)
        return deleted > 0
