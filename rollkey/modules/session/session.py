import json
from dataclasses import asdict, dataclass
from typing import Optional, Protocol

from ..digest import DEFAULT_ALGORITHM


@dataclass
class SessionState:
    """
    Client credential plus rolling chain state.

    ``server_seed``, ``salt`` and ``rolling_digest`` are None until the
    chain has been initialized. ``rolling_digest`` is hex encoded.
    """

    key_id: str
    key_secret: str
    salt: Optional[str] = None
    server_seed: Optional[str] = None
    rolling_digest: Optional[str] = None
    algorithm: str = DEFAULT_ALGORITHM

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SessionState":
        return cls(
            key_id=data["key_id"],
            key_secret=data["key_secret"],
            salt=data.get("salt"),
            server_seed=data.get("server_seed"),
            rolling_digest=data.get("rolling_digest"),
            algorithm=data.get("algorithm") or DEFAULT_ALGORITHM,
        )


class SessionStore(Protocol):
    """Persistence mirror of the authenticator's state."""

    async def load(self) -> Optional[SessionState]:
        ...

    async def save(self, state: SessionState) -> None:
        ...

    async def clear(self) -> None:
        ...


class MemorySessionStore:
    """Keeps the state in process memory only."""

    def __init__(self, state: Optional[SessionState] = None):
        self._data = state.to_dict() if state else None

    async def load(self) -> Optional[SessionState]:
        return SessionState.from_dict(self._data) if self._data else None

    async def save(self, state: SessionState) -> None:
        # Copy so later in-place mutation by the caller is not mirrored
        self._data = state.to_dict()

    async def clear(self) -> None:
        self._data = None


class RedisSessionStore:
    def __init__(self, redis_client, name: str = "default", ttl: Optional[int] = None):
        """
        Initialize Redis-backed session store.

        Args:
            redis_client: Async Redis client
            name: Session name, lets several authenticators share one Redis
            ttl: Optional expiry in seconds, refreshed on every save
        """
        self.redis = redis_client
        self.name = name
        self.ttl = ttl

    @property
    def key(self) -> str:
        return f"rollkey:session:{self.name}"

    async def load(self) -> Optional[SessionState]:
        data = await self.redis.get(self.key)
        if not data:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return SessionState.from_dict(json.loads(data))

    async def save(self, state: SessionState) -> None:
        payload = json.dumps(state.to_dict())
        if self.ttl:
            await self.redis.setex(self.key, self.ttl, payload)
        else:
            await self.redis.set(self.key, payload)

    async def clear(self) -> None:
        await self.redis.delete(self.key)
