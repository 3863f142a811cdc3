"""Authentication interfaces following Black Box Design principles."""
from dataclasses import asdict, dataclass
from typing import List, Optional, Protocol


@dataclass
class ChainState:
    """
    Server-side view of one key's rolling chain.

    ``digest`` is the last digest accepted for this key, hex encoded.
    The next acceptable digest is H(digest || secret || salt).
    """
    key_id: str
    salt: str
    seed: str
    algorithm: str
    digest: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ChainState":
        return cls(
            key_id=data["key_id"],
            salt=data["salt"],
            seed=data["seed"],
            algorithm=data["algorithm"],
            digest=data["digest"],
        )


class ChainStore(Protocol):
    """Protocol for chain and seed storage - allows swappable implementations."""

    async def get_chain(self, key_id: str) -> Optional[ChainState]:
        """Return the chain registered for a key, or None."""
        ...

    async def put_chain(self, chain: ChainState) -> None:
        """Store (or replace) the chain for ``chain.key_id``."""
        ...

    async def delete_chain(self, key_id: str) -> None:
        """Forget the chain for a key."""
        ...

    async def add_seed(self, seed: str, ttl: int) -> None:
        """Record an issued seed as pending for ``ttl`` seconds."""
        ...

    async def pending_seeds(self) -> List[str]:
        """Return all issued, unexpired, unconsumed seeds."""
        ...

    async def consume_seed(self, seed: str) -> bool:
        """
        Remove a pending seed.

        Returns:
            True if the seed was pending and is now consumed
        """
        ...
