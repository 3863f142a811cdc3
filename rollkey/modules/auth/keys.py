"""API key records known to the verifier."""

import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .roles import Role, parse_roles, role_infos


@dataclass
class ApiKeyRecord:
    """
    A server-side API key.

    ``id`` is public and travels in every header; ``key`` is the secret
    that only ever enters the digest chain.
    """

    id: str
    key: str
    roles: Role = Role(0)
    enabled: bool = True
    name: str = ""
    domains: List[str] = field(default_factory=list)

    def public_info(self) -> dict:
        """Key information safe to return to clients (no secret)."""
        return {
            "id": self.id,
            "name": self.name or self.id,
            "domains": list(self.domains),
            "roles": role_infos(self.roles),
        }


def index_keys(keys: Iterable[ApiKeyRecord]) -> Dict[str, ApiKeyRecord]:
    """Index enabled keys by id. Disabled keys are dropped."""
    return {key.id: key for key in keys if key.enabled}


def keys_from_env(api_keys_env: Optional[str] = None) -> List[ApiKeyRecord]:
    """
    Load API keys from the API_KEYS environment variable.

    Format: API_KEYS="id:secret:roles,id2:secret2:roles2"
    The roles part is optional and accepts either a bit mask or role
    names joined by "|" (e.g. "dashboard:s3cret:controller|information_obtainer").

    Args:
        api_keys_env: Raw value. If None, reads from os.environ.

    Returns:
        List of key records

    Raises:
        ValueError: If an entry is malformed

    Example:
        >>> int(keys_from_env("admin:abc123:6")[0].roles)
        6
    """
    if api_keys_env is None:
        api_keys_env = os.environ.get("API_KEYS", "")

    keys = []
    for entry in api_keys_env.split(","):
        entry = entry.strip()
        if not entry:
            continue

        parts = entry.split(":", 2)
        if len(parts) < 2 or not parts[0].strip() or not parts[1].strip():
            raise ValueError(
                f"Invalid API_KEYS entry '{parts[0]}:...'. Expected format id:secret[:roles]"
            )

        key_id, secret = parts[0].strip(), parts[1].strip()
        roles = parse_roles(parts[2]) if len(parts) == 3 else Role(0)
        keys.append(ApiKeyRecord(id=key_id, key=secret, roles=roles, name=key_id))

    return keys
