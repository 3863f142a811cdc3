"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import List, Optional, Protocol

from ..modules.auth.roles import DASHBOARD_ROLE, Role, parse_roles
from ..modules.digest import DEFAULT_ALGORITHM, HASH_ALGORITHMS


@dataclass
class RedisConfig:
    """Redis configuration."""
    enabled: bool
    host: str
    port: int
    db: int
    password: Optional[str]

    @property
    def url(self) -> str:
        return f"redis://{self.host}:{self.port}/{self.db}"


@dataclass
class APIConfig:
    """API server configuration."""
    port: int
    host: str
    debug: bool
    log_level: str


@dataclass
class AuthConfig:
    """Server-side authentication configuration."""
    api_keys: List[str]
    seed_ttl: int
    max_pending_seeds: int


@dataclass
class ClientConfig:
    """Rolling authenticator client configuration."""
    api_url: str
    key_id: Optional[str]
    key_secret: Optional[str]
    required_role: Role
    algorithm: str
    timeout: float
    session_name: str
    session_ttl: Optional[int]

    @property
    def has_credential(self) -> bool:
        return bool(self.key_id and self.key_secret)


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_redis_config(self) -> RedisConfig:
        """Get Redis configuration."""
        ...

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration."""
        ...

    def get_client_config(self) -> ClientConfig:
        """Get client configuration."""
        ...


def _parse_port(value: str) -> int:
    # Might be in tcp://host:port format from K8s service links
    if value.startswith("tcp://"):
        return int(value.split(":")[-1])
    return int(value)


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_redis_config(self) -> RedisConfig:
        """Get Redis configuration from environment variables."""
        host = os.getenv("REDIS_HOST")
        return RedisConfig(
            enabled=bool(host),
            host=host or "localhost",
            port=_parse_port(os.getenv("REDIS_PORT", "6379")),
            db=int(os.getenv("REDIS_DB", "0")),
            password=os.getenv("REDIS_PASSWORD"),
        )

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            port=int(os.getenv("API_PORT", "4000")),
            host=os.getenv("API_HOST", "0.0.0.0"),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration from environment variables."""
        # API keys are required - no default for security
        api_keys_env = os.getenv("API_KEYS")
        if not api_keys_env:
            raise ValueError(
                "API_KEYS environment variable is required. "
                "Format: id:secret:roles,id:secret:roles. "
                "Example: dashboard:your-generated-key:controller|information_obtainer"
            )

        return AuthConfig(
            api_keys=[key.strip() for key in api_keys_env.split(",") if key.strip()],
            seed_ttl=int(os.getenv("SEED_TTL", "300")),
            max_pending_seeds=int(os.getenv("MAX_PENDING_SEEDS", "1024")),
        )

    def get_client_config(self) -> ClientConfig:
        """Get client configuration from environment variables."""
        algorithm = os.getenv("ROLLKEY_ALGORITHM", DEFAULT_ALGORITHM).lower()
        if algorithm not in HASH_ALGORITHMS:
            raise ValueError(
                f"ROLLKEY_ALGORITHM must be one of {', '.join(sorted(HASH_ALGORITHMS))}, "
                f"got '{algorithm}'"
            )

        required_role = os.getenv("ROLLKEY_REQUIRED_ROLE")
        session_ttl = os.getenv("ROLLKEY_SESSION_TTL")

        return ClientConfig(
            api_url=os.getenv("ROLLKEY_API_URL", "http://localhost:4000"),
            key_id=os.getenv("ROLLKEY_KEY_ID"),
            key_secret=os.getenv("ROLLKEY_KEY_SECRET"),
            required_role=parse_roles(required_role) if required_role else DASHBOARD_ROLE,
            algorithm=algorithm,
            timeout=float(os.getenv("ROLLKEY_TIMEOUT", "30")),
            session_name=os.getenv("ROLLKEY_SESSION_NAME", "default"),
            session_ttl=int(session_ttl) if session_ttl else None,
        )
