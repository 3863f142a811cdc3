from .provider import (
    APIConfig,
    AuthConfig,
    ClientConfig,
    ConfigProvider,
    EnvConfigProvider,
    RedisConfig,
)

__all__ = [
    "APIConfig",
    "AuthConfig",
    "ClientConfig",
    "ConfigProvider",
    "EnvConfigProvider",
    "RedisConfig",
]
