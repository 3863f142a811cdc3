"""
Authentication Module - Black Box Interface

Purpose: Verify rolling digest Authorization headers on the server
Interface: issue_seed(), authenticate(), reset_chain()
Hidden: Chain storage, seed bookkeeping, digest comparison

The client counterpart lives in modules.client; both share modules.digest.
"""

from .chain_store import MemoryChainStore, RedisChainStore
from .interfaces import ChainState, ChainStore
from .keys import ApiKeyRecord, keys_from_env
from .roles import DASHBOARD_ROLE, Role
from .verifier import RollingVerifier

__all__ = [
    "ApiKeyRecord",
    "ChainState",
    "ChainStore",
    "DASHBOARD_ROLE",
    "MemoryChainStore",
    "RedisChainStore",
    "Role",
    "RollingVerifier",
    "keys_from_env",
]
