"""
Session Module - Black Box Interface

Purpose: Persist the client's credential and rolling chain state
Interface: load(), save(), clear()
Hidden: Storage backend, serialization format, expiry

Replaceable with any backend (in-memory, Redis, database row) without
changing the Authenticator.
"""

from .session import MemorySessionStore, RedisSessionStore, SessionState, SessionStore

__all__ = ["MemorySessionStore", "RedisSessionStore", "SessionState", "SessionStore"]
