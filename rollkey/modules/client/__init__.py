"""
Client Module - Black Box Interface

Purpose: Authenticate outgoing API requests with a rolling digest
Interface: login(), build_header(), authenticated_request(), logout(), restore()
Hidden: Chain state, retry/resync policy, request serialization

The HTTP client and the session store are injected, so several
independent authenticators can run side by side.
"""

from .authenticator import KEYINFO_PATH, MAX_ATTEMPTS, SEED_PATH, Authenticator
from .factory import build_authenticator

__all__ = ["Authenticator", "KEYINFO_PATH", "MAX_ATTEMPTS", "SEED_PATH", "build_authenticator"]
