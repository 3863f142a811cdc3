"""
Rollkey error taxonomy.

Local validation errors never reach the network, chain desyncs are
handled internally by the retry/resync sequence, and everything else is
surfaced to the caller as-is.
"""

from typing import Optional


class RollkeyError(Exception):
    """Base class for all rollkey errors."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class InvalidCredentialError(RollkeyError):
    """Empty key id or secret, or no credential held. Never hits the network."""

    status_code = 400


class AuthorizationDeniedError(RollkeyError):
    """Credential rejected or missing the required role. Terminal, session cleared."""

    status_code = 401


class ChainDesyncError(RollkeyError):
    """
    Presented digest does not match the expected chain value.

    The client resolves this with retry/resync and never surfaces it.
    The server turns it into a 401.
    """

    status_code = 401


class MalformedHeaderError(ChainDesyncError):
    """Authorization header could not be parsed."""


class ApiError(RollkeyError):
    """Non-auth application error returned by the server, passed through verbatim."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class NetworkError(RollkeyError):
    """Transport failure or timeout. Not retried."""

    status_code = 503
