"""
Rollkey - Rolling digest authentication

Authenticates every API request with a single-use hash chain value
instead of a static bearer token.

Modules:
- digest: Hash chain primitives and Authorization header codec
- client: Authenticator state machine (login, retry/resync, serialization)
- session: Client session persistence (memory, Redis)
- auth: Server-side verifier, key registry, chain storage
- api: Seed/keyinfo endpoints and the route guard
"""

__version__ = "1.0.0"
