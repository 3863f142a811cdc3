"""
Rolling digest primitives and Authorization header codec.

Everything here is pure: no I/O, no shared state. Both the client
authenticator and the server verifier build on these functions so the
two sides always compute the chain the same way.

Chain:
    digest[0] = H(seed || secret || salt)
    digest[N] = H(digest[N-1] || secret || salt)

Strings enter the hash as UTF-8 bytes, previous digests as raw bytes.
"""

import base64
import binascii
import hashlib
import secrets
from dataclasses import dataclass
from typing import Callable, Dict

from ...errors import MalformedHeaderError

SALT_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
SALT_LENGTH = 32

DEFAULT_ALGORITHM = "sha512"

HASH_ALGORITHMS: Dict[str, Callable] = {
    "sha512": hashlib.sha512,
    "sha256": hashlib.sha256,
}

# Hex length of a digest per algorithm
DIGEST_HEX_LENGTHS: Dict[str, int] = {
    name: factory().digest_size * 2 for name, factory in HASH_ALGORITHMS.items()
}


@dataclass(frozen=True)
class AuthHeader:
    """Decoded Authorization header value."""

    algorithm: str
    key_id: str
    salt: str
    digest: bytes

    @property
    def digest_hex(self) -> str:
        return self.digest.hex()


def _hash_factory(algorithm: str) -> Callable:
    try:
        return HASH_ALGORITHMS[algorithm]
    except KeyError:
        raise ValueError(
            f"Unsupported hash algorithm '{algorithm}'. "
            f"Supported: {', '.join(sorted(HASH_ALGORITHMS))}"
        ) from None


def generate_salt(length: int = SALT_LENGTH) -> str:
    """Return a random salt drawn from the 62-symbol alphabet with a CSPRNG."""
    return "".join(secrets.choice(SALT_ALPHABET) for _ in range(length))


def generate_seed() -> str:
    """Return a fresh high-entropy server seed (256 bits)."""
    return secrets.token_urlsafe(32)


def initial_digest(seed: str, secret: str, salt: str, algorithm: str = DEFAULT_ALGORITHM) -> bytes:
    """Compute digest[0] from the server seed."""
    factory = _hash_factory(algorithm)
    return factory(seed.encode("utf-8") + secret.encode("utf-8") + salt.encode("utf-8")).digest()


def next_digest(
    previous: bytes, secret: str, salt: str, algorithm: str = DEFAULT_ALGORITHM
) -> bytes:
    """Advance the chain by one step."""
    factory = _hash_factory(algorithm)
    return factory(previous + secret.encode("utf-8") + salt.encode("utf-8")).digest()


def encode_header(algorithm: str, key_id: str, salt: str, digest: bytes) -> str:
    """
    Encode an Authorization header value.

    Args:
        algorithm: Hash algorithm name (sha512 or sha256)
        key_id: Public key identifier
        salt: Session salt
        digest: Current rolling digest (raw bytes)

    Returns:
        "Basic " followed by base64 of "<alg>:<key_id>:<salt>:<hex digest>"
    """
    _hash_factory(algorithm)
    raw = f"{algorithm}:{key_id}:{salt}:{digest.hex()}"
    return "Basic " + base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_header(value: str) -> AuthHeader:
    """
    Decode and validate an Authorization header value.

    Standard and URL-safe base64 are both accepted, padded or not.

    Raises:
        MalformedHeaderError: If any part of the header is invalid
    """
    if not value or len(value) < 7:
        raise MalformedHeaderError(
            "invalid authorization value, must be of type Basic and contain data"
        )
    if not value.startswith("Basic "):
        raise MalformedHeaderError("authorization must be of type Basic")

    encoded = value[6:].strip().replace("-", "+").replace("_", "/")
    encoded += "=" * (-len(encoded) % 4)
    try:
        raw = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise MalformedHeaderError("authorization value is not valid base64") from None

    parts = raw.split(":")
    if len(parts) != 4:
        raise MalformedHeaderError("invalid key")

    algorithm, key_id, salt, digest_hex = parts
    if algorithm not in HASH_ALGORITHMS:
        raise MalformedHeaderError(
            f"only {' and '.join(sorted(HASH_ALGORITHMS, reverse=True))} are supported"
        )
    if not key_id:
        raise MalformedHeaderError("key id cannot be empty")
    if not salt:
        raise MalformedHeaderError("salt cannot be empty")
    if not digest_hex:
        raise MalformedHeaderError("key cannot be empty")
    if len(digest_hex) != DIGEST_HEX_LENGTHS[algorithm]:
        raise MalformedHeaderError("invalid key hash")

    try:
        digest = bytes.fromhex(digest_hex)
    except ValueError:
        raise MalformedHeaderError("invalid key hash") from None

    return AuthHeader(algorithm=algorithm, key_id=key_id, salt=salt, digest=digest)
