"""
Digest Module - Black Box Interface

Purpose: Rolling hash chain and Authorization header encoding
Interface: generate_salt(), initial_digest(), next_digest(), encode_header(), decode_header()
Hidden: Hash primitives, base64 alphabet handling, header validation rules

Shared by the client authenticator and the server verifier.
"""

from .digest import (
    DEFAULT_ALGORITHM,
    HASH_ALGORITHMS,
    SALT_ALPHABET,
    SALT_LENGTH,
    AuthHeader,
    decode_header,
    encode_header,
    generate_salt,
    generate_seed,
    initial_digest,
    next_digest,
)

__all__ = [
    "DEFAULT_ALGORITHM",
    "HASH_ALGORITHMS",
    "SALT_ALPHABET",
    "SALT_LENGTH",
    "AuthHeader",
    "decode_header",
    "encode_header",
    "generate_salt",
    "generate_seed",
    "initial_digest",
    "next_digest",
]
