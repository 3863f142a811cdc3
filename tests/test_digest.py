"""
Unit tests for the rolling digest primitives and header codec.
"""

import base64
import hashlib

import pytest

from rollkey.errors import ChainDesyncError, MalformedHeaderError
from rollkey.modules.digest import (
    SALT_ALPHABET,
    decode_header,
    encode_header,
    generate_salt,
    generate_seed,
    initial_digest,
    next_digest,
)


def _basic(raw: str) -> str:
    return "Basic " + base64.b64encode(raw.encode("utf-8")).decode("ascii")


def test_generate_salt_length_and_alphabet():
    """Salts are 32 characters from the 62-symbol alphabet."""
    salt = generate_salt()

    assert len(salt) == 32
    assert set(salt) <= set(SALT_ALPHABET)
    assert len(SALT_ALPHABET) == 62


def test_generate_salt_is_random():
    assert len({generate_salt() for _ in range(20)}) == 20


def test_generate_seed_is_fresh():
    seeds = {generate_seed() for _ in range(20)}
    assert len(seeds) == 20
    assert all(len(seed) >= 40 for seed in seeds)


def test_initial_digest_matches_sha512_of_concatenation():
    """digest[0] = SHA-512(seed || secret || salt)."""
    salt = "A" * 32

    digest = initial_digest("abc", "key-123", salt)

    assert digest == hashlib.sha512(("abc" + "key-123" + salt).encode()).digest()
    assert len(digest) == 64


def test_next_digest_chains_over_raw_bytes():
    """digest[N] = SHA-512(digest[N-1] || secret || salt), previous digest as raw bytes."""
    salt = "B" * 32
    d0 = initial_digest("abc", "key-123", salt)

    d1 = next_digest(d0, "key-123", salt)

    assert d1 == hashlib.sha512(d0 + b"key-123" + salt.encode()).digest()
    assert d1 != d0


def test_sha256_variant():
    salt = "C" * 32
    d0 = initial_digest("abc", "key-123", salt, "sha256")

    assert d0 == hashlib.sha256(("abc" + "key-123" + salt).encode()).digest()
    assert len(next_digest(d0, "key-123", salt, "sha256")) == 32


def test_unsupported_algorithm_rejected():
    with pytest.raises(ValueError, match="Unsupported hash algorithm"):
        initial_digest("abc", "key-123", "salt", "md5")


def test_encode_header_format():
    """Header is Basic base64("sha512:" + keyId + ":" + salt + ":" + hex digest)."""
    salt = "D" * 32
    digest = initial_digest("abc", "key-123", salt)

    header = encode_header("sha512", "validKey", salt, digest)

    assert header.startswith("Basic ")
    raw = base64.b64decode(header[6:]).decode("utf-8")
    assert raw == f"sha512:validKey:{salt}:{digest.hex()}"


def test_decode_header_returns_parts():
    salt = "E" * 32
    digest = initial_digest("abc", "key-123", salt)

    header = decode_header(encode_header("sha512", "validKey", salt, digest))

    assert header.algorithm == "sha512"
    assert header.key_id == "validKey"
    assert header.salt == salt
    assert header.digest == digest
    assert header.digest_hex == digest.hex()


def test_decode_header_accepts_urlsafe_unpadded():
    """Clients that use URL-safe base64 without padding are accepted too."""
    salt = "F" * 31
    digest = initial_digest("abc", "key-123", salt)
    raw = f"sha512:validKey:{salt}:{digest.hex()}".encode("utf-8")
    value = "Basic " + base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    assert decode_header(value).digest == digest


@pytest.mark.parametrize(
    "value,message",
    [
        ("", "must be of type Basic"),
        ("Bearer abcdefgh", "must be of type Basic"),
        ("Basic !!!!", "not valid base64"),
    ],
)
def test_decode_header_rejects_bad_envelope(value, message):
    with pytest.raises(MalformedHeaderError, match=message):
        decode_header(value)


def test_decode_header_rejects_wrong_part_count():
    with pytest.raises(MalformedHeaderError, match="invalid key"):
        decode_header(_basic("sha512:validKey:salt"))


def test_decode_header_rejects_unknown_algorithm():
    with pytest.raises(MalformedHeaderError, match="sha512 and sha256"):
        decode_header(_basic("md5:validKey:salt:" + "00" * 16))


def test_decode_header_rejects_empty_fields():
    with pytest.raises(MalformedHeaderError, match="key id cannot be empty"):
        decode_header(_basic("sha512::salt:" + "00" * 64))
    with pytest.raises(MalformedHeaderError, match="salt cannot be empty"):
        decode_header(_basic("sha512:validKey::" + "00" * 64))


def test_decode_header_rejects_bad_digest():
    with pytest.raises(MalformedHeaderError, match="invalid key hash"):
        decode_header(_basic("sha512:validKey:salt:" + "00" * 32))
    with pytest.raises(MalformedHeaderError, match="invalid key hash"):
        decode_header(_basic("sha512:validKey:salt:" + "zz" * 64))


def test_malformed_header_is_a_chain_desync():
    """Parse failures surface as 401s like any other desync."""
    assert issubclass(MalformedHeaderError, ChainDesyncError)
    assert MalformedHeaderError.status_code == 401
