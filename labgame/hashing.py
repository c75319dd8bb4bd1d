"""
labgame.hashing — keccak256 and address helpers.

Strictly bytes-in, bytes-out. Keccak-256 (the pre-standard SHA3 padding used by
EVM-style chains) comes from PyCryptodome.

Domain separation
-----------------
``keccak256(data, domain=b"tag")`` hashes::

    b"\\x19labgame:" || domain || b"\\x00" || data

Plain ``keccak256(data)`` is the raw digest, which is what Merkle leaves and
interoperable proofs need.
"""

from __future__ import annotations

from typing import Union

from Crypto.Hash import keccak as _keccak

_LABGAME_PREFIX = b"\x19labgame:"

ADDRESS_LEN = 20
ZERO_ADDRESS = b"\x00" * ADDRESS_LEN

BytesLike = Union[bytes, bytearray, memoryview]


def _ensure_bytes(buf: object, name: str) -> bytes:
    if isinstance(buf, (bytes, bytearray, memoryview)):
        return bytes(buf)
    raise TypeError(f"{name} must be bytes-like (got {type(buf).__name__})")


def keccak256(data: BytesLike, *, domain: bytes = b"") -> bytes:
    h = _keccak.new(digest_bits=256)
    if domain:
        h.update(_LABGAME_PREFIX)
        h.update(_ensure_bytes(domain, "domain"))
        h.update(b"\x00")
    h.update(_ensure_bytes(data, "data"))
    return h.digest()


def keccak256_hex(data: BytesLike, *, domain: bytes = b"") -> str:
    return "0x" + keccak256(data, domain=domain).hex()


def hash_concat(*chunks: BytesLike, domain: bytes = b"") -> bytes:
    """keccak256 over the concatenation of ``chunks``."""
    return keccak256(b"".join(_ensure_bytes(c, "chunk") for c in chunks), domain=domain)


def u256(n: int) -> bytes:
    return int(n).to_bytes(32, "big")


# ---- addresses ----------------------------------------------------------------


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: Union[BytesLike, str]) -> bytes:
    """
    Coerce ``value`` to bytes.
    - str is interpreted as hex (with or without '0x'); odd-length hex is rejected.
    - bytes-like objects are copied to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise ValueError(f"hex string must have even length, got {len(h)}")
        return bytes.fromhex(h)
    raise TypeError(f"cannot convert type {type(value).__name__} to bytes")


def to_hex(b: BytesLike) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def to_address(value: Union[BytesLike, str]) -> bytes:
    """Normalize a 20-byte address given as bytes or (checksummed) hex."""
    b = to_bytes(value)
    if len(b) != ADDRESS_LEN:
        raise ValueError(f"address must be {ADDRESS_LEN} bytes, got {len(b)}")
    return b


def derive_address(*parts: BytesLike) -> bytes:
    """Deterministic address: the last 20 bytes of keccak256(parts...)."""
    return hash_concat(*parts)[-ADDRESS_LEN:]


__all__ = [
    "ADDRESS_LEN",
    "ZERO_ADDRESS",
    "keccak256",
    "keccak256_hex",
    "hash_concat",
    "u256",
    "to_bytes",
    "to_hex",
    "to_address",
    "derive_address",
]
