"""
labgame.vm.storage — per-contract deterministic key/value storage.

Each contract address owns one flat ``Dict[bytes, bytes]`` held by the chain;
:class:`Storage` is a typed view over it. Keeping all contract state as bytes
in one map is what lets the chain snapshot and roll back a transaction by
copying dictionaries, and lets an upgraded implementation keep its state.

Key composition
---------------
``key(prefix, *parts)`` appends each part length-prefixed (u32 big-endian), so
``key(b"nft:owner:", 1)`` and ``key(b"nft:owner:", b"\\x01")`` never collide with
each other or with a longer prefix. Ints become 32-byte big-endian words.

Typed helpers
-------------
- get / set / delete / exists                    raw bytes
- get_int / set_int                              u256 big-endian (0 when absent)
- get_bool / set_bool                            b"\\x01" flag, deleted when False
- get_address / set_address                      20-byte address (None when absent)
- get_str / set_str                              UTF-8 text
"""

from __future__ import annotations

from typing import Dict, Optional, Union

from ..constants import U256_MAX

MAX_KEY_BYTES = 256
MAX_VALUE_BYTES = 64 * 1024

KeyPart = Union[bytes, int, str]


def _be_u32(n: int) -> bytes:
    return n.to_bytes(4, "big")


def _part(p: KeyPart) -> bytes:
    if isinstance(p, bool):
        raise TypeError("bool is not a valid key part")
    if isinstance(p, int):
        if p < 0 or p > U256_MAX:
            raise ValueError("int key part out of u256 range")
        return p.to_bytes(32, "big")
    if isinstance(p, str):
        return p.encode("utf-8")
    if isinstance(p, (bytes, bytearray)):
        return bytes(p)
    raise TypeError(f"unsupported key part {type(p).__name__}")


def key(prefix: bytes, *parts: KeyPart) -> bytes:
    """Prefix + 4-byte length for each part to avoid accidental collisions."""
    out = prefix + b"".join(_be_u32(len(b)) + b for b in map(_part, parts))
    if len(out) > MAX_KEY_BYTES:
        raise ValueError(f"storage key too long ({len(out)} bytes)")
    return out


class Storage:
    """Typed accessor over one contract's slot map."""

    __slots__ = ("_slots",)

    def __init__(self, slots: Dict[bytes, bytes]) -> None:
        self._slots = slots

    # ---- raw ----

    def get(self, k: bytes) -> Optional[bytes]:
        return self._slots.get(k)

    def set(self, k: bytes, value: bytes) -> None:
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError("storage values must be bytes")
        if len(value) > MAX_VALUE_BYTES:
            raise ValueError("storage value too large")
        self._slots[k] = bytes(value)

    def delete(self, k: bytes) -> None:
        self._slots.pop(k, None)

    def exists(self, k: bytes) -> bool:
        return k in self._slots

    # ---- typed ----

    def get_int(self, k: bytes, default: int = 0) -> int:
        v = self._slots.get(k)
        return int.from_bytes(v, "big") if v else default

    def set_int(self, k: bytes, n: int) -> None:
        if isinstance(n, bool) or not isinstance(n, int) or n < 0 or n > U256_MAX:
            raise ValueError(f"value {n!r} is not a u256")
        self._slots[k] = n.to_bytes(32, "big")

    def add_int(self, k: bytes, delta: int) -> int:
        n = self.get_int(k) + delta
        self.set_int(k, n)
        return n

    def get_bool(self, k: bytes) -> bool:
        return self._slots.get(k) == b"\x01"

    def set_bool(self, k: bytes, flag: bool) -> None:
        if flag:
            self._slots[k] = b"\x01"
        else:
            self._slots.pop(k, None)

    def get_address(self, k: bytes) -> Optional[bytes]:
        return self._slots.get(k)

    def set_address(self, k: bytes, addr: Optional[bytes]) -> None:
        if addr is None:
            self._slots.pop(k, None)
        else:
            self.set(k, addr)

    def get_str(self, k: bytes) -> str:
        v = self._slots.get(k)
        return v.decode("utf-8") if v else ""

    def set_str(self, k: bytes, s: str) -> None:
        self.set(k, s.encode("utf-8"))

    def __len__(self) -> int:
        return len(self._slots)


__all__ = ["Storage", "key", "KeyPart", "MAX_KEY_BYTES", "MAX_VALUE_BYTES"]
