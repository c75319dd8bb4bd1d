"""
labgame.vm.events — validated, ordered event log for the local chain.

Events are emitted by contracts through ``Contract.emit(name, **args)`` and
collected chain-wide in emission order. A reverted transaction truncates the
log back to where it started.

Validation mirrors what an on-chain receipt can carry:
- name: non-empty bytes (<= 64)
- arg keys: identifier-like strings
- arg values: bytes (<= 4096), bool, int (<= 256 bits) or str
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from ..errors import HostError
from ..hashing import to_hex

MAX_EVENT_NAME_BYTES = 64
MAX_KEY_LEN = 64
MAX_BYTES_LEN = 4096
MAX_INT_BITS = 256

_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class Event:
    """One emitted event, tagged with the emitting contract's address."""

    address: bytes
    name: bytes
    args: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, k: str) -> Any:
        return self.args[k]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": to_hex(self.address),
            "name": self.name.decode("ascii", "replace"),
            "args": {k: to_hex(v) if isinstance(v, bytes) else v for k, v in self.args.items()},
        }


def _check_name(name: Any) -> bytes:
    if not isinstance(name, (bytes, bytearray)) or not name:
        raise HostError("event name must be non-empty bytes")
    if len(name) > MAX_EVENT_NAME_BYTES:
        raise HostError(f"event name too long ({len(name)} bytes)")
    return bytes(name)


def _check_key(k: Any) -> str:
    if not isinstance(k, str) or not k or len(k) > MAX_KEY_LEN or not _KEY_RE.match(k):
        raise HostError(f"invalid event key {k!r}")
    return k


def _check_value(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        if len(v) > MAX_BYTES_LEN:
            raise HostError("event bytes arg too long")
        return bytes(v)
    # bool is a subclass of int, so check it before int.
    if isinstance(v, bool):
        return v
    if isinstance(v, int):
        if v.bit_length() > MAX_INT_BITS:
            raise HostError("event int arg out of range")
        return v
    if isinstance(v, str):
        return v
    raise HostError(f"unsupported event arg type {type(v).__name__}")


class EventLog:
    def __init__(self) -> None:
        self._events: List[Event] = []

    def emit(self, address: bytes, name: bytes, args: Mapping[str, Any]) -> Event:
        ev = Event(
            address=address,
            name=_check_name(name),
            args={_check_key(k): _check_value(v) for k, v in args.items()},
        )
        self._events.append(ev)
        return ev

    def mark(self) -> int:
        return len(self._events)

    def truncate(self, mark: int) -> None:
        del self._events[mark:]

    def since(self, mark: int) -> Tuple[Event, ...]:
        return tuple(self._events[mark:])

    def filter(
        self,
        *,
        address: Optional[bytes] = None,
        name: Optional[bytes] = None,
    ) -> List[Event]:
        return [
            e
            for e in self._events
            if (address is None or e.address == address) and (name is None or e.name == name)
        ]

    def __iter__(self) -> Iterator[Event]:
        return iter(tuple(self._events))

    def __len__(self) -> int:
        return len(self._events)


__all__ = ["Event", "EventLog"]
