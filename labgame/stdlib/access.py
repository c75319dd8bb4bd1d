# -*- coding: utf-8 -*-
"""
labgame.stdlib.access
=====================

Ownership and an explicit **role table** for LabGame contracts.

Both helpers are components: a contract builds them over its own storage in
``__init__`` and checks capabilities at the top of each privileged method,
passing the caller explicitly::

    self.ownable = Ownable(self)
    self.roles = Roles(self, self.ownable)

    def mint(self, to, amount):
        self.roles.require_role(CONTROLLER_ROLE, self.msg.sender)
        ...

Roles
-----
- Role ids are 32 bytes; :func:`derive_role_id` is ``keccak256(name)`` so ids
  match the usual ``keccak256("CONTROLLER_ROLE")`` convention.
- The owner administers every role. Holders of ``DEFAULT_ADMIN_ROLE`` do too.
- Granting an existing member or revoking a non-member is a no-op; events are
  emitted only on change.

Events
------
- **OwnershipTransferred** : {"previous_owner", "new_owner"}
- **RoleGranted**          : {"role", "account", "sender"}
- **RoleRevoked**          : {"role", "account", "sender"}

Storage layout
--------------
- Owner:        b"access:owner"                         → address
- Member flag:  key(b"access:role:member:", role, acct) → b"\\x01"
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ..errors import InvalidParameter, MissingRole, NotOwner, ZeroAddress
from ..hashing import ZERO_ADDRESS, keccak256, to_hex
from ..vm.storage import key

if TYPE_CHECKING:  # pragma: no cover
    from ..vm.contract import Contract

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_ADMIN_ROLE",
    "CONTROLLER_ROLE",
    "derive_role_id",
    "normalize_role",
    "Ownable",
    "Roles",
]

# ---- Constants & prefixes ----------------------------------------------------

K_OWNER: bytes = b"access:owner"
ROLE_MEMBER_PREFIX: bytes = b"access:role:member:"

DEFAULT_ADMIN_ROLE: bytes = b"\x00" * 32


def derive_role_id(name: bytes) -> bytes:
    return keccak256(name)


def normalize_role(role: bytes) -> bytes:
    if not isinstance(role, (bytes, bytearray)) or len(role) != 32:
        raise InvalidParameter("role", role)
    return bytes(role)


CONTROLLER_ROLE: bytes = derive_role_id(b"CONTROLLER_ROLE")


# ---- Ownable -----------------------------------------------------------------


class Ownable:
    def __init__(self, contract: "Contract") -> None:
        self._c = contract
        self._s = contract.storage

    def owner(self) -> Optional[bytes]:
        return self._s.get_address(K_OWNER)

    def init(self, owner: bytes) -> None:
        self._set(owner)

    def is_owner(self, account: bytes) -> bool:
        owner = self.owner()
        return owner is not None and owner == account

    def require_owner(self, caller: bytes) -> None:
        if not self.is_owner(caller):
            raise NotOwner(caller)

    def transfer_ownership(self, caller: bytes, new_owner: bytes) -> None:
        self.require_owner(caller)
        if new_owner == ZERO_ADDRESS:
            raise ZeroAddress("new_owner")
        self._set(new_owner)

    def renounce_ownership(self, caller: bytes) -> None:
        self.require_owner(caller)
        self._set(None)

    def _set(self, new_owner: Optional[bytes]) -> None:
        previous = self.owner() or ZERO_ADDRESS
        self._s.set_address(K_OWNER, new_owner)
        self._c.emit(
            b"OwnershipTransferred",
            previous_owner=previous,
            new_owner=new_owner or ZERO_ADDRESS,
        )


# ---- Roles -------------------------------------------------------------------


class Roles:
    def __init__(self, contract: "Contract", ownable: Optional[Ownable] = None) -> None:
        self._c = contract
        self._s = contract.storage
        self._ownable = ownable

    def _k(self, role: bytes, account: bytes) -> bytes:
        return key(ROLE_MEMBER_PREFIX, normalize_role(role), account)

    def has_role(self, role: bytes, account: bytes) -> bool:
        return self._s.get_bool(self._k(role, account))

    def require_role(self, role: bytes, caller: bytes) -> None:
        if not self.has_role(role, caller):
            raise MissingRole(caller, role)

    def is_admin(self, caller: bytes) -> bool:
        if self._ownable is not None and self._ownable.is_owner(caller):
            return True
        return self.has_role(DEFAULT_ADMIN_ROLE, caller)

    def _require_admin(self, caller: bytes) -> None:
        if not self.is_admin(caller):
            raise NotOwner(caller)

    def grant_role(self, caller: bytes, role: bytes, account: bytes) -> bool:
        self._require_admin(caller)
        if account == ZERO_ADDRESS:
            raise ZeroAddress("account")
        k = self._k(role, account)
        if self._s.get_bool(k):
            return False
        self._s.set_bool(k, True)
        self._c.emit(b"RoleGranted", role=role, account=account, sender=caller)
        logger.debug("role 0x%s granted to %s", role.hex()[:8], to_hex(account))
        return True

    def revoke_role(self, caller: bytes, role: bytes, account: bytes) -> bool:
        self._require_admin(caller)
        return self._revoke(caller, role, account)

    def renounce_role(self, caller: bytes, role: bytes) -> bool:
        return self._revoke(caller, role, caller)

    def _revoke(self, caller: bytes, role: bytes, account: bytes) -> bool:
        k = self._k(role, account)
        if not self._s.get_bool(k):
            return False
        self._s.set_bool(k, False)
        self._c.emit(b"RoleRevoked", role=role, account=account, sender=caller)
        return True
