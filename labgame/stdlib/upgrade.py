# -*- coding: utf-8 -*-
"""
labgame.stdlib.upgrade
======================

Initializer/implementation separation for contracts deployed behind a proxy.

A proxy here is simply a stable address whose storage survives a change of
implementation class. This module provides:

- :class:`Initializable`: a one-shot guard for ``initialize``.
- :func:`implementation_id`: a stable 32-byte id of an implementation class,
  ``keccak256("module:QualName")``.
- :func:`deploy_proxy` / :func:`upgrade_proxy`: deploy a contract while
  recording the proxy admin and implementation id in reserved slots, and later
  swap its implementation (admin only) in one atomic transaction.

Events
------
- ``PROXY:Initialized`` {"implementation"}
- ``PROXY:Upgraded``    {"previous", "implementation"}

Storage layout is append-only across upgrades: a new implementation must keep
reading the keys the old one wrote. Only the reserved ``proxy:*`` slots are
owned by this module.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Type, TypeVar

from ..errors import AlreadyInitialized, NotOwner
from ..hashing import keccak256, to_hex

if TYPE_CHECKING:  # pragma: no cover
    from ..vm.chain import Chain
    from ..vm.contract import Contract

logger = logging.getLogger(__name__)

C = TypeVar("C", bound="Contract")

K_INITIALIZED: bytes = b"init:done"
K_PROXY_ADMIN: bytes = b"proxy:admin"
K_PROXY_IMPL: bytes = b"proxy:impl"


def implementation_id(cls: type) -> bytes:
    return keccak256(f"{cls.__module__}:{cls.__qualname__}".encode("utf-8"))


class Initializable:
    def __init__(self, contract: "Contract") -> None:
        self._s = contract.storage

    def initialized(self) -> bool:
        return self._s.get_bool(K_INITIALIZED)

    def initializer(self) -> None:
        if self.initialized():
            raise AlreadyInitialized()
        self._s.set_bool(K_INITIALIZED, True)


def proxy_admin(contract: "Contract") -> bytes:
    return contract.storage.get_address(K_PROXY_ADMIN) or b""


def current_implementation(contract: "Contract") -> bytes:
    return contract.storage.get(K_PROXY_IMPL) or b""


def deploy_proxy(chain: "Chain", cls: Type[C], admin: bytes, *init_args: Any) -> C:
    """Deploy ``cls`` and mark its address as a proxy administered by ``admin``."""
    contract = chain.deploy(cls, admin, *init_args)

    def _record() -> None:
        impl = implementation_id(cls)
        contract.storage.set_address(K_PROXY_ADMIN, admin)
        contract.storage.set(K_PROXY_IMPL, impl)
        contract.emit(b"PROXY:Initialized", implementation=impl)

    chain.execute(admin, "proxy:init", _record)
    return contract


def upgrade_proxy(chain: "Chain", address: bytes, new_cls: Type[C], caller: bytes) -> C:
    """Swap the implementation at ``address``; storage is preserved."""

    def _upgrade() -> C:
        old = chain.contract_at(address)
        if proxy_admin(old) != caller:
            raise NotOwner(caller)
        previous = current_implementation(old)
        new = chain.replace_code(address, new_cls)
        impl = implementation_id(new_cls)
        new.storage.set(K_PROXY_IMPL, impl)
        new.emit(b"PROXY:Upgraded", previous=previous, implementation=impl)
        return new

    receipt = chain.execute(caller, "proxy:upgrade", _upgrade)
    logger.info("upgraded %s to %s", to_hex(address), new_cls.__qualname__)
    return receipt.value


__all__ = [
    "Initializable",
    "implementation_id",
    "proxy_admin",
    "current_implementation",
    "deploy_proxy",
    "upgrade_proxy",
]
