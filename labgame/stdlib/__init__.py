"""
labgame.stdlib — reusable building blocks for game contracts.

Capabilities are components built over a contract's storage and checked with
an explicit caller (``Ownable``, ``Roles``, ``Pausable``, ``MerkleWhitelist``,
``AllowList``, ``VRFConsumer``, ``Initializable``). Token standards are base
classes (``FungibleToken``, ``NonFungibleToken``).
"""

from .access import CONTROLLER_ROLE, DEFAULT_ADMIN_ROLE, Ownable, Roles, derive_role_id
from .fungible import FungibleToken
from .merkle import AllowlistTree, build_proof, leaf_for, merkle_root, verify_proof
from .nonfungible import NonFungibleToken
from .pausable import Pausable
from .upgrade import Initializable, deploy_proxy, implementation_id, upgrade_proxy
from .vrf import VRFConsumer
from .whitelist import AllowList, MerkleWhitelist

__all__ = [
    "CONTROLLER_ROLE",
    "DEFAULT_ADMIN_ROLE",
    "derive_role_id",
    "Ownable",
    "Roles",
    "Pausable",
    "FungibleToken",
    "NonFungibleToken",
    "AllowlistTree",
    "leaf_for",
    "merkle_root",
    "build_proof",
    "verify_proof",
    "MerkleWhitelist",
    "AllowList",
    "VRFConsumer",
    "Initializable",
    "implementation_id",
    "deploy_proxy",
    "upgrade_proxy",
]
