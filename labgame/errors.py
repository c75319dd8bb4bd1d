"""
LabGame errors.

Every failure a contract can signal is a subclass of :class:`LabGameError`.
The host (`labgame.vm.chain.Chain`) treats any ``LabGameError`` raised while a
transaction executes as a revert: the transaction's storage writes, native
value movements and events are rolled back before the error propagates to the
caller.

The hierarchy mirrors the four families the contracts distinguish:

- :class:`ValidationError`  bad input (count out of range, malformed burn set)
- :class:`CapabilityError`  caller lacks the needed capability
- :class:`StateError`       protocol violation for the current state
- :class:`PaymentError`     attached native value too small

Each error carries a stable machine-readable ``code`` plus a ``context`` dict
with the offending account / values, and serializes via :meth:`to_dict`.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


def _jsonable(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    if isinstance(v, (list, tuple)):
        return [_jsonable(x) for x in v]
    return v


class LabGameError(Exception):
    """Base class for all contract-level reverts."""

    code: str = "labgame_error"

    def __init__(
        self,
        message: str = "",
        *,
        context: Optional[Mapping[str, Any]] = None,
        code: Optional[str] = None,
    ) -> None:
        if code is not None:
            self.code = code
        self.message = message or self.code
        self.context: Dict[str, Any] = dict(context or {})
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": {k: _jsonable(v) for k, v in self.context.items()},
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class HostError(Exception):
    """Misuse of the local host itself (unknown contract, private method...).

    Not a revert: it signals a bug in the calling code, not a contract rule.
    """


# ---- families ----------------------------------------------------------------


class ValidationError(LabGameError):
    code = "validation_error"


class CapabilityError(LabGameError):
    code = "capability_error"


class StateError(LabGameError):
    code = "state_error"


class PaymentError(LabGameError):
    code = "payment_error"


# ---- validation --------------------------------------------------------------


class InvalidCount(ValidationError):
    code = "invalid_count"

    def __init__(self, count: int, limit: int) -> None:
        super().__init__(
            f"count {count} outside [1, {limit}]",
            context={"count": count, "limit": limit},
        )


class ZeroAddress(ValidationError):
    code = "zero_address"

    def __init__(self, what: str = "address") -> None:
        super().__init__(f"{what} must not be the zero address", context={"what": what})


class InvalidBurnSet(ValidationError):
    """Burn ids do not match the request (wrong length, duplicates, wrong generation)."""

    code = "invalid_burn_set"

    def __init__(self, reason: str, **context: Any) -> None:
        super().__init__(f"invalid burn set: {reason}", context={"reason": reason, **context})


class InvalidParameter(ValidationError):
    code = "invalid_parameter"

    def __init__(self, name: str, value: Any) -> None:
        super().__init__(f"invalid {name}: {value!r}", context={"name": name, "value": value})


# ---- capability --------------------------------------------------------------


class Unauthorized(CapabilityError):
    code = "unauthorized"

    def __init__(self, account: bytes, message: str = "Not authorized") -> None:
        super().__init__(message, context={"account": account})


class NotOwner(Unauthorized):
    code = "not_owner"

    def __init__(self, account: bytes) -> None:
        super().__init__(account, "caller is not the owner")


class MissingRole(Unauthorized):
    code = "missing_role"

    def __init__(self, account: bytes, role: bytes) -> None:
        super().__init__(account, "caller is missing role 0x" + role.hex())
        self.context["role"] = role


class OnlyCoordinator(Unauthorized):
    code = "only_coordinator"

    def __init__(self, account: bytes, coordinator: bytes) -> None:
        super().__init__(account, "only the VRF coordinator can fulfill")
        self.context["coordinator"] = coordinator


class NotWhitelisted(CapabilityError):
    code = "not_whitelisted"

    def __init__(self, account: bytes) -> None:
        super().__init__("account is not whitelisted", context={"account": account})


# ---- state -------------------------------------------------------------------


class Paused(StateError):
    code = "paused"

    def __init__(self) -> None:
        super().__init__("contract is paused")


class NotPaused(StateError):
    code = "not_paused"

    def __init__(self) -> None:
        super().__init__("contract is not paused")


class AlreadyInitialized(StateError):
    code = "already_initialized"

    def __init__(self) -> None:
        super().__init__("contract is already initialized")


class PendingMintExists(StateError):
    code = "pending_mint_exists"

    def __init__(self, account: bytes) -> None:
        super().__init__("account already has a pending mint", context={"account": account})


class NoPendingMint(StateError):
    code = "no_pending_mint"

    def __init__(self, account: bytes) -> None:
        super().__init__("account has no pending mint", context={"account": account})


class RevealNotReady(StateError):
    code = "reveal_not_ready"

    def __init__(self, account: bytes, request_id: int) -> None:
        super().__init__(
            "Reveal not ready",
            context={"account": account, "request_id": request_id},
        )


class UnknownRequest(StateError):
    code = "unknown_request"

    def __init__(self, request_id: int) -> None:
        super().__init__(f"unknown randomness request {request_id}", context={"request_id": request_id})


class AlreadyFulfilled(StateError):
    code = "already_fulfilled"

    def __init__(self, request_id: int) -> None:
        super().__init__(
            f"randomness request {request_id} already fulfilled",
            context={"request_id": request_id},
        )


class SupplyExceeded(StateError):
    code = "supply_exceeded"

    def __init__(self, minted: int, count: int, max_supply: int) -> None:
        super().__init__(
            f"minting {count} more would exceed max supply {max_supply}",
            context={"minted": minted, "count": count, "max_supply": max_supply},
        )


class GenerationLimit(StateError):
    code = "generation_limit"

    def __init__(self, generation: int, minted: int, count: int, cap: int) -> None:
        super().__init__(
            f"request crosses the generation {generation} cap {cap}",
            context={"generation": generation, "minted": minted, "count": count, "cap": cap},
        )


class BurnNotOwned(StateError):
    code = "burn_not_owned"

    def __init__(self, account: bytes, token_id: int) -> None:
        super().__init__(
            f"token {token_id} is not owned by caller",
            context={"account": account, "token_id": token_id},
        )


class BurnExceedsBalance(StateError):
    code = "burn_exceeds_balance"

    def __init__(self, account: bytes, amount: int, balance: int) -> None:
        super().__init__(
            "burn amount exceeds balance",
            context={"account": account, "amount": amount, "balance": balance},
        )


class TransferExceedsBalance(StateError):
    code = "transfer_exceeds_balance"

    def __init__(self, account: bytes, amount: int, balance: int) -> None:
        super().__init__(
            "transfer amount exceeds balance",
            context={"account": account, "amount": amount, "balance": balance},
        )


class InsufficientAllowance(StateError):
    code = "insufficient_allowance"

    def __init__(self, owner: bytes, spender: bytes, amount: int, allowance: int) -> None:
        super().__init__(
            "insufficient allowance",
            context={"owner": owner, "spender": spender, "amount": amount, "allowance": allowance},
        )


class NoOwnedTokens(StateError):
    code = "no_owned_tokens"

    def __init__(self, account: bytes) -> None:
        super().__init__("account owns no qualifying tokens", context={"account": account})


NoClaimAvailable = NoOwnedTokens


class NothingToClaim(StateError):
    code = "nothing_to_claim"

    def __init__(self, account: bytes) -> None:
        super().__init__("Nothing to claim", context={"account": account})


class WhitelistAlreadyEnabled(StateError):
    code = "whitelist_already_enabled"

    def __init__(self) -> None:
        super().__init__("Whitelist already enabled")


class WhitelistNotEnabled(StateError):
    code = "whitelist_not_enabled"

    def __init__(self) -> None:
        super().__init__("Whitelist not enabled")


class WhitelistEnabled(StateError):
    """Public mint attempted while only whitelist minting is open."""

    code = "whitelist_enabled"

    def __init__(self) -> None:
        super().__init__("Whitelist enabled")


class NonexistentToken(StateError):
    code = "nonexistent_token"

    def __init__(self, token_id: int) -> None:
        super().__init__(f"token {token_id} does not exist", context={"token_id": token_id})


class NotTokenOwner(StateError):
    code = "not_token_owner"

    def __init__(self, account: bytes, token_id: int) -> None:
        super().__init__(
            "caller is not token owner or approved",
            context={"account": account, "token_id": token_id},
        )


class RescueNotAvailable(StateError):
    code = "rescue_not_available"

    def __init__(self, account: bytes, reason: str) -> None:
        super().__init__(f"pending mint cannot be rescued: {reason}", context={"account": account})


# ---- payment -----------------------------------------------------------------


class InsufficientPayment(PaymentError):
    code = "insufficient_payment"

    def __init__(self, required: int, paid: int) -> None:
        super().__init__(
            f"payment {paid} below required {required}",
            context={"required": required, "paid": paid},
        )


__all__ = [
    "LabGameError",
    "HostError",
    "ValidationError",
    "CapabilityError",
    "StateError",
    "PaymentError",
    "InvalidCount",
    "ZeroAddress",
    "InvalidBurnSet",
    "InvalidParameter",
    "Unauthorized",
    "NotOwner",
    "MissingRole",
    "OnlyCoordinator",
    "NotWhitelisted",
    "Paused",
    "NotPaused",
    "AlreadyInitialized",
    "PendingMintExists",
    "NoPendingMint",
    "RevealNotReady",
    "UnknownRequest",
    "AlreadyFulfilled",
    "SupplyExceeded",
    "GenerationLimit",
    "BurnNotOwned",
    "BurnExceedsBalance",
    "TransferExceedsBalance",
    "InsufficientAllowance",
    "NoOwnedTokens",
    "NoClaimAvailable",
    "NothingToClaim",
    "WhitelistAlreadyEnabled",
    "WhitelistNotEnabled",
    "WhitelistEnabled",
    "NonexistentToken",
    "NotTokenOwner",
    "RescueNotAvailable",
    "InsufficientPayment",
]
