"""
labgame.ledger — the two bookkeeping cores shared by the game contracts.

- :class:`RandomMintLedger`: commit/reveal mint requests against oracle
  randomness (one pending mint per account).
- :class:`TimeAccrualLedger`: per-token checkpoints and linear reward accrual.
"""

from .accrual import TimeAccrualLedger
from .mint import PendingMint, RandomMintLedger, RandomnessRequest

__all__ = ["RandomMintLedger", "PendingMint", "RandomnessRequest", "TimeAccrualLedger"]
