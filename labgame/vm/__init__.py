"""
labgame.vm — local deterministic host (block env, storage, events, chain).
"""

from .chain import Chain, Receipt
from .context import BlockEnv, Msg
from .contract import Bound, Contract
from .events import Event, EventLog
from .storage import Storage, key

__all__ = [
    "Chain",
    "Receipt",
    "BlockEnv",
    "Msg",
    "Contract",
    "Bound",
    "Event",
    "EventLog",
    "Storage",
    "key",
]
