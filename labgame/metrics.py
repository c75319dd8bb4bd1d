"""
Prometheus metrics for the local LabGame host.

Instruments:
  • transactions_total  : transactions executed, by method and outcome
  • transaction_seconds : wall time spent executing a transaction
  • mint_requests_total : pending mints opened, by collection
  • reveals_total       : tokens revealed, by collection
  • claims_total        : successful reward claims, by ledger

Label cardinality stays low: ``outcome`` is ``ok`` or the revert family
(``validation``, ``capability``, ``state``, ``payment``), and collection /
ledger labels are contract symbols.

Usage
-----
    from labgame.metrics import METRICS

    METRICS.record_tx("mint", "ok")
    with METRICS.tx_timer():
        ...

Tests and embedded hosts that need isolation construct their own
``Metrics(registry=CollectorRegistry())``.
"""

from __future__ import annotations

from contextlib import contextmanager
from time import perf_counter
from typing import Iterable, Iterator

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

_TX_OUTCOMES = (
    "ok",
    "validation",
    "capability",
    "state",
    "payment",
    "error",
)

_TX_SECONDS_BUCKETS = (
    0.0001, 0.00025, 0.0005,
    0.001, 0.0025, 0.005,
    0.01, 0.025, 0.05,
    0.1, 0.5, 1.0,
)


class Metrics:
    """
    Container for the host's Prometheus instruments.

    Args:
        namespace: metric namespace (prefix).
        subsystem: metric subsystem.
        registry:  registry the instruments are registered with.
    """

    def __init__(
        self,
        *,
        namespace: str = "labgame",
        subsystem: str = "host",
        registry: CollectorRegistry = REGISTRY,
        tx_buckets: Iterable[float] = _TX_SECONDS_BUCKETS,
    ) -> None:
        self.transactions_total = Counter(
            "transactions_total",
            "Transactions executed, labeled by method and outcome.",
            labelnames=("method", "outcome"),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.mint_requests_total = Counter(
            "mint_requests_total",
            "Pending mints opened, labeled by collection.",
            labelnames=("collection",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.reveals_total = Counter(
            "reveals_total",
            "Tokens revealed, labeled by collection.",
            labelnames=("collection",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.claims_total = Counter(
            "claims_total",
            "Successful reward claims, labeled by ledger.",
            labelnames=("ledger",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.transaction_seconds = Histogram(
            "transaction_seconds",
            "Wall time spent executing a transaction (seconds).",
            buckets=tuple(tx_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    # ----- Recording helpers -------------------------------------------------

    def record_tx(self, method: str, outcome: str) -> None:
        if outcome not in _TX_OUTCOMES:
            outcome = "error"
        self.transactions_total.labels(method=method, outcome=outcome).inc()

    def record_mint_request(self, collection: str) -> None:
        self.mint_requests_total.labels(collection=collection).inc()

    def record_reveals(self, collection: str, count: int) -> None:
        self.reveals_total.labels(collection=collection).inc(count)

    def record_claim(self, ledger: str) -> None:
        self.claims_total.labels(ledger=ledger).inc()

    @contextmanager
    def tx_timer(self) -> Iterator[None]:
        start = perf_counter()
        try:
            yield
        finally:
            self.transaction_seconds.observe(perf_counter() - start)


# Singleton used when a Chain is not given its own instance.
METRICS = Metrics()

__all__ = ["Metrics", "METRICS", "_TX_OUTCOMES"]
