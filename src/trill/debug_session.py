"""
Debug session: the container that owns the replay engines.

A session replays one transaction, or two side by side ("versus" mode).
Engines never share state; the session only fans stepping parameters out to
each of them.
"""

from functools import partial
from typing import Callable, List, Optional, Sequence

from .replay_engine import ReplayEngine, ViewState
from .transaction_tracer import TransactionTrace, TransactionTracer, load_trace_file

MAX_TRANSACTIONS = 2


class DebugSession:
    """
    Owns one or two independent replay engines and advances them in lockstep.
    """

    def __init__(self, fetchers: Sequence[Callable[[], TransactionTrace]]):
        if not 1 <= len(fetchers) <= MAX_TRANSACTIONS:
            raise ValueError(
                f"A session replays 1 to {MAX_TRANSACTIONS} transactions, got {len(fetchers)}"
            )
        self.engines: List[ReplayEngine] = [ReplayEngine(fetch) for fetch in fetchers]

    @classmethod
    def from_rpc(cls, tx_hashes: Sequence[str], tracer: TransactionTracer) -> "DebugSession":
        """Session whose traces are fetched over RPC on the first advance."""
        return cls([partial(tracer.trace_transaction, tx_hash) for tx_hash in tx_hashes])

    @classmethod
    def from_trace_files(cls, paths: Sequence[str],
                         tx_hashes: Optional[Sequence[str]] = None) -> "DebugSession":
        """Session replaying saved debug_traceTransaction results."""
        if tx_hashes and len(tx_hashes) != len(paths):
            raise ValueError("Give one --trace-file per transaction hash")
        hashes = list(tx_hashes) if tx_hashes else [None] * len(paths)
        return cls([partial(load_trace_file, path, tx_hash)
                    for path, tx_hash in zip(paths, hashes)])

    @property
    def versus(self) -> bool:
        return len(self.engines) > 1

    @property
    def initialized(self) -> bool:
        return all(engine.initialized for engine in self.engines)

    @property
    def finished(self) -> bool:
        return all(view.finished for view in self.views())

    def advance(self, iteration_count: int = 1, forward: bool = True,
                paused: bool = False) -> List[ViewState]:
        """Advance every engine with the same parameters, returning their views in order."""
        return [engine.advance(iteration_count, forward, paused) for engine in self.engines]

    def views(self) -> List[ViewState]:
        """Current views without stepping. Initializes the engines if needed."""
        return self.advance(paused=True)
