"""
Cycle detection service for RingScan.

Finds closed chains of transactions where every hop happens later than the
previous one and moves a slightly smaller amount, keeping at least
``1 - max_fee_ratio`` of it. The search is a depth-first walk from every
account that can sit on a cycle; candidates are pruned by date, then by
amount, before the branch is extended, so the number of live branches shrinks
quickly with depth.
"""

import enum
import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import FrozenSet, Iterator, List, Optional, Sequence, Tuple

from ringscan.core.exceptions import ScanParameterError
from ringscan.services.graph_store import GraphStore, Transaction
from ringscan.services.path_state import PathState
from ringscan.services.result_collector import Cycle, ResultCollector

logger = logging.getLogger(__name__)

DEFAULT_MIN_HOPS = 2
DEFAULT_MAX_FEE_RATIO = 0.2
DEFAULT_CHUNK_SIZE = 256


class ScanStatus(str, enum.Enum):
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    BUDGET_EXHAUSTED = "budget_exhausted"


@dataclass(frozen=True)
class ScanResult:
    """Outcome of one scan. A cancelled or out-of-budget scan still carries what it found."""

    cycles: FrozenSet[Cycle]
    status: ScanStatus
    start_nodes_total: int
    start_nodes_scanned: int
    depth_limited: bool
    elapsed_seconds: float
    min_hops: int = DEFAULT_MIN_HOPS
    max_fee_ratio: float = DEFAULT_MAX_FEE_RATIO

    @property
    def cancelled(self) -> bool:
        return self.status == ScanStatus.CANCELLED

    @property
    def partial(self) -> bool:
        return self.status != ScanStatus.COMPLETE

    def sorted_cycles(self) -> List[Cycle]:
        """Cycles ordered by canonical start account, then content key."""
        return sorted(self.cycles, key=lambda c: (c.canonical_start, c.key))


class CycleSearcher:
    """Depth-first constrained cycle search over a GraphStore snapshot."""

    def __init__(
        self,
        store: GraphStore,
        min_hops: int = DEFAULT_MIN_HOPS,
        max_fee_ratio: float = DEFAULT_MAX_FEE_RATIO,
        max_depth: Optional[int] = None,
        workers: Optional[int] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if min_hops < 2:
            raise ScanParameterError("min_hops", min_hops, "an integer >= 2")
        if not 0.0 < max_fee_ratio < 1.0:
            raise ScanParameterError("max_fee_ratio", max_fee_ratio, "a ratio in (0, 1)")
        if max_depth is not None and max_depth < 2:
            raise ScanParameterError("max_depth", max_depth, "an integer >= 2")
        if workers is not None and workers < 1:
            raise ScanParameterError("workers", workers, "a positive integer")
        if chunk_size < 1:
            raise ScanParameterError("chunk_size", chunk_size, "a positive integer")

        self.store = store
        self.min_hops = min_hops
        self.max_fee_ratio = max_fee_ratio
        self.max_depth = max_depth if max_depth is not None else max(len(store), 2)
        self.workers = workers or (os.cpu_count() or 1)
        self.chunk_size = chunk_size

    def start_nodes(self) -> List[str]:
        """Accounts that belong to some cyclic component, sorted."""
        return sorted(
            account_id
            for component in self.store.cyclic_components()
            for account_id in component
        )

    def scan(
        self,
        cancel_event: Optional[threading.Event] = None,
        time_budget: Optional[float] = None,
    ) -> ScanResult:
        """Run the search from every start node and return the distinct cycles."""
        started = time.monotonic()
        deadline = started + time_budget if time_budget else None
        collector = ResultCollector()
        nodes = self.start_nodes()
        chunks = [nodes[i:i + self.chunk_size] for i in range(0, len(nodes), self.chunk_size)]

        logger.info(
            "Starting scan: %d start nodes in %d chunks, min_hops=%d, max_fee_ratio=%s, max_depth=%d, workers=%d",
            len(nodes),
            len(chunks),
            self.min_hops,
            self.max_fee_ratio,
            self.max_depth,
            self.workers,
        )

        if self.workers == 1 or len(chunks) <= 1:
            outcomes = [self._search_chunk(chunk, collector, cancel_event, deadline) for chunk in chunks]
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                futures = [
                    executor.submit(self._search_chunk, chunk, collector, cancel_event, deadline)
                    for chunk in chunks
                ]
                outcomes = [future.result() for future in futures]

        scanned = sum(count for count, _ in outcomes)
        depth_limited = any(limited for _, limited in outcomes)

        if cancel_event is not None and cancel_event.is_set() and scanned < len(nodes):
            status = ScanStatus.CANCELLED
        elif scanned < len(nodes):
            status = ScanStatus.BUDGET_EXHAUSTED
        else:
            status = ScanStatus.COMPLETE

        result = ScanResult(
            cycles=collector.results(),
            status=status,
            start_nodes_total=len(nodes),
            start_nodes_scanned=scanned,
            depth_limited=depth_limited,
            elapsed_seconds=time.monotonic() - started,
            min_hops=self.min_hops,
            max_fee_ratio=self.max_fee_ratio,
        )
        logger.info(
            "Scan %s: %d cycles from %d/%d start nodes in %.3fs",
            status.value,
            len(result.cycles),
            scanned,
            len(nodes),
            result.elapsed_seconds,
        )
        if depth_limited:
            logger.warning("Some branches were cut at max_depth=%d", self.max_depth)
        return result

    def _search_chunk(
        self,
        chunk: Sequence[str],
        collector: ResultCollector,
        cancel_event: Optional[threading.Event],
        deadline: Optional[float],
    ) -> Tuple[int, bool]:
        path = PathState(chunk[0], self.max_fee_ratio)
        scanned = 0
        depth_limited = False
        for start in chunk:
            if cancel_event is not None and cancel_event.is_set():
                break
            if deadline is not None and time.monotonic() >= deadline:
                break
            path.reset(start)
            depth_limited |= self._search_from(path, collector)
            scanned += 1
        return scanned, depth_limited

    def _candidates(self, path: PathState, component: Optional[int]) -> Iterator[Transaction]:
        for tx in self.store.outgoing(path.current, after_date=path.last_date):
            if self.store.component_of(tx.to_id) != component:
                continue
            if path.can_extend(tx):
                yield tx

    def _search_from(self, path: PathState, collector: ResultCollector) -> bool:
        """Explore every constrained path leaving ``path.start``. Returns True if the depth bound cut a branch."""
        start = path.start
        component = self.store.component_of(start)
        depth_limited = False
        frames = [self._candidates(path, component)]

        while frames:
            tx = next(frames[-1], None)
            if tx is None:
                frames.pop()
                if path.depth:
                    path.pop()
                continue

            hops = path.depth + 1
            if tx.to_id == start:
                if hops >= self.min_hops:
                    collector.offer(path.closed_with(tx))
                continue

            if hops >= self.max_depth:
                depth_limited = True
                continue

            path.push(tx)
            frames.append(self._candidates(path, component))

        return depth_limited


def detect_cycles(
    store: GraphStore,
    min_hops: int = DEFAULT_MIN_HOPS,
    max_fee_ratio: float = DEFAULT_MAX_FEE_RATIO,
    max_depth: Optional[int] = None,
    workers: Optional[int] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    cancel_event: Optional[threading.Event] = None,
    time_budget: Optional[float] = None,
) -> ScanResult:
    """Find every mule ring in the store."""
    searcher = CycleSearcher(
        store,
        min_hops=min_hops,
        max_fee_ratio=max_fee_ratio,
        max_depth=max_depth,
        workers=workers,
        chunk_size=chunk_size,
    )
    return searcher.scan(cancel_event=cancel_event, time_budget=time_budget)

