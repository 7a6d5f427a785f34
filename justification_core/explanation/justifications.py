"""
Justification Engine: regular justifications for batches of entailments.

Two modes:
1. Sequential: one oracle call per entailment, in a stable order
2. Parallel: divide-and-conquer. A batch larger than the leaf size is
   halved; one half is forked onto the pool, the other half is computed
   by the current thread, then the forked half is joined and merged.
   Leaves are computed sequentially.

Lookup misses (oracle finds nothing) are logged and recorded as an
empty set. Every other oracle exception propagates and aborts the
enclosing work unit.
"""

import threading
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, Iterable, List, Mapping, Optional, Set

import structlog

from ..config import EngineConfig
from ..errors import NoExplanationFound
from ..ontology.axioms import Axiom
from ..telemetry import setup_logging_from_config
from ..verification.oracle import (
    ExplanationOracle, Justification, LaconicJustification,
)
from ..verification.z3_oracle import Z3ExplanationOracle
from .isolation import ArtifactCounter, IsolatedRefinement
from .laconic import LaconicRefinementScheduler, ThreadedRefinement

logger = structlog.get_logger()

JustificationMap = Dict[Axiom, Set[Justification]]


def ordered(entailments: Iterable[Axiom]) -> List[Axiom]:
    """Deduplicated entailments in a deterministic order."""
    return sorted(set(entailments), key=str)


class JustificationEngine:
    """Computes justifications of entailments against a background KB.

    The background axioms and the oracle are shared read-only by every
    task of a batch. Logging is set up from `config` unless structlog
    was already configured by the caller.
    """

    def __init__(self, background: Iterable[Axiom],
                 oracle: Optional[ExplanationOracle] = None,
                 config: Optional[EngineConfig] = None,
                 counter: Optional[ArtifactCounter] = None):
        self.config = config or EngineConfig()
        if oracle is None:
            oracle = Z3ExplanationOracle(self.config.solver_timeout_ms)
        self.oracle = oracle
        self.background = frozenset(background)
        self.counter = counter or ArtifactCounter()
        self._stats: Counter = Counter()
        self._stats_lock = threading.Lock()
        self._scheduler = LaconicRefinementScheduler(
            light=ThreadedRefinement(self.oracle, self.config.laconic_limit),
            heavy=IsolatedRefinement(self.config, self.counter),
            heavy_threshold=self.config.heavy_threshold,
        )
        if not structlog.is_configured():
            setup_logging_from_config(self.config)

    # ── Regular justifications ─────────────────────────────────────

    def find_justifications(self, entailments: Iterable[Axiom],
                            limit: Optional[int] = None,
                            parallel: bool = True) -> JustificationMap:
        """Map every entailment to its set of justifications.

        The result has exactly one entry per distinct input entailment.
        """
        limit = self._check_limit(limit)
        batch = ordered(entailments)
        if not batch:
            return {}
        if not parallel:
            return self.compute_directly(batch, limit)

        with ThreadPoolExecutor(max_workers=self.config.max_workers,
                                thread_name_prefix="justify") as pool:
            return self._split(batch, limit, pool)

    def find_justifications_sequentially(
            self, entailments: Iterable[Axiom],
            limit: Optional[int] = None) -> JustificationMap:
        return self.find_justifications(entailments, limit, parallel=False)

    def find_justifications_for(self, entailment: Axiom,
                                limit: Optional[int] = None
                                ) -> Set[Justification]:
        """Justifications for a single entailment."""
        return self.lookup(entailment, self._check_limit(limit))

    def compute_directly(self, batch: List[Axiom],
                         limit: int) -> JustificationMap:
        """Leaf computation: one oracle call per entailment."""
        return {ent: self.lookup(ent, limit) for ent in batch}

    def lookup(self, entailment: Axiom, limit: int) -> Set[Justification]:
        self._count("lookups")
        reason = "empty result"
        try:
            found = self.oracle.explain(self.background, entailment, limit)
        except NoExplanationFound as e:
            found = set()
            reason = e.reason or reason

        justs = {frozenset(j) for j in found or ()}
        if not justs:
            self._count("lookup_misses")
            logger.warning("justification_lookup_miss",
                           entailment=str(entailment), reason=reason)
        return justs

    def _split(self, batch: List[Axiom], limit: int,
               pool: ThreadPoolExecutor) -> JustificationMap:
        if len(batch) <= self.config.leaf_size:
            return self.compute_directly(batch, limit)

        mid = len(batch) // 2
        first, second = batch[:mid], batch[mid:]
        self._count("forks")
        logger.debug("batch_split", size=len(batch),
                     forked=len(first), local=len(second))

        forked = pool.submit(self._split, first, limit, pool)
        result = self._split(second, limit, pool)
        result.update(self._join(forked, first, limit, pool))
        return result

    def _join(self, forked: Future, batch: List[Axiom], limit: int,
              pool: ThreadPoolExecutor) -> JustificationMap:
        # Not picked up by a pool thread yet: run it here instead of
        # blocking, so nested joins cannot starve the pool
        if forked.cancel():
            return self._split(batch, limit, pool)
        return forked.result()

    # ── Laconic justifications ─────────────────────────────────────

    @property
    def scheduler(self) -> LaconicRefinementScheduler:
        return self._scheduler

    def laconic_justifications(self, entailment: Axiom,
                               justifications: Iterable[Justification]
                               ) -> Set[LaconicJustification]:
        return self.scheduler.refine(entailment, justifications)

    def refine_all(self, justification_map: Mapping[Axiom, Iterable[Justification]]
                   ) -> Dict[Axiom, Set[LaconicJustification]]:
        """Laconic justifications for every entry of a justification map."""
        return {ent: self.laconic_justifications(ent, justs)
                for ent, justs in justification_map.items()}

    # ── Stats ──────────────────────────────────────────────────────

    def _check_limit(self, limit: Optional[int]) -> int:
        limit = self.config.justification_limit if limit is None else limit
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        return limit

    def _count(self, key: str, n: int = 1):
        with self._stats_lock:
            self._stats[key] += n

    def get_stats(self) -> Dict:
        with self._stats_lock:
            stats = {
                "lookups": self._stats["lookups"],
                "lookup_misses": self._stats["lookup_misses"],
                "forks": self._stats["forks"],
            }
        stats.update(self._scheduler.get_stats())
        return stats
