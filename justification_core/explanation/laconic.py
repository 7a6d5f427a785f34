"""
Laconic refinement scheduling.

Each regular justification is refined by one of two strategies sharing
the RefinementStrategy interface:

- ThreadedRefinement: in-process, on a thread of the per-call pool
- IsolatedRefinement (isolation.py): in a separate worker process with
  a hard timeout, for justifications whose axioms are structurally heavy

Every task yields an explicit RefinementOutcome. A failed or empty task
contributes nothing to the aggregate; it never aborts its siblings.
"""

import threading
from collections import Counter
from concurrent.futures import CancelledError, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import (
    AbstractSet, Callable, Dict, FrozenSet, Iterable, List, Optional, Set,
    Tuple,
)

import structlog

from ..errors import NoExplanationFound
from ..ontology.axioms import Axiom
from ..verification.oracle import (
    ExplanationOracle, Justification, LaconicJustification,
)

logger = structlog.get_logger()

HEAVY_THRESHOLD = 20


class OutcomeStatus(Enum):
    FOUND = "found"      # At least one laconic justification
    ABSENT = "absent"    # Ran, nothing found (incl. worker timeout)
    FAILED = "failed"    # Task raised, was cancelled, or could not start


@dataclass(frozen=True)
class RefinementOutcome:
    """Result of refining one justification."""
    status: OutcomeStatus
    results: FrozenSet[LaconicJustification] = frozenset()
    reason: str = ""

    @classmethod
    def found(cls, results: Iterable[AbstractSet[Axiom]]) -> "RefinementOutcome":
        results = frozenset(frozenset(r) for r in results)
        if not results:
            return cls(OutcomeStatus.ABSENT, reason="no laconic justification")
        return cls(OutcomeStatus.FOUND, results)

    @classmethod
    def absent(cls, reason: str = "") -> "RefinementOutcome":
        return cls(OutcomeStatus.ABSENT, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "RefinementOutcome":
        return cls(OutcomeStatus.FAILED, reason=reason)


class RefinementStrategy:
    """Refines one (entailment, justification) pair."""
    name = "strategy"

    def refine(self, entailment: Axiom,
               axioms: AbstractSet[Axiom]) -> RefinementOutcome:
        raise NotImplementedError


class ThreadedRefinement(RefinementStrategy):
    """In-process refinement. Each call is its own oracle session."""
    name = "thread"

    def __init__(self, oracle: ExplanationOracle, limit: int = 1):
        self.oracle = oracle
        self.limit = limit

    def refine(self, entailment: Axiom,
               axioms: AbstractSet[Axiom]) -> RefinementOutcome:
        try:
            results = self.oracle.explain_laconic(
                frozenset(axioms), entailment, self.limit)
        except NoExplanationFound as e:
            return RefinementOutcome.absent(e.reason)
        except (MemoryError, ValueError) as e:
            logger.warning("laconic_refinement_aborted",
                           entailment=str(entailment),
                           error=f"{type(e).__name__}: {e}")
            return RefinementOutcome.failed(f"{type(e).__name__}: {e}")
        return RefinementOutcome.found(results or ())


def is_heavy(justification: AbstractSet[Axiom],
             threshold: int = HEAVY_THRESHOLD) -> bool:
    """True if any axiom has `threshold` or more nested class expressions."""
    return any(ax.nested_class_expression_count() >= threshold
               for ax in justification)


def _justification_key(just: AbstractSet[Axiom]) -> Tuple[str, ...]:
    return tuple(sorted(str(ax) for ax in just))


class LaconicRefinementScheduler:
    """Routes justifications to a strategy and aggregates best-effort.

    One pool thread per justification of a call, so no justification
    waits behind another. The pool is torn down without waiting once
    every outcome is in.
    """

    def __init__(self, light: RefinementStrategy, heavy: RefinementStrategy,
                 classify: Optional[Callable[[AbstractSet[Axiom]], bool]] = None,
                 heavy_threshold: int = HEAVY_THRESHOLD):
        self.light = light
        self.heavy = heavy
        self.classify = classify or partial(is_heavy,
                                            threshold=heavy_threshold)
        self._stats: Counter = Counter()
        self._stats_lock = threading.Lock()

    def route(self, justification: AbstractSet[Axiom]) -> RefinementStrategy:
        return self.heavy if self.classify(justification) else self.light

    def refine(self, entailment: Axiom,
               justifications: Iterable[Justification]
               ) -> Set[LaconicJustification]:
        """Union of every task's laconic justifications."""
        results: Set[LaconicJustification] = set()
        for _, outcome in self.refine_outcomes(entailment, justifications):
            results.update(outcome.results)
        return results

    def refine_outcomes(self, entailment: Axiom,
                        justifications: Iterable[Justification]
                        ) -> List[Tuple[Justification, RefinementOutcome]]:
        """Per-justification outcomes, in a stable order."""
        justs = sorted({frozenset(j) for j in justifications},
                       key=_justification_key)
        if not justs:
            return []

        pool = ThreadPoolExecutor(max_workers=len(justs),
                                  thread_name_prefix="laconic")
        try:
            tasks = []
            for just in justs:
                strategy = self.route(just)
                self._count("heavy_tasks" if strategy is self.heavy
                            else "light_tasks")
                tasks.append((just, strategy,
                              pool.submit(strategy.refine, entailment, just)))
            return [(just, self._collect(entailment, strategy, future))
                    for just, strategy, future in tasks]
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    def _collect(self, entailment: Axiom, strategy: RefinementStrategy,
                 future) -> RefinementOutcome:
        try:
            outcome = future.result()
        except CancelledError:
            outcome = RefinementOutcome.failed("cancelled")
        except Exception as e:
            outcome = RefinementOutcome.failed(f"{type(e).__name__}: {e}")
        if outcome is None:
            outcome = RefinementOutcome.absent("no result")

        if outcome.status == OutcomeStatus.FAILED:
            self._count("failed_tasks")
            logger.warning("laconic_task_failed", strategy=strategy.name,
                           entailment=str(entailment), reason=outcome.reason)
        return outcome

    def _count(self, key: str):
        with self._stats_lock:
            self._stats[key] += 1

    def get_stats(self) -> Dict:
        with self._stats_lock:
            return {
                "light_tasks": self._stats["light_tasks"],
                "heavy_tasks": self._stats["heavy_tasks"],
                "failed_tasks": self._stats["failed_tasks"],
            }
