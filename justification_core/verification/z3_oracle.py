"""
Layer 2: Z3-backed Explanation Oracle.

Translates axioms to first-order logic over a single uninterpreted sort
and answers explanation queries with unsat cores:

- classes are unary predicates, roles binary predicates, individuals
  constants
- an entailment holds when background + Not(entailment) is UNSAT
- one justification = unsat core, then deletion-based minimisation
- further justifications = hitting-set tree over found justifications
- laconic justifications = justifications over the weakest fragments

Every query runs in its own z3 Context, so a single oracle instance is
safe to share between threads.
"""

from collections import deque
from typing import AbstractSet, Dict, FrozenSet, List, Optional, Set

from z3 import (
    And, Bool, BoolSort, BoolVal, Const, Context, DeclareSort, Exists,
    ForAll, Function, Implies, Not, Or, Solver, sat, unsat,
)

from ..errors import NoExplanationFound
from ..ontology.axioms import (
    ALL, CLASS_ASSERTION, COMPLEMENT, DECLARATION, DISJOINT, EQUIVALENT,
    INTERSECTION, NOTHING, ROLE_ASSERTION, SOME, SUBCLASS, THING, UNION,
    Axiom, Expression,
)
from ..ontology.weakening import weakest_fragments
from .oracle import ExplanationOracle, Justification


class _Translator:
    """Axiom -> z3 formula, scoped to one Context."""

    def __init__(self, ctx: Context):
        self.ctx = ctx
        self.Thing = DeclareSort('Thing', ctx)
        self._classes: Dict[str, object] = {}
        self._roles: Dict[str, object] = {}
        self._individuals: Dict[str, object] = {}
        self._cache: Dict[Axiom, object] = {}

    def cls(self, name: str):
        if name not in self._classes:
            self._classes[name] = Function(
                'C!' + name, self.Thing, BoolSort(self.ctx))
        return self._classes[name]

    def role(self, expr: Expression):
        if not expr.is_atomic:
            raise ValueError(f"Unsupported role expression {expr}")
        if expr.head not in self._roles:
            self._roles[expr.head] = Function(
                'R!' + expr.head, self.Thing, self.Thing, BoolSort(self.ctx))
        return self._roles[expr.head]

    def individual(self, expr: Expression):
        if not expr.is_atomic:
            raise ValueError(f"Unsupported individual {expr}")
        if expr.head not in self._individuals:
            self._individuals[expr.head] = Const('I!' + expr.head, self.Thing)
        return self._individuals[expr.head]

    def holds(self, expr: Expression, x, depth: int = 0):
        """Formula stating that `x` is an instance of class `expr`."""
        head = expr.head
        if head == THING:
            return BoolVal(True, self.ctx)
        if head == NOTHING:
            return BoolVal(False, self.ctx)
        if expr.is_atomic:
            return self.cls(head)(x)
        if head == INTERSECTION:
            return self._conj([self.holds(a, x, depth) for a in expr.args])
        if head == UNION:
            return self._disj([self.holds(a, x, depth) for a in expr.args])
        if head == COMPLEMENT:
            return Not(self.holds(expr.args[0], x, depth))
        if head in (SOME, ALL):
            r, filler = expr.args
            y = Const(f'y{depth}', self.Thing)
            edge = self.role(r)(x, y)
            inner = self.holds(filler, y, depth + 1)
            if head == SOME:
                return Exists([y], And(edge, inner))
            return ForAll([y], Implies(edge, inner))
        raise ValueError(f"Unsupported class expression {expr}")

    def formula(self, axiom: Axiom):
        if axiom not in self._cache:
            self._cache[axiom] = self._translate(axiom)
        return self._cache[axiom]

    def _translate(self, axiom: Axiom):
        head, args = axiom.head, axiom.args
        if head == DECLARATION:
            return BoolVal(True, self.ctx)
        if head == CLASS_ASSERTION:
            return self.holds(args[0], self.individual(args[1]))
        if head == ROLE_ASSERTION:
            return self.role(args[0])(
                self.individual(args[1]), self.individual(args[2]))

        x = Const('x', self.Thing)
        preds = [self.holds(a, x) for a in args]
        if head == SUBCLASS:
            body = Implies(preds[0], preds[1])
        elif head == EQUIVALENT:
            body = self._conj([a == b for a, b in zip(preds, preds[1:])])
        elif head == DISJOINT:
            body = self._conj([Not(And(a, b))
                               for i, a in enumerate(preds)
                               for b in preds[i + 1:]])
        else:
            raise ValueError(f"Unsupported axiom type {head}")
        return ForAll([x], body)

    def _conj(self, parts: List):
        if not parts:
            return BoolVal(True, self.ctx)
        return parts[0] if len(parts) == 1 else And(*parts)

    def _disj(self, parts: List):
        if not parts:
            return BoolVal(False, self.ctx)
        return parts[0] if len(parts) == 1 else Or(*parts)


class _Session:
    """Per-query reasoning session: one Context, one translator."""

    def __init__(self, timeout_ms: int = 0):
        self.ctx = Context()
        self.tr = _Translator(self.ctx)
        self.timeout_ms = timeout_ms
        self.checks = 0

    def _solver(self) -> Solver:
        s = Solver(ctx=self.ctx)
        if self.timeout_ms:
            s.set("timeout", self.timeout_ms)
        return s

    def check(self, axioms: AbstractSet[Axiom], goal: Axiom):
        s = self._solver()
        for ax in axioms:
            s.add(self.tr.formula(ax))
        s.add(Not(self.tr.formula(goal)))
        self.checks += 1
        return s.check()

    def entails(self, axioms: AbstractSet[Axiom], goal: Axiom) -> bool:
        return self.check(axioms, goal) == unsat

    def justification(self, axioms: FrozenSet[Axiom],
                      goal: Axiom) -> Optional[Justification]:
        """One minimal subset of `axioms` entailing `goal`, or None."""
        s = self._solver()
        trackers = {}
        for i, ax in enumerate(sorted(axioms, key=str)):
            t = Bool(f'track_{i}', self.ctx)
            s.assert_and_track(self.tr.formula(ax), t)
            trackers[str(t)] = ax
        s.add(Not(self.tr.formula(goal)))
        self.checks += 1
        if s.check() != unsat:
            return None

        core = {trackers[str(t)] for t in s.unsat_core()}
        # Cores are not guaranteed minimal
        for ax in sorted(core, key=str):
            if self.entails(core - {ax}, goal):
                core.discard(ax)
        return frozenset(core)


class Z3ExplanationOracle(ExplanationOracle):
    """Explanation oracle backed by the z3 SMT solver."""

    def __init__(self, solver_timeout_ms: int = 0):
        self.solver_timeout_ms = solver_timeout_ms

    def session(self) -> _Session:
        return _Session(self.solver_timeout_ms)

    def check_entailment(self, premises: AbstractSet[Axiom],
                         conclusion: Axiom) -> str:
        """Check if conclusion follows from premises.

        Returns: 'valid' (UNSAT), 'invalid' (SAT), or 'timeout'
        """
        result = self.session().check(premises, conclusion)
        if result == unsat:
            return "valid"
        elif result == sat:
            return "invalid"
        return "timeout"

    def explain(self, background: AbstractSet[Axiom], entailment: Axiom,
                limit: int) -> Set[Justification]:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        session = self.session()
        axioms = frozenset(ax for ax in background if ax.is_logical)

        found: List[Justification] = []
        visited: Set[FrozenSet[Axiom]] = set()
        queue = deque([frozenset()])

        while queue and len(found) < limit:
            removed = queue.popleft()
            if removed in visited:
                continue
            visited.add(removed)

            # Reuse any known justification not hit by this path
            just = next((j for j in found if not (j & removed)), None)
            if just is None:
                just = session.justification(axioms - removed, entailment)
                if just is None:
                    continue
                found.append(just)

            for ax in sorted(just, key=str):
                child = removed | {ax}
                if child not in visited:
                    queue.append(child)

        if not found:
            raise NoExplanationFound(entailment, "not entailed")
        return set(found)

    def explain_laconic(self, axioms: AbstractSet[Axiom], entailment: Axiom,
                        limit: int) -> Set[Justification]:
        return self.explain(weakest_fragments(axioms), entailment, limit)
