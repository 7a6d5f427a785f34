"""
Explanation oracle interface.

The oracle is the black-box reasoning component. Two queries:

- explain(background, entailment, limit): up to `limit` minimal subsets
  of `background` that entail `entailment`
- explain_laconic(axioms, entailment, limit): up to `limit` minimal sets
  of weakened axioms (fragments of `axioms`) that entail `entailment`

Both signal "nothing found" by raising NoExplanationFound or by
returning an empty set; any other exception is a real failure.
"""

import importlib
from typing import AbstractSet, FrozenSet, Set

from ..ontology.axioms import Axiom

Justification = FrozenSet[Axiom]
LaconicJustification = FrozenSet[Axiom]


class ExplanationOracle:
    """Base class for explanation oracles.

    Implementations must treat their inputs as read-only and keep all
    per-query session state local to the call, so that one oracle
    instance can serve concurrent queries.
    """

    def explain(self, background: AbstractSet[Axiom], entailment: Axiom,
                limit: int) -> Set[Justification]:
        raise NotImplementedError

    def explain_laconic(self, axioms: AbstractSet[Axiom], entailment: Axiom,
                        limit: int) -> Set[LaconicJustification]:
        raise NotImplementedError


def load_oracle(spec: str) -> ExplanationOracle:
    """Instantiate an oracle from a 'package.module:attr' import spec.

    `attr` may be a class or a zero-argument factory.
    """
    module_name, _, attr = spec.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Invalid oracle spec {spec!r}")
    module = importlib.import_module(module_name)
    factory = getattr(module, attr)
    return factory()
