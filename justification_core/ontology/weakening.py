"""
Axiom weakening: decompose axioms into their weakest fragments.

Laconic justifications are justifications over the fragment closure of
a regular justification. Rules (applied to a fixpoint):

  EquivalentClasses(C1 .. Cn)        -> SubClassOf(Ci Cj), i != j
  DisjointClasses(C1 .. Cn)          -> DisjointClasses(Ci Cj), i < j
  SubClassOf(C ObjectIntersectionOf(D1 .. Dn)) -> SubClassOf(C Di)
  SubClassOf(ObjectUnionOf(C1 .. Cn) D)        -> SubClassOf(Ci D)
  SubClassOf(C ObjectAllValuesFrom(r ObjectIntersectionOf(D1 .. Dn)))
                                     -> SubClassOf(C ObjectAllValuesFrom(r Di))
  ClassAssertion(ObjectIntersectionOf(C1 .. Cn) a) -> ClassAssertion(Ci a)
  SubClassOf(C owl:Thing), SubClassOf(owl:Nothing D) -> dropped
"""

from typing import FrozenSet, Iterable, List, Set

from .axioms import (
    ALL, CLASS_ASSERTION, DISJOINT, EQUIVALENT, INTERSECTION, NOTHING,
    SUBCLASS, THING, UNION, Axiom, Expression,
)


def split(axiom: Axiom) -> List[Axiom]:
    """One decomposition step. Returns [axiom] when nothing applies."""
    head, args = axiom.head, axiom.args

    if head == EQUIVALENT:
        return [Axiom(SUBCLASS, (a, b))
                for i, a in enumerate(args)
                for j, b in enumerate(args) if i != j]

    if head == DISJOINT and len(args) > 2:
        return [Axiom(DISJOINT, (a, b))
                for i, a in enumerate(args)
                for b in args[i + 1:]]

    if head == SUBCLASS:
        sub, sup = args
        if sup.head == THING or sub.head == NOTHING:
            return []
        if sup.head == INTERSECTION:
            return [Axiom(SUBCLASS, (sub, d)) for d in sup.args]
        if sub.head == UNION:
            return [Axiom(SUBCLASS, (c, sup)) for c in sub.args]
        if sup.head == ALL and sup.args[1].head == INTERSECTION:
            role, filler = sup.args
            return [Axiom(SUBCLASS, (sub, Expression(ALL, (role, d))))
                    for d in filler.args]

    if head == CLASS_ASSERTION and args[0].head == INTERSECTION:
        cls, individual = args
        return [Axiom(CLASS_ASSERTION, (c, individual)) for c in cls.args]

    return [axiom]


def weakest_fragments(axioms: Iterable[Axiom]) -> FrozenSet[Axiom]:
    """Fixpoint of `split` over every logical axiom."""
    done: Set[Axiom] = set()
    pending = [ax for ax in axioms if ax.is_logical]
    while pending:
        ax = pending.pop()
        parts = split(ax)
        if parts == [ax]:
            done.add(ax)
        else:
            pending.extend(p for p in parts if p not in done)
    return frozenset(done)
