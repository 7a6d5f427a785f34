"""
Layer 1 Core: Axioms and Class Expressions.

Immutable, value-compared terms in OWL functional style:

- Expression: a class expression, role or individual name
  (`ex:A`, `ObjectIntersectionOf(ex:A ex:B)`, ...)
- Axiom: a top-level statement (`SubClassOf(ex:A ex:B)`, ...)

Axioms are never mutated. Everything downstream (oracles, the
justification engine, the isolated worker) only groups them into
frozensets.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterator, Set, Tuple, Union


THING = "owl:Thing"
NOTHING = "owl:Nothing"

# Class expression constructors
INTERSECTION = "ObjectIntersectionOf"
UNION = "ObjectUnionOf"
COMPLEMENT = "ObjectComplementOf"
SOME = "ObjectSomeValuesFrom"
ALL = "ObjectAllValuesFrom"

CLASS_CONSTRUCTORS = frozenset({INTERSECTION, UNION, COMPLEMENT, SOME, ALL})

# Axiom types
SUBCLASS = "SubClassOf"
EQUIVALENT = "EquivalentClasses"
DISJOINT = "DisjointClasses"
CLASS_ASSERTION = "ClassAssertion"
ROLE_ASSERTION = "ObjectPropertyAssertion"
DECLARATION = "Declaration"

LOGICAL_AXIOM_TYPES = frozenset({
    SUBCLASS, EQUIVALENT, DISJOINT, CLASS_ASSERTION, ROLE_ASSERTION,
})
AXIOM_TYPES = LOGICAL_AXIOM_TYPES | {DECLARATION}


@dataclass(frozen=True)
class Expression:
    """A named entity (no args) or a constructor applied to terms."""
    head: str
    args: Tuple["Expression", ...] = ()

    @property
    def is_atomic(self) -> bool:
        return not self.args

    def render(self) -> str:
        if not self.args:
            return self.head
        inner = " ".join(a.render() for a in self.args)
        return f"{self.head}({inner})"

    def walk(self) -> Iterator["Expression"]:
        """Pre-order traversal over this term and all sub-terms."""
        yield self
        for arg in self.args:
            yield from arg.walk()

    def __str__(self):
        return self.render()

    def __repr__(self):
        return f"{type(self).__name__}({self.render()!r})"


@dataclass(frozen=True, repr=False)
class Axiom(Expression):
    """A logical (or declaration) statement. Used as both premise and
    entailment."""

    @property
    def is_logical(self) -> bool:
        return self.head in LOGICAL_AXIOM_TYPES

    def class_expressions(self) -> Set[Expression]:
        """Distinct class expressions occurring anywhere in the axiom.

        Role and individual positions are skipped, so
        `ObjectSomeValuesFrom(ex:r ex:C)` contributes itself and `ex:C`
        but not `ex:r`.
        """
        found: Set[Expression] = set()
        for operand in _class_positions(self):
            _collect_class_expressions(operand, found)
        return found

    def nested_class_expression_count(self) -> int:
        """Structural complexity used for heavy/light routing."""
        return len(self.class_expressions())

    def signature(self) -> FrozenSet[str]:
        """Names of every entity mentioned by the axiom."""
        return frozenset(
            t.head for t in self.walk()
            if t.is_atomic and t is not self)


def name(iri: str) -> Expression:
    return Expression(iri)


def intersection_of(*operands: Expression) -> Expression:
    return Expression(INTERSECTION, tuple(operands))


def union_of(*operands: Expression) -> Expression:
    return Expression(UNION, tuple(operands))


def complement_of(operand: Expression) -> Expression:
    return Expression(COMPLEMENT, (operand,))


def some(role: Union[str, Expression], filler: Expression) -> Expression:
    return Expression(SOME, (_as_expr(role), filler))


def only(role: Union[str, Expression], filler: Expression) -> Expression:
    return Expression(ALL, (_as_expr(role), filler))


def subclass_of(sub: Expression, sup: Expression) -> Axiom:
    return Axiom(SUBCLASS, (sub, sup))


def equivalent_classes(*operands: Expression) -> Axiom:
    return Axiom(EQUIVALENT, tuple(operands))


def disjoint_classes(*operands: Expression) -> Axiom:
    return Axiom(DISJOINT, tuple(operands))


def class_assertion(cls: Expression, individual: Union[str, Expression]) -> Axiom:
    return Axiom(CLASS_ASSERTION, (cls, _as_expr(individual)))


def role_assertion(role: Union[str, Expression],
                   subject: Union[str, Expression],
                   obj: Union[str, Expression]) -> Axiom:
    return Axiom(ROLE_ASSERTION,
                 (_as_expr(role), _as_expr(subject), _as_expr(obj)))


def _as_expr(value: Union[str, Expression]) -> Expression:
    return value if isinstance(value, Expression) else Expression(value)


def _class_positions(axiom: Axiom) -> Tuple[Expression, ...]:
    if axiom.head in (SUBCLASS, EQUIVALENT, DISJOINT):
        return axiom.args
    if axiom.head == CLASS_ASSERTION:
        return axiom.args[:1]
    return ()


def _collect_class_expressions(expr: Expression, found: Set[Expression]):
    found.add(expr)
    if expr.head in (SOME, ALL):
        # args[0] is the role
        _collect_class_expressions(expr.args[1], found)
    else:
        for arg in expr.args:
            _collect_class_expressions(arg, found)
