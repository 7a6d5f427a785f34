"""
Tests for axioms, functional syntax and weakening.
"""

import pytest

from justification_core.errors import AxiomSyntaxError
from justification_core.ontology.axioms import (
    Axiom, Expression, class_assertion, complement_of, disjoint_classes,
    equivalent_classes, intersection_of, name, only, role_assertion, some,
    subclass_of, union_of,
)
from justification_core.ontology.syntax import (
    parse_axiom, parse_document, parse_documents, parse_expression,
    render_document,
)
from justification_core.ontology.weakening import split, weakest_fragments

A, B, C, D = (name(f"ex:{n}") for n in "ABCD")


class TestAxioms:

    def test_value_equality(self):
        assert subclass_of(A, B) == subclass_of(name("ex:A"), name("ex:B"))
        assert len({subclass_of(A, B), subclass_of(A, B)}) == 1

    def test_axiom_is_not_expression(self):
        assert Axiom("SubClassOf", (A, B)) != Expression("SubClassOf", (A, B))

    def test_rendering(self):
        ax = subclass_of(A, some("ex:r", intersection_of(B, C)))
        assert str(ax) == \
            "SubClassOf(ex:A ObjectSomeValuesFrom(ex:r ObjectIntersectionOf(ex:B ex:C)))"

    def test_nested_count_skips_roles(self):
        ax = subclass_of(A, some("ex:r", B))
        # ex:A, the restriction, ex:B
        assert ax.nested_class_expression_count() == 3

    def test_nested_count_is_distinct(self):
        ax = subclass_of(A, union_of(A, A))
        assert ax.nested_class_expression_count() == 2

    def test_assertion_counts_class_only(self):
        assert class_assertion(A, "ex:a").nested_class_expression_count() == 1
        assert role_assertion("ex:r", "ex:a", "ex:b") \
            .nested_class_expression_count() == 0

    def test_signature(self):
        ax = subclass_of(A, only("ex:r", B))
        assert ax.signature() == {"ex:A", "ex:r", "ex:B"}


class TestSyntax:

    @pytest.mark.parametrize("text", [
        "SubClassOf(ex:A ex:B)",
        "EquivalentClasses(ex:A ObjectIntersectionOf(ex:B ex:C))",
        "DisjointClasses(ex:A ex:B ex:C)",
        "ClassAssertion(ObjectComplementOf(ex:A) ex:a)",
        "ObjectPropertyAssertion(ex:r ex:a ex:b)",
        "SubClassOf(<http://example.org/A> owl:Thing)",
    ])
    def test_axiom_text_is_stable(self, text):
        assert parse_axiom(text).render() == text

    def test_whitespace_is_insignificant(self):
        assert parse_axiom("SubClassOf (\n ex:A\tex:B )") == subclass_of(A, B)

    def test_expression(self):
        assert parse_expression("ObjectComplementOf(ex:A)") == complement_of(A)

    @pytest.mark.parametrize("text", [
        "",
        "SubClassOf(ex:A ex:B",
        "SubClassOf(ex:A ex:B))",
        "NotAnAxiom(ex:A)",
        "ex:A",
        ")",
    ])
    def test_malformed_axioms(self, text):
        with pytest.raises(AxiomSyntaxError):
            parse_axiom(text)

    def test_syntax_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_axiom("SubClassOf(")

    def test_document_is_sorted(self):
        doc = render_document([subclass_of(B, C), subclass_of(A, B)])
        assert doc == ("Ontology(\n"
                       "SubClassOf(ex:A ex:B)\n"
                       "SubClassOf(ex:B ex:C)\n"
                       ")")
        assert parse_document(doc) == {subclass_of(A, B), subclass_of(B, C)}

    def test_empty_document(self):
        assert parse_document("Ontology(\n)") == frozenset()

    def test_multiple_documents(self):
        docs = parse_documents("Ontology(SubClassOf(ex:A ex:B))"
                               "Ontology(SubClassOf(ex:C ex:D))")
        assert docs == [frozenset({subclass_of(A, B)}),
                        frozenset({subclass_of(C, D)})]

    def test_parse_document_rejects_two(self):
        with pytest.raises(AxiomSyntaxError):
            parse_document("Ontology() Ontology()")

    def test_document_must_start_with_marker(self):
        with pytest.raises(AxiomSyntaxError):
            parse_documents("Prefix(ex:=<http://example.org/>)")


class TestWeakening:

    def test_equivalence_becomes_two_subsumptions(self):
        assert set(split(equivalent_classes(A, B))) == {
            subclass_of(A, B), subclass_of(B, A)}

    def test_conjunctive_superclass(self):
        ax = equivalent_classes(A, intersection_of(B, C))
        assert weakest_fragments([ax]) == {
            subclass_of(A, B),
            subclass_of(A, C),
            subclass_of(intersection_of(B, C), A),
        }

    def test_disjunctive_subclass(self):
        assert weakest_fragments([subclass_of(union_of(A, B), C)]) == {
            subclass_of(A, C), subclass_of(B, C)}

    def test_universal_over_conjunction(self):
        ax = subclass_of(A, only("ex:r", intersection_of(B, C)))
        assert weakest_fragments([ax]) == {
            subclass_of(A, only("ex:r", B)),
            subclass_of(A, only("ex:r", C)),
        }

    def test_pairwise_disjointness(self):
        assert weakest_fragments([disjoint_classes(A, B, C)]) == {
            disjoint_classes(A, B),
            disjoint_classes(A, C),
            disjoint_classes(B, C),
        }

    def test_conjunctive_assertion(self):
        ax = class_assertion(intersection_of(A, B), "ex:a")
        assert weakest_fragments([ax]) == {
            class_assertion(A, "ex:a"), class_assertion(B, "ex:a")}

    def test_tautologies_dropped(self):
        assert weakest_fragments([subclass_of(A, name("owl:Thing"))]) == set()

    def test_atomic_axiom_is_its_own_fragment(self):
        assert weakest_fragments([subclass_of(A, B)]) == {subclass_of(A, B)}
