"""
Tests for the Z3 explanation oracle, end to end through the engine.

These tests verify:
1. Entailment checking on small class hierarchies
2. Minimal justifications, including more than one per entailment
3. Laconic justifications keep only the needed fragments
4. The engine and scheduler produce the same answers with a real oracle
"""

import pytest

from justification_core.config import EngineConfig
from justification_core.errors import NoExplanationFound
from justification_core.explanation.justifications import JustificationEngine
from justification_core.ontology.axioms import (
    class_assertion, disjoint_classes, equivalent_classes, intersection_of,
    name, only, role_assertion, some, subclass_of,
)
from justification_core.verification.z3_oracle import Z3ExplanationOracle

A, B, C, D, E = (name(f"ex:{n}") for n in "ABCDE")


@pytest.fixture
def oracle():
    return Z3ExplanationOracle()


class TestEntailment:

    def test_transitive_subsumption(self, oracle):
        kb = {subclass_of(A, B), subclass_of(B, C)}
        assert oracle.check_entailment(kb, subclass_of(A, C)) == "valid"
        assert oracle.check_entailment(kb, subclass_of(C, A)) == "invalid"

    def test_existential_propagation(self, oracle):
        kb = {subclass_of(A, some("ex:r", B)), subclass_of(B, C)}
        assert oracle.check_entailment(
            kb, subclass_of(A, some("ex:r", C))) == "valid"

    def test_universal_restriction_on_individuals(self, oracle):
        kb = {
            class_assertion(A, "ex:a"),
            role_assertion("ex:r", "ex:a", "ex:b"),
            subclass_of(A, only("ex:r", B)),
        }
        assert oracle.check_entailment(kb, class_assertion(B, "ex:b")) == "valid"

    def test_disjointness(self, oracle):
        kb = {subclass_of(A, B), disjoint_classes(B, C)}
        assert oracle.check_entailment(
            kb, disjoint_classes(A, C)) == "valid"


class TestExplain:

    def test_single_justification(self, oracle):
        kb = {subclass_of(A, B), subclass_of(B, C), subclass_of(D, E)}
        assert oracle.explain(kb, subclass_of(A, C), 5) == {
            frozenset({subclass_of(A, B), subclass_of(B, C)})}

    def test_two_justifications(self, oracle):
        kb = {subclass_of(A, B), subclass_of(B, C),
              subclass_of(A, D), subclass_of(D, C)}
        expected = {
            frozenset({subclass_of(A, B), subclass_of(B, C)}),
            frozenset({subclass_of(A, D), subclass_of(D, C)}),
        }
        assert oracle.explain(kb, subclass_of(A, C), 5) == expected
        assert len(oracle.explain(kb, subclass_of(A, C), 1)) == 1

    def test_justification_is_minimal(self, oracle):
        kb = {subclass_of(A, B), subclass_of(B, C), subclass_of(A, C)}
        justs = oracle.explain(kb, subclass_of(A, C), 5)
        assert frozenset({subclass_of(A, C)}) in justs
        assert all(not (j1 < j2) for j1 in justs for j2 in justs)

    def test_not_entailed(self, oracle):
        with pytest.raises(NoExplanationFound):
            oracle.explain({subclass_of(A, B)}, subclass_of(B, A), 1)

    def test_rejects_bad_limit(self, oracle):
        with pytest.raises(ValueError):
            oracle.explain({subclass_of(A, B)}, subclass_of(A, B), 0)


class TestExplainLaconic:

    def test_superfluous_conjunct_removed(self, oracle):
        just = {subclass_of(A, intersection_of(B, D)), subclass_of(B, C)}
        assert oracle.explain_laconic(just, subclass_of(A, C), 1) == {
            frozenset({subclass_of(A, B), subclass_of(B, C)})}

    def test_equivalence_weakened_to_one_direction(self, oracle):
        just = {equivalent_classes(A, B), subclass_of(B, C)}
        assert oracle.explain_laconic(just, subclass_of(A, C), 1) == {
            frozenset({subclass_of(A, B), subclass_of(B, C)})}


class TestEngineWithZ3:

    KB = [
        subclass_of(A, B), subclass_of(B, C),
        subclass_of(A, intersection_of(D, E)),
        subclass_of(D, C),
    ]

    @pytest.mark.parametrize("parallel", [True, False])
    def test_batch(self, parallel):
        engine = JustificationEngine(self.KB, Z3ExplanationOracle(),
                                     EngineConfig(justification_limit=3))
        result = engine.find_justifications(
            {subclass_of(A, C), subclass_of(C, A)}, parallel=parallel)

        assert result[subclass_of(C, A)] == set()
        assert result[subclass_of(A, C)] == {
            frozenset({subclass_of(A, B), subclass_of(B, C)}),
            frozenset({subclass_of(A, intersection_of(D, E)),
                       subclass_of(D, C)}),
        }

    def test_laconic_refinement_in_process(self):
        engine = JustificationEngine(self.KB, Z3ExplanationOracle(),
                                     EngineConfig(justification_limit=3))
        justs = engine.find_justifications_for(subclass_of(A, C))
        laconic = engine.refine_all({subclass_of(A, C): justs})

        assert laconic[subclass_of(A, C)] == {
            frozenset({subclass_of(A, B), subclass_of(B, C)}),
            frozenset({subclass_of(A, D), subclass_of(D, C)}),
        }
        assert engine.get_stats()["light_tasks"] == 2
        assert engine.get_stats()["heavy_tasks"] == 0

    def test_laconic_refinement_isolated(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = EngineConfig(heavy_threshold=1, watchdog_ms=20000)
        engine = JustificationEngine(self.KB, Z3ExplanationOracle(), config)
        just = frozenset({subclass_of(A, intersection_of(D, E)),
                          subclass_of(D, C)})

        laconic = engine.laconic_justifications(subclass_of(A, C), [just])

        assert laconic == {frozenset({subclass_of(A, D), subclass_of(D, C)})}
        assert engine.get_stats()["heavy_tasks"] == 1
        assert not any((tmp_path / "temp").iterdir())
