import pytest

from justification_core.config import EngineConfig
from justification_core.ontology.axioms import (
    intersection_of, name, subclass_of,
)


@pytest.fixture
def axioms():
    """A, B, C, D and a handful of subsumptions between them."""
    A, B, C, D = (name(f"ex:{n}") for n in "ABCD")
    return {
        "A": A, "B": B, "C": C, "D": D,
        "A_B": subclass_of(A, B),
        "B_C": subclass_of(B, C),
        "A_C": subclass_of(A, C),
        "A_D": subclass_of(A, D),
        "D_C": subclass_of(D, C),
        "A_BD": subclass_of(A, intersection_of(B, D)),
    }


@pytest.fixture
def config():
    return EngineConfig(max_workers=4, spawn_grace_s=30.0)
