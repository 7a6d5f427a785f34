"""
Justification Core: justifications and laconic justifications for
entailments of a background knowledge base.

Layer 1: Ontology (axioms, functional syntax, weakening)
Layer 2: Verification (explanation oracle interface, Z3 oracle)
Layer 3: Explanation (divide-and-conquer batches, laconic scheduling,
         process-isolated refinement with a watchdog)

Cross-cutting: EngineConfig, structlog setup, error types
"""

from .config import EngineConfig
from .errors import (
    ArtifactError, AxiomSyntaxError, JustificationError, NoExplanationFound,
    WorkerError,
)
from .ontology import Axiom, Expression, parse_axiom, parse_document
from .verification import ExplanationOracle, Z3ExplanationOracle
from .explanation import (
    IsolatedRefinement, JustificationEngine, LaconicRefinementScheduler,
    ThreadedRefinement,
)
from .telemetry import setup_logging, setup_logging_from_config

__version__ = "0.1.0"
