"""Layer 1: Ontology terms. Axioms, functional syntax, weakening."""
from .axioms import Axiom, Expression
from .syntax import (
    ONTOLOGY_MARKER, parse_axiom, parse_document, parse_documents,
    parse_expression, render_document,
)
from .weakening import weakest_fragments
