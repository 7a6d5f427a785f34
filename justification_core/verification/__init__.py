"""Layer 2: Explanation oracles, interface and Z3 implementation."""
from .oracle import (
    ExplanationOracle, Justification, LaconicJustification, load_oracle,
)
from .z3_oracle import Z3ExplanationOracle
