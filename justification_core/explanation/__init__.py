"""Layer 3: Explanation. Batch justifications, laconic refinement, isolation.

The worker entry module is deliberately not imported here: it is run
with `python -m` and must not already be in sys.modules.
"""
from .justifications import JustificationEngine
from .laconic import (
    LaconicRefinementScheduler, OutcomeStatus, RefinementOutcome,
    RefinementStrategy, ThreadedRefinement, is_heavy,
)
from .isolation import ArtifactCounter, IsolatedRefinement
