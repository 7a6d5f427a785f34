"""
Single-shot laconic refinement worker.

Usage:
    python -m justification_core.explanation.worker ENT_FILE JUST_FILE
    python -m justification_core.explanation.worker --watchdog-ms 500 \\
        --oracle package.module:Factory ENT_FILE JUST_FILE

Reads the entailment and justification documents, arms a watchdog, and
refines every logical axiom of the entailment document against the
justification. Each laconic justification found is written to stdout as
its own `Ontology(...)` document. If the watchdog fires the process
exits immediately with no output.
"""

import argparse
import os
import sys
import threading
from typing import AbstractSet, Optional, Set

import structlog

from ..config import DEFAULT_WORKER_ORACLE
from ..errors import AxiomSyntaxError, NoExplanationFound
from ..ontology.axioms import Axiom
from ..ontology.syntax import read_document_file, render_document
from ..telemetry import setup_logging
from ..verification.oracle import (
    ExplanationOracle, LaconicJustification, load_oracle,
)

logger = structlog.get_logger()

WATCHDOG_EXIT_CODE = 124
ARTIFACT_EXIT_CODE = 2


def _terminate():
    os._exit(WATCHDOG_EXIT_CODE)


def arm_watchdog(timeout_ms: int, action=_terminate) -> threading.Timer:
    """One-shot timer that hard-kills this process after `timeout_ms`."""
    timer = threading.Timer(timeout_ms / 1000.0, action)
    timer.daemon = True
    timer.start()
    return timer


def refine_artifacts(oracle: ExplanationOracle,
                     entailments: AbstractSet[Axiom],
                     justification: AbstractSet[Axiom],
                     limit: int = 1) -> Set[LaconicJustification]:
    results: Set[LaconicJustification] = set()
    for ax in sorted(entailments, key=str):
        if not ax.is_logical:
            continue
        try:
            found = oracle.explain_laconic(justification, ax, limit)
        except (NoExplanationFound, MemoryError, ValueError) as e:
            logger.debug("laconic_axiom_skipped", entailment=str(ax),
                         error=type(e).__name__)
            continue
        results.update(frozenset(r) for r in found or ())
    return results


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="justification-worker",
        description="Compute laconic justifications in isolation")
    parser.add_argument("entailment", help="Entailment document path")
    parser.add_argument("justification", help="Justification document path")
    parser.add_argument("--oracle", default=DEFAULT_WORKER_ORACLE,
                        help="Oracle import spec (module:attr)")
    parser.add_argument("--limit", type=int, default=1,
                        help="Laconic justifications per entailment axiom")
    parser.add_argument("--watchdog-ms", type=int, default=500,
                        help="Hard timeout for reasoning")
    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    # Diagnostics must never precede the result document
    setup_logging(level="ERROR")

    try:
        entailments = read_document_file(args.entailment)
        justification = read_document_file(args.justification)
    except (OSError, AxiomSyntaxError) as e:
        logger.error("artifact_read_failed", error=str(e))
        return ARTIFACT_EXIT_CODE

    oracle = load_oracle(args.oracle)

    timer = arm_watchdog(args.watchdog_ms)
    results = refine_artifacts(oracle, entailments, justification,
                               args.limit)
    timer.cancel()

    out = "".join(render_document(r) + "\n"
                  for r in sorted(results, key=lambda r: sorted(map(str, r))))
    sys.stdout.write(out)
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
