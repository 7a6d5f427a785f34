"""
Isolated worker protocol: laconic refinement in a separate process.

1. Serialize: the entailment and the justification are written to
   `<artifact_dir>/ent<N>.<suffix>` and `<artifact_dir>/just<N>.<suffix>`,
   numbered by a per-kind counter
2. Spawn: `python -m justification_core.explanation.worker ENT JUST`
   under the same interpreter and import path, stderr merged into stdout
3. The worker arms its watchdog and refines (see worker.py)
4. Parse: output counts only if it starts with `Ontology(`
5. Cleanup: both artifacts are removed when the call ends

A worker killed by its watchdog, a crash, or unparsable output all come
back as an ABSENT outcome; write and spawn failures as FAILED.
"""

import os
import subprocess
import sys
import threading
from pathlib import Path
from typing import AbstractSet, Dict, Iterable, List, Optional, Set

import structlog

from ..config import EngineConfig
from ..errors import ArtifactError, AxiomSyntaxError, WorkerError
from ..ontology.axioms import Axiom
from ..ontology.syntax import (
    ONTOLOGY_MARKER, parse_documents, write_document_file,
)
from ..verification.oracle import LaconicJustification
from .laconic import RefinementOutcome, RefinementStrategy

logger = structlog.get_logger()

WORKER_MODULE = "justification_core.explanation.worker"

ENTAILMENT_KIND = "ent"
JUSTIFICATION_KIND = "just"


class ArtifactCounter:
    """Per-kind monotonically increasing artifact numbers, from 0."""

    def __init__(self):
        self._lock = threading.Lock()
        self._next: Dict[str, int] = {}

    def next(self, kind: str) -> int:
        with self._lock:
            n = self._next.get(kind, 0)
            self._next[kind] = n + 1
            return n


class IsolatedRefinement(RefinementStrategy):
    """Runs one laconic refinement in a worker process with a timeout."""
    name = "process"

    def __init__(self, config: Optional[EngineConfig] = None,
                 counter: Optional[ArtifactCounter] = None,
                 workdir: Optional[Path] = None):
        self.config = config or EngineConfig()
        self.counter = counter or ArtifactCounter()
        self.workdir = Path(workdir) if workdir else None

    @property
    def artifact_root(self) -> Path:
        base = self.workdir if self.workdir is not None else Path.cwd()
        return base / self.config.artifact_dir

    def run_isolated(self, entailment: Axiom,
                     axioms: AbstractSet[Axiom]) -> Set[LaconicJustification]:
        return set(self.refine(entailment, axioms).results)

    def refine(self, entailment: Axiom,
               axioms: AbstractSet[Axiom]) -> RefinementOutcome:
        created: List[Path] = []
        try:
            try:
                ent_path = self.write_artifact(
                    ENTAILMENT_KIND, [entailment], created)
                just_path = self.write_artifact(
                    JUSTIFICATION_KIND, axioms, created)
            except ArtifactError as e:
                logger.error("artifact_write_failed",
                             entailment=str(entailment), error=str(e))
                return RefinementOutcome.failed(str(e))

            try:
                output = self.spawn(ent_path, just_path)
            except WorkerError as e:
                logger.error("worker_spawn_failed",
                             entailment=str(entailment), error=str(e))
                return RefinementOutcome.failed(str(e))

            return self.parse_output(entailment, output)
        finally:
            self.cleanup(created)

    def write_artifact(self, kind: str, axioms: Iterable[Axiom],
                       created: List[Path]) -> Path:
        path = (self.artifact_root /
                f"{kind}{self.counter.next(kind)}.{self.config.artifact_suffix}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            created.append(path)
            write_document_file(path, axioms)
        except OSError as e:
            raise ArtifactError(f"Cannot write {path}: {e}") from e
        return path

    def command(self, ent_path: Path, just_path: Path) -> List[str]:
        cfg = self.config
        return [
            sys.executable, "-m", WORKER_MODULE,
            "--oracle", cfg.worker_oracle,
            "--limit", str(cfg.laconic_limit),
            "--watchdog-ms", str(cfg.watchdog_ms),
            str(ent_path.resolve()), str(just_path.resolve()),
        ]

    def spawn(self, ent_path: Path, just_path: Path) -> str:
        """Run the worker to completion and return its merged output.

        Returns "" if the parent-side backstop had to kill the worker.
        """
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(p for p in sys.path if p)
        try:
            proc = subprocess.run(
                self.command(ent_path, just_path),
                stdout=subprocess.PIPE, stderr=subprocess.STDOUT,
                text=True, timeout=self.config.worker_timeout_s, env=env,
            )
        except subprocess.TimeoutExpired:
            logger.warning("worker_timeout", entailment_file=ent_path.name,
                           timeout_s=self.config.worker_timeout_s)
            return ""
        except OSError as e:
            raise WorkerError(f"Cannot start worker: {e}") from e

        if proc.returncode != 0:
            logger.info("worker_exited", entailment_file=ent_path.name,
                        returncode=proc.returncode)
        return proc.stdout or ""

    def parse_output(self, entailment: Axiom, output: str) -> RefinementOutcome:
        if not output.startswith(ONTOLOGY_MARKER):
            logger.info("worker_no_result", entailment=str(entailment),
                        output=output[:200])
            return RefinementOutcome.absent("no worker result")
        try:
            docs = parse_documents(output)
        except AxiomSyntaxError as e:
            logger.warning("worker_output_unparsable",
                           entailment=str(entailment), error=str(e))
            return RefinementOutcome.absent("unparsable worker output")
        return RefinementOutcome.found(docs)

    @staticmethod
    def cleanup(paths: Iterable[Path]):
        for path in paths:
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("artifact_cleanup_failed", path=str(path),
                               error=str(e))
