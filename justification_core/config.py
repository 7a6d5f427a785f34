"""
Engine configuration.

One dataclass for every tunable of the justification engine, the laconic
scheduler and the isolated worker. Values can be overridden from
`JUSTIFY_<FIELD>` environment variables via `EngineConfig.from_env()`.
"""

import os
from dataclasses import dataclass, fields
from typing import Optional

DEFAULT_WORKER_ORACLE = (
    "justification_core.verification.z3_oracle:Z3ExplanationOracle")

ENV_PREFIX = "JUSTIFY_"


@dataclass
class EngineConfig:
    """Configuration for justification and laconic refinement."""
    justification_limit: int = 1     # Max justifications per entailment
    laconic_limit: int = 0           # 0 -> same as justification_limit

    # Divide-and-conquer batch splitting
    leaf_size: int = 10              # At or below this, compute directly
    max_workers: Optional[int] = None  # None -> os.cpu_count()

    # Heavy/light routing and isolation
    heavy_threshold: int = 20        # Nested class expressions
    watchdog_ms: int = 500           # Worker-side hard timeout
    spawn_grace_s: float = 30.0      # Parent-side slack on top of watchdog
    artifact_dir: str = "temp"       # Relative to the working directory
    artifact_suffix: str = "owl"
    worker_oracle: str = DEFAULT_WORKER_ORACLE

    # Oracle
    solver_timeout_ms: int = 0       # 0 -> no per-check timeout

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"      # "console" or "json"

    def __post_init__(self):
        if self.justification_limit < 1:
            raise ValueError(
                f"justification_limit must be >= 1, "
                f"got {self.justification_limit}")
        if self.laconic_limit < 0:
            raise ValueError(
                f"laconic_limit must be >= 0, got {self.laconic_limit}")
        if self.laconic_limit == 0:
            self.laconic_limit = self.justification_limit
        if self.leaf_size < 1:
            raise ValueError(f"leaf_size must be >= 1, got {self.leaf_size}")
        if self.max_workers is None:
            self.max_workers = os.cpu_count() or 1
        if self.max_workers < 1:
            raise ValueError(
                f"max_workers must be >= 1, got {self.max_workers}")
        if self.watchdog_ms <= 0:
            raise ValueError(
                f"watchdog_ms must be > 0, got {self.watchdog_ms}")
        if ":" not in self.worker_oracle:
            raise ValueError(
                f"worker_oracle must look like 'module:attr', "
                f"got {self.worker_oracle!r}")
        if self.log_format not in ("console", "json"):
            raise ValueError(f"Unknown log_format {self.log_format!r}")

    @property
    def worker_timeout_s(self) -> float:
        """Parent-side backstop for one isolated worker."""
        return self.watchdog_ms / 1000.0 + self.spawn_grace_s

    @classmethod
    def from_env(cls, environ=None, **overrides) -> "EngineConfig":
        """Build a config from JUSTIFY_* variables plus explicit overrides."""
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            if f.name == "max_workers":
                values[f.name] = int(raw)
            elif isinstance(f.default, int):
                values[f.name] = int(raw)
            elif isinstance(f.default, float):
                values[f.name] = float(raw)
            else:
                values[f.name] = raw
        values.update(overrides)
        return cls(**values)
