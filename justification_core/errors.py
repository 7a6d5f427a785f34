"""
Exception types shared across the justification layers.

Lookup misses and worker failures are expected outcomes of explanation
work; only `JustificationError` subclasses are raised for them.
"""


class JustificationError(Exception):
    """Base class for all justification engine errors."""


class NoExplanationFound(JustificationError):
    """The oracle could not produce any explanation for an entailment."""

    def __init__(self, entailment, reason: str = ""):
        self.entailment = entailment
        self.reason = reason
        msg = f"No explanation found for {entailment}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class ArtifactError(JustificationError):
    """A temporary artifact could not be written or read."""


class WorkerError(JustificationError):
    """The isolated worker process could not be spawned or read."""


class AxiomSyntaxError(JustificationError, ValueError):
    """Malformed functional-syntax text."""

    def __init__(self, message: str, position: int = -1):
        self.position = position
        if position >= 0:
            message = f"{message} at offset {position}"
        super().__init__(message)
