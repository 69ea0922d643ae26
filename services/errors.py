"""
errors.py
Error taxonomy for the dashboard pipeline.

TransientBackendError and SchemaViolationError are always caught at a stage
boundary and turned into that stage's fallback. PipelineFatalError is the only
error a caller of the pipeline ever sees.
"""

from typing import Any, Dict, Optional


class PipelineError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TransientBackendError(PipelineError):
    """Raised when an AI, embedding or vector-store backend is unreachable or erroring."""


class SchemaViolationError(PipelineError):
    """Raised when an AI response can't be parsed or doesn't fit the expected structure."""


class ProviderChainExhaustedError(PipelineError):
    """Raised when every provider of a stage was unavailable or failed."""

    def __init__(self, stage: str) -> None:
        self.stage = stage
        super().__init__(f"No provider could produce a result for stage '{stage}'")


class PipelineFatalError(PipelineError):
    """Raised when Classification, Retrieval or Synthesis fails despite its fallbacks."""

    def __init__(self, message: str, phase: str, summary: Optional[Dict[str, Any]] = None) -> None:
        self.phase = phase
        self.summary = summary or {}
        super().__init__(message)
