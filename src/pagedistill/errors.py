"""
Error types surfaced by the extraction pipeline.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for pipeline failures."""

    code = "pipeline-error"


class NoContentError(PipelineError):
    """Raised when no stage can produce any content for the document."""

    code = "no-content"


class PipelineTimeoutError(PipelineError):
    """Raised when the pipeline exceeds its configured deadline."""

    code = "timeout"

    def __init__(self, timeout_ms: int, elapsed_ms: float) -> None:
        self.timeout_ms = timeout_ms
        self.elapsed_ms = elapsed_ms
        super().__init__(f"Pipeline execution exceeded timeout of {timeout_ms}ms (elapsed {elapsed_ms:.0f}ms)")
