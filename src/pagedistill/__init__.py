"""
PageDistill - main-content extraction with graceful degradation.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config, PipelineConfig
from .dom import DocumentTree, Node, SoupDocumentParser
from .errors import NoContentError, PipelineError, PipelineTimeoutError
from .metrics import PipelineMetric, SessionMetricsStore
from .pipeline import GracefulDegradationPipeline, PipelineResult
from .protocols import StageKind
from .quality import QualityGateEvaluator, QualityGateResult, generate_report
from .scoring import ScoringEngine

__all__ = [
    "__version__",
    "Config",
    "PipelineConfig",
    "DocumentTree",
    "Node",
    "SoupDocumentParser",
    "GracefulDegradationPipeline",
    "PipelineResult",
    "StageKind",
    "QualityGateEvaluator",
    "QualityGateResult",
    "generate_report",
    "ScoringEngine",
    "SessionMetricsStore",
    "PipelineMetric",
    "PipelineError",
    "NoContentError",
    "PipelineTimeoutError",
]
