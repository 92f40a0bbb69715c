"""Candidate quality measurement and stage gates."""

from __future__ import annotations

from .gates import (
    STAGE_PROFILES,
    GateProfile,
    QualityGateEvaluator,
    QualityGateResult,
    QualityMetrics,
    generate_report,
    measure,
    measure_text,
    score_metrics,
)

__all__ = [
    "QualityGateEvaluator",
    "QualityGateResult",
    "QualityMetrics",
    "GateProfile",
    "STAGE_PROFILES",
    "measure",
    "measure_text",
    "score_metrics",
    "generate_report",
]
