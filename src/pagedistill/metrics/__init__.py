"""Rolling session metrics for pipeline runs."""

from __future__ import annotations

from .session_store import MetricsSnapshot, PerformanceStats, PipelineMetric, SessionMetricsStore

__all__ = ["SessionMetricsStore", "PipelineMetric", "MetricsSnapshot", "PerformanceStats"]
