"""
Defines the Prometheus collectors recorded by the extraction pipeline.
"""

from __future__ import annotations

from typing import Any, Dict

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        # Counters register under their "_total"-less name as well.
        for key in (name, name.removesuffix("_total")):
            existing = _PROM_REGISTRY._names_to_collectors.get(key)
            if existing is not None:
                return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            # Registration lost the race, fall back to the now-existing collector.
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "pipeline_runs": Counter(
            "pagedistill_pipeline_runs_total",
            "Pipeline invocations that produced a result, by winning stage",
            ["stage"],
        ),
        "pipeline_fallbacks": Counter(
            "pagedistill_pipeline_fallbacks_total",
            "Stage rejections that made the pipeline fall through",
            ["reason"],
        ),
        "pipeline_errors": Counter(
            "pagedistill_pipeline_errors_total",
            "Pipeline invocations that ended in an error",
            ["error"],
        ),
        "pipeline_duration_seconds": Histogram(
            "pagedistill_pipeline_duration_seconds",
            "Wall time of a pipeline invocation",
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
        ),
        "pipeline_quality_score": Histogram(
            "pagedistill_pipeline_quality_score",
            "Quality score of accepted results, by winning stage",
            ["stage"],
            buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()
