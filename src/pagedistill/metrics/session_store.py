"""
In-process rolling window of pipeline outcomes.

Keeps the last ``capacity`` results in a ring buffer and derives aggregate
statistics from them. The store is the only state shared between pipeline
invocations, so every read and write goes through one lock.
"""

from __future__ import annotations

import json
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Tuple, Union

import structlog

from ..config.config import MetricsStoreConfig
from ..protocols import STAGE_ORDER, StageKind

logger = structlog.get_logger(__name__)

RECENT_METRICS = 10
FAST_EXTRACTION_MS = 500
SLOW_EXTRACTION_MS = 2000


@dataclass(frozen=True)
class PipelineMetric:
    stage: StageKind
    quality_score: int
    elapsed_ms: float
    url: str = ""
    timestamp: float = field(default_factory=time.time)
    fallbacks_used: Tuple[str, ...] = ()
    title: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["stage"] = self.stage.value
        data["fallbacks_used"] = list(self.fallbacks_used)
        return data


@dataclass(frozen=True)
class MetricsSnapshot:
    totals: int
    stage_counts: Mapping[str, int]
    success_rates: Mapping[str, int]
    average_quality_score: int
    average_elapsed_ms: int
    fallback_frequency: Mapping[str, int]
    recent: Tuple[PipelineMetric, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totals": self.totals,
            "stage_counts": dict(self.stage_counts),
            "success_rates": dict(self.success_rates),
            "average_quality_score": self.average_quality_score,
            "average_elapsed_ms": self.average_elapsed_ms,
            "fallback_frequency": dict(self.fallback_frequency),
            "recent": [metric.to_dict() for metric in self.recent],
        }


@dataclass(frozen=True)
class PerformanceStats:
    fast: int = 0
    normal: int = 0
    slow: int = 0
    p50: float = 0.0
    p95: float = 0.0


def _empty_counts() -> Dict[str, int]:
    return {stage.value: 0 for stage in STAGE_ORDER}


class SessionMetricsStore:
    """Thread-safe bounded store of :class:`PipelineMetric` entries."""

    def __init__(
        self,
        config: Optional[MetricsStoreConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or MetricsStoreConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._metrics: Deque[PipelineMetric] = deque(maxlen=self.config.capacity)
        self._cached: Optional[MetricsSnapshot] = None
        self._cached_at = 0.0

    @property
    def capacity(self) -> int:
        return self.config.capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)

    def record(self, metric: PipelineMetric) -> None:
        """Append a metric, evicting the oldest once the buffer is full."""
        with self._lock:
            self._metrics.append(metric)
            self._cached = None
        logger.debug("Recorded pipeline metric", stage=metric.stage.value, score=metric.quality_score)

    def metrics(self) -> List[PipelineMetric]:
        with self._lock:
            return list(self._metrics)

    def metrics_in_range(self, start: float, end: float) -> List[PipelineMetric]:
        """Metrics whose timestamp falls within ``[start, end]``."""
        with self._lock:
            return [m for m in self._metrics if start <= m.timestamp <= end]

    def metrics_by_stage(self, stage: Union[StageKind, str]) -> List[PipelineMetric]:
        stage = StageKind(stage)
        with self._lock:
            return [m for m in self._metrics if m.stage is stage]

    def clear(self) -> None:
        with self._lock:
            self._metrics.clear()
            self._cached = None
        logger.info("Session metrics cleared")

    # --- Aggregates ---

    def snapshot(self) -> MetricsSnapshot:
        """Aggregate view of the window, cached until the next record or TTL expiry."""
        with self._lock:
            now = self._clock()
            if self._cached is not None and now - self._cached_at < self.config.cache_ttl_seconds:
                return self._cached
            snapshot = self._build_snapshot(list(self._metrics))
            self._cached = snapshot
            self._cached_at = now
            return snapshot

    def _build_snapshot(self, metrics: List[PipelineMetric]) -> MetricsSnapshot:
        counts = _empty_counts()
        if not metrics:
            return MetricsSnapshot(
                totals=0,
                stage_counts=MappingProxyType(counts),
                success_rates=MappingProxyType(_empty_counts()),
                average_quality_score=0,
                average_elapsed_ms=0,
                fallback_frequency=MappingProxyType({}),
                recent=(),
            )

        fallback_frequency: Dict[str, int] = {}
        for metric in metrics:
            counts[metric.stage.value] += 1
            for reason in metric.fallbacks_used:
                fallback_frequency[reason] = fallback_frequency.get(reason, 0) + 1

        total = len(metrics)
        return MetricsSnapshot(
            totals=total,
            stage_counts=MappingProxyType(counts),
            success_rates=MappingProxyType({stage: round(count / total * 100) for stage, count in counts.items()}),
            average_quality_score=round(sum(m.quality_score for m in metrics) / total),
            average_elapsed_ms=round(sum(m.elapsed_ms for m in metrics) / total),
            fallback_frequency=MappingProxyType(fallback_frequency),
            recent=tuple(metrics[-RECENT_METRICS:]),
        )

    def performance_percentiles(self) -> PerformanceStats:
        """Latency buckets plus p50/p95 (nearest-rank on the sorted window)."""
        with self._lock:
            times = sorted(m.elapsed_ms for m in self._metrics)
        if not times:
            return PerformanceStats()

        n = len(times)
        return PerformanceStats(
            fast=sum(1 for t in times if t < FAST_EXTRACTION_MS),
            normal=sum(1 for t in times if FAST_EXTRACTION_MS <= t <= SLOW_EXTRACTION_MS),
            slow=sum(1 for t in times if t > SLOW_EXTRACTION_MS),
            p50=times[min(n - 1, int(n * 0.5))],
            p95=times[min(n - 1, int(n * 0.95))],
        )

    def export_json(self) -> str:
        """Snapshot plus raw metrics as pretty-printed JSON, for debugging."""
        snapshot = self.snapshot()
        payload = {
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "summary": snapshot.to_dict(),
            "metrics": [metric.to_dict() for metric in self.metrics()],
        }
        return json.dumps(payload, indent=2)
