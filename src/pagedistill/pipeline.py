"""
Graceful-degradation extraction pipeline.

Stages run in a fixed order, each followed by its quality gate:

    site-specific -> semantic -> readability -> heuristic

The first stage whose candidate passes its gate and reaches the configured
quality floor wins. Every rejected stage leaves a fallback reason behind.
The heuristic stage accepts whatever it finds, so a document with any text
always yields content unless the deadline runs out first.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import structlog

from .config.config import Config, PipelineConfig
from .dom.parser import SoupDocumentParser
from .dom.serialize import inner_html
from .dom.tree import DocumentTree, Node
from .errors import NoContentError, PipelineError, PipelineTimeoutError
from .extractor.readability_extractor import ReadabilitySummarizer
from .extractor.semantic import SemanticExtractor
from .extractor.site import ExtractionResult, SiteExtractor, default_site_extractors
from .metrics.session_store import PipelineMetric, SessionMetricsStore
from .observability import histogram, increment
from .protocols import STAGE_ORDER, DocumentParser, StageKind, Summarizer
from .quality.gates import QualityGateEvaluator, QualityGateResult, generate_report
from .scoring.engine import ScoringEngine

logger = structlog.get_logger(__name__)

ConfigOverrides = Union[PipelineConfig, Mapping[str, Any], None]


@dataclass(frozen=True)
class ResultMetadata:
    url: str
    title: str
    timestamp: str


@dataclass(frozen=True)
class PipelineResult:
    """Terminal output of one pipeline run."""

    content: str
    stage: StageKind
    quality_score: int
    quality_report: str
    fallbacks_used: Tuple[str, ...]
    elapsed_ms: float
    metadata: ResultMetadata
    # Winning node; None for the site-specific stage, whose content is text.
    node: Optional[Node] = None
    gate: Optional[QualityGateResult] = None

    def to_metric(self) -> PipelineMetric:
        return PipelineMetric(
            stage=self.stage,
            quality_score=self.quality_score,
            elapsed_ms=self.elapsed_ms,
            url=self.metadata.url,
            fallbacks_used=self.fallbacks_used,
            title=self.metadata.title,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "stage": self.stage.value,
            "quality_score": self.quality_score,
            "quality_report": self.quality_report,
            "fallbacks_used": list(self.fallbacks_used),
            "elapsed_ms": round(self.elapsed_ms, 2),
            "metadata": {
                "url": self.metadata.url,
                "title": self.metadata.title,
                "timestamp": self.metadata.timestamp,
            },
        }


@dataclass(frozen=True)
class _StageOutcome:
    content: str
    gate: QualityGateResult
    node: Optional[Node] = None
    title: str = ""
    strategy: str = ""


class GracefulDegradationPipeline:
    """
    Orchestrates the extraction stages for a single document at a time.

    Collaborators are injected so callers can swap the parser, the
    readability summarizer or the site extractors. The pipeline holds no
    per-document state; one instance can serve concurrent invocations.
    """

    def __init__(
        self,
        evaluator: Optional[QualityGateEvaluator] = None,
        scoring_engine: Optional[ScoringEngine] = None,
        semantic_extractor: Optional[SemanticExtractor] = None,
        summarizer: Optional[Summarizer] = None,
        site_extractors: Optional[Sequence[SiteExtractor]] = None,
        metrics_store: Optional[SessionMetricsStore] = None,
        parser: Optional[DocumentParser] = None,
        defaults: Optional[PipelineConfig] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.evaluator = evaluator or QualityGateEvaluator()
        self.scoring_engine = scoring_engine or ScoringEngine()
        self.semantic_extractor = semantic_extractor or SemanticExtractor(self.evaluator)
        self.summarizer: Summarizer = summarizer or ReadabilitySummarizer()
        self.site_extractors: List[SiteExtractor] = (
            list(site_extractors) if site_extractors is not None else default_site_extractors()
        )
        self.metrics_store = metrics_store
        self.parser: DocumentParser = parser or SoupDocumentParser()
        self.defaults = defaults or PipelineConfig()
        self._clock = clock
        self.logger = logger.bind(component="GracefulDegradationPipeline")

    @classmethod
    def from_config(
        cls,
        config: Config,
        metrics_store: Optional[SessionMetricsStore] = None,
    ) -> "GracefulDegradationPipeline":
        """Build a pipeline whose strategies are tuned by ``config``."""
        evaluator = QualityGateEvaluator()
        return cls(
            evaluator=evaluator,
            scoring_engine=ScoringEngine(config.scoring),
            semantic_extractor=SemanticExtractor(evaluator, config.semantic),
            summarizer=ReadabilitySummarizer(config.readability),
            site_extractors=default_site_extractors(config.site) if config.site.enabled else [],
            metrics_store=metrics_store,
            defaults=config.pipeline,
        )

    # --- Entry points ---

    def execute(self, document: DocumentTree, config: ConfigOverrides = None) -> PipelineResult:
        """Run the stages over ``document`` and return the first acceptable result.

        Raises:
            NoContentError: the document holds no text, or no enabled stage
                produced acceptable content.
            PipelineTimeoutError: the deadline passed before a stage could start.
        """
        cfg = PipelineConfig.resolve(config, base=self.defaults)
        start = self._clock()

        with structlog.contextvars.bound_contextvars(document_url=document.url):
            try:
                result = self._run(document, cfg, start)
            except PipelineError as e:
                increment("pipeline_errors", labels={"error": e.code})
                self.logger.warning("Pipeline failed", error_type=type(e).__name__, error=str(e))
                raise

        increment("pipeline_runs", labels={"stage": result.stage.value})
        histogram("pipeline_duration_seconds", result.elapsed_ms / 1000)
        histogram("pipeline_quality_score", result.quality_score, labels={"stage": result.stage.value})
        if self.metrics_store is not None:
            self.metrics_store.record(result.to_metric())

        self.logger.info(
            "Extraction completed",
            stage=result.stage.value,
            quality_score=result.quality_score,
            fallbacks=list(result.fallbacks_used),
            elapsed_ms=round(result.elapsed_ms, 2),
        )
        return result

    async def execute_async(self, document: DocumentTree, config: ConfigOverrides = None) -> PipelineResult:
        """Run :meth:`execute` on a worker thread."""
        return await asyncio.to_thread(self.execute, document, config)

    def extract_html(self, markup: str, url: str = "", config: ConfigOverrides = None) -> PipelineResult:
        """Parse ``markup`` with the configured parser, then :meth:`execute` it."""
        return self.execute(self.parser.parse(markup, url), config)

    # --- State machine ---

    def _run(self, document: DocumentTree, cfg: PipelineConfig, start: float) -> PipelineResult:
        if not document.body.has_text(include_shadow=True):
            raise NoContentError("Document has no text content")
        if not any(cfg.stage_enabled(stage) for stage in STAGE_ORDER):
            raise NoContentError("Every extraction stage is disabled")

        stage_log = self.logger.info if cfg.debug else self.logger.debug
        fallbacks: List[str] = []

        for stage in STAGE_ORDER:
            if not cfg.stage_enabled(stage):
                stage_log("Stage disabled", stage=stage.value, skipped=True)
                continue

            # The heuristic stage is the safety net and always gets to run.
            if stage is not StageKind.HEURISTIC:
                self._check_timeout(cfg, start)

            outcome = self._attempt(stage, document)
            elapsed_ms = self._elapsed_ms(start)
            if outcome is None:
                stage_log("Stage skipped", stage=stage.value, skipped=True, elapsed_ms=round(elapsed_ms, 2))
                continue

            gate = outcome.gate
            accepted = stage is StageKind.HEURISTIC or (gate.passed and gate.score >= cfg.min_quality_score)
            stage_log(
                "Stage attempted",
                stage=stage.value,
                strategy=outcome.strategy,
                skipped=False,
                passed=gate.passed,
                score=gate.score,
                failure_reasons=list(gate.failure_reasons),
                accepted=accepted,
                elapsed_ms=round(elapsed_ms, 2),
            )

            if accepted:
                return self._build_result(document, stage, outcome, fallbacks, elapsed_ms)

            reason = f"{stage.value}-gate-failed" if not gate.passed else f"{stage.value}-low-quality"
            fallbacks.append(reason)
            increment("pipeline_fallbacks", labels={"reason": reason})

        raise NoContentError(f"No enabled stage produced acceptable content (tried: {', '.join(fallbacks)})")

    def _check_timeout(self, cfg: PipelineConfig, start: float) -> None:
        if cfg.timeout_ms <= 0:
            return
        elapsed_ms = self._elapsed_ms(start)
        if elapsed_ms > cfg.timeout_ms:
            raise PipelineTimeoutError(cfg.timeout_ms, elapsed_ms)

    def _elapsed_ms(self, start: float) -> float:
        return (self._clock() - start) * 1000

    def _attempt(self, stage: StageKind, document: DocumentTree) -> Optional[_StageOutcome]:
        if stage is StageKind.SITE_SPECIFIC:
            return self._run_site_specific(document)
        if stage is StageKind.SEMANTIC:
            return self._run_semantic(document)
        if stage is StageKind.READABILITY:
            return self._run_readability(document)
        return self._run_heuristic(document)

    # --- Stages ---

    def _run_site_specific(self, document: DocumentTree) -> Optional[_StageOutcome]:
        """``None`` when no site extractor applies to the document."""
        applicable = [extractor for extractor in self.site_extractors if extractor.applies_to(document)]
        if not applicable:
            return None

        result: Optional[ExtractionResult] = None
        strategy = applicable[0].name
        for extractor in applicable:
            strategy = extractor.name
            try:
                result = extractor.extract(document)
            except Exception as e:
                self.logger.warning(
                    "Extractor failed", extractor=extractor.name, error_type=type(e).__name__, error=str(e)
                )
                result = None
            if result is not None:
                break

        gate = self.evaluator.evaluate_site_result(result)
        if result is None:
            return _StageOutcome(content="", gate=gate, strategy=strategy)
        return _StageOutcome(
            content=result.content,
            gate=gate,
            strategy=f"{strategy}:{result.metadata.strategy}",
        )

    def _run_semantic(self, document: DocumentTree) -> _StageOutcome:
        candidate = self.semantic_extractor.extract(document)
        if candidate is None:
            return _StageOutcome(
                content="",
                gate=self.evaluator.evaluate(None, StageKind.SEMANTIC),
                strategy=self.semantic_extractor.name,
            )
        return _StageOutcome(
            content=inner_html(candidate.node),
            gate=candidate.gate,
            node=candidate.node,
            strategy=self.semantic_extractor.name,
        )

    def _run_readability(self, document: DocumentTree) -> _StageOutcome:
        try:
            summary = self.summarizer.summarize(document)
        except Exception as e:
            self.logger.warning(
                "Extractor failed", extractor=self.summarizer.name, error_type=type(e).__name__, error=str(e)
            )
            summary = None

        node = summary.node if summary is not None else None
        gate = self.evaluator.evaluate(node, StageKind.READABILITY)
        return _StageOutcome(
            content=inner_html(node) if node is not None else "",
            gate=gate,
            node=node,
            title=summary.title if summary is not None else "",
            strategy=self.summarizer.name,
        )

    def _run_heuristic(self, document: DocumentTree) -> _StageOutcome:
        body = document.body
        best = self.scoring_engine.find_best_candidate(body)
        candidate = best.node if best is not None else body

        node = self.scoring_engine.prune(candidate)
        if not node.has_text():
            node = candidate if candidate.has_text() else body

        content = inner_html(node)
        if not node.has_text():
            # Text that lives only in shadow roots.
            content = inner_html(body, include_shadow=True)

        return _StageOutcome(
            content=content,
            gate=self.evaluator.evaluate(node, StageKind.HEURISTIC),
            node=node,
            strategy="scoring",
        )

    # --- Result assembly ---

    def _build_result(
        self,
        document: DocumentTree,
        stage: StageKind,
        outcome: _StageOutcome,
        fallbacks: List[str],
        elapsed_ms: float,
    ) -> PipelineResult:
        if not outcome.content.strip():
            raise NoContentError(f"Stage {stage.value} produced empty content")
        return PipelineResult(
            content=outcome.content,
            stage=stage,
            quality_score=outcome.gate.score,
            quality_report=generate_report(outcome.gate),
            fallbacks_used=tuple(fallbacks),
            elapsed_ms=elapsed_ms,
            metadata=ResultMetadata(
                url=document.url,
                title=outcome.title or document.title,
                timestamp=datetime.now(timezone.utc).isoformat(),
            ),
            node=outcome.node,
            gate=outcome.gate,
        )
