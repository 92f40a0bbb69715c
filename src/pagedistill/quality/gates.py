"""
Quality gates applied between extraction stages.

Each stage's candidate is measured (length, paragraphs, link density,
signal-to-noise, structure) and scored 0-100. Stages differ only in the
threshold the score must reach and in which failure reasons they report.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from ..dom.serialize import inner_html
from ..dom.tree import Node
from ..protocols import StageKind

if TYPE_CHECKING:
    from ..extractor.site.base import ExtractionResult

HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
SEMANTIC_TAGS = frozenset({"article", "main", "section"})
SEMANTIC_ROLES = frozenset({"main", "article"})

NO_CONTENT_REASON = "no content extracted"


@dataclass(frozen=True)
class QualityMetrics:
    character_count: int = 0
    paragraph_count: int = 0
    link_density: float = 0.0
    avg_paragraph_length: float = 0.0
    heading_count: int = 0
    signal_to_noise_ratio: float = 0.0
    structure_score: float = 0.0


@dataclass(frozen=True)
class QualityGateResult:
    passed: bool
    score: int
    stage: StageKind
    failure_reasons: Tuple[str, ...]
    metrics: QualityMetrics

    def __post_init__(self) -> None:
        if not (0 <= self.score <= 100):
            raise ValueError("Score must be between 0 and 100")


@dataclass(frozen=True)
class GateProfile:
    """Pass threshold plus the limits behind specific failure reasons."""

    threshold: Optional[int]
    min_characters: int = 0
    min_paragraphs: int = 0
    max_link_density: float = 1.0
    min_structure: float = 0.0


STRICT = GateProfile(threshold=60, min_characters=500, min_paragraphs=3, max_link_density=0.4, min_structure=3.0)
LENIENT = GateProfile(threshold=40, min_characters=300, max_link_density=0.5)
ALWAYS_PASS = GateProfile(threshold=None)

STAGE_PROFILES: Dict[StageKind, GateProfile] = {
    StageKind.SITE_SPECIFIC: STRICT,
    StageKind.SEMANTIC: STRICT,
    StageKind.READABILITY: LENIENT,
    StageKind.HEURISTIC: ALWAYS_PASS,
}


def measure(node: Optional[Node]) -> QualityMetrics:
    """Compute quality metrics for a candidate region."""
    if node is None:
        return QualityMetrics()

    text = node.normalized_text()
    character_count = len(text)

    paragraphs: List[Node] = []
    link_chars = 0
    heading_count = 0
    semantic_count = 0
    for element in node.iter_elements():
        if element.tag == "p":
            paragraphs.append(element)
        elif element.tag == "a":
            link_chars += len(element.normalized_text())
        elif element.tag in HEADING_TAGS:
            heading_count += 1
        if element.tag in SEMANTIC_TAGS or element.get("role") in SEMANTIC_ROLES:
            semantic_count += 1

    paragraph_count = len(paragraphs)
    avg_paragraph_length = (
        sum(len(p.normalized_text()) for p in paragraphs) / paragraph_count if paragraph_count else 0.0
    )
    link_density = min(1.0, link_chars / character_count) if character_count else 0.0

    markup_length = len(inner_html(node))
    signal_to_noise = min(1.0, character_count / markup_length) if markup_length else 0.0

    structure_score = min(15.0, (semantic_count * 20 + heading_count * 5) / 10)

    return QualityMetrics(
        character_count=character_count,
        paragraph_count=paragraph_count,
        link_density=link_density,
        avg_paragraph_length=avg_paragraph_length,
        heading_count=heading_count,
        signal_to_noise_ratio=signal_to_noise,
        structure_score=structure_score,
    )


def measure_text(text: str) -> QualityMetrics:
    """Metrics for plain-text content (blank-line separated paragraphs)."""
    stripped = text.strip()
    if not stripped:
        return QualityMetrics()
    blocks = [block.strip() for block in stripped.split("\n\n") if block.strip()]
    paragraphs = [block for block in blocks if not block.startswith("#")]
    headings = len(blocks) - len(paragraphs)
    avg = sum(len(p) for p in paragraphs) / len(paragraphs) if paragraphs else 0.0
    return QualityMetrics(
        character_count=len(stripped),
        paragraph_count=len(paragraphs),
        link_density=0.0,
        avg_paragraph_length=avg,
        heading_count=headings,
        signal_to_noise_ratio=1.0,
        structure_score=min(15.0, headings * 5 / 10),
    )


def score_metrics(metrics: QualityMetrics) -> int:
    """Weighted 0-100 quality score."""
    score = 0.0

    # Character count (0-30)
    if metrics.character_count >= 5000:
        score += 30
    elif metrics.character_count >= 1000:
        score += 25
    elif metrics.character_count >= 300:
        score += 15

    # Paragraph count (0-20)
    if metrics.paragraph_count >= 5:
        score += 20
    elif metrics.paragraph_count >= 3:
        score += 15
    elif metrics.paragraph_count >= 1:
        score += 10

    # Link density, inverted (0-20); empty candidates earn nothing here
    if metrics.character_count > 0:
        if metrics.link_density < 0.1:
            score += 20
        elif metrics.link_density < 0.2:
            score += 15
        elif metrics.link_density < 0.4:
            score += 10
        elif metrics.link_density < 0.6:
            score += 5

    # Signal-to-noise (0-15)
    if metrics.signal_to_noise_ratio > 0.5:
        score += 15
    elif metrics.signal_to_noise_ratio > 0.3:
        score += 10
    elif metrics.signal_to_noise_ratio > 0.1:
        score += 5

    # Structure (0-15)
    score += min(15.0, max(0.0, metrics.structure_score))

    return int(min(100, max(0, round(score))))


class QualityGateEvaluator:
    """Scores candidates and decides whether a stage may return them."""

    def __init__(self, profiles: Optional[Dict[StageKind, GateProfile]] = None) -> None:
        self.profiles = dict(STAGE_PROFILES)
        if profiles:
            self.profiles.update(profiles)

    def threshold_for(self, stage: StageKind) -> Optional[int]:
        return self.profiles[stage].threshold

    def evaluate(self, candidate: Optional[Node], stage: StageKind) -> QualityGateResult:
        profile = self.profiles[stage]

        if candidate is None:
            return QualityGateResult(
                passed=profile.threshold is None,
                score=0,
                stage=stage,
                failure_reasons=() if profile.threshold is None else (NO_CONTENT_REASON,),
                metrics=QualityMetrics(),
            )

        metrics = measure(candidate)
        score = score_metrics(metrics)
        return self._verdict(stage, profile, metrics, score)

    def evaluate_site_result(self, result: Optional["ExtractionResult"]) -> QualityGateResult:
        """Gate a site-specific extraction using the extractor's own score."""
        stage = StageKind.SITE_SPECIFIC
        profile = self.profiles[stage]
        if result is None:
            return self.evaluate(None, stage)

        metrics = measure_text(result.content)
        score = int(min(100, max(0, result.metadata.quality_score)))
        passed = profile.threshold is None or score >= profile.threshold
        reasons: Tuple[str, ...] = ()
        if not passed:
            reasons = (f"site extraction score {score} below {profile.threshold} threshold",)
        return QualityGateResult(passed=passed, score=score, stage=stage, failure_reasons=reasons, metrics=metrics)

    def _verdict(
        self, stage: StageKind, profile: GateProfile, metrics: QualityMetrics, score: int
    ) -> QualityGateResult:
        if profile.threshold is None:
            return QualityGateResult(passed=True, score=score, stage=stage, failure_reasons=(), metrics=metrics)

        passed = score >= profile.threshold
        if passed:
            return QualityGateResult(passed=True, score=score, stage=stage, failure_reasons=(), metrics=metrics)

        reasons: List[str] = []
        if metrics.character_count < profile.min_characters:
            reasons.append(f"low character count: {metrics.character_count} < {profile.min_characters}")
        if metrics.paragraph_count < profile.min_paragraphs:
            reasons.append(f"insufficient paragraphs: {metrics.paragraph_count} < {profile.min_paragraphs}")
        if metrics.link_density > profile.max_link_density:
            reasons.append(
                f"link density {metrics.link_density * 100:.0f}% exceeds {profile.max_link_density * 100:.0f}% limit"
            )
        if metrics.structure_score < profile.min_structure:
            reasons.append(f"weak structure: {metrics.structure_score:.1f} < {profile.min_structure:.1f}")
        reasons.append(f"score {score} below {profile.threshold} threshold")

        return QualityGateResult(
            passed=False, score=score, stage=stage, failure_reasons=tuple(reasons), metrics=metrics
        )


def generate_report(result: QualityGateResult) -> str:
    """Human-readable rendering of a gate result, for diagnostics only."""
    metrics = result.metrics
    lines = [
        "Quality Gate Report",
        f"Stage: {result.stage.value}",
        f"Status: {'PASSED' if result.passed else 'FAILED'}",
        f"Score: {result.score}/100",
        "",
        "Metrics:",
        f"  - Characters: {metrics.character_count}",
        f"  - Paragraphs: {metrics.paragraph_count}",
        f"  - Link Density: {metrics.link_density * 100:.1f}%",
        f"  - Avg Paragraph Length: {metrics.avg_paragraph_length:.0f}",
        f"  - Headings: {metrics.heading_count}",
        f"  - Signal-to-Noise: {metrics.signal_to_noise_ratio * 100:.1f}%",
        f"  - Structure Score: {metrics.structure_score:.1f}/15",
    ]
    if result.failure_reasons:
        lines.append("")
        lines.append("Failure Reasons:")
        lines.extend(f"  - {reason}" for reason in result.failure_reasons)
    return "\n".join(lines)
