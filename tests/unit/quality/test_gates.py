"""
Unit tests for the quality gate evaluator.
"""

import pytest

from pagedistill.dom import select_one
from pagedistill.extractor.site import ExtractionMetadata, ExtractionResult
from pagedistill.protocols import StageKind
from pagedistill.quality import (
    GateProfile,
    QualityGateEvaluator,
    QualityGateResult,
    QualityMetrics,
    generate_report,
    measure,
    measure_text,
    score_metrics,
)

LINK_HEAVY = "<p>" + "a" * 55 + '<a href="#">' + "b" * 45 + "</a></p>"


@pytest.fixture
def evaluator():
    return QualityGateEvaluator()


@pytest.mark.unit
class TestScoreMetrics:
    """Test cases for the weighted score."""

    def test_empty_metrics_score_zero(self):
        """Test that an empty candidate earns nothing."""
        assert score_metrics(QualityMetrics()) == 0

    def test_maximum_score(self):
        """Test that every bucket at its best adds up to 100."""
        metrics = QualityMetrics(
            character_count=5000,
            paragraph_count=5,
            link_density=0.0,
            signal_to_noise_ratio=0.9,
            structure_score=15.0,
        )

        assert score_metrics(metrics) == 100

    def test_middle_buckets(self):
        """Test the intermediate bucket boundaries."""
        metrics = QualityMetrics(
            character_count=1000,
            paragraph_count=3,
            link_density=0.15,
            signal_to_noise_ratio=0.4,
            structure_score=2.0,
        )

        # 25 + 15 + 15 + 10 + 2
        assert score_metrics(metrics) == 67

    def test_low_buckets(self):
        """Test the lowest non-zero buckets."""
        metrics = QualityMetrics(
            character_count=300,
            paragraph_count=1,
            link_density=0.5,
            signal_to_noise_ratio=0.2,
        )

        assert score_metrics(metrics) == 35

    def test_structure_capped(self):
        """Test that structure never contributes more than 15 points."""
        base = QualityMetrics(structure_score=15.0)
        over = QualityMetrics(structure_score=40.0)

        assert score_metrics(base) == score_metrics(over) == 15


@pytest.mark.unit
class TestMeasure:
    """Test cases for metric collection."""

    def test_link_density(self, fragment):
        """Test link text as a share of all text."""
        metrics = measure(fragment(LINK_HEAVY))

        assert metrics.character_count == 100
        assert metrics.paragraph_count == 1
        assert metrics.link_density == pytest.approx(0.45)

    def test_structure_from_semantic_tags_and_headings(self, fragment):
        """Test the structure score for sections and headings."""
        node = fragment("<article><section><h2>A</h2><p>x</p></section><section><h2>B</h2></section></article>")

        metrics = measure(node)

        assert metrics.heading_count == 2
        assert metrics.structure_score == pytest.approx(7.0)

    def test_none_candidate(self):
        """Test that no candidate yields empty metrics."""
        assert measure(None) == QualityMetrics()

    def test_measure_text(self):
        """Test metrics for plain text with markdown headings."""
        metrics = measure_text("## Title\n\nFirst paragraph here.\n\nSecond one.")

        assert metrics.paragraph_count == 2
        assert metrics.heading_count == 1
        assert metrics.signal_to_noise_ratio == 1.0
        assert measure_text("   ") == QualityMetrics()


@pytest.mark.unit
class TestQualityGateEvaluator:
    """Test cases for QualityGateEvaluator."""

    def test_thresholds(self, evaluator):
        """Test the per-stage pass thresholds."""
        assert evaluator.threshold_for(StageKind.SITE_SPECIFIC) == 60
        assert evaluator.threshold_for(StageKind.SEMANTIC) == 60
        assert evaluator.threshold_for(StageKind.READABILITY) == 40
        assert evaluator.threshold_for(StageKind.HEURISTIC) is None

    def test_none_candidate_fails(self, evaluator):
        """Test that a missing candidate fails with score 0."""
        result = evaluator.evaluate(None, StageKind.SEMANTIC)

        assert not result.passed
        assert result.score == 0
        assert result.failure_reasons == ("no content extracted",)

    def test_none_candidate_heuristic_passes(self, evaluator):
        """Test that the heuristic gate accepts even nothing."""
        result = evaluator.evaluate(None, StageKind.HEURISTIC)

        assert result.passed
        assert result.score == 0
        assert result.failure_reasons == ()

    def test_rich_article_passes_strict_gate(self, evaluator, article_document):
        """Test that a well-formed article passes the semantic gate."""
        article = select_one(article_document.root, "article")

        result = evaluator.evaluate(article, StageKind.SEMANTIC)

        assert result.passed
        assert result.score >= 60
        assert result.failure_reasons == ()
        assert result.metrics.paragraph_count == 5

    def test_short_candidate_strict_reasons(self, evaluator, fragment):
        """Test the failure reasons of the strict gate."""
        result = evaluator.evaluate(fragment("<p>Just one short paragraph of text here.</p>"), StageKind.SEMANTIC)

        assert not result.passed
        assert result.score == 45
        assert result.failure_reasons == (
            "low character count: 38 < 500",
            "insufficient paragraphs: 1 < 3",
            "weak structure: 0.0 < 3.0",
            "score 45 below 60 threshold",
        )

    def test_short_candidate_passes_lenient_gate(self, evaluator, fragment):
        """Test that the readability gate accepts what the strict gate rejects."""
        result = evaluator.evaluate(fragment("<p>Just one short paragraph of text here.</p>"), StageKind.READABILITY)

        assert result.passed
        assert result.score == 45

    def test_link_density_reason(self, evaluator, fragment):
        """Test the link density failure reason."""
        result = evaluator.evaluate(fragment(LINK_HEAVY), StageKind.SEMANTIC)

        assert not result.passed
        assert "link density 45% exceeds 40% limit" in result.failure_reasons

    def test_lenient_reasons(self, evaluator, fragment):
        """Test that the lenient gate reports only its own limits."""
        result = evaluator.evaluate(fragment(LINK_HEAVY), StageKind.READABILITY)

        assert not result.passed
        assert result.failure_reasons == ("low character count: 100 < 300", "score 30 below 40 threshold")

    def test_heuristic_always_passes(self, evaluator, fragment):
        """Test that the heuristic gate passes any candidate."""
        result = evaluator.evaluate(fragment("<p>tiny</p>"), StageKind.HEURISTIC)

        assert result.passed
        assert result.failure_reasons == ()

    @pytest.mark.parametrize(
        "markup",
        [
            "<p>x</p>",
            "<a href='#'>only a link</a>",
            "<article><h1>T</h1>" + "<p>" + "word " * 400 + "</p>" * 8 + "</article>",
            "<div><div><div></div></div></div>",
        ],
    )
    def test_score_in_range(self, evaluator, fragment, markup):
        """Test that every score lies within 0-100."""
        for stage in StageKind:
            result = evaluator.evaluate(fragment(markup), stage)
            assert 0 <= result.score <= 100

    def test_custom_profile(self, fragment):
        """Test overriding a stage profile."""
        evaluator = QualityGateEvaluator({StageKind.SEMANTIC: GateProfile(threshold=10)})

        assert evaluator.evaluate(fragment("<p>Just one short paragraph of text here.</p>"), StageKind.SEMANTIC).passed

    def test_site_result_uses_extractor_score(self, evaluator):
        """Test gating site-specific output on its own score."""
        result = ExtractionResult(
            content="# Title\n\nSome body text.",
            metadata=ExtractionMetadata(strategy="x", shadow_depth=0, noise_filtered=True, quality_score=55),
        )

        gate = evaluator.evaluate_site_result(result)

        assert not gate.passed
        assert gate.score == 55
        assert gate.failure_reasons == ("site extraction score 55 below 60 threshold",)

    def test_site_result_passes(self, evaluator):
        """Test a site result above the threshold."""
        result = ExtractionResult(
            content="Body text",
            metadata=ExtractionMetadata(strategy="x", shadow_depth=0, noise_filtered=True, quality_score=80),
        )

        gate = evaluator.evaluate_site_result(result)

        assert gate.passed
        assert gate.stage is StageKind.SITE_SPECIFIC

    def test_missing_site_result(self, evaluator):
        """Test that no site result fails the gate."""
        gate = evaluator.evaluate_site_result(None)

        assert not gate.passed
        assert gate.score == 0


@pytest.mark.unit
class TestQualityGateResult:
    """Test cases for QualityGateResult."""

    def test_score_validation(self):
        """Test that scores outside 0-100 are rejected."""
        with pytest.raises(ValueError, match="Score must be between 0 and 100"):
            QualityGateResult(
                passed=True, score=101, stage=StageKind.SEMANTIC, failure_reasons=(), metrics=QualityMetrics()
            )

    def test_report_for_failure(self, evaluator, fragment):
        """Test the diagnostic report of a failed gate."""
        report = generate_report(evaluator.evaluate(fragment(LINK_HEAVY), StageKind.SEMANTIC))

        assert report.startswith("Quality Gate Report")
        assert "Stage: semantic" in report
        assert "Status: FAILED" in report
        assert "Score: 30/100" in report
        assert "Link Density: 45.0%" in report
        assert "Failure Reasons:" in report
        assert "  - score 30 below 60 threshold" in report

    def test_report_for_pass(self, evaluator, fragment):
        """Test that a passing report lists no reasons."""
        report = generate_report(evaluator.evaluate(fragment("<p>ok</p>"), StageKind.HEURISTIC))

        assert "Status: PASSED" in report
        assert "Failure Reasons:" not in report
