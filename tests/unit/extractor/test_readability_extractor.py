"""
Unit tests for ReadabilitySummarizer.
"""

from unittest.mock import Mock, patch

import pytest
from readability.readability import Unparseable

from pagedistill.config import ReadabilitySettings
from pagedistill.extractor import ReadabilitySummarizer

LONG_SUMMARY = "<div><p>" + "A sentence of readable article text. " * 20 + "</p></div>"
SHORT_SUMMARY = "<div><p>Short text only.</p></div>"


def _mock_document(summary_html, title="Mock Title"):
    mock_doc = Mock()
    mock_doc.short_title.return_value = title
    mock_doc.summary.return_value = summary_html
    return mock_doc


@pytest.mark.unit
class TestReadabilitySummarizer:
    """Test cases for ReadabilitySummarizer."""

    def test_init(self):
        """Test summarizer initialization."""
        summarizer = ReadabilitySummarizer()
        assert summarizer.name == "readability"
        assert summarizer.settings.min_text_length == 25
        assert summarizer.settings.lenient_retry

    @patch("pagedistill.extractor.readability_extractor.Document")
    def test_empty_document(self, mock_document_class, empty_document):
        """Test that documents without text are not summarized."""
        assert ReadabilitySummarizer().summarize(empty_document) is None
        mock_document_class.assert_not_called()

    @patch("pagedistill.extractor.readability_extractor.Document")
    def test_first_pass_accepted(self, mock_document_class, article_document):
        """Test that a long first pass is returned without a retry."""
        mock_document_class.return_value = _mock_document(LONG_SUMMARY)

        summary = ReadabilitySummarizer().summarize(article_document)

        assert summary is not None
        assert summary.title == "Mock Title"
        assert "A sentence of readable article text." in summary.node.normalized_text()
        assert mock_document_class.call_count == 1
        mock_document_class.return_value.summary.assert_called_once_with(html_partial=True)

    @patch("pagedistill.extractor.readability_extractor.Document")
    def test_lenient_retry(self, mock_document_class, article_document):
        """Test the relaxed second pass after a short first pass."""
        mock_document_class.return_value = _mock_document(SHORT_SUMMARY)

        summary = ReadabilitySummarizer().summarize(article_document)

        assert summary is not None
        assert summary.node.normalized_text() == "Short text only."
        assert mock_document_class.call_count == 2
        first, second = mock_document_class.call_args_list
        assert first.kwargs["retry_length"] == 500
        assert second.kwargs["retry_length"] == 250
        assert first.kwargs["min_text_length"] == 25
        assert first.kwargs["url"] == article_document.url

    @patch("pagedistill.extractor.readability_extractor.Document")
    def test_retry_disabled(self, mock_document_class, article_document):
        """Test that the retry can be switched off."""
        mock_document_class.return_value = _mock_document(SHORT_SUMMARY)

        summarizer = ReadabilitySummarizer(ReadabilitySettings(lenient_retry=False))
        summary = summarizer.summarize(article_document)

        assert summary is not None
        assert mock_document_class.call_count == 1

    @patch("pagedistill.extractor.readability_extractor.Document")
    def test_forum_preset_keywords(self, mock_document_class, parse):
        """Test that forum pages keep comment containers."""
        mock_document_class.return_value = _mock_document(LONG_SUMMARY)
        document = parse("<html><body><p>Thread text</p></body></html>", "https://forum.example.org/t/1")

        ReadabilitySummarizer().summarize(document)

        kwargs = mock_document_class.call_args.kwargs
        assert "comment" not in kwargs["negative_keywords"]
        assert "comment" in kwargs["positive_keywords"]
        assert kwargs["retry_length"] == 250

    @patch("pagedistill.extractor.readability_extractor.Document")
    def test_presets_disabled(self, mock_document_class, parse):
        """Test that the default preset is used when presets are off."""
        mock_document_class.return_value = _mock_document(LONG_SUMMARY)
        document = parse("<html><body><p>Thread text</p></body></html>", "https://forum.example.org/t/1")

        ReadabilitySummarizer(ReadabilitySettings(use_presets=False)).summarize(document)

        kwargs = mock_document_class.call_args.kwargs
        assert "comment" in kwargs["negative_keywords"]
        assert kwargs["retry_length"] == 500

    @patch("pagedistill.extractor.readability_extractor.Document")
    def test_forced_preset(self, mock_document_class, article_document):
        """Test that a configured preset wins over URL matching."""
        mock_document_class.return_value = _mock_document(LONG_SUMMARY)
        summarizer = ReadabilitySummarizer(ReadabilitySettings(preset="forum-discussion"))

        summarizer.summarize(article_document)

        assert summarizer.forced_preset.name == "forum-discussion"
        assert "comment" in mock_document_class.call_args.kwargs["positive_keywords"]

    def test_unknown_preset_rejected(self):
        """Test that an unknown preset name fails at construction."""
        with pytest.raises(ValueError, match="Unknown readability preset"):
            ReadabilitySummarizer(ReadabilitySettings(preset="nope"))

    @patch("pagedistill.extractor.readability_extractor.Document")
    def test_unparseable(self, mock_document_class, article_document):
        """Test that readability failures yield None."""
        mock_document_class.side_effect = Unparseable("broken")

        assert ReadabilitySummarizer().summarize(article_document) is None

    @patch("pagedistill.extractor.readability_extractor.Document")
    def test_empty_summary(self, mock_document_class, article_document):
        """Test that an empty summary yields None."""
        mock_document_class.return_value = _mock_document("<div> </div>")

        assert ReadabilitySummarizer().summarize(article_document) is None

    @patch("pagedistill.extractor.readability_extractor.Document")
    def test_title_falls_back_to_document(self, mock_document_class, article_document):
        """Test the document title when readability finds none."""
        mock_document_class.return_value = _mock_document(LONG_SUMMARY, title="")

        summary = ReadabilitySummarizer().summarize(article_document)

        assert summary is not None
        assert summary.title == "Halving CI time with caching"

    def test_real_article(self, article_document):
        """Test readability-lxml on a real article page."""
        summary = ReadabilitySummarizer().summarize(article_document)

        assert summary is not None
        assert "Caching dependencies between continuous integration runs" in summary.node.normalized_text()
