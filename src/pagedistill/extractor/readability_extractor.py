"""
Readability-based summarizer for the readability pipeline stage.
"""

from __future__ import annotations

import logging
from typing import Optional

from lxml.etree import ParserError
from readability import Document
from readability.readability import Unparseable

from ..config.config import ReadabilitySettings
from ..dom.parser import SoupDocumentParser
from ..dom.serialize import to_html
from ..dom.tree import DocumentTree, Node
from ..protocols import Summary
from .presets import DEFAULT_PRESET, ContentTypePreset, get_preset, preset_for_url

logger = logging.getLogger(__name__)


class ReadabilitySummarizer:
    """Summarizer using readability-lxml, tuned per content type.

    The first pass uses the preset matched from the document URL. When it
    yields no more text than the preset's threshold, a second pass runs with
    the threshold halved (never below 200 characters).
    """

    name = "readability"

    def __init__(
        self,
        settings: Optional[ReadabilitySettings] = None,
        parser: Optional[SoupDocumentParser] = None,
    ) -> None:
        self.settings = settings or ReadabilitySettings()
        self.parser = parser or SoupDocumentParser()

        self.forced_preset: Optional[ContentTypePreset] = None
        if self.settings.preset:
            self.forced_preset = get_preset(self.settings.preset)
            if self.forced_preset is None:
                raise ValueError(f"Unknown readability preset: {self.settings.preset!r}")

    def summarize(self, document: DocumentTree) -> Optional[Summary]:
        if not document.root.has_text():
            return None
        html = to_html(document.root)

        if self.forced_preset is not None:
            preset = self.forced_preset
        elif self.settings.use_presets:
            preset = preset_for_url(document.url)
        else:
            preset = DEFAULT_PRESET
        logger.debug("Readability preset %s for %s", preset.name, document.url or "<no url>")

        summary = self._run(html, document, preset)
        if summary is not None and len(summary.node.normalized_text()) > preset.char_threshold:
            return summary

        if not self.settings.lenient_retry:
            return summary

        logger.debug("First readability pass too short, retrying leniently")
        retry = self._run(html, document, preset.lenient())
        return retry if retry is not None else summary

    def _run(self, html: str, document: DocumentTree, preset: ContentTypePreset) -> Optional[Summary]:
        try:
            doc = Document(
                html,
                url=document.url or None,
                min_text_length=self.settings.min_text_length,
                retry_length=max(self.settings.retry_length, preset.char_threshold),
                positive_keywords=list(preset.positive_keywords),
                negative_keywords=list(preset.negative_keywords),
            )
            content_html = doc.summary(html_partial=True)
            title = doc.short_title() or document.title
        except (Unparseable, ParserError, ValueError) as e:
            logger.warning(f"Readability extraction failed: {e}")
            return None

        if not content_html or not content_html.strip():
            return None

        node: Node = self.parser.parse_fragment(content_html)
        if not node.has_text():
            return None
        return Summary(node=node, title=title or "")
