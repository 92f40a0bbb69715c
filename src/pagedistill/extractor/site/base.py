"""
Site-specific extraction anchored on stable structural elements.

Sites built from web components keep their component names stable while
class names churn with every redesign. Extractors here key on those names
(the "anchors"), read through the components' shadow roots, and clean the
resulting text with site-specific noise patterns.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Pattern, Protocol, Sequence, Tuple, runtime_checkable

from ...config.config import SiteExtractorConfig
from ...dom.selectors import select_one
from ...dom.tree import DocumentTree, Node

logger = logging.getLogger(__name__)

NOISE_TAGS = frozenset({"button", "nav", "header", "footer", "aside", "form", "input", "svg"})
NOISE_ATTRIBUTES = ("data-click", "data-adunit", "hidden", "aria-hidden")
BUTTON_LIKE_TAGS = frozenset({"a", "button", "span"})

# Elements that end a line of collected text.
LINE_BREAK_TAGS = frozenset(
    {
        "article",
        "blockquote",
        "br",
        "dd",
        "div",
        "dt",
        "figcaption",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "li",
        "main",
        "ol",
        "p",
        "pre",
        "section",
        "tr",
        "ul",
    }
)

MIN_TEXT_PIECE = 4
MIN_LINE_LENGTH = 6
_HEADING_LINE_RE = re.compile(r"^#+\s")
_DISPLAY_NONE_RE = re.compile(r"display\s*:\s*none", re.I)


@dataclass(frozen=True)
class ExtractionMetadata:
    strategy: str
    shadow_depth: int
    noise_filtered: bool
    quality_score: int


@dataclass(frozen=True)
class ExtractionResult:
    content: str
    metadata: ExtractionMetadata


@runtime_checkable
class SiteExtractor(Protocol):
    """A strategy that only runs on the site it was written for."""

    name: str

    def applies_to(self, document: DocumentTree) -> bool:
        ...

    def extract(self, document: DocumentTree) -> Optional[ExtractionResult]:
        ...


class AnchoredSiteExtractor:
    """
    Base class for extractors keyed on a site's custom elements.

    Subclasses declare the URL patterns, the primary anchor tag, an optional
    secondary anchor (a discussion thread, say), the noise patterns to strip
    and the light-tree sections used when shadow traversal finds nothing.
    """

    name = "site"
    url_patterns: Tuple[Pattern[str], ...] = ()
    anchor_tag = ""
    secondary_anchor: Optional[str] = None
    secondary_heading = "Comments"
    noise_patterns: Tuple[Pattern[str], ...] = ()
    button_texts: frozenset = frozenset()

    def __init__(self, config: Optional[SiteExtractorConfig] = None) -> None:
        self.config = config or SiteExtractorConfig()
        self._extra_noise = tuple(re.compile(p, re.I | re.M) for p in self.config.extra_noise_patterns)

    # --- Preconditions ---

    def matches_url(self, url: str) -> bool:
        return bool(url) and any(pattern.search(url) for pattern in self.url_patterns)

    def find_anchors(self, document: DocumentTree) -> List[Node]:
        return document.root.find_all(self.anchor_tag)

    def applies_to(self, document: DocumentTree) -> bool:
        """Cheap check: the URL belongs to the site and an anchor element exists."""
        if not self.matches_url(document.url):
            return False
        return any(True for _ in self._iter_anchor_tags(document.root))

    def _iter_anchor_tags(self, root: Node) -> Iterable[Node]:
        return (node for node in root.iter_elements() if node.tag == self.anchor_tag)

    # --- Extraction ---

    def extract(self, document: DocumentTree) -> Optional[ExtractionResult]:
        if not self.applies_to(document):
            return None

        anchors = self.find_anchors(document)
        strategies: Sequence[Callable[[DocumentTree, List[Node]], Optional[ExtractionResult]]] = (
            self._shadow_strategy,
            self._light_tree_strategy,
        )
        for strategy in strategies:
            result = strategy(document, anchors)
            if result is None:
                continue
            if self.is_acceptable(result):
                logger.debug(
                    "%s strategy %s succeeded with score %d (%d chars)",
                    self.name,
                    result.metadata.strategy,
                    result.metadata.quality_score,
                    len(result.content),
                )
                return result
            logger.debug(
                "%s strategy %s rejected: score %d, %d chars",
                self.name,
                result.metadata.strategy,
                result.metadata.quality_score,
                len(result.content),
            )
        return None

    def is_acceptable(self, result: ExtractionResult) -> bool:
        return (
            result.metadata.quality_score >= self.config.min_quality_score
            and len(result.content) >= self.config.min_content_length
        )

    def _shadow_strategy(self, document: DocumentTree, anchors: List[Node]) -> Optional[ExtractionResult]:
        sections: List[str] = []
        shadow_depth = 0
        for anchor in anchors:
            text, depth = self.traverse_shadow(anchor, 0)
            if text:
                sections.append(text)
                shadow_depth = max(shadow_depth, depth)

        if self.secondary_anchor:
            secondary = select_one(document.root, self.secondary_anchor)
            if secondary is not None:
                text, _ = self.traverse_shadow(secondary, 0)
                if len(text) >= MIN_LINE_LENGTH:
                    sections.append(f"## {self.secondary_heading}")
                    sections.append(text)

        if not sections:
            return None
        return self._build_result("shadow-dom-traversal", "\n\n".join(sections), shadow_depth)

    def _light_tree_strategy(self, document: DocumentTree, anchors: List[Node]) -> Optional[ExtractionResult]:
        sections = self.light_tree_sections(document, anchors)
        if not sections:
            return None
        return self._build_result("semantic-elements", "\n".join(sections), 0)

    def light_tree_sections(self, document: DocumentTree, anchors: List[Node]) -> List[str]:
        """Text sections found by selectors over the anchors' light trees."""
        return [text for text in (self.light_text(anchor) for anchor in anchors) if text]

    def _build_result(self, strategy: str, raw: str, shadow_depth: int) -> ExtractionResult:
        cleaned = self.filter_noise(raw)
        score = self.quality_score(cleaned, raw)
        return ExtractionResult(
            content=cleaned,
            metadata=ExtractionMetadata(
                strategy=strategy,
                shadow_depth=shadow_depth,
                noise_filtered=True,
                quality_score=score,
            ),
        )

    # --- Tree walking ---

    def traverse_shadow(self, element: Node, depth: int) -> Tuple[str, int]:
        """Collect the rendered text of ``element`` through nested shadow roots.

        Returns the text and the deepest shadow nesting reached. Elements with
        no shadow root fall back to their light-tree text.
        """
        if depth > self.config.max_shadow_depth:
            return "", depth
        if element.shadow_root is None:
            return self.light_text(element), depth

        parts: List[str] = []
        deepest = depth
        for child in element.shadow_root.children:
            deepest = max(deepest, self._walk(child, parts, element, depth))
        return _join_lines(parts), deepest

    def light_text(self, element: Node) -> str:
        parts: List[str] = []
        for child in element.children:
            self._walk(child, parts, None, 0, follow_shadow=False)
        return _join_lines(parts)

    def _walk(
        self,
        node: Node,
        parts: List[str],
        host: Optional[Node],
        depth: int,
        follow_shadow: bool = True,
    ) -> int:
        if node.is_text:
            text = node.text.strip()
            if len(text) >= MIN_TEXT_PIECE:
                parts.append(text)
            return depth
        if self.is_noise_element(node):
            return depth

        if node.tag == "slot" and host is not None:
            assigned = _assigned_nodes(host, node.get("name"))
            children: Sequence[Node] = assigned if assigned else node.children
            deepest = depth
            parts.append("\n")
            for child in children:
                deepest = max(deepest, self._walk(child, parts, None, depth, follow_shadow))
            parts.append("\n")
            return deepest

        breaks = node.tag in LINE_BREAK_TAGS or node.has_attr("slot")
        if breaks:
            parts.append("\n")

        deepest = depth
        if follow_shadow and node.shadow_root is not None:
            text, nested = self.traverse_shadow(node, depth + 1)
            if text:
                parts.append("\n")
                parts.append(text)
                parts.append("\n")
            deepest = max(deepest, nested)
        else:
            for child in node.children:
                deepest = max(deepest, self._walk(child, parts, host, depth, follow_shadow))

        if breaks:
            parts.append("\n")
        return deepest

    def is_noise_element(self, node: Node) -> bool:
        if node.tag in NOISE_TAGS:
            return True
        if any(node.has_attr(attr) for attr in NOISE_ATTRIBUTES):
            return True
        style = node.get("style")
        if style and _DISPLAY_NONE_RE.search(style):
            return True
        if node.tag in BUTTON_LIKE_TAGS:
            text = node.normalized_text()
            if 0 < len(text) < 20 and " " not in text and text.lower() in self.button_texts:
                return True
        return False

    # --- Post-processing ---

    def filter_noise(self, content: str) -> str:
        """Strip noise patterns, drop tiny lines and collapse adjacent duplicates."""
        cleaned = content
        for pattern in self.noise_patterns + self._extra_noise:
            cleaned = pattern.sub("", cleaned)

        # Leading whitespace is kept: it carries comment nesting.
        kept: List[str] = []
        previous = None
        for line in cleaned.split("\n"):
            stripped = line.strip()
            if len(stripped) < MIN_LINE_LENGTH and not _HEADING_LINE_RE.match(stripped):
                continue
            if stripped == previous:
                continue
            kept.append(line.rstrip())
            previous = stripped
        return "\n\n".join(kept).strip()

    def quality_score(self, cleaned: str, raw: str) -> int:
        """Score 0-100 from how much was filtered and what remains."""
        noise_reduction = 1 - (len(cleaned) / len(raw)) if raw else 0.0
        word_count = len(cleaned.split())
        avg_word_length = len(cleaned) / (word_count or 1)

        score = 100
        if noise_reduction > 0.8:
            score -= 20
        if noise_reduction < 0.3:
            score -= 20
        if word_count < self.config.min_word_count:
            score -= 30
        if avg_word_length < 4:
            score -= 10
        return max(0, min(100, score))


def _assigned_nodes(host: Node, slot_name: Optional[str]) -> List[Node]:
    if slot_name:
        return [child for child in host.children if child.is_element and child.get("slot") == slot_name]
    return [child for child in host.children if child.is_text or not child.has_attr("slot")]


def _join_lines(parts: Iterable[str]) -> str:
    lines = (line.strip() for line in " ".join(parts).split("\n"))
    return "\n".join(line for line in lines if line)
