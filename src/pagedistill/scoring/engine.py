"""
Heuristic scoring of document elements.

Every element gets a score from its tag, its class/id keywords, its link
density and its content. The highest-scoring element is the best guess
at the main content region; ``prune`` then drops low-scoring blocks from a
copy of that region.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern

from ..config.config import ScoringConfig
from ..dom.tree import Node

logger = logging.getLogger(__name__)

# Only block-level containers are candidates for removal; inline markup and
# text always stay with their parent.
BLOCK_TAGS = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "details",
        "dialog",
        "div",
        "dl",
        "fieldset",
        "figure",
        "footer",
        "form",
        "header",
        "hgroup",
        "li",
        "main",
        "menu",
        "nav",
        "ol",
        "p",
        "section",
        "table",
        "ul",
    }
)

HEADING_TAGS = frozenset({"h1", "h2", "h3"})

_HIDDEN_STYLE_RE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden|opacity\s*:\s*0(?:\.0+)?\s*(?:;|$)", re.I)
_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class ScoredCandidate:
    node: Node
    score: float


def _keyword_pattern(keywords: Iterable[str]) -> Optional[Pattern[str]]:
    words = [re.escape(word.lower()) for word in keywords if word]
    if not words:
        return None
    return re.compile("(" + "|".join(words) + ")")


def is_hidden(node: Node) -> bool:
    if node.has_attr("hidden") or node.get("aria-hidden") == "true":
        return True
    style = node.get("style")
    return bool(style and _HIDDEN_STYLE_RE.search(style))


class ScoringEngine:
    """Scores elements and isolates the most content-like region of a tree."""

    def __init__(self, config: Optional[ScoringConfig] = None) -> None:
        self.config = config or ScoringConfig()
        self._positive = _keyword_pattern(self.config.positive_keywords)
        self._negative = _keyword_pattern(self.config.negative_keywords)
        self._negative_tokens = frozenset(token.lower() for token in self.config.negative_tokens)

    # --- Scoring ---

    def score_node(self, node: Node) -> float:
        """Score a single element. Text nodes, hidden and tiny elements score 0."""
        if not node.is_element or is_hidden(node):
            return 0.0

        text = node.text_content().strip()
        if len(text) < self.config.min_text_length:
            return 0.0

        score = 0.0
        score += self._score_by_class_name(node)
        score += self.config.tag_weights.get(node.tag, 0.0)
        score -= self._link_density_penalty(node, len(text))
        score += self._score_by_content(node, len(text))
        return score

    def _score_by_class_name(self, node: Node) -> float:
        class_and_id = f"{node.get('class', '')} {node.id}".lower()
        score = 0.0
        if self._is_negative(class_and_id):
            score += self.config.negative_weight
        if self._positive is not None and self._positive.search(class_and_id):
            score += self.config.positive_weight
        return score

    def _is_negative(self, class_and_id: str) -> bool:
        if self._negative is not None and self._negative.search(class_and_id):
            return True
        return any(token in self._negative_tokens for token in _TOKEN_SPLIT_RE.split(class_and_id))

    def _link_density_penalty(self, node: Node, text_length: int) -> float:
        text_length = max(1, text_length)
        link_length = sum(len(anchor.text_content()) for anchor in node.find_all("a"))
        density = link_length / text_length
        if density > self.config.link_density_limit:
            return density**2 * text_length * 0.5
        return 0.0

    def _score_by_content(self, node: Node, text_length: int) -> float:
        config = self.config
        score = float(text_length // 100)

        if node.find_all("table"):
            score += config.table_bonus

        direct_paragraphs = sum(1 for child in node.element_children if child.tag == "p")
        score += direct_paragraphs * config.paragraph_bonus

        headings = sum(1 for element in node.iter_elements() if element.tag in HEADING_TAGS)
        score += min(config.heading_cap, headings * config.heading_bonus)
        return score

    # --- Candidate selection ---

    def find_best_candidate(self, root: Node) -> Optional[ScoredCandidate]:
        """Return the highest-scoring element under ``root`` (inclusive).

        Ties go to the element met first in document order. Returns ``None``
        when no element scores above zero.
        """
        best: Optional[ScoredCandidate] = None
        for node, depth in root.iter_with_depth():
            if depth > self.config.max_depth:
                continue
            score = self.score_node(node)
            if score <= 0:
                continue
            if best is None or score > best.score:
                best = ScoredCandidate(node=node, score=score)

        if best is not None:
            logger.debug("Best candidate <%s> scored %.1f", best.node.tag, best.score)
        return best

    # --- Pruning ---

    def prune(self, root: Node) -> Node:
        """Return a copy of ``root`` with low-scoring block subtrees removed.

        Children are pruned before their parent is scored, so a parent is
        judged on what survives below it. ``root`` itself is always kept and
        is never modified; untouched subtrees are shared with the input.
        """
        pruned = self._prune(root, is_root=True)
        assert pruned is not None
        return pruned

    def _prune(self, node: Node, is_root: bool = False) -> Optional[Node]:
        if not node.is_element:
            return node

        kept: List[Node] = []
        changed = False
        for child in node.children:
            result = self._prune(child)
            if result is None:
                changed = True
                continue
            if result is not child:
                changed = True
            kept.append(result)

        rebuilt = node.replace_children(kept) if changed else node
        if is_root or rebuilt.tag not in BLOCK_TAGS:
            return rebuilt

        score = self.score_node(rebuilt)
        if score < self.config.removal_threshold:
            logger.debug("Pruning <%s id=%r class=%r> with score %.1f", node.tag, node.id, node.get("class"), score)
            return None
        return rebuilt
