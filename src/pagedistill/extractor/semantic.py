"""
Semantic-container lookup for the semantic pipeline stage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..config.config import SemanticConfig
from ..dom.selectors import select
from ..dom.tree import DocumentTree, Node
from ..protocols import StageKind
from ..quality.gates import QualityGateEvaluator, QualityGateResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatedCandidate:
    node: Node
    gate: QualityGateResult


class SemanticExtractor:
    """Finds the main content by its semantic container (``<article>``, ``<main>``, ARIA roles)."""

    name = "semantic"

    def __init__(self, evaluator: QualityGateEvaluator, config: Optional[SemanticConfig] = None) -> None:
        self.evaluator = evaluator
        self.config = config or SemanticConfig()

    def extract(self, document: DocumentTree) -> Optional[GatedCandidate]:
        """Return the first matching container that passes the gate.

        Selectors are tried in priority order and matches in document order.
        When none passes, the best-scoring match is returned so the caller can
        report why it was rejected. ``None`` means no container exists at all.
        """
        best: Optional[GatedCandidate] = None
        seen = set()
        for selector in self.config.selectors:
            for node in select(document.root, selector):
                if id(node) in seen or not node.has_text():
                    continue
                seen.add(id(node))

                gate = self.evaluator.evaluate(node, StageKind.SEMANTIC)
                candidate = GatedCandidate(node=node, gate=gate)
                if gate.passed:
                    logger.debug("Semantic container %r passed with score %d", selector, gate.score)
                    return candidate
                if best is None or gate.score > best.gate.score:
                    best = candidate

        if best is not None:
            logger.debug("No semantic container passed; best <%s> scored %d", best.node.tag, best.gate.score)
        return best
