"""
Shared types and pluggable collaborator protocols.

The pipeline depends on these protocols rather than on concrete parser or
summarizer implementations, so callers can inject their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

from .dom.tree import DocumentTree, Node


class StageKind(Enum):
    """Extraction stages in the fixed order the pipeline tries them."""

    SITE_SPECIFIC = "site-specific"
    SEMANTIC = "semantic"
    READABILITY = "readability"
    HEURISTIC = "heuristic"

    @property
    def order(self) -> int:
        return STAGE_ORDER.index(self)


STAGE_ORDER = (
    StageKind.SITE_SPECIFIC,
    StageKind.SEMANTIC,
    StageKind.READABILITY,
    StageKind.HEURISTIC,
)


@dataclass(frozen=True)
class Summary:
    """Output of a readability-style summarizer."""

    node: Node
    title: str = ""


@runtime_checkable
class DocumentParser(Protocol):
    """Turns raw markup plus a source URL into a document tree."""

    def parse(self, markup: str, url: str = "") -> DocumentTree:
        ...


@runtime_checkable
class Summarizer(Protocol):
    """Readability-style main-content finder.

    Returns ``None`` when the document holds no article-like region.
    """

    name: str

    def summarize(self, document: DocumentTree) -> Optional[Summary]:
        ...
