"""
Markup serialization for document trees, rendered by BeautifulSoup.
"""

from __future__ import annotations

from .mirror import mirror_for
from .tree import Node


def to_html(node: Node, include_shadow: bool = False) -> str:
    """Serialize ``node`` including its own tag (``outerHTML``)."""
    return mirror_for(node, include_shadow).render()


def inner_html(node: Node, include_shadow: bool = False) -> str:
    """Serialize only the children of ``node`` (``innerHTML``)."""
    return mirror_for(node, include_shadow).render(inner=True)
