"""
CSS selection over :class:`~pagedistill.dom.tree.Node` trees.

Selectors run through BeautifulSoup's ``select`` (soupsieve) on a mirror of
the searched subtree, so the full CSS level 4 syntax soupsieve supports is
available. Matching follows ``Element.querySelectorAll``: only descendants of
``root`` are returned, in document order.
"""

from __future__ import annotations

from typing import List, Optional

from soupsieve import SelectorSyntaxError

from .mirror import mirror_for
from .tree import Node

__all__ = ["SelectorSyntaxError", "select", "select_one"]


def select(root: Node, selector: str, include_shadow: bool = False) -> List[Node]:
    """Return descendants of ``root`` matching ``selector`` in document order."""
    if not root.is_element:
        return []
    mirror = mirror_for(root, include_shadow)
    found: List[Node] = []
    for element in mirror.top.select(selector):
        node = mirror.node_for(element)
        if node is not None and node.is_element:
            found.append(node)
    return found


def select_one(root: Node, selector: str, include_shadow: bool = False) -> Optional[Node]:
    for node in select(root, selector, include_shadow):
        return node
    return None
