"""
BeautifulSoup mirrors of node trees.

CSS matching and markup output are delegated to BeautifulSoup (and soupsieve
behind ``Tag.select``). A mirror rebuilds a node subtree as bs4 tags and keeps
the way back from each tag to the node it was built from, so selector results
come back as :class:`Node` objects. Shadow roots are mirrored as declarative
``<template shadowrootmode="open">`` elements, first among the host's children.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, Optional, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

from .tree import SHADOW_ROOT_TAG, Node

# Minimal entity substitution, void elements written as ``<br>``.
HTML_FORMATTER = HTMLFormatter(entity_substitution=EntitySubstitution.substitute_xml, void_element_close_prefix=None)


class SoupMirror:
    """A read-only bs4 copy of a node subtree."""

    def __init__(self, root: Node, include_shadow: bool = False) -> None:
        self.root = root
        self.include_shadow = include_shadow
        self.soup = BeautifulSoup("", "html.parser")
        self._nodes: Dict[int, Node] = {}
        self.top = self._build(root)
        self.soup.append(self.top)

    def node_for(self, element: Tag) -> Optional[Node]:
        return self._nodes.get(id(element))

    def render(self, inner: bool = False) -> str:
        if isinstance(self.top, Tag):
            if inner:
                return self.top.decode_contents(formatter=HTML_FORMATTER)
            return self.top.decode(formatter=HTML_FORMATTER)
        return "" if inner else self.top.output_ready(HTML_FORMATTER)

    def _build(self, node: Node) -> Union[Tag, NavigableString]:
        if node.is_text:
            return NavigableString(node.text)

        if node.tag == SHADOW_ROOT_TAG:
            element = self.soup.new_tag("template", attrs={"shadowrootmode": "open"})
        else:
            element = self.soup.new_tag(node.tag, attrs=dict(node.attrs))
        self._nodes[id(element)] = node

        if self.include_shadow and node.shadow_root is not None:
            element.append(self._build(node.shadow_root))
        for child in node.children:
            element.append(self._build(child))
        return element


@lru_cache(maxsize=32)
def mirror_for(root: Node, include_shadow: bool = False) -> SoupMirror:
    """Cached mirror of ``root``; nodes are immutable so a mirror never goes stale."""
    return SoupMirror(root, include_shadow)
