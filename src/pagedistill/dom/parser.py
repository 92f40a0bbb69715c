"""
BeautifulSoup-backed document parser.

Turns markup into an immutable :class:`DocumentTree`. Declarative shadow roots
(``<template shadowrootmode="open">`` and the older ``shadowroot`` attribute)
become the host's ``shadow_root`` instead of ordinary children.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.element import CData, Declaration, Doctype, ProcessingInstruction

from .tree import DocumentTree, Node

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

# Never part of readable content; dropped while parsing.
DROPPED_TAGS = frozenset({"script", "style", "noscript"})
PRESERVE_WHITESPACE_TAGS = frozenset({"pre", "textarea"})
_SKIPPED_STRINGS = (Comment, CData, Declaration, Doctype, ProcessingInstruction)


class SoupDocumentParser:
    """Parse HTML into a :class:`DocumentTree` using BeautifulSoup."""

    name = "soup"

    def __init__(self, features: str = "html.parser") -> None:
        # html.parser keeps custom elements and <template> children intact.
        self.features = features

    def parse(self, markup: str, url: str = "") -> DocumentTree:
        soup = BeautifulSoup(markup or "", self.features)

        title = ""
        title_tag = soup.find("title")
        if title_tag is not None:
            title = title_tag.get_text(strip=True)

        html_tag = soup.find("html")
        if isinstance(html_tag, Tag):
            root = self._convert_element(html_tag, preserve=False)
        else:
            # Fragments without an <html> wrapper get a synthetic one.
            root = Node.element("html", children=self._convert_children(soup, preserve=False))

        assert root is not None
        logger.debug("Parsed document url=%s title=%r", url, title)
        return DocumentTree(root=root, url=url, title=title)

    def parse_fragment(self, markup: str) -> Node:
        """Parse a markup snippet into a ``div`` holding its top-level nodes."""
        soup = BeautifulSoup(markup or "", self.features)
        body = soup.find("body")
        container = body if isinstance(body, Tag) else soup
        return Node.element("div", children=self._convert_children(container, preserve=False))

    def _convert_element(self, tag: Tag, preserve: bool) -> Optional[Node]:
        name = (tag.name or "").lower()
        if name in DROPPED_TAGS:
            return None

        preserve = preserve or name in PRESERVE_WHITESPACE_TAGS
        attrs = {key.lower(): _attr_value(value) for key, value in tag.attrs.items()}

        shadow_root: Optional[Node] = None
        children: List[Node] = []
        for child in tag.children:
            if isinstance(child, Tag) and _is_shadow_template(child) and shadow_root is None:
                shadow_root = Node.fragment(self._convert_children(child, preserve))
                continue
            converted = self._convert_child(child, preserve)
            if converted is not None:
                children.append(converted)

        return Node.element(name, attrs, children, shadow_root=shadow_root)

    def _convert_children(self, parent: Tag, preserve: bool) -> List[Node]:
        children: List[Node] = []
        for child in parent.children:
            converted = self._convert_child(child, preserve)
            if converted is not None:
                children.append(converted)
        return children

    def _convert_child(self, child: object, preserve: bool) -> Optional[Node]:
        if isinstance(child, Tag):
            return self._convert_element(child, preserve)
        if isinstance(child, _SKIPPED_STRINGS):
            return None
        if isinstance(child, NavigableString):
            text = str(child) if preserve else _WHITESPACE_RE.sub(" ", str(child))
            return Node.text_node(text) if text else None
        return None


def _is_shadow_template(tag: Tag) -> bool:
    return (tag.name or "").lower() == "template" and (
        tag.has_attr("shadowrootmode") or tag.has_attr("shadowroot")
    )


def _attr_value(value: object) -> str:
    # bs4 splits multi-valued attributes such as class into lists.
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value)
    return str(value)
