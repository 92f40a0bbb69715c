"""
Immutable document tree.

Nodes are never edited in place. Operations that need a different shape
(pruning, for instance) build new nodes with ``Node.replace_children`` and
share every untouched subtree with the original.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Sequence, Tuple

TEXT_TAG = "#text"
SHADOW_ROOT_TAG = "#shadow-root"

_WHITESPACE_RE = re.compile(r"\s+")

_EMPTY_ATTRS: Mapping[str, str] = MappingProxyType({})


@dataclass(frozen=True, eq=False)
class Node:
    """A single element, text run, or shadow-root fragment."""

    tag: str
    attrs: Mapping[str, str] = field(default_factory=lambda: _EMPTY_ATTRS)
    children: Tuple["Node", ...] = ()
    text: str = ""
    shadow_root: Optional["Node"] = None

    # --- Construction ---

    @classmethod
    def element(
        cls,
        tag: str,
        attrs: Optional[Mapping[str, str]] = None,
        children: Sequence["Node"] = (),
        shadow_root: Optional["Node"] = None,
    ) -> "Node":
        frozen_attrs = MappingProxyType(dict(attrs)) if attrs else _EMPTY_ATTRS
        return cls(tag=tag.lower(), attrs=frozen_attrs, children=tuple(children), shadow_root=shadow_root)

    @classmethod
    def text_node(cls, text: str) -> "Node":
        return cls(tag=TEXT_TAG, text=text)

    @classmethod
    def fragment(cls, children: Sequence["Node"]) -> "Node":
        """A shadow-root fragment holding the encapsulated children of a host."""
        return cls(tag=SHADOW_ROOT_TAG, children=tuple(children))

    def replace_children(self, children: Sequence["Node"]) -> "Node":
        return replace(self, children=tuple(children))

    # --- Basic accessors ---

    @property
    def is_text(self) -> bool:
        return self.tag == TEXT_TAG

    @property
    def is_element(self) -> bool:
        return not self.is_text and self.tag != SHADOW_ROOT_TAG

    @property
    def id(self) -> str:
        return self.attrs.get("id", "")

    @property
    def classes(self) -> Tuple[str, ...]:
        return tuple(self.attrs.get("class", "").split())

    @property
    def element_children(self) -> Tuple["Node", ...]:
        return tuple(child for child in self.children if child.is_element)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attrs.get(name, default)

    def has_attr(self, name: str) -> bool:
        return name in self.attrs

    # --- Traversal ---

    def iter_descendants(self, include_shadow: bool = False) -> Iterator["Node"]:
        """Yield every descendant in document order (pre-order), excluding ``self``."""
        stack = list(reversed(self._traversal_children(include_shadow)))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node._traversal_children(include_shadow)))

    def iter_elements(self, include_shadow: bool = False) -> Iterator["Node"]:
        return (node for node in self.iter_descendants(include_shadow) if node.is_element)

    def iter_with_depth(self, include_shadow: bool = False) -> Iterator[Tuple["Node", int]]:
        """Yield ``(element, depth)`` pairs, ``self`` first at depth 0."""
        stack = [(self, 0)]
        while stack:
            node, depth = stack.pop()
            if node.is_element:
                yield node, depth
            for child in reversed(node._traversal_children(include_shadow)):
                stack.append((child, depth + 1))

    def find_all(self, tag: str, include_shadow: bool = False) -> list["Node"]:
        tag = tag.lower()
        return [node for node in self.iter_elements(include_shadow) if node.tag == tag]

    def _traversal_children(self, include_shadow: bool) -> Tuple["Node", ...]:
        if include_shadow and self.shadow_root is not None:
            return (self.shadow_root,) + self.children
        return self.children

    # --- Text ---

    def text_content(self, include_shadow: bool = False) -> str:
        """Concatenated text of every text node below this node."""
        if self.is_text:
            return self.text
        return "".join(node.text for node in self.iter_descendants(include_shadow) if node.is_text)

    def normalized_text(self, include_shadow: bool = False) -> str:
        return _WHITESPACE_RE.sub(" ", self.text_content(include_shadow)).strip()

    def has_text(self, include_shadow: bool = False) -> bool:
        if self.is_text:
            return bool(self.text.strip())
        return any(node.is_text and node.text.strip() for node in self.iter_descendants(include_shadow))

    def __repr__(self) -> str:
        if self.is_text:
            preview = self.text[:30]
            return f"Node(#text {preview!r})"
        ident = f"#{self.id}" if self.id else ""
        return f"Node(<{self.tag}{ident}> children={len(self.children)})"


@dataclass(frozen=True)
class DocumentTree:
    """A parsed document: its root element plus where it came from."""

    root: Node
    url: str = ""
    title: str = ""

    @property
    def body(self) -> Node:
        for node in self.root.iter_elements():
            if node.tag == "body":
                return node
        return self.root
