"""Document tree model, parser, CSS selection and serialization."""

from __future__ import annotations

from .parser import SoupDocumentParser
from .selectors import SelectorSyntaxError, select, select_one
from .serialize import inner_html, to_html
from .tree import DocumentTree, Node

__all__ = [
    "DocumentTree",
    "Node",
    "SoupDocumentParser",
    "select",
    "select_one",
    "SelectorSyntaxError",
    "to_html",
    "inner_html",
]
