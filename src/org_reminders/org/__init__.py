"""Org outline model: parser, typed document and surgical writer."""

from .document import OrgDocument
from .headline import Headline, NodeRef
from .syntax import OrgParser, SyntaxNode, SyntaxTree
from .writer import OrgWriter

__all__ = [
    "Headline",
    "NodeRef",
    "OrgDocument",
    "OrgParser",
    "OrgWriter",
    "SyntaxNode",
    "SyntaxTree",
]
