"""Node tree, span and diagnostic models for spanned-yaml."""

from spanned_yaml.models.errors import Diagnostic, SourceSpan
from spanned_yaml.models.nodes import MappingNode, Node, NodeKind, ScalarNode, SequenceNode
from spanned_yaml.models.span import Marker, Span

__all__ = [
    "Diagnostic",
    "MappingNode",
    "Marker",
    "Node",
    "NodeKind",
    "ScalarNode",
    "SequenceNode",
    "SourceSpan",
    "Span",
]
